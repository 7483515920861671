from dataclasses import replace

from dbkeep.composer.reconciler import reconcile_schema, reconcile_tables
from dbkeep.model_manager.parser.sql_parser import parse_sql
from dbkeep.types.schema_types import Column, NodePosition, Relation, Schema, TableData


def _parsed_schema(sql, dialect="PostgreSQL"):
    result = parse_sql(sql, dialect)
    assert result.success is True
    return Schema(tables=result.tables, relations=result.relations)


def _table(table_id, name, *column_names):
    return TableData(
        id=table_id,
        name=name,
        columns=[Column(id=f"{table_id}-{column}", name=column) for column in column_names],
    )


def test_table_rename_keeps_identity():
    """위치가 같은 테이블의 이름만 바뀌면 식별자와 캔버스 위치를 유지한다."""
    original_sql = "CREATE TABLE customers (id SERIAL PRIMARY KEY, name TEXT);"
    edited_sql = "CREATE TABLE clients (id SERIAL PRIMARY KEY, name TEXT, email TEXT);"

    old_schema = _parsed_schema(original_sql)
    customers = old_schema.tables[0]
    customers.position = NodePosition(x=120, y=80)
    customers.color = "#ef4444"

    result = reconcile_schema(old_schema, original_sql, _parsed_schema(edited_sql), "PostgreSQL")

    assert result.renamed_tables == {"customers": "clients"}
    clients = result.tables[0]
    assert clients.name == "clients"
    assert clients.id == customers.id
    assert clients.position == NodePosition(x=120, y=80)
    assert clients.color == "#ef4444"

    old_ids = {column.name: column.id for column in customers.columns}
    new_ids = {column.name: column.id for column in clients.columns}
    assert new_ids["id"] == old_ids["id"]
    assert new_ids["name"] == old_ids["name"]
    assert new_ids["email"] not in old_ids.values()


def test_exact_name_match_takes_precedence():
    """이름이 그대로인 테이블이 먼저 매칭되고 남은 테이블만 위치로 매칭한다."""
    old_a = _table("old-a", "a", "id")
    old_b = _table("old-b", "b", "id")
    new_c = _table("new-c", "c", "id")
    new_b = _table("new-b", "b", "id")

    result = reconcile_tables([old_a, old_b], [], ["a", "b"], [new_c, new_b], [])

    assert [table.id for table in result.tables] == ["old-a", "old-b"]
    assert [table.name for table in result.tables] == ["c", "b"]
    assert result.renamed_tables == {"a": "c"}


def test_positional_match_skips_claimed_tables():
    old_a = _table("old-a", "a", "id")
    old_b = _table("old-b", "b", "id")
    # 첫 번째 위치의 새 테이블은 이름으로 b를 이미 차지함
    new_b = _table("new-b", "b", "id")
    new_x = _table("new-x", "x", "id")

    result = reconcile_tables([old_a, old_b], [], ["b", "a"], [new_b, new_x], [])

    assert [table.id for table in result.tables] == ["old-b", "old-a"]
    assert result.renamed_tables == {"a": "x"}


def test_unparseable_original_sql_gives_fresh_identity():
    old_schema = Schema(tables=[_table("old-a", "accounts", "id")])
    new_schema = _parsed_schema("CREATE TABLE users (id INT);")

    result = reconcile_schema(old_schema, "CREATE TABLE accounts (id INT", new_schema, "PostgreSQL")

    assert result.tables[0].id == new_schema.tables[0].id
    assert result.renamed_tables == {}


def test_relations_are_carried_and_deduplicated(blog_schema):
    """기존 관계는 식별자를 유지하고 같은 컬럼 쌍의 새 관계는 추가하지 않는다."""
    sql = """
        CREATE TABLE users (id SERIAL PRIMARY KEY, email VARCHAR(255) NOT NULL UNIQUE, active BOOLEAN);
        CREATE TABLE posts (
            id SERIAL PRIMARY KEY,
            user_id INT NOT NULL REFERENCES users(id),
            title TEXT
        );
    """

    result = reconcile_schema(blog_schema, sql, _parsed_schema(sql), "PostgreSQL")

    assert [table.id for table in result.tables] == ["t-users", "t-posts"]
    assert len(result.relations) == 1
    relation = result.relations[0]
    assert relation.id == "r-posts-users"
    assert relation.on_delete == "CASCADE"


def test_new_relation_is_remapped_to_kept_ids(blog_schema):
    schema = Schema(tables=blog_schema.tables, relations=[])
    sql = """
        CREATE TABLE users (id SERIAL PRIMARY KEY);
        CREATE TABLE posts (id SERIAL PRIMARY KEY, user_id INT REFERENCES users(id) ON DELETE SET NULL);
    """

    result = reconcile_schema(schema, sql, _parsed_schema(sql), "PostgreSQL")

    assert len(result.relations) == 1
    relation = result.relations[0]
    assert relation.source_table_id == "t-posts"
    assert relation.source_column_id == "c-posts-user-id"
    assert relation.target_table_id == "t-users"
    assert relation.target_column_id == "c-users-id"
    assert relation.on_delete == "SET NULL"


def test_relation_with_removed_endpoint_is_dropped(blog_schema):
    sql = """
        CREATE TABLE users (id SERIAL PRIMARY KEY);
        CREATE TABLE posts (id SERIAL PRIMARY KEY, title TEXT);
    """

    result = reconcile_schema(blog_schema, sql, _parsed_schema(sql), "PostgreSQL")

    assert result.relations == []
    assert [column.name for column in result.tables[1].columns] == ["id", "title"]


def test_inputs_are_not_mutated(blog_schema):
    before_tables = [replace(table, columns=list(table.columns)) for table in blog_schema.tables]
    before_relations = list(blog_schema.relations)
    new_schema = _parsed_schema("CREATE TABLE members (id SERIAL PRIMARY KEY);")
    new_table_id = new_schema.tables[0].id

    result = reconcile_schema(blog_schema, "CREATE TABLE users (id SERIAL PRIMARY KEY);", new_schema, "PostgreSQL")

    assert result.tables[0].id == "t-users"
    assert result.tables[0] is not blog_schema.tables[0]
    assert blog_schema.tables == before_tables
    assert blog_schema.relations == before_relations
    assert blog_schema.tables[0].name == "users"
    assert new_schema.tables[0].id == new_table_id


def test_schema_property():
    relation = Relation(id="r", source_table_id="t", source_column_id="t-a",
                        target_table_id="t", target_column_id="t-b")
    table = _table("t", "self_ref", "a", "b")

    result = reconcile_tables([table], [relation], ["self_ref"], [_table("n", "self_ref", "a", "b")], [])

    assert result.schema.tables == result.tables
    assert result.schema.relations == [relation]
