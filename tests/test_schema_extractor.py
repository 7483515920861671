from dbkeep.model_manager.parser.schema_extractor import extract_schema
from dbkeep.types.schema_types import ColumnType


def _col(name, data_type, **fields):
    col_def = {
        "resource": "column",
        "column": {"type": "column_ref", "column": name},
        "definition": {"dataType": data_type},
    }
    col_def.update(fields)
    return col_def


def _create(table, *definitions):
    return {
        "type": "create",
        "keyword": "table",
        "table": [{"db": None, "table": table}],
        "create_definitions": list(definitions),
    }


def _foreign_key(column, target_table, target_column, **reference_fields):
    reference = {
        "table": [{"table": target_table}],
        "definition": [{"type": "column_ref", "column": target_column}],
    }
    reference.update(reference_fields)
    return {
        "resource": "constraint",
        "constraint_type": "FOREIGN KEY",
        "definition": [{"type": "column_ref", "column": column}],
        "reference_definition": reference,
    }


def test_malformed_column_is_dropped():
    """이름 없는 컬럼 정의는 버려지고 나머지 컬럼으로 테이블이 만들어진다."""
    statements = [_create(
        "users",
        _col("id", "SERIAL", primary_key=True),
        {"resource": "column", "definition": {"dataType": "INT"}},
    )]

    tables, relations = extract_schema(statements)

    assert len(tables) == 1
    assert [column.name for column in tables[0].columns] == ["id"]
    assert relations == []


def test_table_without_columns_is_dropped():
    tables, _ = extract_schema([_create("empty"), _create("ok", _col("id", "INT"))])

    assert [table.name for table in tables] == ["ok"]


def test_duplicate_table_name_keeps_first_definition():
    tables, _ = extract_schema([
        _create("users", _col("id", "INT")),
        _create("USERS", _col("other", "INT")),
    ])

    assert len(tables) == 1
    assert tables[0].columns[0].name == "id"


def test_column_conversion():
    tables, _ = extract_schema([_create(
        "items",
        _col("id", "INT", auto_increment=True, primary_key=True),
        _col("name", "VARCHAR", nullable={"type": "not null"}, definition={"dataType": "VARCHAR", "length": 80}),
        _col("price", "DECIMAL", definition={"dataType": "DECIMAL", "length": [10, 2]}),
        _col("note", "TEXT", default_val={"type": "default", "value": {"type": "null", "value": None}}),
    )])
    columns = {column.name: column for column in tables[0].columns}

    # INT + AUTO_INCREMENT는 SERIAL
    assert columns["id"].type == ColumnType.SERIAL
    assert columns["id"].primary_key is True
    assert columns["id"].nullable is False
    assert columns["id"].unique is True

    assert columns["name"].type == ColumnType.VARCHAR
    assert columns["name"].length == 80
    assert columns["name"].nullable is False

    assert (columns["price"].precision, columns["price"].scale) == (10, 2)
    assert columns["note"].default == "NULL"
    assert columns["note"].nullable is True


def test_table_level_primary_key_and_unique():
    tables, _ = extract_schema([_create(
        "memberships",
        _col("user_id", "INT"),
        _col("group_id", "INT"),
        _col("code", "VARCHAR"),
        {"resource": "constraint", "constraint_type": "primary key",
         "definition": [{"column": "user_id"}, {"column": "GROUP_ID"}]},
        {"resource": "constraint", "constraint_type": "unique", "definition": [{"column": "code"}]},
    )])
    columns = {column.name: column for column in tables[0].columns}

    assert columns["user_id"].primary_key and columns["group_id"].primary_key
    assert columns["group_id"].nullable is False
    assert columns["code"].unique is True
    assert columns["code"].primary_key is False


def test_create_table_foreign_key():
    tables, relations = extract_schema([
        _create("users", _col("id", "SERIAL", primary_key=True)),
        _create(
            "posts",
            _col("id", "SERIAL", primary_key=True),
            _col("user_id", "INT"),
            _foreign_key("user_id", "Users", "id",
                         on_action=[{"type": "on update", "value": {"type": "origin", "value": "cascade"}}]),
        ),
    ])
    users, posts = tables

    assert len(relations) == 1
    relation = relations[0]
    assert relation.source_table_id == posts.id
    assert relation.source_column_id == posts.columns[1].id
    assert relation.target_table_id == users.id
    assert relation.target_column_id == users.columns[0].id
    assert relation.type.value == "1:N"
    assert relation.on_update == "CASCADE"
    assert relation.on_delete == "NO ACTION"


def test_inline_reference_creates_relation():
    reference = {"table": [{"table": "users"}], "definition": [{"column": "id"}], "on_delete": "SET NULL"}
    _, relations = extract_schema([
        _create("users", _col("id", "INT", primary_key=True)),
        _create("posts", _col("author_id", "INT", constraint=[{"type": "references", "reference": reference}])),
    ])

    assert len(relations) == 1
    assert relations[0].on_delete == "SET NULL"


def test_dangling_foreign_key_is_dropped():
    """참조 대상 테이블/컬럼이 없으면 관계를 만들지 않는다."""
    _, relations = extract_schema([
        _create("posts", _col("user_id", "INT"), _foreign_key("user_id", "users", "id")),
        _create("tags", _col("post_id", "INT"), _foreign_key("post_id", "posts", "missing_column")),
        _create("votes", _col("id", "INT"), _foreign_key("no_such_column", "posts", "user_id")),
    ])

    assert relations == []


def test_alter_table_foreign_key_shapes():
    """ALTER TABLE ... ADD FOREIGN KEY는 여러 위치의 정보를 모두 읽는다."""
    nested = {
        "type": "alter",
        "table": [{"table": "b"}],
        "expr": [{
            "action": "add",
            "resource": "constraint",
            "create_definitions": _foreign_key(
                "a_id", "a", "id",
                on_action=[{"type": "on delete", "value": {"type": "origin", "value": "CASCADE"}}],
            ),
        }],
    }
    flat_spec = _foreign_key("c_id", "c", "id", on_delete="restrict")
    flat_spec["action"] = "add"
    flat = {"type": "alter", "table": [{"table": "b"}], "expr": flat_spec}

    tables, relations = extract_schema([
        _create("a", _col("id", "SERIAL", primary_key=True)),
        _create("c", _col("id", "SERIAL", primary_key=True)),
        _create("b", _col("id", "SERIAL", primary_key=True), _col("a_id", "INT"), _col("c_id", "INT")),
        nested,
        flat,
    ])
    table_ids = {table.name: table.id for table in tables}

    assert len(relations) == 2
    assert relations[0].target_table_id == table_ids["a"]
    assert relations[0].on_delete == "CASCADE"
    assert relations[1].target_table_id == table_ids["c"]
    assert relations[1].on_delete == "RESTRICT"


def test_alter_without_add_or_foreign_key_is_ignored():
    statements = [
        _create("a", _col("id", "INT")),
        {"type": "alter", "table": [{"table": "a"}], "expr": [{"action": "drop", "constraint_type": "FOREIGN KEY"}]},
        {"type": "alter", "table": [{"table": "a"}], "expr": [{"action": "add", "resource": "column"}]},
        {"type": "alter", "table": [{"table": "unknown"}], "expr": []},
    ]

    _, relations = extract_schema(statements)

    assert relations == []


def test_duplicate_foreign_keys_are_emitted_once():
    foreign_key = _foreign_key("user_id", "users", "id")
    alter = {"type": "alter", "table": [{"table": "posts"}],
             "expr": [{"action": "add", "create_definitions": foreign_key}]}

    _, relations = extract_schema([
        _create("users", _col("id", "INT")),
        _create("posts", _col("user_id", "INT"), foreign_key),
        alter,
    ])

    assert len(relations) == 1
