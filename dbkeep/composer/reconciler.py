"""
스키마 재조정 모듈

직접 수정한 SQL을 다시 파싱한 결과를 기존 스키마와 맞춰,
테이블/컬럼 식별자와 캔버스 정보(색상, 위치, 그룹)를 최대한 유지합니다.

테이블 매칭 순서:
    1. 이름 일치 (대소문자 무시)
    2. 수정 전 SQL에서 같은 위치에 있던 테이블 (이름 변경으로 간주)

컬럼은 이름 일치로만 매칭합니다. (컬럼 이름 변경은 새 컬럼으로 취급)
"""

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence, Set, Union

from dbkeep.model_manager.parser.sql_parser import parse_sql
from dbkeep.model_manager.utils.relation_utils import relation_exists
from dbkeep.types.schema_types import DatabaseEngine, Relation, Schema, TableData
from dbkeep.utils.logger import setup_logger

logger = setup_logger("reconciler")


@dataclass
class ReconcileResult:
    """재조정 결과"""
    tables: List[TableData] = field(default_factory=list)
    relations: List[Relation] = field(default_factory=list)
    # 이전 이름 -> 새 이름
    renamed_tables: Dict[str, str] = field(default_factory=dict)

    @property
    def schema(self) -> Schema:
        return Schema(tables=self.tables, relations=self.relations)


def _match_tables(
    old_tables: Sequence[TableData],
    original_table_names: Sequence[str],
    new_tables: Sequence[TableData],
) -> Dict[int, TableData]:
    old_by_name: Dict[str, TableData] = {}
    for table in old_tables:
        old_by_name.setdefault(table.name.lower(), table)

    matches: Dict[int, TableData] = {}
    claimed: Set[str] = set()

    # 1. 이름 일치를 먼저 모두 확정
    for index, new_table in enumerate(new_tables):
        old_table = old_by_name.get(new_table.name.lower())
        if old_table is not None and old_table.id not in claimed:
            matches[index] = old_table
            claimed.add(old_table.id)

    # 2. 남은 테이블은 수정 전 SQL의 같은 위치로 매칭
    for index, new_table in enumerate(new_tables):
        if index in matches or index >= len(original_table_names):
            continue
        original_name = original_table_names[index]
        if original_name.lower() == new_table.name.lower():
            continue
        old_table = old_by_name.get(original_name.lower())
        if old_table is None or old_table.id in claimed:
            continue
        matches[index] = old_table
        claimed.add(old_table.id)

    return matches


def _merge_table(old_table: TableData, new_table: TableData, column_ids: Dict[str, str]) -> TableData:
    old_columns = {}
    for column in old_table.columns:
        old_columns.setdefault(column.name.lower(), column)

    columns = []
    for column in new_table.columns:
        old_column = old_columns.get(column.name.lower())
        merged = replace(column, id=old_column.id) if old_column is not None else replace(column)
        column_ids[column.id] = merged.id
        columns.append(merged)

    return replace(
        new_table,
        id=old_table.id,
        color=old_table.color,
        columns=columns,
        position=old_table.position,
        parent_node=old_table.parent_node,
    )


def _has_endpoints(relation: Relation, column_ids_by_table: Dict[str, Set[str]]) -> bool:
    source_columns = column_ids_by_table.get(relation.source_table_id)
    target_columns = column_ids_by_table.get(relation.target_table_id)
    return (
        source_columns is not None
        and target_columns is not None
        and relation.source_column_id in source_columns
        and relation.target_column_id in target_columns
    )


def reconcile_tables(
    old_tables: Sequence[TableData],
    old_relations: Sequence[Relation],
    original_table_names: Sequence[str],
    new_tables: Sequence[TableData],
    new_relations: Sequence[Relation],
) -> ReconcileResult:
    """
    새로 파싱한 테이블/관계를 기존 스키마와 재조정합니다.

    Args:
        old_tables: 기존 테이블
        old_relations: 기존 관계
        original_table_names: 수정 전 SQL을 파싱했을 때의 테이블 이름 순서
        new_tables: 수정된 SQL에서 파싱한 테이블
        new_relations: 수정된 SQL에서 파싱한 관계

    Returns:
        ReconcileResult (입력 객체는 변경하지 않음)
    """
    matches = _match_tables(old_tables, original_table_names, new_tables)

    table_ids: Dict[str, str] = {}
    column_ids: Dict[str, str] = {}
    renamed: Dict[str, str] = {}
    tables: List[TableData] = []

    for index, new_table in enumerate(new_tables):
        old_table = matches.get(index)
        if old_table is None:
            merged = replace(new_table, columns=[replace(column) for column in new_table.columns])
            for column in merged.columns:
                column_ids[column.id] = column.id
        else:
            merged = _merge_table(old_table, new_table, column_ids)
            if old_table.name.lower() != new_table.name.lower():
                renamed[old_table.name] = new_table.name
        table_ids[new_table.id] = merged.id
        tables.append(merged)

    column_ids_by_table = {table.id: {column.id for column in table.columns} for table in tables}

    relations: List[Relation] = [
        replace(relation) for relation in old_relations
        if _has_endpoints(relation, column_ids_by_table)
    ]

    for relation in new_relations:
        remapped = replace(
            relation,
            source_table_id=table_ids.get(relation.source_table_id, relation.source_table_id),
            source_column_id=column_ids.get(relation.source_column_id, relation.source_column_id),
            target_table_id=table_ids.get(relation.target_table_id, relation.target_table_id),
            target_column_id=column_ids.get(relation.target_column_id, relation.target_column_id),
        )
        if not _has_endpoints(remapped, column_ids_by_table):
            continue
        if relation_exists(relations, remapped):
            continue
        relations.append(remapped)

    if renamed:
        logger.debug(f"이름 변경된 테이블: {renamed}")

    return ReconcileResult(tables=tables, relations=relations, renamed_tables=renamed)


def _original_table_names(original_sql: Optional[str], engine: DatabaseEngine) -> List[str]:
    if not original_sql:
        return []
    result = parse_sql(original_sql, engine)
    if not result.success:
        logger.debug("수정 전 SQL을 파싱할 수 없어 위치 매칭을 생략합니다")
        return []
    return [table.name for table in result.tables]


def reconcile_schema(
    old_schema: Schema,
    original_sql: Optional[str],
    new_schema: Schema,
    dialect: Union[DatabaseEngine, str],
) -> ReconcileResult:
    """
    기존 스키마, 수정 전 SQL, 새로 파싱한 스키마를 받아 재조정합니다.

    Args:
        old_schema: 기존 스키마 (식별자/캔버스 정보의 원본)
        original_sql: 기존 스키마를 만들었던 수정 전 SQL
        new_schema: 수정된 SQL을 파싱한 스키마
        dialect: SQL dialect

    Raises:
        UnsupportedDialectError: 지원하지 않는 dialect인 경우
    """
    engine = DatabaseEngine.from_value(dialect)
    return reconcile_tables(
        old_schema.tables,
        old_schema.relations,
        _original_table_names(original_sql, engine),
        new_schema.tables,
        new_schema.relations,
    )
