"""
스키마 추출 모듈

dict AST 문장 리스트에서 테이블과 관계를 3단계로 추출합니다.

1. CREATE TABLE: 컬럼/테이블 제약조건 정규화, 테이블 맵 구성
2. CREATE TABLE: 테이블 레벨 FOREIGN KEY와 컬럼 인라인 REFERENCES
3. ALTER TABLE ... ADD ... FOREIGN KEY

양쪽 끝점이 모두 해석된 관계만 생성되며, 나머지는 조용히 버립니다.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from dbkeep.model_manager.parser.ast_utils import (
    as_list,
    extract_string_value,
    first_item,
    first_present,
)
from dbkeep.model_manager.parser.normalizer import (
    normalize_column_def,
    normalize_constraint_item,
    normalize_referential_action,
    normalize_table_constraints,
)
from dbkeep.model_manager.utils.relation_utils import relation_exists
from dbkeep.model_manager.utils.type_mapping import to_column_type
from dbkeep.types.normalized_types import NormalizedColumnDef
from dbkeep.types.schema_types import (
    DEFAULT_TABLE_COLOR,
    Column,
    ColumnType,
    Relation,
    RelationType,
    TableData,
    generate_id,
)
from dbkeep.utils.logger import setup_logger

logger = setup_logger("schema_extractor")

_AUTO_INCREMENT_BASE_TYPES = frozenset({
    ColumnType.SMALLINT, ColumnType.INT, ColumnType.INTEGER, ColumnType.BIGINT,
})


@dataclass
class _TableEntry:
    """1단계에서 만든 테이블 정보 (2, 3단계 조회용)"""
    id: str
    statement: Dict[str, Any]
    columns: List[Column]
    inline_references: List[Tuple[Column, Any]] = field(default_factory=list)

    def find_column(self, name: str) -> Optional[Column]:
        lowered = name.lower()
        for column in self.columns:
            if column.name.lower() == lowered:
                return column
        return None


def normalized_to_column(normalized: NormalizedColumnDef) -> Column:
    """정규화된 컬럼 정의를 새 식별자를 가진 Column으로 변환합니다."""
    constraints = normalized.constraints
    column_type = to_column_type(normalized.data_type)

    # MySQL/SQLite의 INT + AUTO_INCREMENT는 serial 계열로 취급
    if constraints.auto_increment and column_type in _AUTO_INCREMENT_BASE_TYPES:
        column_type = to_column_type(f"{column_type.value} AUTO_INCREMENT")

    return Column(
        id=generate_id(),
        name=normalized.name,
        type=column_type,
        primary_key=constraints.primary_key,
        nullable=not constraints.not_null and not constraints.primary_key,
        unique=constraints.unique or constraints.primary_key,
        default=constraints.default_value,
        length=normalized.length,
        precision=normalized.precision,
        scale=normalized.scale,
        dimension=normalized.dimension,
    )


def _statement_table_name(stmt: Dict[str, Any]) -> Optional[str]:
    return extract_string_value(first_item(stmt.get('table')))


def _is_create_table(stmt: Any) -> bool:
    return isinstance(stmt, dict) and stmt.get('type') == 'create' and stmt.get('keyword') == 'table'


def _is_alter(stmt: Any) -> bool:
    return isinstance(stmt, dict) and stmt.get('type') == 'alter'


def _column_definitions(stmt: Dict[str, Any]) -> List[Any]:
    definitions = first_present(stmt, ('create_definitions',), ('create_definition',))
    return [
        item for item in as_list(definitions)
        if isinstance(item, dict) and (item.get('resource') == 'column' or item.get('column'))
    ]


def _build_relation(
    source: _TableEntry,
    source_column_name: Optional[str],
    target_table_name: Optional[str],
    target_column_name: Optional[str],
    on_delete: Optional[str],
    on_update: Optional[str],
    tables: Dict[str, _TableEntry],
    name: Optional[str] = None,
) -> Optional[Relation]:
    if not source_column_name or not target_table_name or not target_column_name:
        return None

    source_column = source.find_column(source_column_name)
    target = tables.get(target_table_name.lower())
    target_column = target.find_column(target_column_name) if target else None

    if source_column is None or target is None or target_column is None:
        logger.debug(
            f"해석되지 않은 외래키를 건너뜁니다: {source_column_name} -> "
            f"{target_table_name}.{target_column_name}"
        )
        return None

    return Relation(
        id=generate_id(),
        source_table_id=source.id,
        source_column_id=source_column.id,
        target_table_id=target.id,
        target_column_id=target_column.id,
        type=RelationType.ONE_TO_MANY,
        on_delete=normalize_referential_action(on_delete),
        on_update=normalize_referential_action(on_update),
        name=name,
    )


def _append_relation(relations: List[Relation], relation: Optional[Relation]) -> None:
    if relation is None:
        return
    if relation_exists(relations, relation):
        logger.debug("중복 관계를 건너뜁니다")
        return
    relations.append(relation)


# ---------------------------------------------------------------------------
# 단계별 추출
# ---------------------------------------------------------------------------

def _extract_tables(statements: Iterable[Any]) -> Tuple[List[TableData], Dict[str, _TableEntry]]:
    tables: List[TableData] = []
    table_map: Dict[str, _TableEntry] = {}

    for stmt in statements:
        if not _is_create_table(stmt):
            continue

        table_name = _statement_table_name(stmt)
        if not table_name:
            continue
        if table_name.lower() in table_map:
            logger.debug(f"이미 정의된 테이블이므로 건너뜁니다: {table_name}")
            continue

        columns: List[Column] = []
        inline_references = []
        for col_def in _column_definitions(stmt):
            normalized = normalize_column_def(col_def)
            if normalized is None:
                continue
            column = normalized_to_column(normalized)
            columns.append(column)
            if normalized.constraints.references is not None:
                inline_references.append((column, normalized.constraints.references))

        entry = _TableEntry(
            id=generate_id(),
            statement=stmt,
            columns=columns,
            inline_references=inline_references,
        )

        for constraint in normalize_table_constraints(stmt):
            if constraint.type == 'PRIMARY KEY':
                for column_name in constraint.columns:
                    column = entry.find_column(column_name)
                    if column is not None:
                        column.primary_key = True
                        column.nullable = False
                        column.unique = True
            elif constraint.type == 'UNIQUE':
                for column_name in constraint.columns:
                    column = entry.find_column(column_name)
                    if column is not None:
                        column.unique = True

        if not columns:
            logger.debug(f"컬럼이 없는 테이블을 건너뜁니다: {table_name}")
            continue

        tables.append(TableData(id=entry.id, name=table_name, color=DEFAULT_TABLE_COLOR, columns=columns))
        table_map[table_name.lower()] = entry

    return tables, table_map


def _extract_create_relations(
    table_map: Dict[str, _TableEntry],
    relations: List[Relation],
) -> None:
    # 1단계에서 채택된 CREATE TABLE 문만 다시 순회
    for entry in table_map.values():
        for constraint in normalize_table_constraints(entry.statement):
            if constraint.type != 'FOREIGN KEY' or constraint.references is None:
                continue
            reference = constraint.references
            _append_relation(relations, _build_relation(
                entry,
                first_item(constraint.columns),
                reference.table,
                first_item(reference.columns),
                reference.on_delete,
                reference.on_update,
                table_map,
                name=constraint.name,
            ))

        for column, reference in entry.inline_references:
            _append_relation(relations, _build_relation(
                entry,
                column.name,
                reference.table,
                reference.column,
                reference.on_delete,
                reference.on_update,
                table_map,
            ))


def _alter_candidates(spec: Dict[str, Any]) -> List[Any]:
    # ADD CONSTRAINT 정보가 놓일 수 있는 위치
    return [spec, spec.get('create_definitions'), spec.get('constraint')]


def _extract_alter_relations(
    statements: Iterable[Any],
    table_map: Dict[str, _TableEntry],
    relations: List[Relation],
) -> None:
    for stmt in statements:
        if not _is_alter(stmt):
            continue

        table_name = _statement_table_name(stmt)
        entry = table_map.get((table_name or '').lower())
        if entry is None:
            continue

        for spec in as_list(stmt.get('expr')):
            if not isinstance(spec, dict):
                continue
            action = str(spec.get('action') or spec.get('keyword') or '').lower()
            if action != 'add':
                continue

            for candidate in _alter_candidates(spec):
                constraint = normalize_constraint_item(candidate)
                if constraint is None or constraint.type != 'FOREIGN KEY' or constraint.references is None:
                    continue
                reference = constraint.references
                _append_relation(relations, _build_relation(
                    entry,
                    first_item(constraint.columns),
                    reference.table,
                    first_item(reference.columns),
                    reference.on_delete,
                    reference.on_update,
                    table_map,
                    name=constraint.name,
                ))
                break


def extract_schema(statements: Iterable[Any]) -> Tuple[List[TableData], List[Relation]]:
    """
    dict AST 문장 리스트에서 테이블과 관계를 추출합니다.

    Args:
        statements: parse_statements가 반환한 문장 리스트 (또는 같은 형태의 dict)

    Returns:
        (tables, relations) 튜플
    """
    statements = list(statements)
    relations: List[Relation] = []

    tables, table_map = _extract_tables(statements)
    _extract_create_relations(table_map, relations)
    _extract_alter_relations(statements, table_map, relations)

    logger.debug(f"테이블 {len(tables)}개, 관계 {len(relations)}개 추출")
    return tables, relations
