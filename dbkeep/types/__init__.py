"""
스키마 / 정규화 타입 모듈
"""

from dbkeep.types.schema_types import (
    Column,
    ColumnType,
    DatabaseEngine,
    DEFAULT_TABLE_COLOR,
    NodePosition,
    REFERENTIAL_ACTIONS,
    ReferentialAction,
    Relation,
    RelationType,
    Schema,
    TableData,
    UnsupportedDialectError,
    create_default_column,
    create_default_relation,
    create_default_table,
    create_id_column,
    generate_id,
)
from dbkeep.types.normalized_types import (
    ColumnConstraints,
    ColumnReference,
    ConstraintReference,
    NormalizedColumnDef,
    NormalizedTableConstraint,
)

__all__ = [
    'Column',
    'ColumnType',
    'DatabaseEngine',
    'DEFAULT_TABLE_COLOR',
    'NodePosition',
    'REFERENTIAL_ACTIONS',
    'ReferentialAction',
    'Relation',
    'RelationType',
    'Schema',
    'TableData',
    'UnsupportedDialectError',
    'create_default_column',
    'create_default_relation',
    'create_default_table',
    'create_id_column',
    'generate_id',
    'ColumnConstraints',
    'ColumnReference',
    'ConstraintReference',
    'NormalizedColumnDef',
    'NormalizedTableConstraint',
]
