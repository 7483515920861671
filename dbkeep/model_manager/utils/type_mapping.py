"""
DB 타입 ↔ ColumnType 매핑 모듈

- to_column_type: dialect별 타입 문자열 → ColumnType (파싱 방향)
- to_dialect_type: Column + 엔진 → DDL 타입 문자열 (생성 방향)

SQLite는 타입 친화도(INTEGER, REAL, TEXT, BLOB)로 뭉개지므로
SQLite를 거친 왕복은 손실이 있습니다.
"""

import re
from types import MappingProxyType

from dbkeep.types.schema_types import Column, ColumnType, DatabaseEngine


# 파싱 방향 매핑 (대문자, 파라미터 제거 후 비교)
_TYPE_MAP = MappingProxyType({
    # Integer types (PostgreSQL, MySQL, SQLite)
    'SMALLINT': ColumnType.SMALLINT,
    'INT2': ColumnType.SMALLINT,  # PostgreSQL
    'INT': ColumnType.INT,
    'INT4': ColumnType.INT,  # PostgreSQL
    'TINYINT': ColumnType.INT,  # MySQL
    'MEDIUMINT': ColumnType.INT,  # MySQL
    'INTEGER': ColumnType.INTEGER,
    'BIGINT': ColumnType.BIGINT,
    'INT8': ColumnType.BIGINT,  # PostgreSQL

    # Decimal / floating point types
    'DECIMAL': ColumnType.DECIMAL,
    'NUMERIC': ColumnType.NUMERIC,
    'REAL': ColumnType.REAL,
    'FLOAT4': ColumnType.REAL,  # PostgreSQL
    'DOUBLE': ColumnType.DOUBLE_PRECISION,  # MySQL
    'DOUBLE PRECISION': ColumnType.DOUBLE_PRECISION,
    'FLOAT8': ColumnType.DOUBLE_PRECISION,  # PostgreSQL
    'FLOAT': ColumnType.FLOAT,
    'MONEY': ColumnType.MONEY,

    # Serial types
    'SMALLSERIAL': ColumnType.SMALLSERIAL,
    'SERIAL2': ColumnType.SMALLSERIAL,
    'SERIAL': ColumnType.SERIAL,
    'SERIAL4': ColumnType.SERIAL,
    'BIGSERIAL': ColumnType.BIGSERIAL,
    'SERIAL8': ColumnType.BIGSERIAL,

    # String types
    'CHAR': ColumnType.CHAR,
    'CHARACTER': ColumnType.CHAR,
    'BPCHAR': ColumnType.CHAR,  # PostgreSQL
    'VARCHAR': ColumnType.VARCHAR,
    'CHARACTER VARYING': ColumnType.VARCHAR,
    'TEXT': ColumnType.TEXT,
    'TINYTEXT': ColumnType.TEXT,  # MySQL
    'MEDIUMTEXT': ColumnType.TEXT,  # MySQL
    'LONGTEXT': ColumnType.TEXT,  # MySQL

    # Binary types
    'BYTEA': ColumnType.BYTEA,
    'BLOB': ColumnType.BYTEA,
    'TINYBLOB': ColumnType.BYTEA,
    'MEDIUMBLOB': ColumnType.BYTEA,
    'LONGBLOB': ColumnType.BYTEA,
    'VARBINARY': ColumnType.BYTEA,
    'BINARY': ColumnType.BYTEA,

    # Date / time types
    'DATE': ColumnType.DATE,
    'TIME': ColumnType.TIME,
    'TIME WITHOUT TIME ZONE': ColumnType.TIME,
    'TIMETZ': ColumnType.TIMETZ,
    'TIME WITH TIME ZONE': ColumnType.TIMETZ,
    'TIMESTAMP': ColumnType.TIMESTAMP,
    'TIMESTAMP WITHOUT TIME ZONE': ColumnType.TIMESTAMP,
    'DATETIME': ColumnType.TIMESTAMP,  # MySQL, SQLite
    'TIMESTAMPTZ': ColumnType.TIMESTAMPTZ,
    'TIMESTAMP WITH TIME ZONE': ColumnType.TIMESTAMPTZ,
    'INTERVAL': ColumnType.INTERVAL,

    # Boolean types
    'BOOLEAN': ColumnType.BOOLEAN,
    'BOOL': ColumnType.BOOLEAN,

    # Geometric types (PostgreSQL)
    'POINT': ColumnType.POINT,
    'LINE': ColumnType.LINE,
    'LSEG': ColumnType.LSEG,
    'BOX': ColumnType.BOX,
    'PATH': ColumnType.PATH,
    'POLYGON': ColumnType.POLYGON,
    'CIRCLE': ColumnType.CIRCLE,

    # Network types (PostgreSQL)
    'CIDR': ColumnType.CIDR,
    'INET': ColumnType.INET,
    'MACADDR': ColumnType.MACADDR,
    'MACADDR8': ColumnType.MACADDR8,

    # Bit types
    'BIT': ColumnType.BIT,
    'VARBIT': ColumnType.VARBIT,
    'BIT VARYING': ColumnType.VARBIT,

    # Text search types (PostgreSQL)
    'TSVECTOR': ColumnType.TSVECTOR,
    'TSQUERY': ColumnType.TSQUERY,

    'JSON': ColumnType.JSON,
    'JSONB': ColumnType.JSONB,

    'UUID': ColumnType.UUID,
    'XML': ColumnType.XML,

    # Vector types (pgvector)
    'VECTOR': ColumnType.VECTOR,
    'HALFVEC': ColumnType.HALFVEC,
    'SPARSEVEC': ColumnType.SPARSEVEC,
})

# MySQL `INT AUTO_INCREMENT` 표기를 serial 계열로 되돌림
_AUTO_INCREMENT_TYPES = MappingProxyType({
    'SMALLINT': ColumnType.SMALLSERIAL,
    'INT': ColumnType.SERIAL,
    'INTEGER': ColumnType.SERIAL,
    'BIGINT': ColumnType.BIGSERIAL,
})

_PARAMS_PATTERN = re.compile(r'\(.*?\)')

SERIAL_TYPES = frozenset({ColumnType.SMALLSERIAL, ColumnType.SERIAL, ColumnType.BIGSERIAL})
DECIMAL_TYPES = frozenset({ColumnType.DECIMAL, ColumnType.NUMERIC})
VECTOR_TYPES = frozenset({ColumnType.VECTOR, ColumnType.HALFVEC, ColumnType.SPARSEVEC})


def normalize_type_name(type_name: str) -> str:
    """
    타입 문자열에서 파라미터/배열 표기를 제거하고 대문자로 정리합니다.

    예:
        varchar(255) -> VARCHAR
        numeric(10, 2) -> NUMERIC
        int[] -> INT
        double   precision -> DOUBLE PRECISION
    """
    normalized = _PARAMS_PATTERN.sub('', type_name or '')
    normalized = normalized.replace('[]', '')
    return ' '.join(normalized.upper().split())


def to_column_type(type_name: str) -> ColumnType:
    """
    DB 타입 문자열을 ColumnType으로 매핑합니다.
    대소문자와 괄호 파라미터는 무시하며, 매핑되지 않는 타입은 VARCHAR로 처리합니다.
    """
    normalized = normalize_type_name(type_name)

    # MySQL 부호 없는 정수
    if normalized.endswith(' UNSIGNED'):
        normalized = normalized[:-len(' UNSIGNED')]

    if normalized.endswith(' AUTO_INCREMENT'):
        base = normalized[:-len(' AUTO_INCREMENT')]
        if base in _AUTO_INCREMENT_TYPES:
            return _AUTO_INCREMENT_TYPES[base]
        normalized = base

    return _TYPE_MAP.get(normalized, ColumnType.VARCHAR)


def to_dialect_type(column: Column, engine: DatabaseEngine) -> str:
    """
    컬럼 타입을 엔진별 DDL 타입 문자열로 변환합니다.
    length, precision, scale, dimension 파라미터가 있으면 반영합니다.
    """
    column_type = column.type

    # SQLite는 타입이 매우 단순함
    if engine == DatabaseEngine.SQLITE:
        return _to_sqlite_type(column_type)

    is_mysql = engine == DatabaseEngine.MYSQL

    # === 숫자 ===
    # INT / INTEGER는 표기를 그대로 유지 (두 엔진 모두 허용)
    if column_type in (ColumnType.INT, ColumnType.INTEGER):
        return column_type.value
    if column_type in DECIMAL_TYPES:
        precision = column.precision if column.precision is not None else 10
        scale = column.scale if column.scale is not None else 2
        return f"{column_type.value}({precision},{scale})"
    if column_type == ColumnType.REAL:
        return 'FLOAT' if is_mysql else 'REAL'
    if column_type == ColumnType.DOUBLE_PRECISION:
        return 'DOUBLE' if is_mysql else 'DOUBLE PRECISION'
    if column_type == ColumnType.MONEY:
        return 'DECIMAL(19,4)' if is_mysql else 'MONEY'

    # === 자동 증가 ===
    if column_type == ColumnType.SMALLSERIAL:
        return 'SMALLINT AUTO_INCREMENT' if is_mysql else 'SMALLSERIAL'
    if column_type == ColumnType.SERIAL:
        return 'INT AUTO_INCREMENT' if is_mysql else 'SERIAL'
    if column_type == ColumnType.BIGSERIAL:
        return 'BIGINT AUTO_INCREMENT' if is_mysql else 'BIGSERIAL'

    # === 문자열 ===
    if column_type == ColumnType.CHAR:
        return f"CHAR({column.length or 1})"
    if column_type == ColumnType.VARCHAR:
        return f"VARCHAR({column.length or 255})"
    if column_type == ColumnType.BYTEA:
        return 'BLOB' if is_mysql else 'BYTEA'

    # === 날짜 / 시간 ===
    if column_type == ColumnType.TIMETZ:
        return 'TIME' if is_mysql else 'TIMETZ'
    if column_type == ColumnType.TIMESTAMPTZ:
        return 'TIMESTAMP' if is_mysql else 'TIMESTAMPTZ'
    if column_type == ColumnType.INTERVAL:
        return 'VARCHAR(255)' if is_mysql else 'INTERVAL'

    if column_type == ColumnType.BOOLEAN:
        return 'TINYINT(1)' if is_mysql else 'BOOLEAN'

    # === PostgreSQL 전용 타입 (MySQL은 문자열로 대체) ===
    if column_type in (
        ColumnType.POINT, ColumnType.LINE, ColumnType.LSEG, ColumnType.BOX,
        ColumnType.PATH, ColumnType.POLYGON, ColumnType.CIRCLE,
        ColumnType.TSVECTOR, ColumnType.TSQUERY, ColumnType.XML,
    ):
        return 'TEXT' if is_mysql else column_type.value
    if column_type in (ColumnType.CIDR, ColumnType.INET):
        return 'VARCHAR(45)' if is_mysql else column_type.value
    if column_type == ColumnType.MACADDR:
        return 'VARCHAR(17)' if is_mysql else 'MACADDR'
    if column_type == ColumnType.MACADDR8:
        return 'VARCHAR(23)' if is_mysql else 'MACADDR8'

    # === 비트 ===
    if column_type == ColumnType.BIT:
        return f"BIT({column.length or 1})"
    if column_type == ColumnType.VARBIT:
        length = column.length or 64
        return f"BIT({length})" if is_mysql else f"VARBIT({length})"

    if column_type == ColumnType.JSONB:
        return 'JSON' if is_mysql else 'JSONB'
    if column_type == ColumnType.UUID:
        return 'CHAR(36)' if is_mysql else 'UUID'

    # === 벡터 (MySQL은 JSON으로 손실 매핑) ===
    if column_type in VECTOR_TYPES:
        if is_mysql:
            return 'JSON'
        return f"{column_type.value}({column.dimension})" if column.dimension else column_type.value

    # SMALLINT, BIGINT, FLOAT, TEXT, DATE, TIME, TIMESTAMP, JSON
    return column_type.value


def _to_sqlite_type(column_type: ColumnType) -> str:
    """SQLite 타입 친화도(INTEGER, REAL, TEXT, BLOB)로 매핑합니다."""
    if column_type in (
        ColumnType.SMALLINT, ColumnType.INT, ColumnType.INTEGER, ColumnType.BIGINT,
        ColumnType.SMALLSERIAL, ColumnType.SERIAL, ColumnType.BIGSERIAL,
        ColumnType.BOOLEAN,
    ):
        return 'INTEGER'

    if column_type in (
        ColumnType.DECIMAL, ColumnType.NUMERIC, ColumnType.REAL,
        ColumnType.DOUBLE_PRECISION, ColumnType.FLOAT, ColumnType.MONEY,
    ):
        return 'REAL'

    if column_type == ColumnType.BYTEA:
        return 'BLOB'

    return 'TEXT'
