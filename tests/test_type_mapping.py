import pytest

from dbkeep.model_manager.utils.type_mapping import normalize_type_name, to_column_type, to_dialect_type
from dbkeep.types.schema_types import Column, ColumnType, DatabaseEngine


def _column(column_type, **fields):
    return Column(id="c1", name="c", type=column_type, **fields)


@pytest.mark.parametrize("column_type", list(ColumnType))
def test_every_column_type_round_trips_through_some_dialect(column_type):
    """모든 ColumnType은 PostgreSQL 또는 MySQL 중 하나를 거쳐 같은 값으로 돌아온다."""
    engines = (DatabaseEngine.POSTGRESQL, DatabaseEngine.MYSQL)
    round_tripped = [to_column_type(to_dialect_type(_column(column_type), engine)) for engine in engines]

    assert column_type in round_tripped


@pytest.mark.parametrize(
    "type_name, expected",
    [
        ("varchar(255)", ColumnType.VARCHAR),
        ("character varying(20)", ColumnType.VARCHAR),
        ("Numeric(10, 2)", ColumnType.NUMERIC),
        ("int unsigned", ColumnType.INT),
        ("INT AUTO_INCREMENT", ColumnType.SERIAL),
        ("bigint auto_increment", ColumnType.BIGSERIAL),
        ("timestamp with time zone", ColumnType.TIMESTAMPTZ),
        ("DATETIME", ColumnType.TIMESTAMP),
        ("int4", ColumnType.INT),
        ("text[]", ColumnType.TEXT),
        ("double", ColumnType.DOUBLE_PRECISION),
        ("some_custom_type", ColumnType.VARCHAR),
        ("", ColumnType.VARCHAR),
    ],
)
def test_to_column_type(type_name, expected):
    """대소문자/파라미터/배열 표기를 무시하고 매핑하며, 모르는 타입은 VARCHAR."""
    assert to_column_type(type_name) == expected


def test_normalize_type_name():
    assert normalize_type_name("double   precision") == "DOUBLE PRECISION"
    assert normalize_type_name("varchar(64)") == "VARCHAR"


def test_sqlite_collapses_to_affinity_types():
    """SQLite는 INTEGER, REAL, TEXT, BLOB 중 하나로 뭉개진다."""
    sqlite = DatabaseEngine.SQLITE

    assert to_dialect_type(_column(ColumnType.DECIMAL, precision=10, scale=2), sqlite) == "REAL"
    assert to_dialect_type(_column(ColumnType.SERIAL), sqlite) == "INTEGER"
    assert to_dialect_type(_column(ColumnType.BOOLEAN), sqlite) == "INTEGER"
    assert to_dialect_type(_column(ColumnType.BYTEA), sqlite) == "BLOB"
    assert to_dialect_type(_column(ColumnType.UUID), sqlite) == "TEXT"


def test_decimal_parameters():
    """DECIMAL은 파라미터가 없으면 (10,2), 명시한 scale 0은 유지된다."""
    postgres = DatabaseEngine.POSTGRESQL

    assert to_dialect_type(_column(ColumnType.DECIMAL), postgres) == "DECIMAL(10,2)"
    assert to_dialect_type(_column(ColumnType.DECIMAL, precision=10, scale=2), DatabaseEngine.MYSQL) == "DECIMAL(10,2)"
    assert to_dialect_type(_column(ColumnType.NUMERIC, precision=8, scale=0), postgres) == "NUMERIC(8,0)"


def test_dialect_specific_spellings():
    postgres, mysql = DatabaseEngine.POSTGRESQL, DatabaseEngine.MYSQL

    assert to_dialect_type(_column(ColumnType.SERIAL), postgres) == "SERIAL"
    assert to_dialect_type(_column(ColumnType.SERIAL), mysql) == "INT AUTO_INCREMENT"
    assert to_dialect_type(_column(ColumnType.BOOLEAN), mysql) == "TINYINT(1)"
    assert to_dialect_type(_column(ColumnType.DOUBLE_PRECISION), mysql) == "DOUBLE"
    assert to_dialect_type(_column(ColumnType.VARCHAR), postgres) == "VARCHAR(255)"
    assert to_dialect_type(_column(ColumnType.VARCHAR, length=40), postgres) == "VARCHAR(40)"
    assert to_dialect_type(_column(ColumnType.VECTOR, dimension=3), postgres) == "VECTOR(3)"
    assert to_dialect_type(_column(ColumnType.VECTOR, dimension=3), mysql) == "JSON"
