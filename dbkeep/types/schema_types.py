"""
스키마 모델링에 사용되는 데이터 타입 정의
테이블, 컬럼, 관계(외래키)와 지원하는 DB 엔진/컬럼 타입을 정의합니다.
"""

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import List, Literal, Optional, Union


class UnsupportedDialectError(ValueError):
    """지원하지 않는 dialect가 요청된 경우 발생하는 예외"""
    pass


class ColumnType(str, Enum):
    """dialect에 독립적인 컬럼 타입"""

    # 숫자
    SMALLINT = 'SMALLINT'
    INT = 'INT'
    INTEGER = 'INTEGER'
    BIGINT = 'BIGINT'
    DECIMAL = 'DECIMAL'
    NUMERIC = 'NUMERIC'
    REAL = 'REAL'
    DOUBLE_PRECISION = 'DOUBLE PRECISION'
    FLOAT = 'FLOAT'
    MONEY = 'MONEY'

    # 자동 증가
    SMALLSERIAL = 'SMALLSERIAL'
    SERIAL = 'SERIAL'
    BIGSERIAL = 'BIGSERIAL'

    # 문자열 / 바이너리
    CHAR = 'CHAR'
    VARCHAR = 'VARCHAR'
    TEXT = 'TEXT'
    BYTEA = 'BYTEA'

    # 날짜 / 시간
    DATE = 'DATE'
    TIME = 'TIME'
    TIMETZ = 'TIMETZ'
    TIMESTAMP = 'TIMESTAMP'
    TIMESTAMPTZ = 'TIMESTAMPTZ'
    INTERVAL = 'INTERVAL'

    BOOLEAN = 'BOOLEAN'

    # 기하
    POINT = 'POINT'
    LINE = 'LINE'
    LSEG = 'LSEG'
    BOX = 'BOX'
    PATH = 'PATH'
    POLYGON = 'POLYGON'
    CIRCLE = 'CIRCLE'

    # 네트워크
    CIDR = 'CIDR'
    INET = 'INET'
    MACADDR = 'MACADDR'
    MACADDR8 = 'MACADDR8'

    # 비트
    BIT = 'BIT'
    VARBIT = 'VARBIT'

    # 텍스트 검색
    TSVECTOR = 'TSVECTOR'
    TSQUERY = 'TSQUERY'

    JSON = 'JSON'
    JSONB = 'JSONB'

    UUID = 'UUID'
    XML = 'XML'

    # 벡터 (pgvector)
    VECTOR = 'VECTOR'
    HALFVEC = 'HALFVEC'
    SPARSEVEC = 'SPARSEVEC'


class DatabaseEngine(str, Enum):
    """지원하는 DB 엔진 (닫힌 집합)"""

    POSTGRESQL = 'PostgreSQL'
    MYSQL = 'MySQL'
    SQLITE = 'SQLite'

    @classmethod
    def from_value(cls, value: Union["DatabaseEngine", str]) -> "DatabaseEngine":
        """
        엔진 값 또는 dialect 문자열을 DatabaseEngine으로 변환합니다.

        Raises:
            UnsupportedDialectError: 지원하지 않는 dialect인 경우
        """
        if isinstance(value, cls):
            return value

        normalized = str(value or '').strip().lower()
        engine = _ENGINE_ALIASES.get(normalized)
        if engine is None:
            raise UnsupportedDialectError(
                f"지원하지 않는 dialect: {value}. "
                f"지원하는 dialect: {', '.join(e.value for e in cls)}"
            )
        return engine


_ENGINE_ALIASES = {
    'postgresql': DatabaseEngine.POSTGRESQL,
    'postgres': DatabaseEngine.POSTGRESQL,
    'mysql': DatabaseEngine.MYSQL,
    'sqlite': DatabaseEngine.SQLITE,
}


class RelationType(str, Enum):
    """관계 카디널리티 (구조 메타데이터일 뿐 강제하지 않음)"""

    ONE_TO_ONE = '1:1'
    ONE_TO_MANY = '1:N'
    MANY_TO_MANY = 'N:M'


ReferentialAction = Literal['CASCADE', 'SET NULL', 'RESTRICT', 'NO ACTION']

REFERENTIAL_ACTIONS = ('CASCADE', 'SET NULL', 'RESTRICT', 'NO ACTION')

DEFAULT_TABLE_COLOR = '#3b82f6'


def generate_id() -> str:
    """새 식별자를 생성합니다."""
    return str(uuid.uuid4())


@dataclass
class NodePosition:
    """캔버스 위치 (파서는 읽지 않고 그대로 보존만 함)"""
    x: float
    y: float


@dataclass
class Column:
    """컬럼 정보를 담는 데이터클래스"""
    id: str
    name: str
    type: ColumnType = ColumnType.VARCHAR
    primary_key: bool = False
    nullable: bool = True
    unique: bool = False
    default: Optional[str] = None  # 리터럴 SQL 조각 (다시 파싱하지 않음)
    length: Optional[int] = None  # VARCHAR(n), CHAR(n), BIT(n), VARBIT(n)
    precision: Optional[int] = None  # DECIMAL(p,s), NUMERIC(p,s)
    scale: Optional[int] = None
    dimension: Optional[int] = None  # VECTOR(n), HALFVEC(n), SPARSEVEC(n)


@dataclass
class TableData:
    """테이블 정보를 담는 데이터클래스"""
    id: str
    name: str
    color: str = DEFAULT_TABLE_COLOR
    columns: List[Column] = None
    # 캔버스 표현 정보 (선택)
    position: Optional[NodePosition] = None
    parent_node: Optional[str] = None  # 소속 그룹 ID

    def __post_init__(self):
        if self.columns is None:
            self.columns = []


@dataclass
class Relation:
    """관계(외래키) 정보를 담는 데이터클래스"""
    id: str
    source_table_id: str
    source_column_id: str
    target_table_id: str
    target_column_id: str
    type: RelationType = RelationType.ONE_TO_MANY
    on_delete: ReferentialAction = 'NO ACTION'
    on_update: ReferentialAction = 'NO ACTION'
    name: Optional[str] = None


@dataclass
class Schema:
    """dialect에 독립적인 전체 스키마"""
    tables: List[TableData] = None
    relations: List[Relation] = None

    def __post_init__(self):
        if self.tables is None:
            self.tables = []
        if self.relations is None:
            self.relations = []


def create_default_column(**overrides) -> Column:
    """기본값으로 채운 새 컬럼을 생성합니다."""
    fields = {'id': generate_id(), 'name': ''}
    fields.update(overrides)
    return Column(**fields)


def create_id_column() -> Column:
    """SERIAL PK `id` 컬럼을 생성합니다."""
    return Column(
        id=generate_id(),
        name='id',
        type=ColumnType.SERIAL,
        primary_key=True,
        nullable=False,
        unique=True,
    )


def create_default_table(name: str, **overrides) -> TableData:
    """`id` 컬럼 하나를 가진 새 테이블을 생성합니다."""
    fields = {'id': generate_id(), 'name': name, 'columns': [create_id_column()]}
    fields.update(overrides)
    return TableData(**fields)


def create_default_relation(**overrides) -> Relation:
    """1:N, NO ACTION 기본값을 가진 새 관계를 생성합니다."""
    fields = {
        'id': generate_id(),
        'source_table_id': '',
        'source_column_id': '',
        'target_table_id': '',
        'target_column_id': '',
    }
    fields.update(overrides)
    return Relation(**fields)
