"""
스키마 SQL API DTO 정의
UI와 주고받는 JSON은 camelCase 키를 사용합니다. (primaryKey, sourceTableId, ...)
"""
from dataclasses import asdict
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from dbkeep.config import DEFAULT_DIALECT
from dbkeep.model_manager.parser.sql_parser import SqlParseError
from dbkeep.types.schema_types import (
    DEFAULT_TABLE_COLOR,
    Column,
    ColumnType,
    NodePosition,
    ReferentialAction,
    Relation,
    RelationType,
    Schema,
    TableData,
)
from dbkeep.utils.name_converter import snake_to_camel


class CamelModel(BaseModel):
    """camelCase 별칭을 쓰는 기본 모델 (snake_case 이름으로도 생성 가능)"""
    model_config = ConfigDict(alias_generator=snake_to_camel, populate_by_name=True)


class NodePositionDto(CamelModel):
    x: float
    y: float


class ColumnDto(CamelModel):
    """컬럼"""
    id: str
    name: str
    type: ColumnType = ColumnType.VARCHAR
    primary_key: bool = False
    nullable: bool = True
    unique: bool = False
    default: Optional[str] = None
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    dimension: Optional[int] = None


class TableDto(CamelModel):
    """테이블"""
    id: str
    name: str
    color: str = DEFAULT_TABLE_COLOR
    columns: List[ColumnDto] = []
    position: Optional[NodePositionDto] = None
    parent_node: Optional[str] = None


class RelationDto(CamelModel):
    """관계(외래키)"""
    id: str
    source_table_id: str
    source_column_id: str
    target_table_id: str
    target_column_id: str
    type: RelationType = RelationType.ONE_TO_MANY
    on_delete: ReferentialAction = 'NO ACTION'
    on_update: ReferentialAction = 'NO ACTION'
    name: Optional[str] = None


class SqlErrorDto(CamelModel):
    """SQL 오류 (1부터 시작하는 위치)"""
    message: str
    line: int = 1
    column: int = 1


class ParseSqlRequest(CamelModel):
    """SQL 파싱/검증 요청"""
    sql: str
    dialect: str = DEFAULT_DIALECT


class ParseSqlResponse(CamelModel):
    """SQL 파싱 응답"""
    success: bool
    tables: List[TableDto] = []
    relations: List[RelationDto] = []
    errors: List[SqlErrorDto] = []


class ValidateSqlResponse(CamelModel):
    """SQL 검증 응답"""
    valid: bool
    errors: List[SqlErrorDto] = []


class GenerateSqlRequest(CamelModel):
    """SQL 생성 요청"""
    tables: List[TableDto] = []
    relations: List[RelationDto] = []
    dialect: str = DEFAULT_DIALECT


class GenerateSqlResponse(CamelModel):
    """SQL 생성 응답"""
    sql: str


class ReconcileSqlRequest(CamelModel):
    """
    수정된 SQL 재조정 요청
    tables/relations는 현재 스키마, original_sql은 수정 전 SQL, sql은 수정된 SQL
    """
    tables: List[TableDto] = []
    relations: List[RelationDto] = []
    original_sql: Optional[str] = None
    sql: str
    dialect: str = DEFAULT_DIALECT


class ReconcileSqlResponse(CamelModel):
    """재조정 응답"""
    success: bool
    tables: List[TableDto] = []
    relations: List[RelationDto] = []
    renamed_tables: Dict[str, str] = {}
    errors: List[SqlErrorDto] = []


# ---------------------------------------------------------------------------
# dataclass <-> DTO 변환
# ---------------------------------------------------------------------------

def table_to_dto(table: TableData) -> TableDto:
    return TableDto.model_validate(asdict(table))


def relation_to_dto(relation: Relation) -> RelationDto:
    return RelationDto.model_validate(asdict(relation))


def error_to_dto(error: SqlParseError) -> SqlErrorDto:
    return SqlErrorDto(message=error.message, line=error.line, column=error.column)


def table_from_dto(dto: TableDto) -> TableData:
    position = NodePosition(x=dto.position.x, y=dto.position.y) if dto.position else None
    return TableData(
        id=dto.id,
        name=dto.name,
        color=dto.color,
        columns=[Column(**column.model_dump()) for column in dto.columns],
        position=position,
        parent_node=dto.parent_node,
    )


def relation_from_dto(dto: RelationDto) -> Relation:
    return Relation(**dto.model_dump())


def schema_from_dtos(tables: List[TableDto], relations: List[RelationDto]) -> Schema:
    return Schema(
        tables=[table_from_dto(table) for table in tables],
        relations=[relation_from_dto(relation) for relation in relations],
    )
