import asyncio

from dbkeep.composer.reconciler import reconcile_schema
from dbkeep.composer.sql_generator import generate_sql
from dbkeep.dto.schema_dto import (
    GenerateSqlRequest,
    GenerateSqlResponse,
    ParseSqlRequest,
    ParseSqlResponse,
    ReconcileSqlRequest,
    ReconcileSqlResponse,
    ValidateSqlResponse,
    error_to_dto,
    relation_to_dto,
    schema_from_dtos,
    table_to_dto,
)
from dbkeep.model_manager.parser.sql_parser import parse_sql, validate_sql
from dbkeep.types.schema_types import DatabaseEngine, Schema
from dbkeep.utils.logger import setup_logger


logger = setup_logger("sql_service")


async def parse_sql_service(request: ParseSqlRequest) -> ParseSqlResponse:
    """
    SQL을 파싱해 테이블/관계를 반환하는 서비스입니다.
    """
    engine = DatabaseEngine.from_value(request.dialect)

    # CPU 바운드 작업이므로 executor에서 실행
    loop = asyncio.get_running_loop()
    result = await loop.run_in_executor(None, lambda: parse_sql(request.sql, engine))

    logger.info(
        "SQL 파싱 완료 (%s): success=%s, 테이블 %d개, 관계 %d개",
        engine.value, result.success, len(result.tables), len(result.relations),
    )
    return ParseSqlResponse(
        success=result.success,
        tables=[table_to_dto(table) for table in result.tables],
        relations=[relation_to_dto(relation) for relation in result.relations],
        errors=[error_to_dto(error) for error in result.errors],
    )


async def validate_sql_service(request: ParseSqlRequest) -> ValidateSqlResponse:
    """
    SQL 문법 검증 서비스입니다.
    """
    engine = DatabaseEngine.from_value(request.dialect)

    loop = asyncio.get_running_loop()
    result = await loop.run_in_executor(None, lambda: validate_sql(request.sql, engine))

    logger.info("SQL 검증 완료 (%s): valid=%s", engine.value, result.valid)
    return ValidateSqlResponse(
        valid=result.valid,
        errors=[error_to_dto(error) for error in result.errors],
    )


async def generate_sql_service(request: GenerateSqlRequest) -> GenerateSqlResponse:
    """
    스키마에서 DDL을 생성하는 서비스입니다.
    """
    engine = DatabaseEngine.from_value(request.dialect)
    schema = schema_from_dtos(request.tables, request.relations)

    loop = asyncio.get_running_loop()
    sql = await loop.run_in_executor(None, lambda: generate_sql(schema, engine))

    logger.info("SQL 생성 완료 (%s): 테이블 %d개", engine.value, len(schema.tables))
    return GenerateSqlResponse(sql=sql)


def _reconcile(request: ReconcileSqlRequest, engine: DatabaseEngine) -> ReconcileSqlResponse:
    old_schema = schema_from_dtos(request.tables, request.relations)

    parsed = parse_sql(request.sql, engine)
    if not parsed.success:
        # 수정된 SQL에 오류가 있으면 기존 스키마를 그대로 돌려줌
        return ReconcileSqlResponse(
            success=False,
            tables=request.tables,
            relations=request.relations,
            errors=[error_to_dto(error) for error in parsed.errors],
        )

    result = reconcile_schema(
        old_schema,
        request.original_sql,
        Schema(tables=parsed.tables, relations=parsed.relations),
        engine,
    )
    return ReconcileSqlResponse(
        success=True,
        tables=[table_to_dto(table) for table in result.tables],
        relations=[relation_to_dto(relation) for relation in result.relations],
        renamed_tables=result.renamed_tables,
    )


async def reconcile_sql_service(request: ReconcileSqlRequest) -> ReconcileSqlResponse:
    """
    수정된 SQL을 파싱해 기존 스키마와 재조정하는 서비스입니다.
    테이블 이름 변경은 수정 전 SQL의 테이블 위치로 판단합니다.
    """
    engine = DatabaseEngine.from_value(request.dialect)

    loop = asyncio.get_running_loop()
    response = await loop.run_in_executor(None, lambda: _reconcile(request, engine))

    logger.info(
        "SQL 재조정 완료 (%s): success=%s, 이름 변경 %d건",
        engine.value, response.success, len(response.renamed_tables),
    )
    return response
