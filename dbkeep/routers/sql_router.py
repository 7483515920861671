"""
스키마 SQL 라우터
파싱, 검증, 생성, 재조정 엔드포인트를 제공합니다.
"""
from fastapi import APIRouter, HTTPException

from dbkeep.dto.schema_dto import (
    GenerateSqlRequest,
    GenerateSqlResponse,
    ParseSqlRequest,
    ParseSqlResponse,
    ReconcileSqlRequest,
    ReconcileSqlResponse,
    ValidateSqlResponse,
)
from dbkeep.services.sql_service import (
    generate_sql_service,
    parse_sql_service,
    reconcile_sql_service,
    validate_sql_service,
)
from dbkeep.types.schema_types import UnsupportedDialectError
from dbkeep.utils.logger import setup_logger


logger = setup_logger("sql_router")
router = APIRouter(prefix="/sql", tags=["sql"])


@router.post("/parse", response_model=ParseSqlResponse)
async def parse_sql_api(request: ParseSqlRequest):
    """
    SQL DDL을 파싱해 테이블과 관계를 반환하는 엔드포인트입니다.
    문법 오류는 200 응답의 errors에 위치와 함께 담깁니다.
    """
    try:
        return await parse_sql_service(request)
    except UnsupportedDialectError as e:
        logger.error("Unsupported dialect: %s", str(e))
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to parse sql: %s", str(e))
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/validate", response_model=ValidateSqlResponse)
async def validate_sql_api(request: ParseSqlRequest):
    """
    SQL 문법만 검증하는 엔드포인트입니다.
    """
    try:
        return await validate_sql_service(request)
    except UnsupportedDialectError as e:
        logger.error("Unsupported dialect: %s", str(e))
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to validate sql: %s", str(e))
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/generate", response_model=GenerateSqlResponse)
async def generate_sql_api(request: GenerateSqlRequest):
    """
    테이블/관계에서 DDL을 생성하는 엔드포인트입니다.
    """
    try:
        return await generate_sql_service(request)
    except UnsupportedDialectError as e:
        logger.error("Unsupported dialect: %s", str(e))
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to generate sql: %s", str(e))
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/reconcile", response_model=ReconcileSqlResponse)
async def reconcile_sql_api(request: ReconcileSqlRequest):
    """
    수정된 SQL을 기존 스키마와 재조정하는 엔드포인트입니다.
    테이블/컬럼 식별자와 캔버스 위치를 가능한 한 유지합니다.
    """
    try:
        return await reconcile_sql_service(request)
    except UnsupportedDialectError as e:
        logger.error("Unsupported dialect: %s", str(e))
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to reconcile sql: %s", str(e))
        raise HTTPException(status_code=500, detail=str(e))
