"""
DBKeep 스키마 코어
SQL DDL 파싱/생성과 수정된 SQL의 재조정을 제공합니다.
"""
from dbkeep.composer.reconciler import ReconcileResult, reconcile_schema
from dbkeep.composer.sql_generator import generate_sql
from dbkeep.model_manager.parser.sql_parser import (
    SqlParseError,
    SqlParseResult,
    SqlValidationResult,
    parse_sql,
    validate_sql,
)

__all__ = [
    "parse_sql",
    "validate_sql",
    "generate_sql",
    "reconcile_schema",
    "ReconcileResult",
    "SqlParseError",
    "SqlParseResult",
    "SqlValidationResult",
]
