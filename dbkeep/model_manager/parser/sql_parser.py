"""
SQL 파싱 진입점

parse_sql: DDL 텍스트 → 테이블/관계 (문법 오류는 위치 정보가 있는 구조화된 오류로 반환)
validate_sql: 파싱 성공 여부만 반환
"""

import re
from dataclasses import dataclass, field
from typing import Any, List, Tuple, Union

from dbkeep.config import DEFAULT_DIALECT
from dbkeep.model_manager.parser.schema_extractor import extract_schema
from dbkeep.model_manager.parser.sqlglot_ast import SqlSyntaxError, parse_statements
from dbkeep.types.schema_types import DatabaseEngine, Relation, TableData
from dbkeep.utils.logger import setup_logger

logger = setup_logger("sql_parser")

_LINE_PATTERN = re.compile(r'line\s*:?\s*(\d+)', re.IGNORECASE)
_COLUMN_PATTERN = re.compile(r'col(?:umn)?\s*:?\s*(\d+)', re.IGNORECASE)


@dataclass
class SqlParseError:
    """파싱 오류 (1부터 시작하는 줄/열 위치)"""
    message: str
    line: int = 1
    column: int = 1


@dataclass
class SqlParseResult:
    """parse_sql 결과. 실패 시 tables/relations는 비어 있습니다."""
    success: bool
    tables: List[TableData] = field(default_factory=list)
    relations: List[Relation] = field(default_factory=list)
    errors: List[SqlParseError] = field(default_factory=list)


@dataclass
class SqlValidationResult:
    valid: bool
    errors: List[SqlParseError] = field(default_factory=list)


def _positive_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value if value > 0 else 0
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return 0


def _location_start(error: Exception) -> Tuple[int, int]:
    location = getattr(error, 'location', None)
    start = getattr(location, 'start', None)
    if start is None and isinstance(location, dict):
        start = location.get('start')
    if start is None:
        return 0, 0
    if isinstance(start, dict):
        return _positive_int(start.get('line')), _positive_int(start.get('column'))
    return _positive_int(getattr(start, 'line', None)), _positive_int(getattr(start, 'column', None))


def locate_syntax_error(error: Exception) -> Tuple[int, int]:
    """
    오류 객체에서 (line, column)을 최대한 찾아냅니다.

    우선순위:
        1. location.start 객체
        2. 오류의 line / column 속성
        3. 메시지의 "line N" / "column N" (또는 "Col: N")
        4. (1, 1)
    """
    line, column = _location_start(error)

    if not line:
        line = _positive_int(getattr(error, 'line', None))
    if not column:
        column = _positive_int(getattr(error, 'column', None))

    message = str(getattr(error, 'message', None) or error)
    if not line:
        match = _LINE_PATTERN.search(message)
        if match:
            line = int(match.group(1))
    if not column:
        match = _COLUMN_PATTERN.search(message)
        if match:
            column = int(match.group(1))

    return line or 1, column or 1


def _first_line(message: str) -> str:
    lines = (message or '').strip().splitlines()
    return lines[0] if lines else 'SQL syntax error'


def parse_sql(sql: str, dialect: Union[DatabaseEngine, str] = DEFAULT_DIALECT) -> SqlParseResult:
    """
    SQL DDL을 파싱해 테이블과 관계를 추출합니다.

    Args:
        sql: CREATE TABLE / ALTER TABLE 문을 포함한 SQL 텍스트
        dialect: PostgreSQL, MySQL, SQLite

    Returns:
        SqlParseResult. 문법 오류가 있으면 success=False와 오류 1건

    Raises:
        UnsupportedDialectError: 지원하지 않는 dialect인 경우
    """
    engine = DatabaseEngine.from_value(dialect)

    if not sql or not sql.strip():
        return SqlParseResult(success=True)

    try:
        statements = parse_statements(sql, engine)
    except SqlSyntaxError as e:
        line, column = locate_syntax_error(e)
        logger.debug(f"SQL 문법 오류 ({line}:{column}): {e.message}")
        return SqlParseResult(
            success=False,
            errors=[SqlParseError(message=_first_line(e.message), line=line, column=column)],
        )

    try:
        tables, relations = extract_schema(statements)
    except Exception as e:
        logger.exception("스키마 추출 중 오류 발생")
        return SqlParseResult(
            success=False,
            errors=[SqlParseError(message=f"Parsing error: {e}")],
        )

    return SqlParseResult(success=True, tables=tables, relations=relations)


def validate_sql(sql: str, dialect: Union[DatabaseEngine, str] = DEFAULT_DIALECT) -> SqlValidationResult:
    """SQL이 문법적으로 올바른지만 확인합니다."""
    result = parse_sql(sql, dialect)
    return SqlValidationResult(valid=result.success, errors=result.errors)
