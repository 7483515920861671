"""
스키마 → DDL 생성 모듈

같은 스키마에서는 항상 같은 SQL을 생성합니다. (헤더의 생성 시각 한 줄 제외)
"""

from datetime import datetime, timezone
from typing import List, Optional, Union

from dbkeep.model_manager.utils.type_mapping import SERIAL_TYPES, to_dialect_type
from dbkeep.types.schema_types import Column, DatabaseEngine, Relation, Schema, TableData
from dbkeep.utils.logger import setup_logger

logger = setup_logger("sql_generator")

INDENT = '  '


def _format_timestamp(generated_at: Optional[Union[datetime, str]]) -> str:
    if isinstance(generated_at, str):
        return generated_at
    moment = generated_at or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def generate_column_sql(column: Column, engine: DatabaseEngine, is_composite_pk: bool = False) -> str:
    """
    컬럼 한 줄을 생성합니다.

    Args:
        column: 생성할 컬럼
        engine: 대상 DB 엔진
        is_composite_pk: 테이블 PK가 여러 컬럼인지 여부 (이 경우 인라인 PRIMARY KEY 생략)
    """
    parts = [f"{INDENT}{column.name}", to_dialect_type(column, engine)]

    # 단일 PK만 인라인으로 표기
    if column.primary_key and not is_composite_pk:
        if engine == DatabaseEngine.SQLITE and column.type in SERIAL_TYPES:
            parts.append('PRIMARY KEY AUTOINCREMENT')
        elif engine != DatabaseEngine.POSTGRESQL or column.type not in SERIAL_TYPES:
            parts.append('PRIMARY KEY')

    if not column.nullable and not column.primary_key:
        parts.append('NOT NULL')
    elif column.primary_key and is_composite_pk:
        # 복합 PK 컬럼은 NOT NULL을 명시
        parts.append('NOT NULL')

    if column.unique and not column.primary_key:
        parts.append('UNIQUE')

    if column.default:
        parts.append(f"DEFAULT {column.default}")

    return ' '.join(parts)


def generate_table_sql(table: TableData, engine: DatabaseEngine) -> str:
    """CREATE TABLE 문을 생성합니다."""
    pk_columns = [column for column in table.columns if column.primary_key]
    is_composite_pk = len(pk_columns) > 1

    lines = [generate_column_sql(column, engine, is_composite_pk) for column in table.columns]

    if is_composite_pk:
        lines.append(f"{INDENT}PRIMARY KEY ({', '.join(column.name for column in pk_columns)})")
    elif engine == DatabaseEngine.POSTGRESQL:
        # SERIAL 자체에는 PK 의미가 없으므로 별도 절 추가
        serial_pk = next((column for column in pk_columns if column.type in SERIAL_TYPES), None)
        if serial_pk is not None:
            lines.append(f"{INDENT}PRIMARY KEY ({serial_pk.name})")

    body = ',\n'.join(lines)
    return f"CREATE TABLE {table.name} (\n{body}\n);"


def _find_table(tables: List[TableData], table_id: str) -> Optional[TableData]:
    return next((table for table in tables if table.id == table_id), None)


def _find_column(table: Optional[TableData], column_id: str) -> Optional[Column]:
    if table is None:
        return None
    return next((column for column in table.columns if column.id == column_id), None)


def generate_foreign_key_sql(relation: Relation, tables: List[TableData]) -> Optional[str]:
    """
    ALTER TABLE ... ADD CONSTRAINT 문을 생성합니다.
    끝점 테이블/컬럼 중 하나라도 없으면 None을 반환합니다.
    """
    source_table = _find_table(tables, relation.source_table_id)
    target_table = _find_table(tables, relation.target_table_id)
    source_column = _find_column(source_table, relation.source_column_id)
    target_column = _find_column(target_table, relation.target_column_id)

    if source_column is None or target_column is None:
        return None

    constraint_name = f"fk_{source_table.name}_{source_column.name}"
    on_delete = f" ON DELETE {relation.on_delete}" if relation.on_delete else ''
    on_update = f" ON UPDATE {relation.on_update}" if relation.on_update else ''

    return (
        f"ALTER TABLE {source_table.name}\n"
        f"{INDENT}ADD CONSTRAINT {constraint_name}\n"
        f"{INDENT}FOREIGN KEY ({source_column.name})\n"
        f"{INDENT}REFERENCES {target_table.name}({target_column.name}){on_delete}{on_update};"
    )


def generate_sql(
    schema: Optional[Schema],
    engine: Union[DatabaseEngine, str],
    generated_at: Optional[Union[datetime, str]] = None,
) -> str:
    """
    전체 스키마의 DDL을 생성합니다.

    Args:
        schema: 테이블/관계 스키마
        engine: 대상 DB 엔진 (DatabaseEngine 또는 dialect 문자열)
        generated_at: 헤더에 기록할 생성 시각 (기본값: 현재 UTC 시각)

    Returns:
        헤더, 테이블, 외래키 순서의 SQL 텍스트

    Raises:
        UnsupportedDialectError: 지원하지 않는 dialect인 경우
    """
    engine = DatabaseEngine.from_value(engine)

    if schema is None:
        return '-- No project loaded'

    lines = [
        '-- Generated by DBKeep',
        f"-- Database: {engine.value}",
        f"-- Generated at: {_format_timestamp(generated_at)}",
        '',
    ]

    if schema.tables:
        lines.extend(['-- Tables', ''])
        for table in schema.tables:
            lines.append(generate_table_sql(table, engine))
            lines.append('')

    if schema.relations:
        lines.extend(['-- Foreign Keys', ''])
        skipped = 0
        for relation in schema.relations:
            fk_sql = generate_foreign_key_sql(relation, schema.tables)
            if fk_sql is None:
                skipped += 1
                continue
            lines.append(fk_sql)
            lines.append('')
        if skipped:
            logger.debug(f"끝점이 없는 관계 {skipped}개를 건너뜀")

    return '\n'.join(lines).strip()
