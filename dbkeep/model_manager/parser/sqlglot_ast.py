"""
sqlglot 파싱 결과를 정규화기가 읽는 dict AST로 변환합니다.

sqlglot은 문법/토크나이저만 담당하며 sqlglot 노드는 이 모듈 밖으로 나가지 않습니다.

변환 형태:
    CREATE TABLE -> {"type": "create", "keyword": "table", "table": [...], "create_definitions": [...]}
    ALTER TABLE  -> {"type": "alter", "table": [...], "expr": [{"action": "add", ...}]}
    그 외        -> {"type": <statement 종류>}
"""

import re
from typing import Any, Dict, List, Optional

import sqlglot
from sqlglot import expressions as exp
from sqlglot.errors import ParseError, TokenError
from sqlglot.tokens import Token, TokenType

from dbkeep.types.schema_types import DatabaseEngine
from dbkeep.utils.logger import setup_logger

logger = setup_logger("sqlglot_ast")

SQLGLOT_DIALECTS = {
    DatabaseEngine.POSTGRESQL: 'postgres',
    DatabaseEngine.MYSQL: 'mysql',
    DatabaseEngine.SQLITE: 'sqlite',
}

_ACTION_PATTERN = re.compile(
    r'ON\s+(DELETE|UPDATE)\s+(CASCADE|SET\s+NULL|SET\s+DEFAULT|RESTRICT|NO\s+ACTION)',
    re.IGNORECASE,
)
_TYPE_PARAMS_PATTERN = re.compile(r'\(([^)]*)\)')


class SqlSyntaxError(Exception):
    """파서가 SQL을 해석하지 못한 경우 발생하는 예외 (위치 정보 포함)"""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column


def parse_statements(sql: str, engine: DatabaseEngine) -> List[Dict[str, Any]]:
    """
    SQL 텍스트를 문장 단위 dict AST 리스트로 변환합니다.

    Args:
        sql: DDL 텍스트
        engine: 대상 DB 엔진

    Returns:
        문장별 dict AST 리스트 (빈 문장은 제외)

    Raises:
        SqlSyntaxError: 문법 오류 또는 토큰화 오류
    """
    dialect = SQLGLOT_DIALECTS[engine]

    try:
        parsed = sqlglot.parse(sql, read=dialect)
    except ParseError as e:
        details = e.errors[0] if e.errors else {}
        raise SqlSyntaxError(str(e), details.get('line'), details.get('col')) from e
    except TokenError as e:
        raise SqlSyntaxError(str(e)) from e

    source_types = _source_column_types(sql, dialect)

    statements = []
    for expression in parsed:
        if expression is None:
            continue
        if isinstance(expression, exp.Command):
            _check_unparsed_ddl(expression, sql)
        statements.append(_statement_to_dict(expression, dialect, source_types))

    logger.debug(f"{len(statements)}개 문장 변환 ({dialect})")
    return statements


def _statement_to_dict(
    expression: exp.Expression,
    dialect: str,
    source_types: Dict[str, Dict[str, str]],
) -> Dict[str, Any]:
    if isinstance(expression, exp.Create):
        return _create_to_dict(expression, dialect, source_types)
    if isinstance(expression, exp.Alter):
        return _alter_to_dict(expression, dialect)
    return {'type': expression.key}


# ---------------------------------------------------------------------------
# Command 폴백 검사
# ---------------------------------------------------------------------------

# sqlglot이 해석하지 못하고 Command로 넘긴 문장 중 오류로 보고할 DDL
_UNPARSED_DDL_PATTERNS = {
    'CREATE': re.compile(r'\s*(?:\w+\s+){0,3}?TABLE\b', re.IGNORECASE),
    'ALTER': re.compile(r'\s*TABLE\b.*\bFOREIGN\s+KEY\b', re.IGNORECASE | re.DOTALL),
}


def _offset_location(sql: str, offset: int):
    line = sql.count('\n', 0, offset) + 1
    column = offset - (sql.rfind('\n', 0, offset) + 1) + 1
    return line, column


def _check_unparsed_ddl(command: exp.Command, sql: str) -> None:
    """
    CREATE TABLE / ALTER TABLE ... FOREIGN KEY가 Command로 폴백된 경우 SqlSyntaxError를 발생시킵니다.
    위치는 해당 문장의 시작 키워드입니다.
    """
    keyword = str(command.this or '').strip().upper()
    pattern = _UNPARSED_DDL_PATTERNS.get(keyword)
    rest = command.args.get('expression')
    if isinstance(rest, exp.Expression):
        rest = rest.name
    rest = rest if isinstance(rest, str) else ''

    if pattern is None or not pattern.match(rest):
        return

    line, column = 1, 1
    body = rest.strip()
    body_offset = sql.find(body) if body else -1
    if body_offset >= 0:
        keyword_offset = sql.upper().rfind(keyword, 0, body_offset)
        line, column = _offset_location(sql, keyword_offset if keyword_offset >= 0 else body_offset)

    raise SqlSyntaxError(
        f"Invalid or unsupported {keyword} TABLE syntax. Line {line}, Col: {column}.",
        line,
        column,
    )


# ---------------------------------------------------------------------------
# 원문 타입 표기
# ---------------------------------------------------------------------------

# 컬럼 타입 뒤에 오는 제약조건 시작 단어
_TYPE_STOP_WORDS = frozenset({
    'NOT', 'NULL', 'PRIMARY', 'PRIMARY KEY', 'KEY', 'UNIQUE', 'DEFAULT', 'REFERENCES',
    'CHECK', 'CONSTRAINT', 'AUTO_INCREMENT', 'AUTOINCREMENT', 'GENERATED', 'IDENTITY',
    'COLLATE', 'COMMENT', 'CHARACTER SET', 'CHARSET', 'ON', 'AS',
})

# 컬럼 정의가 아닌 테이블 레벨 항목의 시작 단어
_TABLE_ITEM_WORDS = frozenset({
    'CONSTRAINT', 'PRIMARY', 'PRIMARY KEY', 'UNIQUE', 'FOREIGN', 'FOREIGN KEY', 'CHECK',
    'KEY', 'INDEX', 'EXCLUDE', 'LIKE', 'FULLTEXT', 'SPATIAL',
})

_CREATE_PREFIX_WORDS = frozenset({'IF', 'NOT', 'EXISTS', 'IF NOT EXISTS'})


def _word(token: Token) -> str:
    return ' '.join(token.text.upper().split())


def _split_statements(tokens: List[Token]) -> List[List[Token]]:
    statements: List[List[Token]] = [[]]
    for token in tokens:
        if token.token_type == TokenType.SEMICOLON:
            statements.append([])
        else:
            statements[-1].append(token)
    return [statement for statement in statements if statement]


def _create_table_items(statement: List[Token]):
    """CREATE TABLE 문의 (테이블 이름, 괄호 안 항목별 토큰 리스트)를 반환합니다."""
    if _word(statement[0]) != 'CREATE':
        return None, []

    table_name = None
    seen_table = False
    open_index = None
    for index, token in enumerate(statement):
        if token.token_type == TokenType.L_PAREN:
            open_index = index
            break
        word = _word(token)
        if word == 'TABLE':
            seen_table = True
        elif seen_table and token.token_type != TokenType.DOT and word not in _CREATE_PREFIX_WORDS:
            table_name = token.text

    if open_index is None or table_name is None:
        return None, []

    items: List[List[Token]] = []
    current: List[Token] = []
    depth = 0
    for token in statement[open_index + 1:]:
        if token.token_type == TokenType.L_PAREN:
            depth += 1
        elif token.token_type == TokenType.R_PAREN:
            if depth == 0:
                break
            depth -= 1
        elif token.token_type == TokenType.COMMA and depth == 0:
            items.append(current)
            current = []
            continue
        current.append(token)
    items.append(current)

    return table_name, [item for item in items if item]


def _type_text(tokens: List[Token]) -> str:
    # 괄호 파라미터와 배열 표기는 제외
    parts = []
    depth = 0
    for token in tokens:
        if token.token_type == TokenType.L_PAREN:
            depth += 1
            continue
        if token.token_type == TokenType.R_PAREN:
            depth -= 1
            continue
        if depth > 0 or token.token_type in (TokenType.L_BRACKET, TokenType.R_BRACKET):
            continue
        if _word(token) in _TYPE_STOP_WORDS:
            break
        parts.append(token.text)
    return ' '.join(parts)


def _source_column_types(sql: str, dialect: str) -> Dict[str, Dict[str, str]]:
    """
    CREATE TABLE 컬럼별로 사용자가 쓴 타입 이름을 토큰에서 읽습니다.
    sqlglot 렌더링은 NUMERIC -> DECIMAL, INTEGER -> INT 처럼 표기를 바꾸기 때문입니다.

    Returns:
        {소문자 테이블 이름: {소문자 컬럼 이름: 타입 이름}}
    """
    try:
        tokens = sqlglot.tokenize(sql, read=dialect)
    except TokenError:
        return {}

    tables: Dict[str, Dict[str, str]] = {}
    for statement in _split_statements(tokens):
        table_name, items = _create_table_items(statement)
        if table_name is None or table_name.lower() in tables:
            continue

        columns: Dict[str, str] = {}
        for item in items:
            if len(item) < 2 or _word(item[0]) in _TABLE_ITEM_WORDS:
                continue
            type_text = _type_text(item[1:])
            if type_text:
                columns.setdefault(item[0].text.lower(), type_text)
        tables[table_name.lower()] = columns

    return tables


# ---------------------------------------------------------------------------
# 공통 헬퍼
# ---------------------------------------------------------------------------

def _column_name(node: Any) -> Optional[str]:
    # Ordered, Column 등 래퍼를 벗겨 식별자 이름을 얻음
    while isinstance(node, exp.Expression):
        if isinstance(node, (exp.Identifier, exp.Column)):
            return node.name or None
        node = node.args.get('this')
    if isinstance(node, str) and node:
        return node
    return None


def _column_refs(nodes: Any) -> List[Dict[str, str]]:
    refs = []
    for node in nodes or []:
        name = _column_name(node)
        if name:
            refs.append({'type': 'column_ref', 'column': name})
    return refs


def _table_ref(node: Any) -> List[Dict[str, str]]:
    if isinstance(node, exp.Schema):
        node = node.this
    if isinstance(node, exp.Table) and node.name:
        return [{'table': node.name}]
    return []


def _reference_definition(reference: exp.Reference, source: exp.Expression, dialect: str) -> Dict[str, Any]:
    target = reference.this
    columns = target.expressions if isinstance(target, exp.Schema) else []

    # ON DELETE / ON UPDATE 위치가 sqlglot 버전마다 달라 렌더링된 SQL에서 읽음
    on_action = []
    for match in _ACTION_PATTERN.finditer(source.sql(dialect=dialect)):
        on_action.append({
            'type': f"on {match.group(1).lower()}",
            'value': {'type': 'origin', 'value': ' '.join(match.group(2).upper().split())},
        })

    return {
        'table': _table_ref(target),
        'definition': _column_refs(columns),
        'on_action': on_action,
    }


# ---------------------------------------------------------------------------
# CREATE TABLE
# ---------------------------------------------------------------------------

def _create_to_dict(
    create: exp.Create,
    dialect: str,
    source_types: Dict[str, Dict[str, str]],
) -> Dict[str, Any]:
    kind = str(create.args.get('kind') or '').lower()
    if kind != 'table':
        return {'type': 'create', 'keyword': kind}

    target = create.this
    table = _table_ref(target)
    column_types = source_types.get(table[0]['table'].lower(), {}) if table else {}

    definitions: List[Dict[str, Any]] = []
    if isinstance(target, exp.Schema):
        for item in target.expressions:
            if isinstance(item, exp.ColumnDef):
                definitions.append(_column_def_to_dict(item, dialect, column_types.get(item.name.lower())))
            else:
                definitions.extend(_table_constraints_to_dicts(item, dialect))

    return {
        'type': 'create',
        'keyword': 'table',
        'table': table,
        'create_definitions': definitions,
    }


def _data_type_to_dict(
    data_type: Optional[exp.Expression],
    dialect: str,
    source_type: Optional[str] = None,
) -> Dict[str, Any]:
    if data_type is None:
        return {}

    # 파라미터는 파싱된 노드에서, 타입 이름은 원문 표기를 우선
    text = data_type.sql(dialect=dialect)
    params: List[int] = []
    match = _TYPE_PARAMS_PATTERN.search(text)
    if match:
        for part in match.group(1).split(','):
            part = part.strip()
            if part.isdigit():
                params.append(int(part))
        text = (text[:match.start()] + text[match.end():]).strip()

    definition: Dict[str, Any] = {'dataType': ' '.join((source_type or text).upper().split())}
    if len(params) == 1:
        definition['length'] = params[0]
    elif len(params) >= 2:
        definition['length'] = params[:2]
    return definition


def _default_to_dict(value: exp.Expression, dialect: str) -> Dict[str, Any]:
    if isinstance(value, exp.Null):
        return {'type': 'null', 'value': None}
    if isinstance(value, exp.Boolean):
        return {'type': 'bool', 'value': bool(value.this)}
    if isinstance(value, exp.Literal):
        if value.is_string:
            return {'type': 'single_quote_string', 'value': value.name.replace("'", "''")}
        return {'type': 'number', 'value': value.name}
    if isinstance(value, exp.Neg) and isinstance(value.this, exp.Literal) and not value.this.is_string:
        return {'type': 'number', 'value': f"-{value.this.name}"}

    text = value.sql(dialect=dialect)
    # 인자 없는 함수는 함수 노드, 그 외는 SQL 텍스트 그대로
    if isinstance(value, exp.Func) and text.endswith('()'):
        return {'type': 'function', 'name': {'name': [{'type': 'default', 'value': text[:-2]}]}}
    return {'type': 'expression', 'value': text}


def _column_def_to_dict(
    column_def: exp.ColumnDef,
    dialect: str,
    source_type: Optional[str] = None,
) -> Dict[str, Any]:
    node: Dict[str, Any] = {
        'resource': 'column',
        'column': {'type': 'column_ref', 'column': column_def.name},
        'definition': _data_type_to_dict(column_def.args.get('kind'), dialect, source_type),
    }
    constraints: List[Dict[str, Any]] = []
    options: List[Dict[str, Any]] = []

    for constraint in column_def.args.get('constraints') or []:
        kind = constraint.args.get('kind') if isinstance(constraint, exp.ColumnConstraint) else constraint

        if isinstance(kind, exp.NotNullColumnConstraint):
            if kind.args.get('allow_null'):
                node['nullable'] = {'type': 'null', 'value': 'null'}
            else:
                node['nullable'] = {'type': 'not null', 'value': 'not null'}
        elif isinstance(kind, exp.PrimaryKeyColumnConstraint):
            constraints.append({'type': 'primary key'})
        elif isinstance(kind, exp.UniqueColumnConstraint):
            constraints.append({'type': 'unique'})
        elif isinstance(kind, (exp.AutoIncrementColumnConstraint, exp.GeneratedAsIdentityColumnConstraint)):
            constraints.append({'type': 'auto_increment'})
        elif isinstance(kind, exp.DefaultColumnConstraint):
            node['default_val'] = {'type': 'default', 'value': _default_to_dict(kind.this, dialect)}
        elif isinstance(kind, exp.CheckColumnConstraint):
            constraints.append({'type': 'check', 'definition': kind.this.sql(dialect=dialect)})
        elif isinstance(kind, exp.Reference):
            constraints.append({
                'type': 'references',
                'reference': _reference_definition(kind, kind, dialect),
            })
        elif kind is not None:
            options.append({'type': kind.key, 'value': constraint.sql(dialect=dialect)})

    if constraints:
        node['constraint'] = constraints
    if options:
        node['options'] = options
    return node


def _table_constraints_to_dicts(
    node: exp.Expression,
    dialect: str,
    name: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """테이블 레벨 제약조건 노드를 dict로 변환합니다. (CONSTRAINT 이름 래퍼 포함)"""
    if isinstance(node, exp.ColumnConstraint) and node.args.get('kind') is not None:
        node = node.args['kind']

    if isinstance(node, exp.Constraint):
        results = []
        for inner in node.expressions:
            results.extend(_table_constraints_to_dicts(inner, dialect, node.name or None))
        return results

    item: Dict[str, Any] = {'resource': 'constraint', 'constraint_name': name}

    if isinstance(node, exp.PrimaryKey):
        item['constraint_type'] = 'primary key'
        item['definition'] = _column_refs(node.expressions)
    elif isinstance(node, exp.ForeignKey):
        item['constraint_type'] = 'FOREIGN KEY'
        item['definition'] = _column_refs(node.expressions)
        reference = node.args.get('reference')
        if isinstance(reference, exp.Reference):
            item['reference_definition'] = _reference_definition(reference, node, dialect)
    elif isinstance(node, exp.UniqueColumnConstraint):
        item['constraint_type'] = 'unique'
        columns = node.this
        if isinstance(columns, exp.Schema):
            if not name and columns.this is not None:
                item['constraint_name'] = _column_name(columns.this)
            item['definition'] = _column_refs(columns.expressions)
        else:
            item['definition'] = []
    elif isinstance(node, exp.CheckColumnConstraint):
        item['constraint_type'] = 'check'
        item['definition'] = node.this.sql(dialect=dialect)
    elif isinstance(node, exp.IndexColumnConstraint):
        item['constraint_type'] = 'index'
        item['constraint_name'] = name or _column_name(node.this)
        item['definition'] = _column_refs(node.expressions)
    else:
        logger.debug(f"알 수 없는 테이블 제약조건: {node.key}")
        item['constraint_type'] = node.key

    return [item]


# ---------------------------------------------------------------------------
# ALTER TABLE
# ---------------------------------------------------------------------------

def _alter_to_dict(alter: exp.Alter, dialect: str) -> Dict[str, Any]:
    actions = []
    for foreign_key in alter.find_all(exp.ForeignKey):
        parent = foreign_key.parent
        name = parent.name if isinstance(parent, exp.Constraint) else None
        for item in _table_constraints_to_dicts(foreign_key, dialect, name or None):
            actions.append({
                'action': 'add',
                'resource': 'constraint',
                'constraint_type': item['constraint_type'],
                'create_definitions': item,
            })

    return {
        'type': 'alter',
        'table': _table_ref(alter.this),
        'expr': actions,
    }
