"""
AST 정규화 모듈

dialect별로 모양이 다른 CREATE TABLE AST를 컬럼 하나당 NormalizedColumnDef,
테이블 제약조건 하나당 NormalizedTableConstraint로 모읍니다.

- 정규화는 예외를 던지지 않습니다. 이름/타입을 찾을 수 없는 항목은 None을 반환하고
  호출 측에서 건너뜁니다.
- 제약조건 플래그는 단조적으로만 누적됩니다. (나중 단계가 앞서 설정된 값을 해제하지 않음)
"""

import json
import re
from typing import Any, Dict, List, Optional, Tuple

from dbkeep.model_manager.parser.ast_utils import (
    as_list,
    extract_default_value,
    extract_string_value,
    first_extracted,
    first_item,
    first_present,
    get_path,
)
from dbkeep.model_manager.utils.type_mapping import (
    DECIMAL_TYPES,
    VECTOR_TYPES,
    normalize_type_name,
    to_column_type,
)
from dbkeep.types.normalized_types import (
    ColumnConstraints,
    ColumnReference,
    ConstraintKind,
    ConstraintReference,
    NormalizedColumnDef,
    NormalizedTableConstraint,
)
from dbkeep.types.schema_types import REFERENTIAL_ACTIONS, ReferentialAction
from dbkeep.utils.logger import setup_logger

logger = setup_logger("normalizer")

_KNOWN_COLUMN_KEYS = frozenset({
    'column', 'definition', 'resource', 'nullable', 'not_null', 'unique',
    'primary_key', 'auto_increment', 'default_val', 'constraint', 'references',
    'reference_definition',
})

_KNOWN_CONSTRAINT_KEYS = frozenset({
    'resource', 'constraint_type', 'type', 'constraint_name', 'name', 'keyword',
    'definition', 'columns', 'index_columns', 'reference_definition', 'reference',
    'on_delete', 'on_update',
})

# 테이블 제약조건이 들어 있을 수 있는 위치
_TABLE_CONSTRAINT_SOURCES = (
    ('constraint',),
    ('create_definitions',),
    ('create_definition',),
)

_PARAMS_PATTERN = re.compile(r'\(([^)]*)\)')


# ---------------------------------------------------------------------------
# 컬럼 정규화
# ---------------------------------------------------------------------------

def normalize_column_def(col_def: Any) -> Optional[NormalizedColumnDef]:
    """
    AST 컬럼 정의를 NormalizedColumnDef로 정규화합니다.

    Args:
        col_def: 파서가 반환한 컬럼 정의 dict

    Returns:
        정규화 결과. 컬럼명 또는 타입이 없으면 None
    """
    if not isinstance(col_def, dict):
        return None

    # 1. 컬럼명
    name = extract_string_value(col_def.get('column'))
    if not name:
        logger.debug("컬럼명이 없는 정의를 건너뜁니다: %s", col_def)
        return None

    # 2. 기본 타입명 (파라미터 제거)
    raw_type = _raw_data_type(col_def)
    data_type = normalize_type_name(raw_type) if raw_type else ''
    if not data_type:
        logger.debug("타입이 없는 컬럼을 건너뜁니다: %s", name)
        return None

    normalized = NormalizedColumnDef(name=name, data_type=data_type)
    constraints = normalized.constraints

    # 3. 타입 파라미터
    _apply_type_params(normalized, col_def)

    # 4. SERIAL은 자동 증가 + NOT NULL
    if 'SERIAL' in data_type:
        constraints.mark_auto_increment()
        constraints.mark_not_null()

    # 5. 개별 속성 검사 (서로 독립적으로 모두 검사)
    _scan_nullable(col_def, constraints)
    _scan_not_null(col_def, constraints)
    _scan_unique(col_def, constraints)
    _scan_primary_key(col_def, constraints)
    _scan_auto_increment(col_def, constraints)

    # 6. DEFAULT
    default_val = first_present(col_def, ('default_val',), ('definition', 'default_val'))
    if default_val is not None:
        default_str = extract_default_value(default_val)
        if default_str is not None:
            constraints.default_value = default_str

    # 7. 인라인 제약조건 배열
    _scan_constraint_list(col_def, normalized)

    # 8. 직접 references 필드
    for key in ('references', 'reference_definition'):
        reference = _column_reference(col_def.get(key))
        if reference is not None:
            constraints.references = reference

    # 9. 인식하지 못한 속성은 extra로 보존
    for key, value in col_def.items():
        if key not in _KNOWN_COLUMN_KEYS:
            normalized.extra[key] = value

    return normalized


def _raw_data_type(col_def: Dict[str, Any]) -> Optional[str]:
    raw_type = first_present(
        col_def,
        ('definition', 'dataType'),
        ('definition', 'data_type'),
        ('dataType',),
        ('data_type',),
    )
    if raw_type is None:
        return None
    return str(raw_type)


def _to_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    if isinstance(value, dict):
        return _to_int(value.get('value'))
    return None


def _params_from_length_field(col_def: Dict[str, Any]) -> Optional[List[int]]:
    """`length` 필드: 스칼라, [precision, scale] 리스트, 또는 스칼라 + `scale`"""
    length = first_present(col_def, ('definition', 'length'), ('length',))
    if length is None:
        return None

    if isinstance(length, (list, tuple)):
        values = [_to_int(item) for item in length]
        values = [item for item in values if item is not None]
        return values or None

    value = _to_int(length)
    if value is None:
        return None

    scale = _to_int(first_present(col_def, ('definition', 'scale'), ('scale',)))
    return [value, scale] if scale is not None else [value]


def _params_from_type_suffix(col_def: Dict[str, Any]) -> Optional[List[int]]:
    """`VARCHAR(255)`처럼 타입명에 붙은 괄호 파라미터"""
    raw_type = _raw_data_type(col_def) or ''
    match = _PARAMS_PATTERN.search(raw_type)
    if not match:
        return None
    values = [_to_int(part) for part in match.group(1).split(',')]
    values = [value for value in values if value is not None]
    return values or None


_TYPE_PARAM_EXTRACTORS = (_params_from_length_field, _params_from_type_suffix)


def _apply_type_params(normalized: NormalizedColumnDef, col_def: Dict[str, Any]) -> None:
    params = first_extracted(col_def, _TYPE_PARAM_EXTRACTORS)
    if not params:
        return

    if len(params) >= 2:
        normalized.precision = params[0]
        normalized.scale = params[1]
        return

    column_type = to_column_type(normalized.data_type)
    if column_type in DECIMAL_TYPES:
        normalized.precision = params[0]
    elif column_type in VECTOR_TYPES:
        normalized.dimension = params[0]
    else:
        normalized.length = params[0]


def _scan_nullable(col_def: Dict[str, Any], constraints: ColumnConstraints) -> None:
    # bool / {"type": "not null"} / "not null"
    nullable = first_present(col_def, ('nullable',), ('definition', 'nullable'))
    if nullable is None:
        return

    if nullable is False:
        constraints.mark_not_null()
    elif isinstance(nullable, dict):
        nullable_type = str(nullable.get('type') or nullable.get('value') or '').lower()
        if 'not null' in nullable_type:
            constraints.mark_not_null()
    elif isinstance(nullable, str) and 'not null' in nullable.lower():
        constraints.mark_not_null()


def _scan_not_null(col_def: Dict[str, Any], constraints: ColumnConstraints) -> None:
    if col_def.get('not_null') or get_path(col_def, ('definition', 'not_null')):
        constraints.mark_not_null()


def _scan_unique(col_def: Dict[str, Any], constraints: ColumnConstraints) -> None:
    unique = first_present(col_def, ('unique',), ('definition', 'unique'))
    if unique is True:
        constraints.mark_unique()
    elif isinstance(unique, str) and unique.strip().lower() in ('unique', 'unique key'):
        constraints.mark_unique()


def _scan_primary_key(col_def: Dict[str, Any], constraints: ColumnConstraints) -> None:
    if col_def.get('primary_key') or get_path(col_def, ('definition', 'primary_key')):
        constraints.mark_primary_key()


def _scan_auto_increment(col_def: Dict[str, Any], constraints: ColumnConstraints) -> None:
    if col_def.get('auto_increment') or get_path(col_def, ('definition', 'auto_increment')):
        constraints.mark_auto_increment()


def _constraint_tag(entry: Any) -> str:
    if isinstance(entry, dict):
        return str(entry.get('type') or entry.get('constraint_type') or '').upper()
    if entry is None:
        return ''
    return str(entry).upper()


def _check_text(definition: Any) -> str:
    if isinstance(definition, str):
        return definition
    return json.dumps(definition, sort_keys=True, default=str)


def _scan_constraint_list(col_def: Dict[str, Any], normalized: NormalizedColumnDef) -> None:
    constraints = normalized.constraints
    entries = first_present(col_def, ('constraint',), ('definition', 'constraint'))

    for entry in as_list(entries):
        tag = _constraint_tag(entry)

        if 'PRIMARY' in tag:
            constraints.mark_primary_key()
        if 'NOT NULL' in tag:
            constraints.mark_not_null()
        if 'UNIQUE' in tag:
            constraints.mark_unique()
        if 'AUTO_INCREMENT' in tag or 'AUTOINCREMENT' in tag:
            constraints.mark_auto_increment()

        if not isinstance(entry, dict):
            continue

        if 'CHECK' in tag and entry.get('definition') is not None:
            constraints.check = _check_text(entry['definition'])
            normalized.extra['check'] = entry

        if 'REFERENCES' in tag or entry.get('reference'):
            reference = _column_reference(entry.get('reference') or entry)
            if reference is not None:
                constraints.references = reference


def _column_reference(ref_def: Any) -> Optional[ColumnReference]:
    if not isinstance(ref_def, dict):
        return None

    table = extract_string_value(first_item(ref_def.get('table')))
    column = extract_string_value(first_item(first_present(ref_def, ('definition',), ('columns',))))
    if not table or not column:
        return None

    on_delete, on_update = extract_referential_actions(ref_def)
    return ColumnReference(table=table, column=column, on_delete=on_delete, on_update=on_update)


# ---------------------------------------------------------------------------
# 참조 동작 (ON DELETE / ON UPDATE)
# ---------------------------------------------------------------------------

def _clean_action(value: Any) -> Optional[str]:
    text = extract_string_value(value)
    if not text:
        return None
    return ' '.join(text.upper().split())


def extract_referential_actions(
    ref_def: Dict[str, Any],
    item: Optional[Dict[str, Any]] = None,
) -> Tuple[Optional[str], Optional[str]]:
    """
    참조 정의에서 ON DELETE / ON UPDATE 값을 추출합니다.
    구조화된 `on_action` 배열을 먼저 보고, 없으면 평면 `on_delete` / `on_update` 필드를 봅니다.

    Returns:
        (on_delete, on_update) 튜플. 값이 없으면 None
    """
    on_delete: Optional[str] = None
    on_update: Optional[str] = None

    for action in as_list(ref_def.get('on_action')):
        if not isinstance(action, dict):
            continue
        action_type = str(action.get('type') or '').lower()
        action_value = _clean_action(action.get('value'))
        if not action_value:
            continue
        if 'delete' in action_type:
            on_delete = action_value
        elif 'update' in action_type:
            on_update = action_value

    fallbacks = [ref_def] + ([item] if isinstance(item, dict) else [])
    for source in fallbacks:
        if on_delete is None:
            on_delete = _clean_action(source.get('on_delete'))
        if on_update is None:
            on_update = _clean_action(source.get('on_update'))

    return on_delete, on_update


def normalize_referential_action(value: Optional[str]) -> ReferentialAction:
    """참조 동작 문자열을 닫힌 집합으로 매핑합니다. 알 수 없는 값은 NO ACTION."""
    if not value:
        return 'NO ACTION'
    action = ' '.join(str(value).upper().split())
    return action if action in REFERENTIAL_ACTIONS else 'NO ACTION'


# ---------------------------------------------------------------------------
# 테이블 제약조건 정규화
# ---------------------------------------------------------------------------

def _is_column_definition(item: Dict[str, Any]) -> bool:
    if item.get('resource') == 'column':
        return True
    return bool(item.get('column') and get_path(item, ('definition', 'dataType')))


def _classify_constraint(tag: str) -> ConstraintKind:
    if 'PRIMARY' in tag:
        return 'PRIMARY KEY'
    if 'FOREIGN' in tag:
        return 'FOREIGN KEY'
    if 'UNIQUE' in tag:
        return 'UNIQUE'
    if 'CHECK' in tag:
        return 'CHECK'
    if 'INDEX' in tag or tag == 'KEY':
        return 'INDEX'
    return 'UNKNOWN'


def _extract_names(values: Any) -> List[str]:
    names = []
    for value in as_list(values):
        name = extract_string_value(value)
        if name:
            names.append(name)
    return names


def normalize_constraint_item(item: Any) -> Optional[NormalizedTableConstraint]:
    """
    테이블 제약조건 항목 하나를 정규화합니다.

    Returns:
        정규화 결과. 컬럼 정의이거나 제약조건이 아니면 None
    """
    if not isinstance(item, dict) or _is_column_definition(item):
        return None

    tag = str(
        item.get('constraint_type')
        or item.get('type')
        or item.get('resource')
        or ''
    ).upper()
    if not tag:
        return None

    kind = _classify_constraint(tag)
    normalized = NormalizedTableConstraint(
        type=kind,
        name=extract_string_value(item.get('constraint_name') or item.get('name')),
    )

    column_source = first_present(item, ('definition',), ('columns',), ('index_columns',))
    if kind == 'CHECK':
        if column_source is not None:
            normalized.extra['check'] = _check_text(column_source)
    else:
        normalized.columns = _extract_names(column_source)

    ref_def = first_present(item, ('reference_definition',), ('reference',))
    if kind == 'FOREIGN KEY' and isinstance(ref_def, dict):
        ref_table = extract_string_value(first_item(ref_def.get('table')))
        ref_columns = _extract_names(first_present(ref_def, ('definition',), ('columns',)))
        on_delete, on_update = extract_referential_actions(ref_def, item)

        if ref_table and ref_columns:
            normalized.references = ConstraintReference(
                table=ref_table,
                columns=ref_columns,
                on_delete=on_delete,
                on_update=on_update,
            )

    for key, value in item.items():
        if key not in _KNOWN_CONSTRAINT_KEYS:
            normalized.extra[key] = value

    return normalized


def normalize_table_constraints(stmt: Any) -> List[NormalizedTableConstraint]:
    """
    CREATE TABLE 문에서 테이블 레벨 제약조건(PK, FK, UNIQUE, CHECK, INDEX)을 모두 정규화합니다.
    제약조건이 들어 있을 수 있는 모든 위치를 순회하며 컬럼 정의는 건너뜁니다.
    """
    constraints: List[NormalizedTableConstraint] = []
    if not isinstance(stmt, dict):
        return constraints

    for path in _TABLE_CONSTRAINT_SOURCES:
        for item in as_list(get_path(stmt, path)):
            normalized = normalize_constraint_item(item)
            if normalized is not None:
                constraints.append(normalized)

    return constraints
