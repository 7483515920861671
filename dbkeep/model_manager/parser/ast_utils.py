"""
AST 추출 유틸리티

파서가 같은 SQL 구성을 여러 형태의 dict로 돌려줄 수 있으므로,
후보 경로/추출 함수를 순서대로 시도해 처음 성공한 값을 사용합니다.
"""

from typing import Any, Callable, Iterable, List, Optional, Sequence, Union

PathKey = Union[str, int]
Extractor = Callable[[Any], Any]


def as_list(value: Any) -> List[Any]:
    """None은 빈 리스트, 단일 값은 한 원소 리스트로 감쌉니다."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    return [value]


def first_item(value: Any) -> Any:
    """리스트면 첫 원소, 아니면 값 그대로 반환합니다."""
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def get_path(node: Any, path: Sequence[PathKey]) -> Any:
    """
    dict/list를 경로대로 따라가 값을 반환합니다. 중간에 끊기면 None.

    예:
        get_path(stmt, ("table", 0, "table"))
    """
    current = node
    for key in path:
        if isinstance(key, int):
            if not isinstance(current, (list, tuple)) or len(current) <= key:
                return None
            current = current[key]
        else:
            if not isinstance(current, dict):
                return None
            current = current.get(key)
        if current is None:
            return None
    return current


def first_present(node: Any, *paths: Sequence[PathKey]) -> Any:
    """후보 경로 중 처음으로 값이 존재하는(None이 아닌) 경로의 값을 반환합니다."""
    for path in paths:
        value = get_path(node, path)
        if value is not None:
            return value
    return None


def first_extracted(value: Any, extractors: Iterable[Extractor]) -> Any:
    """추출 함수를 순서대로 적용해 처음으로 None이 아닌 결과를 반환합니다."""
    for extractor in extractors:
        result = extractor(value)
        if result is not None:
            return result
    return None


def extract_string_value(value: Any) -> Optional[str]:
    """
    임의의 AST 구조에서 문자열 값을 추출합니다.

    지원 형태:
        "name"
        {"value": "name"}
        {"expr": {"value": "name"}}
        {"column": "name"} / {"column": {"expr": {"value": "name"}}}
        {"table": "name"}
        {"name": "name"}
    """
    if value is None or value is False or value == '':
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)

    if isinstance(value, dict):
        for key in ('value', 'expr', 'column', 'table', 'name'):
            if value.get(key) is not None:
                return extract_string_value(value[key])

    return None


def extract_function_name(name_obj: Any) -> str:
    """
    함수 이름을 추출합니다.

    지원 형태:
        "NOW"
        {"name": [{"type": "default", "value": "NOW"}]}
        {"name": "NOW"}
    """
    if not name_obj:
        return ''
    if isinstance(name_obj, str):
        return name_obj

    if isinstance(name_obj, dict):
        name = name_obj.get('name')
        if isinstance(name, list):
            parts = []
            for part in name:
                part_value = part.get('value') if isinstance(part, dict) else part
                if part_value:
                    parts.append(str(part_value))
            return '.'.join(parts)
        if isinstance(name, str):
            return name

    return ''


def extract_default_value(default_val: Any) -> Optional[str]:
    """
    DEFAULT 값을 리터럴 SQL 조각으로 추출합니다.
    문자열/숫자는 그대로, 태그가 붙은 노드는 SQL 텍스트로 변환합니다.
    """
    if default_val is None:
        return None

    # bool은 int의 하위 타입이므로 먼저 처리
    if isinstance(default_val, bool):
        return 'TRUE' if default_val else 'FALSE'
    if isinstance(default_val, str):
        return default_val
    if isinstance(default_val, (int, float)):
        return str(default_val)

    if not isinstance(default_val, dict):
        return None

    node_type = default_val.get('type')

    # { type: "default", value: {...} }
    if node_type == 'default' and default_val.get('value') is not None:
        return extract_default_value(default_val['value'])

    # { type: "function", name: {...}, args: {...} }
    if node_type == 'function':
        func_name = extract_function_name(default_val.get('name'))
        has_args = bool(get_path(default_val, ('args', 'value')))
        # CURRENT_TIMESTAMP는 괄호 없이 유지
        if func_name.upper() == 'CURRENT_TIMESTAMP' and not has_args:
            return 'CURRENT_TIMESTAMP'
        return f"{func_name}()"

    if node_type in ('single_quote_string', 'string') and default_val.get('value') is not None:
        return f"'{default_val['value']}'"

    if node_type == 'number' and default_val.get('value') is not None:
        return str(default_val['value'])

    if node_type == 'null':
        return 'NULL'

    if node_type == 'bool':
        return 'TRUE' if default_val.get('value') else 'FALSE'

    value = default_val.get('value')
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)

    return extract_string_value(default_val)
