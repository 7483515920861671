"""
이름 변환 유틸리티 모듈
snake_case → camelCase 변환과 중복되지 않는 이름 생성 함수를 제공합니다.
"""
from typing import Iterable


def snake_to_camel(snake_str: str) -> str:
    """
    snake_case를 camelCase로 변환합니다.

    예:
        source_table_id -> sourceTableId
        primary_key -> primaryKey
    """
    components = snake_str.split('_')
    return components[0] + ''.join(word.capitalize() for word in components[1:])


def unique_name(base_name: str, existing_names: Iterable[str]) -> str:
    """
    기존 이름과 대소문자 구분 없이 겹치지 않는 이름을 반환합니다.

    예:
        new_table (이미 존재) -> new_table_1
        new_table, new_table_1 (이미 존재) -> new_table_2
    """
    taken = {name.lower() for name in existing_names}

    if base_name.lower() not in taken:
        return base_name

    counter = 1
    candidate = f"{base_name}_{counter}"
    while candidate.lower() in taken:
        counter += 1
        candidate = f"{base_name}_{counter}"

    return candidate
