"""
관계(외래키) 비교 유틸리티
"""

from typing import Iterable

from dbkeep.types.schema_types import Relation


def same_endpoints(left: Relation, right: Relation) -> bool:
    """
    두 관계가 같은 컬럼 쌍을 연결하는지 확인합니다. (방향 무관)
    정확히 같은 (테이블, 컬럼) 쌍만 비교합니다.
    """
    forward = (
        left.source_table_id == right.source_table_id
        and left.source_column_id == right.source_column_id
        and left.target_table_id == right.target_table_id
        and left.target_column_id == right.target_column_id
    )
    backward = (
        left.source_table_id == right.target_table_id
        and left.source_column_id == right.target_column_id
        and left.target_table_id == right.source_table_id
        and left.target_column_id == right.source_column_id
    )
    return forward or backward


def relation_exists(relations: Iterable[Relation], candidate: Relation) -> bool:
    """같은 컬럼 쌍을 연결하는 관계가 이미 있는지 확인합니다."""
    return any(same_endpoints(existing, candidate) for existing in relations)
