"""
AST 정규화 중간 표현
파서 내부에서만 사용되며 저장되지 않습니다.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

ConstraintKind = Literal['PRIMARY KEY', 'FOREIGN KEY', 'UNIQUE', 'CHECK', 'INDEX', 'UNKNOWN']


@dataclass
class ColumnReference:
    """컬럼 인라인 REFERENCES 정보"""
    table: str
    column: str
    on_delete: Optional[str] = None
    on_update: Optional[str] = None


@dataclass
class ColumnConstraints:
    """
    컬럼 제약조건 누적기
    플래그는 True로만 바뀌고 다시 False가 되지 않습니다.
    """
    primary_key: bool = False
    not_null: bool = False
    unique: bool = False
    auto_increment: bool = False
    default_value: Optional[str] = None
    check: Optional[str] = None
    references: Optional[ColumnReference] = None

    def mark_primary_key(self) -> None:
        # PK는 NOT NULL + UNIQUE를 함께 의미
        self.primary_key = True
        self.not_null = True
        self.unique = True

    def mark_not_null(self) -> None:
        self.not_null = True

    def mark_unique(self) -> None:
        self.unique = True

    def mark_auto_increment(self) -> None:
        self.auto_increment = True


@dataclass
class NormalizedColumnDef:
    """AST 컬럼 정의를 정규화한 결과"""
    name: str
    data_type: str
    constraints: ColumnConstraints = field(default_factory=ColumnConstraints)
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    dimension: Optional[int] = None
    # 인식하지 못한 AST 속성
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ConstraintReference:
    """테이블 레벨 FOREIGN KEY의 참조 대상"""
    table: str
    columns: List[str]
    on_delete: Optional[str] = None
    on_update: Optional[str] = None


@dataclass
class NormalizedTableConstraint:
    """테이블 레벨 제약조건을 정규화한 결과"""
    type: ConstraintKind
    columns: List[str] = field(default_factory=list)
    name: Optional[str] = None
    references: Optional[ConstraintReference] = None
    extra: Dict[str, Any] = field(default_factory=dict)
