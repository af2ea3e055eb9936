"""쿼리 명세(DSL) 스키마 정의.

Query specification schemas: the filter / order / include DSL accepted by
repositories and the compiled query handed to the executor.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

# 스칼라 필터 값 타입 — Value kinds treated as exact-equality filters
SCALAR_TYPES: tuple[type, ...] = (str, int, float, bool, Decimal, date, datetime, UUID)

SortDirection = Literal["asc", "desc"]

# (명세 키, 컴파일된 키) 순서쌍 — applied in this order when eq is absent
OPERATOR_KEYS: tuple[tuple[str, str], ...] = (
    ("in_", "in"),
    ("nin", "not_in"),
    ("neq", "not"),
    ("gt", "gt"),
    ("lt", "lt"),
    ("gte", "gte"),
    ("lte", "lte"),
)


class OperatorFilter(BaseModel):
    """필드 단위 비교 연산자 객체.

    Per-field operator object ``{in, nin, neq, gt, lt, gte, lte, eq}``.
    Unknown keys are ignored. A key counts as set when it is present, so
    ``{"neq": None}`` means "is not null". An empty ``in`` list matches
    no row; an empty ``nin`` list excludes nothing.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    in_: list[Any] | None = Field(default=None, alias="in")
    nin: list[Any] | None = None
    neq: Any = None
    gt: Any = None
    lt: Any = None
    gte: Any = None
    lte: Any = None
    eq: Any = None

    def to_condition(self) -> Any:
        """컴파일된 조건을 반환합니다.

        Return the compiled condition: the bare ``eq`` value when ``eq`` is
        set (it wins over every other operator), else an operator dict.
        """
        if "eq" in self.model_fields_set:
            return self.eq

        condition: dict[str, Any] = {}
        for spec_key, compiled_key in OPERATOR_KEYS:
            if spec_key not in self.model_fields_set:
                continue
            value = getattr(self, spec_key)
            if spec_key in ("in_", "nin"):
                # 빈 목록도 유지 — an empty list is kept (in_([]) matches no row)
                if value is not None:
                    condition[compiled_key] = list(value)
            else:
                condition[compiled_key] = value
        return condition


class QuerySpec(BaseModel):
    """필터/정렬/include 명세 묶음.

    Bundle of the three caller-supplied specifications.

    Attributes:
        filters: 필드명 → 스칼라 또는 연산자 객체 (Field name to scalar or operator object)
        order: 필드명 → "asc"/"desc", 삽입 순서가 우선순위 (Insertion order is precedence)
        include: 관계명 → include 값 (Relation name to include value)
    """

    filters: dict[str, Any] = Field(default_factory=dict)
    order: dict[str, Any] = Field(default_factory=dict)
    include: dict[str, Any] | None = None


class CompiledQuery(BaseModel):
    """실행기가 바로 사용할 수 있는 컴파일된 쿼리.

    Backend-ready query.

    Attributes:
        where: 필드 조건 딕셔너리 (Field conditions)
        order_by: 단일 필드 정렬 목록 (Single-field orderings, in precedence order)
        include: include 트리 — 없으면 None (Include tree, None when not requested)
    """

    where: dict[str, Any] = Field(default_factory=dict)
    order_by: list[dict[str, SortDirection]] = Field(default_factory=list)
    include: dict[str, Any] | None = None
