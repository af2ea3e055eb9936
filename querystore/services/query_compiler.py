"""쿼리 컴파일러 — 필터/정렬/include 명세를 실행 가능한 쿼리로 변환.

Query compiler: turns filter / order / include specifications into a
``CompiledQuery`` that ``repositories.executor`` applies to a SQLAlchemy
``Select``. Everything here is pure and synchronous.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from querystore.config import settings
from querystore.schemas.query import SCALAR_TYPES, CompiledQuery, OperatorFilter, QuerySpec
from querystore.utils.exceptions import InvalidQuerySpecFault

# 조인 관계로 끌어올리는 예약 필터 — Reserved filters hoisted into the membership relation
MEMBERSHIP_FILTERS: tuple[str, ...] = ("company_id", "role_id")

INCLUDE_KINDS: frozenset[str] = frozenset({"shallow", "select", "nested"})


def _as_spec(spec: QuerySpec | Mapping[str, Any] | None) -> QuerySpec:
    if isinstance(spec, QuerySpec):
        return spec
    spec = spec or {}
    return QuerySpec(
        filters=spec.get("filters") or {},
        order=spec.get("order") or {},
        include=spec.get("include"),
    )


def build_where(
    filters: Mapping[str, Any],
    membership_relation: str | None = None,
    hoist_membership: bool = True,
) -> dict[str, Any]:
    """필터 명세를 where 딕셔너리로 변환합니다.

    Translate a filter spec into a where dict.

    ``role_id``/``company_id`` are membership tests on the join relation, not
    columns of the entity, so they become one ``{relation: {"some": {...}}}``
    clause and never appear as top-level keys. With ``hoist_membership``
    off (entities where they are real columns) they are ordinary filters.
    """
    relation = membership_relation or settings.MEMBERSHIP_RELATION
    where: dict[str, Any] = {}
    remaining: dict[str, Any] = dict(filters)

    if hoist_membership and any(remaining.get(key) for key in MEMBERSHIP_FILTERS):
        some: dict[str, Any] = {}
        for key in MEMBERSHIP_FILTERS:
            if remaining.get(key):
                some[key] = remaining[key]
        where[relation] = {"some": some}
        for key in MEMBERSHIP_FILTERS:
            remaining.pop(key, None)

    for field, value in remaining.items():
        if isinstance(value, SCALAR_TYPES):
            where[field] = value
        elif isinstance(value, Mapping):
            try:
                operators = OperatorFilter.model_validate(dict(value))
            except ValidationError as exc:
                raise InvalidQuerySpecFault(f'Invalid operators for field "{field}": {exc.errors()[0]["msg"]}') from exc
            where[field] = operators.to_condition()
        # 그 외 값(None, 리스트 등)은 무시 — other value kinds are ignored

    return where


def build_order_by(order: Mapping[str, Any]) -> list[dict[str, str]]:
    """정렬 명세를 단일 필드 정렬 목록으로 변환합니다.

    Anything other than a case-insensitive "desc" sorts ascending.
    """
    return [
        {field: "desc" if str(direction).lower() == "desc" else "asc"}
        for field, direction in order.items()
    ]


def _expand_kind(key: str, value: Mapping[str, Any], path: tuple[int, ...], depth: int, max_depth: int) -> Any:
    kind = value["kind"]
    if kind not in INCLUDE_KINDS:
        raise InvalidQuerySpecFault(f'Unknown include kind "{kind}" for relation "{key}"')
    if kind == "shallow":
        return True
    if kind == "select":
        return {"select": {field: True for field in value.get("fields") or ()}}
    return {"include": _expand(value.get("include") or {}, path, depth + 1, max_depth)}


def _expand(spec: Mapping[str, Any], path: tuple[int, ...], depth: int, max_depth: int) -> dict[str, Any]:
    if not isinstance(spec, Mapping):
        raise InvalidQuerySpecFault(f"Include specification must be a mapping, got {type(spec).__name__}")
    if id(spec) in path:
        raise InvalidQuerySpecFault("Cyclic include specification")
    if depth > max_depth:
        raise InvalidQuerySpecFault(f"Include specification nested deeper than {max_depth} levels")
    path = path + (id(spec),)

    tree: dict[str, Any] = {}
    for key, value in spec.items():
        if value is True:
            tree[key] = True
        elif isinstance(value, (list, tuple)):
            tree[key] = {"select": {field: True for field in value}}
        elif isinstance(value, Mapping):
            if "kind" in value:
                tree[key] = _expand_kind(key, value, path, depth, max_depth)
            elif "include" in value:
                tree[key] = {"include": _expand(value["include"], path, depth + 1, max_depth)}
            else:
                # 속성 객체와 중첩 include를 구분하지 않음 — a bare mapping is read as a nested include spec
                tree[key] = _expand(value, path, depth + 1, max_depth)
    return tree


def expand_include(spec: Mapping[str, Any], max_depth: int | None = None) -> dict[str, Any]:
    """include 명세를 재귀적으로 include 트리로 확장합니다.

    Recursively expand an include spec into an include tree::

        {"a": True, "b": ["x"], "c": {"include": {"d": True}}}
        -> {"a": True, "b": {"select": {"x": True}}, "c": {"include": {"d": True}}}

    Explicit ``{"kind": "shallow" | "select" | "nested"}`` entries are
    accepted next to the legacy shapes.

    Raises:
        InvalidQuerySpecFault: 순환 참조, 최대 깊이 초과, 알 수 없는 kind
            (cycle, depth over the limit, unknown kind)
    """
    limit = max_depth if max_depth is not None else settings.INCLUDE_MAX_DEPTH
    return _expand(spec, (), 1, limit)


def compile_query(
    spec: QuerySpec | Mapping[str, Any] | None = None,
    membership_relation: str | None = None,
    hoist_membership: bool = True,
) -> CompiledQuery:
    """필터/정렬/include 명세를 실행 가능한 쿼리로 컴파일합니다.

    Compile a ``{filters, order, include}`` spec into a ``CompiledQuery``.
    Pure: the input is never mutated and equal inputs give equal outputs.

    Args:
        spec: QuerySpec 또는 동일한 키를 가진 매핑 (QuerySpec or mapping with the same keys)
        membership_relation: role_id/company_id를 끌어올릴 관계 이름
                             (Relation that role_id/company_id filters are hoisted into)
        hoist_membership: 멤버십 필터 끌어올리기 여부 (Whether to hoist membership filters at all)

    Returns:
        CompiledQuery: where, order_by, include
    """
    query_spec = _as_spec(spec)
    return CompiledQuery(
        where=build_where(query_spec.filters, membership_relation, hoist_membership),
        order_by=build_order_by(query_spec.order),
        include=expand_include(query_spec.include) if query_spec.include is not None else None,
    )
