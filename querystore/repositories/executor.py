"""컴파일된 쿼리 실행기 — CompiledQuery를 SQLAlchemy 구문으로 변환.

Compiled query executor: applies a ``CompiledQuery`` to SQLAlchemy
statements. ``where`` becomes WHERE clauses, ``order_by`` becomes ORDER BY
terms, and the include tree becomes ``selectinload`` loader options.

Unknown columns and relations raise ``InvalidQuerySpecFault`` instead of
being skipped, so a typo can never widen an update or delete.
"""

from collections.abc import Mapping
from typing import Any

from sqlalchemy import ColumnElement, Select, and_, func, inspect, select
from sqlalchemy.orm import InstrumentedAttribute, selectinload

from querystore.schemas.query import CompiledQuery
from querystore.utils.exceptions import InvalidQuerySpecFault

RELATION_QUANTIFIERS: frozenset[str] = frozenset({"some", "none"})


def column_of(model: type, field: str) -> InstrumentedAttribute:
    """모델의 컬럼 속성을 반환합니다 — Return a mapped column attribute of ``model``."""
    if field not in inspect(model).column_attrs:
        raise InvalidQuerySpecFault(f'Unknown field "{field}" on {model.__name__}')
    return getattr(model, field)


def relationship_of(model: type, name: str) -> tuple[InstrumentedAttribute, type, bool]:
    """관계 속성, 대상 모델, 컬렉션 여부를 반환합니다.

    Return ``(attribute, target model, uselist)`` for a relationship of ``model``.
    """
    relationships = inspect(model).relationships
    if name not in relationships:
        raise InvalidQuerySpecFault(f'Unknown relation "{name}" on {model.__name__}')
    prop = relationships[name]
    return getattr(model, name), prop.mapper.class_, bool(prop.uselist)


def _column_clauses(column: InstrumentedAttribute, condition: Any) -> list[ColumnElement[bool]]:
    if not isinstance(condition, Mapping):
        if condition is None:
            return [column.is_(None)]
        return [column == condition]

    clauses: list[ColumnElement[bool]] = []
    for operator, value in condition.items():
        if operator == "in":
            clauses.append(column.in_(value))
        elif operator == "not_in":
            clauses.append(column.not_in(value))
        elif operator == "not":
            clauses.append(column.is_not(None) if value is None else column != value)
        elif operator == "gt":
            clauses.append(column > value)
        elif operator == "lt":
            clauses.append(column < value)
        elif operator == "gte":
            clauses.append(column >= value)
        elif operator == "lte":
            clauses.append(column <= value)
        else:
            raise InvalidQuerySpecFault(f'Unknown operator "{operator}" on field "{column.key}"')
    return clauses


def _relation_clauses(model: type, name: str, condition: Any) -> list[ColumnElement[bool]]:
    attribute, target, uselist = relationship_of(model, name)
    if not isinstance(condition, Mapping) or not set(condition) <= RELATION_QUANTIFIERS:
        raise InvalidQuerySpecFault(f'Relation filter on "{name}" must use "some" or "none"')

    clauses: list[ColumnElement[bool]] = []
    for quantifier, sub_where in condition.items():
        criteria = where_clauses(target, sub_where or {})
        criterion = and_(*criteria) if criteria else None
        # 컬렉션은 any(), 단일 관계는 has() — any() for collections, has() for scalar relations
        exists = attribute.any(criterion) if uselist else attribute.has(criterion)
        clauses.append(exists if quantifier == "some" else ~exists)
    return clauses


def where_clauses(model: type, where: Mapping[str, Any]) -> list[ColumnElement[bool]]:
    """where 딕셔너리를 SQLAlchemy 조건 목록으로 변환합니다.

    Translate a compiled ``where`` dict into a list of SQLAlchemy conditions.
    Keys naming a relationship are relation filters (``{"some": {...}}``);
    every other key must be a column.
    """
    clauses: list[ColumnElement[bool]] = []
    relationships = inspect(model).relationships
    for field, condition in where.items():
        if field in relationships:
            clauses.extend(_relation_clauses(model, field, condition))
        else:
            clauses.extend(_column_clauses(column_of(model, field), condition))
    return clauses


def order_terms(model: type, order_by: list[Mapping[str, str]]) -> list[Any]:
    terms: list[Any] = []
    for ordering in order_by:
        for field, direction in ordering.items():
            column = column_of(model, field)
            terms.append(column.desc() if direction == "desc" else column.asc())
    return terms


def loader_options(model: type, tree: Mapping[str, Any]) -> list[Any]:
    """include 트리를 selectinload 옵션으로 변환합니다.

    Translate an include tree into eager loader options:
    ``True`` loads the relation, ``{"select": {...}}`` loads only the listed
    columns, ``{"include": {...}}`` and bare mappings load nested relations.
    """
    options: list[Any] = []
    for name, spec in tree.items():
        attribute, target, _ = relationship_of(model, name)
        loader = selectinload(attribute)
        if isinstance(spec, Mapping):
            if "select" in spec:
                loader = loader.load_only(*(column_of(target, field) for field in spec["select"]))
            else:
                nested = loader_options(target, spec["include"] if "include" in spec else spec)
                if nested:
                    loader = loader.options(*nested)
        options.append(loader)
    return options


def build_select(model: type, compiled: CompiledQuery) -> Select:
    """컴파일된 쿼리로 SELECT 구문을 생성합니다 — Build the SELECT for ``compiled``."""
    query: Select = select(model).where(*where_clauses(model, compiled.where))
    terms = order_terms(model, compiled.order_by)
    if terms:
        query = query.order_by(*terms)
    if compiled.include:
        query = query.options(*loader_options(model, compiled.include))
    return query


def build_count(model: type, compiled: CompiledQuery) -> Select:
    """where 조건만 사용하는 COUNT 구문 — COUNT using only the where clause."""
    return select(func.count()).select_from(model).where(*where_clauses(model, compiled.where))
