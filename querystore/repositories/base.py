"""기본 CRUD 레포지토리 — 모든 레포지토리의 부모 클래스.

Base CRUD Repository — Parent class for all entity repositories.
Compiles filter/order/include specifications, runs them through SQLAlchemy
and wraps every outcome in an ``Envelope``. No storage exception ever
crosses a repository method; callers branch on ``envelope.error``.

Usage:
    class WalletRepository(BaseRepository[Wallet]):
        def __init__(self) -> None:
            super().__init__(Wallet)

    result = await wallet_repository.get_one(db, {"currency": "XAF"})
    if result.error:
        ...
"""

import functools
import re
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy import Select, and_, inspect, select
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from querystore.config import settings
from querystore.database import Base, async_session
from querystore.repositories.executor import build_count, build_select, column_of
from querystore.schemas.envelope import Envelope
from querystore.schemas.query import CompiledQuery, QuerySpec
from querystore.services.identifier import ResolvedIdentifier, resolve_identifier
from querystore.services.query_compiler import compile_query
from querystore.utils import envelope
from querystore.utils.axiom_logging import get_logger, safe_repr
from querystore.utils.exceptions import (
    ConstraintViolationFault,
    GenericStoreFault,
    InvalidIdentifierFault,
    NotFoundFault,
    StoreFault,
    TransactionFailureFault,
)
from querystore.utils.pagination import Page, paginate

# 제네릭 타입 변수 — SQLAlchemy 모델을 나타냄
# Generic type variable representing a SQLAlchemy model
ModelType = TypeVar("ModelType", bound=Base)
T = TypeVar("T")

logger = get_logger(__name__)


def _as_fault(exc: Exception) -> StoreFault:
    """임의의 예외를 레포지토리 오류로 변환합니다 — Map any exception onto the fault taxonomy."""
    if isinstance(exc, StoreFault):
        return exc
    # DBAPI 오류는 SQL 문 대신 드라이버 메시지만 사용 — driver message only, never the SQL text
    cause = str(exc.orig) if isinstance(exc, DBAPIError) and exc.orig is not None else str(exc)
    if isinstance(exc, IntegrityError):
        return ConstraintViolationFault(cause)
    return GenericStoreFault(cause)


def fallible(verb: str, plural: bool = False) -> Callable[[Callable[..., Awaitable[Envelope]]], Callable[..., Awaitable[Envelope]]]:
    """저장소 호출을 오류 봉투로 감싸는 데코레이터.

    Decorator turning a repository coroutine into a resilience boundary.
    Any exception becomes an error envelope whose message follows the
    ``"Error <verb> <entity>: <cause>"`` convention.

    Args:
        verb: 메시지에 들어갈 동사 (Verb used in the message, e.g. "fetching")
        plural: 복수형 엔티티 이름 사용 여부 (Use the plural entity name)
    """

    def decorator(method: Callable[..., Awaitable[Envelope]]) -> Callable[..., Awaitable[Envelope]]:
        @functools.wraps(method)
        async def wrapper(self: "BaseRepository[Any]", *args: Any, **kwargs: Any) -> Envelope:
            try:
                return await method(self, *args, **kwargs)
            except Exception as exc:
                fault = _as_fault(exc)
                label = self.entity_plural if plural else self.entity_name
                message = f"Error {verb} {label}: {fault.message}"
                logger.warning(
                    "%s [%s.%s args=%s]",
                    message,
                    type(self).__name__,
                    method.__name__,
                    safe_repr(args[1:]),
                )
                return envelope.error(
                    message=message,
                    code=fault.code,
                    error={"message": message, "fault": fault.fault},
                )

        return wrapper

    return decorator


def _humanize(name: str) -> str:
    # "UserCompanyRole" -> "user company role"
    return re.sub(r"(?<!^)(?=[A-Z])", " ", name).lower()


class BaseRepository(Generic[ModelType]):
    """제네릭 CRUD 레포지토리.

    Generic CRUD repository over one SQLAlchemy model.

    The session is always passed explicitly as the first argument; write
    methods only ``flush`` so the session owner decides when to commit.
    ``operation`` opens its own session from ``session_factory`` and commits
    or rolls back the whole unit.

    Attributes:
        model: SQLAlchemy 모델 클래스 (The SQLAlchemy model class)
        session_factory: 트랜잭션용 세션 팩토리 (Session factory used by ``operation``)
        entity_name: 메시지용 단수 이름 (Singular name used in messages)
        entity_plural: 메시지용 복수 이름 (Plural name used in messages)
        membership_relation: role_id/company_id 필터 대상 관계 (Relation for membership filters)
        hoist_membership: 멤버십 필터 사용 여부 — 모델에 관계가 있을 때만
                          (Whether membership filters apply; only when the model has the relation)
        default_include: include 미지정 시 사용할 기본 include (Include used when none is given)
    """

    default_include: dict[str, Any] | None = None

    def __init__(
        self,
        model: type[ModelType],
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        entity_name: str | None = None,
        entity_plural: str | None = None,
        membership_relation: str | None = None,
    ) -> None:
        """레포지토리를 초기화합니다.

        Initialize the repository with a model class.

        Args:
            model: 이 레포지토리가 관리할 SQLAlchemy 모델 클래스
                   (SQLAlchemy model class this repository manages)
            session_factory: 트랜잭션 세션 팩토리, 기본값은 전역 팩토리
                             (Session factory for transactions; defaults to the global one)
            entity_name: 단수 이름, 기본값은 모델 이름에서 유도
                         (Singular name; derived from the model name by default)
            entity_plural: 복수 이름, 기본값은 단수 + "s" (Plural name; singular + "s" by default)
            membership_relation: 멤버십 관계 이름 (Membership relation name)
        """
        self.model: type[ModelType] = model
        self.session_factory: async_sessionmaker[AsyncSession] = session_factory or async_session
        self.entity_name: str = entity_name or _humanize(model.__name__)
        self.entity_plural: str = entity_plural or f"{self.entity_name}s"
        self.membership_relation: str = membership_relation or settings.MEMBERSHIP_RELATION
        self.hoist_membership: bool = self.membership_relation in inspect(model).relationships

    # ------------------------------------------------------------------
    # 쿼리 컴파일 — Query compilation
    # ------------------------------------------------------------------
    def compile(
        self,
        filters: Mapping[str, Any] | None = None,
        order: Mapping[str, Any] | None = None,
        include: Mapping[str, Any] | None = None,
    ) -> CompiledQuery:
        """이 레포지토리 기준으로 쿼리 명세를 컴파일합니다.

        Compile a query spec for this repository, applying ``default_include``
        when no include is given.
        """
        spec = QuerySpec(
            filters=dict(filters or {}),
            order=dict(order or {}),
            include=dict(include) if include is not None else self.default_include,
        )
        return compile_query(
            spec,
            membership_relation=self.membership_relation,
            hoist_membership=self.hoist_membership,
        )

    def _unique_query(self, resolved: ResolvedIdentifier) -> Select:
        return select(self.model).where(column_of(self.model, resolved.key) == resolved.value)

    def _not_found(self) -> Envelope:
        message = f"{self.entity_name.capitalize()} not found"
        return envelope.error(
            message=message,
            code=NotFoundFault.code,
            error={"message": message, "fault": NotFoundFault.__name__},
        )

    def _invalid_identifier(self, identifier: Any) -> Envelope:
        fault = InvalidIdentifierFault()
        logger.info("Rejected %s identifier %s", self.entity_name, safe_repr(identifier))
        return envelope.error(
            message=fault.message,
            code=fault.code,
            error={"message": fault.message, "fault": fault.fault},
        )

    @staticmethod
    def _as_data(data: Mapping[str, Any] | BaseModel) -> dict[str, Any]:
        # Pydantic 입력은 설정된 필드만 사용 — only explicitly set fields of pydantic input
        if isinstance(data, BaseModel):
            return data.model_dump(exclude_unset=True)
        return dict(data)

    # ------------------------------------------------------------------
    # 조회 — Reads
    # ------------------------------------------------------------------
    @fallible("fetching")
    async def get_one(
        self,
        db: AsyncSession,
        filters: Mapping[str, Any] | None = None,
        include: Mapping[str, Any] | None = None,
    ) -> Envelope:
        """조건에 맞는 첫 번째 레코드를 조회합니다.

        Fetch the first row matching ``filters``. No match is an error
        envelope (``NotFoundFault``, 404), not an exception.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            filters: 필터 명세 (Filter spec)
            include: include 명세 (Include spec)

        Returns:
            Envelope: output은 모델 인스턴스 (Output is the model instance)
        """
        query = build_select(self.model, self.compile(filters, include=include)).limit(1)
        result = await db.execute(query)
        record = result.scalars().first()
        if record is None:
            return self._not_found()
        return envelope.success(output=record)

    @fallible("fetching", plural=True)
    async def get(
        self,
        db: AsyncSession,
        filters: Mapping[str, Any] | None = None,
        order: Mapping[str, Any] | None = None,
        include: Mapping[str, Any] | None = None,
    ) -> Envelope:
        """조건에 맞는 모든 레코드를 조회합니다.

        Fetch all rows matching ``filters``. An empty list is a success.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            filters: 필터 명세 (Filter spec)
            order: 정렬 명세 — 삽입 순서가 우선순위 (Order spec, insertion order is precedence)
            include: include 명세 (Include spec)

        Returns:
            Envelope: output은 모델 인스턴스 목록 (Output is a list of model instances)
        """
        query = build_select(self.model, self.compile(filters, order, include))
        result = await db.execute(query)
        return envelope.success(output=list(result.scalars().all()))

    @fallible("fetching", plural=True)
    async def get_paginated(
        self,
        db: AsyncSession,
        filters: Mapping[str, Any] | None = None,
        order: Mapping[str, Any] | None = None,
        include: Mapping[str, Any] | None = None,
        page: int = 1,
        per_page: int | None = None,
    ) -> Envelope:
        """페이지네이션이 적용된 레코드 목록을 조회합니다.

        Fetch one page of rows. Output is a ``Page``.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            filters: 필터 명세 (Filter spec)
            order: 정렬 명세 (Order spec)
            include: include 명세 (Include spec)
            page: 현재 페이지 번호, 1부터 시작 (Current page number, 1-based)
            per_page: 페이지당 레코드 수 (Number of records per page)
        """
        return await self._paginate(db, self.compile(filters, order, include), page, per_page)

    async def _paginate(
        self,
        db: AsyncSession,
        compiled: CompiledQuery,
        page: int = 1,
        per_page: int | None = None,
    ) -> Envelope:
        per_page = per_page or settings.DEFAULT_PAGE_SIZE
        items, total = await paginate(
            db,
            build_select(self.model, compiled),
            page=page,
            per_page=per_page,
            count_query=build_count(self.model, compiled),
        )
        return envelope.success(output=Page.build(items, total, page, per_page))

    @fallible("counting", plural=True)
    async def count(
        self,
        db: AsyncSession,
        filters: Mapping[str, Any] | None = None,
    ) -> Envelope:
        """조건에 맞는 레코드 수를 셉니다 — Count rows matching ``filters``."""
        result = await db.execute(build_count(self.model, self.compile(filters)))
        return envelope.success(output=result.scalar() or 0)

    # ------------------------------------------------------------------
    # 쓰기 — Writes
    # ------------------------------------------------------------------
    @fallible("creating")
    async def create(
        self,
        db: AsyncSession,
        data: Mapping[str, Any] | BaseModel,
    ) -> Envelope:
        """새 레코드를 생성합니다.

        Insert a new row. Success code is 201.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            data: 생성할 레코드의 데이터 (Data for the new record)
        """
        db_obj: ModelType = self.model(**self._as_data(data))
        db.add(db_obj)
        await db.flush()
        await db.refresh(db_obj)
        return envelope.success(output=db_obj, code=201)

    async def update(
        self,
        db: AsyncSession,
        identifier: Any,
        data: Mapping[str, Any] | BaseModel,
    ) -> Envelope:
        """식별자로 찾은 레코드를 업데이트합니다.

        Update the row addressed by ``identifier`` (a primary key, or a
        mapping whose first key is a unique column). An identifier without a
        value is rejected before any query runs. Success code is 204.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            identifier: 기본 키 또는 {고유컬럼: 값} (Primary key or {unique_column: value})
            data: 업데이트할 필드와 값 (Fields and values to update)
        """
        resolved = resolve_identifier(identifier)
        if not resolved.is_valid:
            return self._invalid_identifier(identifier)
        return await self._update(db, resolved, data)

    @fallible("updating")
    async def _update(
        self,
        db: AsyncSession,
        resolved: ResolvedIdentifier,
        data: Mapping[str, Any] | BaseModel,
    ) -> Envelope:
        db_obj: ModelType | None = (await db.execute(self._unique_query(resolved))).scalar_one_or_none()
        if db_obj is None:
            raise NotFoundFault(f"{self.entity_name.capitalize()} not found")

        # 모델 컬럼에 해당하는 필드만 반영 — Only fields mapped to columns are applied
        columns = inspect(self.model).column_attrs
        for field, value in self._as_data(data).items():
            if field in columns:
                setattr(db_obj, field, value)

        await db.flush()
        await db.refresh(db_obj)
        return envelope.success(output=db_obj, code=204)

    async def delete(
        self,
        db: AsyncSession,
        identifier: Any,
    ) -> Envelope:
        """식별자로 찾은 레코드를 삭제합니다.

        Delete the row addressed by ``identifier``; same identifier gate as
        ``update``. Output is the deleted instance.
        """
        resolved = resolve_identifier(identifier)
        if not resolved.is_valid:
            return self._invalid_identifier(identifier)
        return await self._delete(db, resolved)

    @fallible("deleting")
    async def _delete(
        self,
        db: AsyncSession,
        resolved: ResolvedIdentifier,
    ) -> Envelope:
        db_obj: ModelType | None = (await db.execute(self._unique_query(resolved))).scalar_one_or_none()
        if db_obj is None:
            raise NotFoundFault(f"{self.entity_name.capitalize()} not found")

        await db.delete(db_obj)
        await db.flush()
        return envelope.success(output=db_obj)

    @fallible("upserting")
    async def upsert(
        self,
        db: AsyncSession,
        where: Mapping[str, Any],
        create: Mapping[str, Any],
        update: Mapping[str, Any],
    ) -> Envelope:
        """고유 조건으로 찾은 레코드를 갱신하거나 새로 생성합니다.

        Update the row matching the unique ``where`` columns with ``update``,
        or insert ``{**where, **create}`` when there is none. Code is 201 on
        insert, 200 on update.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            where: 고유 컬럼 조건 (Unique column values)
            create: 생성 시 추가 데이터 (Extra data used on insert)
            update: 갱신 시 데이터 (Data applied on update)
        """
        conditions = [column_of(self.model, field) == value for field, value in where.items()]
        query: Select = select(self.model).where(and_(*conditions))
        db_obj: ModelType | None = (await db.execute(query)).scalar_one_or_none()

        if db_obj is None:
            db_obj = self.model(**{**where, **create})
            db.add(db_obj)
            code = 201
        else:
            columns = inspect(self.model).column_attrs
            for field, value in update.items():
                if field in columns:
                    setattr(db_obj, field, value)
            code = 200

        await db.flush()
        await db.refresh(db_obj)
        return envelope.success(output=db_obj, code=code)

    # ------------------------------------------------------------------
    # 트랜잭션 — Transactional scope
    # ------------------------------------------------------------------
    async def operation(self, callback: Callable[[AsyncSession], Awaitable[T]]) -> T:
        """콜백을 단일 트랜잭션으로 실행합니다.

        Run ``callback`` inside one database transaction. Every repository
        call made with the session handed to ``callback`` is committed
        together, or rolled back together when ``callback`` raises. A write
        that failed inside ``callback`` rolls the unit back even when the
        callback ignored the error envelope and returned normally.

        Args:
            callback: 트랜잭션 세션을 받는 코루틴 함수
                      (Coroutine function receiving the transactional session)

        Returns:
            T: 콜백의 반환값 (The callback's return value)

        Raises:
            TransactionFailureFault: 콜백 또는 커밋 실패 시, 원래 예외는 cause에 보관
                (On any failure; the original exception is kept on ``cause``)
        """
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    result = await callback(session)
                    # 실패한 flush는 봉투로만 보고됨 — a failed flush only shows up as an error envelope
                    transaction = session.get_transaction()
                    if transaction is None or not transaction.is_active:
                        raise GenericStoreFault("Transaction rolled back after a failed write")
                    return result
        except Exception as exc:
            fault = _as_fault(exc)
            logger.warning("Transaction on %s rolled back: %s", self.entity_plural, fault.message)
            raise TransactionFailureFault(f"Operation failed: {fault.message}", cause=exc) from exc
