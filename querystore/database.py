"""데이터베이스 엔진 및 세션 설정 모듈.

Database engine and session configuration module.
Sets up the async SQLAlchemy engine, session factory, and ORM base class.
Repositories receive sessions from here unless a factory is injected.
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, AsyncEngine, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from querystore.config import settings


def engine_options(database_url: str) -> dict[str, Any]:
    """드라이버별 엔진 옵션을 계산합니다.

    Compute engine keyword arguments for the given URL.
    Pool sizing and the asyncpg statement cache switch only apply to PostgreSQL.
    """
    options: dict[str, Any] = {"echo": settings.DEBUG, "pool_pre_ping": True}
    if database_url.startswith("postgresql"):
        options["pool_size"] = settings.DB_POOL_SIZE
        options["max_overflow"] = settings.DB_MAX_OVERFLOW
    if database_url.startswith("postgresql+asyncpg"):
        # Supavisor(트랜잭션 모드 풀러)에서 prepared statement 비활성화
        # Disable prepared statement caches for transaction-mode pooling
        options["connect_args"] = {"statement_cache_size": 0}
    return options


# 비동기 데이터베이스 엔진 — Async database engine
engine: AsyncEngine = create_async_engine(settings.DATABASE_URL, **engine_options(settings.DATABASE_URL))

# 비동기 세션 팩토리 — Async session factory
# expire_on_commit=False: 커밋 후에도 객체 속성 접근 가능 (Allows attribute access after commit without refresh)
async_session: async_sessionmaker[AsyncSession] = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """SQLAlchemy 선언적 베이스 클래스.

    Declarative base class for all ORM models.
    """

    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """비동기 데이터베이스 세션을 생성하고 요청 종료 시 닫습니다.

    FastAPI dependency that yields an async database session.
    Repository writes only flush; the caller commits on this session.

    Yields:
        AsyncSession: SQLAlchemy 비동기 세션 인스턴스 (Async session instance)
    """
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()
