"""테스트 인프라 — 임시 SQLite DB, 세션, 시드 데이터 픽스처.

Test infrastructure — Temporary SQLite DB, session, and seed data fixtures.
Each test gets its own database file under ``tmp_path`` (aiosqlite driver),
so no server is needed and nothing leaks between tests.
Seed data is written and committed through a separate session, so the
``db`` session starts with an empty identity map.
"""

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from querystore.database import Base
# 모든 모델을 메타데이터에 등록 — importing the package registers every model
from querystore.models import Card, Company, Role, User, UserCompanyRole, Wallet

_EPOCH = datetime(2025, 1, 1, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Function-scoped: 엔진, 세션 팩토리, 세션
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """테스트용 async 엔진. 임시 파일 DB에 스키마를 생성합니다."""
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'querystore.db'}", echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """테스트 엔진에 바인딩된 세션 팩토리 — operation() 주입용."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    """각 테스트에 격리된 DB 세션을 제공합니다. 커밋하지 않은 변경은 버립니다."""
    async with session_factory() as session:
        yield session
        await session.rollback()


# ---------------------------------------------------------------------------
# 헬퍼 픽스처: 테스트용 데이터 생성
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def seed(session_factory: async_sessionmaker[AsyncSession]) -> SimpleNamespace:
    """회사 2개, 역할 2개, 사용자 4명, 지갑 3개, 카드 3장을 생성하고 커밋합니다.

    Memberships:
        alice — Acme / admin
        bob   — Acme / member
        carol — Globex / member
        dave  — none
    """
    async with session_factory() as session:
        acme = Company(name="Acme", country="CM", email="ops@acme.test")
        globex = Company(name="Globex", country="NG")
        admin = Role(name="admin", description="Company administrator")
        member = Role(name="member")
        session.add_all([acme, globex, admin, member])
        await session.flush()

        users = {}
        for offset, (first, last) in enumerate([
            ("Alice", "Ngono"),
            ("Bob", "Eto"),
            ("Carol", "Adebayo"),
            ("Dave", "Mbarga"),
        ]):
            user = User(
                email=f"{first.lower()}@example.com",
                first_name=first,
                last_name=last,
                password_hash="not-a-real-hash",
                created_at=_EPOCH + timedelta(days=offset),
            )
            session.add(user)
            users[first.lower()] = user
        await session.flush()

        session.add_all([
            UserCompanyRole(user_id=users["alice"].id, company_id=acme.id, role_id=admin.id),
            UserCompanyRole(user_id=users["bob"].id, company_id=acme.id, role_id=member.id),
            UserCompanyRole(user_id=users["carol"].id, company_id=globex.id, role_id=member.id),
        ])

        wallets = {
            "acme_xaf": Wallet(company_id=acme.id, currency="XAF", balance=Decimal("1000.00")),
            "acme_usd": Wallet(company_id=acme.id, currency="USD", balance=Decimal("50.00")),
            "globex_xaf": Wallet(company_id=globex.id, currency="XAF", balance=Decimal("10.00")),
        }
        session.add_all(wallets.values())

        cards = {
            "alice": Card(
                company_id=acme.id, user_id=users["alice"].id, masked_number="**** 1111",
                status="ACTIVE", created_at=_EPOCH,
            ),
            "bob": Card(
                company_id=acme.id, user_id=users["bob"].id, masked_number="**** 2222",
                status="FROZEN", created_at=_EPOCH + timedelta(days=1),
            ),
            "spare": Card(
                company_id=globex.id, masked_number="**** 3333",
                status="TERMINATED", created_at=_EPOCH + timedelta(days=2),
            ),
        }
        session.add_all(cards.values())
        await session.commit()

    return SimpleNamespace(
        acme=acme,
        globex=globex,
        admin=admin,
        member=member,
        wallets=wallets,
        cards=cards,
        **users,
    )
