"""회사 및 역할 관련 SQLAlchemy ORM 모델 정의.

Company and Role SQLAlchemy ORM model definitions.

Tables:
    - companies: 회사 (Business accounts owning wallets and cards)
    - roles: 역할 (Roles a user can hold inside a company)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from querystore.database import Base


class Company(Base):
    """회사 모델 — 지갑과 카드를 소유하는 비즈니스 계정.

    Company model — Business account that owns wallets and cards.
    Users join a company through ``UserCompanyRole``.

    Relationships:
        user_company_roles: 소속 사용자-역할 연결 (Member/role links)
        wallets: 회사 지갑 목록 (Company wallets)
        cards: 회사 카드 목록 (Company cards)
    """

    __tablename__ = "companies"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 회사 이름 — 전역 고유 (Company name, globally unique)
    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    country: Mapped[str | None] = mapped_column(String(2), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    # 관계 — Relationships
    user_company_roles = relationship("UserCompanyRole", back_populates="company", cascade="all, delete-orphan")
    wallets = relationship("Wallet", back_populates="company", cascade="all, delete-orphan")
    cards = relationship("Card", back_populates="company", cascade="all, delete-orphan")


class Role(Base):
    """역할 모델 — 회사 내 사용자 권한 수준.

    Role model — Permission level a user holds inside a company
    (e.g. "owner", "admin", "member").
    """

    __tablename__ = "roles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 역할 이름 — 전역 고유 (Role name, globally unique)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)

    user_company_roles = relationship("UserCompanyRole", back_populates="role")
