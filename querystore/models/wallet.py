"""지갑 및 카드 SQLAlchemy ORM 모델 정의.

Wallet and Card SQLAlchemy ORM model definitions.

Tables:
    - wallets: 회사 통화별 지갑 (Per-currency company wallets)
    - cards: 가상 카드 (Virtual cards issued to a company, optionally to a user)
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, Boolean, DateTime, ForeignKey, Numeric, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from querystore.database import Base


class Wallet(Base):
    """지갑 모델 — 회사별, 통화별 잔액.

    Wallet model — One balance per company and currency.

    Constraints:
        uq_wallet_company_currency: 회사당 통화별 지갑 1개 (One wallet per company and currency)
    """

    __tablename__ = "wallets"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False)
    # ISO 4217 통화 코드 — ISO 4217 currency code (e.g. "XAF", "USD")
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    balance: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False, default=Decimal("0"))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("company_id", "currency", name="uq_wallet_company_currency"),
    )

    company = relationship("Company", back_populates="wallets")


class Card(Base):
    """카드 모델 — 회사에 발급된 가상 카드.

    Card model — Virtual card issued to a company, optionally held by a user.

    Attributes:
        masked_number: 마스킹된 카드 번호 (Masked PAN, e.g. "**** 4242")
        status: 카드 상태 (ACTIVE/FROZEN/TERMINATED)
        balance: 카드 잔액 (Card balance)
    """

    __tablename__ = "cards"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    masked_number: Mapped[str] = mapped_column(String(25), nullable=False)
    # 카드 상태 — ACTIVE | FROZEN | TERMINATED
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="ACTIVE")
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    balance: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False, default=Decimal("0"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    company = relationship("Company", back_populates="cards")
    user = relationship("User", back_populates="cards")
