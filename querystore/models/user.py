"""사용자 및 사용자-회사-역할 연결 SQLAlchemy ORM 모델 정의.

User and UserCompanyRole SQLAlchemy ORM model definitions.
A user belongs to any number of companies, holding one role in each.

Tables:
    - users: 사용자 계정 (User accounts)
    - user_company_roles: 사용자-회사-역할 연결 (Membership join table)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Boolean, DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from querystore.database import Base


class User(Base):
    """사용자 모델 — 시스템 사용자 계정 정보.

    User model — System user account information.
    Company membership is expressed through ``user_company_roles``; the
    ``role_id``/``company_id`` filters of the query compiler target it.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        email: 이메일 — 전역 고유 (Email address, globally unique)
        first_name: 이름 (First name)
        last_name: 성 (Last name)
        phone_number: 전화번호 (Phone number, optional)
        password_hash: 해시된 비밀번호 (Hashed password, produced by the auth layer)
        kyc_status: KYC 상태 (KYC status: NONE/PENDING/APPROVED/REJECTED)
        is_active: 활성 상태 (Active flag)
        created_at: 생성 일시 UTC (Creation timestamp)
        updated_at: 수정 일시 UTC (Last update timestamp)
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone_number: Mapped[str | None] = mapped_column(String(30), nullable=True)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # KYC 상태 — NONE | PENDING | APPROVED | REJECTED
    kyc_status: Mapped[str] = mapped_column(String(20), nullable=False, default="NONE")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # 관계 — Relationships
    user_company_roles = relationship("UserCompanyRole", back_populates="user", cascade="all, delete-orphan")
    cards = relationship("Card", back_populates="user")


class UserCompanyRole(Base):
    """사용자-회사-역할 연결 모델.

    Membership join table: one row per (user, company, role).

    Constraints:
        uq_user_company_role: 동일 연결 중복 금지 (No duplicate memberships)
    """

    __tablename__ = "user_company_roles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    company_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False)
    role_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("roles.id", ondelete="RESTRICT"), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("user_id", "company_id", "role_id", name="uq_user_company_role"),
    )

    user = relationship("User", back_populates="user_company_roles")
    company = relationship("Company", back_populates="user_company_roles")
    role = relationship("Role", back_populates="user_company_roles")
