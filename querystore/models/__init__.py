"""SQLAlchemy ORM 모델 패키지 — 모든 도메인 모델의 중앙 임포트 지점.

SQLAlchemy ORM models package — Central import point for all domain models.
Importing from this package registers every model with the metadata, which
Alembic and relationship resolution rely on.

Modules:
    organization: 회사 및 역할 (Company and Role)
    user: 사용자 및 회사 소속 연결 (User and UserCompanyRole)
    wallet: 지갑 및 카드 (Wallet and Card)
"""

from querystore.models.organization import Company, Role
from querystore.models.user import User, UserCompanyRole
from querystore.models.wallet import Wallet, Card

__all__ = [
    "Company", "Role",
    "User", "UserCompanyRole",
    "Wallet", "Card",
]
