"""지갑 레포지토리 — 지갑 CRUD 및 통화별 조회.

Wallet Repository — CRUD and per-currency lookups for wallets.
``company_id`` is a real column on wallets, so it filters directly.
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from querystore.models.wallet import Wallet
from querystore.repositories.base import BaseRepository
from querystore.schemas.envelope import Envelope


class WalletRepository(BaseRepository[Wallet]):
    """지갑 테이블 레포지토리 — 조회 시 회사 이름을 기본으로 포함.

    Repository for the wallets table. Reads attach the owning company's
    name unless another include is given.
    """

    default_include = {"company": ["name"]}

    def __init__(self, **kwargs) -> None:
        super().__init__(Wallet, **kwargs)

    async def get_by_company_and_currency(
        self,
        db: AsyncSession,
        company_id: UUID,
        currency: str,
    ) -> Envelope:
        """회사의 통화별 지갑을 조회합니다 — The company's wallet in ``currency``."""
        return await self.get_one(db, {"company_id": company_id, "currency": currency.upper()})


# 싱글턴 인스턴스 — Singleton instance
wallet_repository: WalletRepository = WalletRepository()
