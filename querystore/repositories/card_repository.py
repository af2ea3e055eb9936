"""카드 레포지토리 — 카드 CRUD 및 상태별 조회.

Card Repository — CRUD and status lookups for cards.
``company_id`` is a real column on cards, so it filters directly.
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from querystore.models.wallet import Card
from querystore.repositories.base import BaseRepository
from querystore.schemas.envelope import Envelope


class CardRepository(BaseRepository[Card]):
    """카드 테이블 레포지토리.

    Repository for the cards table.
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(Card, **kwargs)

    async def get_by_company_and_status(
        self,
        db: AsyncSession,
        company_id: UUID,
        status: str | list[str],
    ) -> Envelope:
        """회사 카드를 상태로 조회합니다 (최신순).

        List a company's cards in one or several statuses, newest first,
        with the holder's name and email attached.
        """
        status_filter = {"in": status} if isinstance(status, list) else status
        return await self.get(
            db,
            {"company_id": company_id, "status": status_filter},
            order={"created_at": "desc"},
            include={"user": ["email", "first_name", "last_name"]},
        )


# 싱글턴 인스턴스 — Singleton instance
card_repository: CardRepository = CardRepository()
