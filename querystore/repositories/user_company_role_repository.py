"""사용자-회사-역할 레포지토리 — 멤버십 연결 쿼리.

UserCompanyRole Repository — Queries on the membership join table.
Here ``company_id``/``role_id`` are real columns, so they filter directly.
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from querystore.models.user import UserCompanyRole
from querystore.repositories.base import BaseRepository
from querystore.schemas.envelope import Envelope


class UserCompanyRoleRepository(BaseRepository[UserCompanyRole]):
    """멤버십 연결 테이블 레포지토리.

    Repository for the user_company_roles table.
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(UserCompanyRole, **kwargs)

    async def get_memberships(
        self,
        db: AsyncSession,
        user_id: UUID,
        active_only: bool = True,
    ) -> Envelope:
        """사용자의 회사 소속 목록을 역할/회사와 함께 조회합니다.

        List a user's memberships with their role and company attached.
        """
        filters: dict = {"user_id": user_id}
        if active_only:
            filters["is_active"] = True
        return await self.get(
            db,
            filters,
            order={"created_at": "asc"},
            include={"role": True, "company": ["name"]},
        )


# 싱글턴 인스턴스 — Singleton instance
user_company_role_repository: UserCompanyRoleRepository = UserCompanyRoleRepository()
