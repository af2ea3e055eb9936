"""사용자 레포지토리 — 사용자 CRUD 및 회사/역할 기반 조회.

User Repository — CRUD plus company/role membership lookups.
``role_id``/``company_id`` filters are answered through ``user_company_roles``.
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from querystore.models.user import User
from querystore.repositories.base import BaseRepository, fallible
from querystore.schemas.envelope import Envelope

# 소속 회사와 역할을 함께 로드 — Memberships with their role and company
MEMBERSHIP_INCLUDE: dict = {"user_company_roles": {"include": {"role": True, "company": True}}}


class UserRepository(BaseRepository[User]):
    """사용자 테이블 레포지토리.

    Repository for the users table.
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(User, **kwargs)

    async def get_with_roles_and_company(
        self,
        db: AsyncSession,
        role_id: UUID | None = None,
        company_id: UUID | None = None,
    ) -> Envelope:
        """역할/회사로 사용자를 조회하고 소속 정보를 함께 반환합니다.

        List users holding ``role_id`` and/or belonging to ``company_id``,
        with their memberships (role and company) attached.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            role_id: 역할 ID (Role UUID, optional)
            company_id: 회사 ID (Company UUID, optional)
        """
        return await self.get(
            db,
            {"role_id": role_id, "company_id": company_id},
            include=MEMBERSHIP_INCLUDE,
        )

    @fallible("fetching", plural=True)
    async def get_by_company(
        self,
        db: AsyncSession,
        company_id: UUID,
        page: int = 1,
        per_page: int = 10,
    ) -> Envelope:
        """회사의 활성 소속 사용자를 최신순으로 페이지 조회합니다.

        One page of a company's users, newest first. Only active
        memberships count; an inactive link does not make a user a member.
        """
        compiled = self.compile({"company_id": company_id}, order={"created_at": "desc"})
        # 활성 소속만 — active memberships only
        compiled.where[self.membership_relation]["some"]["is_active"] = True
        return await self._paginate(db, compiled, page, per_page)


# 싱글턴 인스턴스 — Singleton instance
user_repository: UserRepository = UserRepository()
