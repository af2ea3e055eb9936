"""역할 레포지토리 — 역할 CRUD 쿼리.

Role Repository — CRUD queries for roles.
"""

from querystore.models.organization import Role
from querystore.repositories.base import BaseRepository


class RoleRepository(BaseRepository[Role]):
    def __init__(self, **kwargs) -> None:
        super().__init__(Role, **kwargs)


# 싱글턴 인스턴스 — Singleton instance
role_repository: RoleRepository = RoleRepository()
