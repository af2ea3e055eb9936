"""회사 레포지토리 — 회사 CRUD 쿼리.

Company Repository — CRUD queries for companies.
"""

from querystore.models.organization import Company
from querystore.repositories.base import BaseRepository


class CompanyRepository(BaseRepository[Company]):
    """회사 테이블 레포지토리.

    Repository for the companies table. ``role_id`` filters select
    companies where someone holds that role.
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(Company, entity_plural="companies", **kwargs)


# 싱글턴 인스턴스 — Singleton instance
company_repository: CompanyRepository = CompanyRepository()
