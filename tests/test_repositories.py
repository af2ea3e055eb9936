"""레포지토리 CRUD 테스트.

Repository tests — reads, writes, membership filters, include loading,
pagination and error envelopes against a temporary SQLite database.
"""

import logging
import uuid
from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from querystore.repositories.card_repository import card_repository
from querystore.repositories.company_repository import company_repository
from querystore.repositories.role_repository import role_repository
from querystore.repositories.user_company_role_repository import user_company_role_repository
from querystore.repositories.user_repository import user_repository
from querystore.repositories.wallet_repository import wallet_repository
from querystore.utils.pagination import Page


class CompanyCreate(BaseModel):
    name: str
    country: str | None = None
    email: str | None = None


class TestRead:
    """조회 테스트."""

    async def test_get_one(self, db: AsyncSession, seed):
        """조건에 맞는 레코드 1건 조회."""
        result = await user_repository.get_one(db, {"email": "alice@example.com"})
        assert result.error is None
        assert result.code == 200
        assert result.output.id == seed.alice.id

    async def test_get_one_not_found_is_error(self, db: AsyncSession, seed):
        """결과가 없으면 404 오류 봉투."""
        result = await user_repository.get_one(db, {"email": "nobody@example.com"})
        assert result.status == "error"
        assert result.code == 404
        assert result.message == "User not found"
        assert result.error == {"message": "User not found", "fault": "NotFoundFault"}

    async def test_get_empty_is_success(self, db: AsyncSession, seed):
        """목록 조회 결과가 없어도 성공."""
        result = await user_repository.get(db, {"email": "nobody@example.com"})
        assert result.error is None
        assert result.output == []

    async def test_get_ordered(self, db: AsyncSession, seed):
        """정렬 명세 적용."""
        result = await user_repository.get(db, order={"first_name": "DESC"})
        assert [u.first_name for u in result.output] == ["Dave", "Carol", "Bob", "Alice"]

    async def test_multi_key_order(self, db: AsyncSession, seed):
        """여러 정렬 키는 삽입 순서대로 적용."""
        result = await wallet_repository.get(db, order={"currency": "desc", "balance": "asc"})
        assert [(w.currency, w.balance) for w in result.output] == [
            ("XAF", Decimal("10.00")),
            ("XAF", Decimal("1000.00")),
            ("USD", Decimal("50.00")),
        ]

    async def test_operator_filters(self, db: AsyncSession, seed):
        """비교 연산자 필터."""
        result = await wallet_repository.get(db, {"balance": {"gte": 50}}, order={"balance": "desc"})
        assert [w.balance for w in result.output] == [Decimal("1000.00"), Decimal("50.00")]

        result = await card_repository.get(db, {"status": {"nin": ["TERMINATED"]}})
        assert {c.masked_number for c in result.output} == {"**** 1111", "**** 2222"}

    async def test_neq_none_is_not_null(self, db: AsyncSession, seed):
        """neq: None은 NOT NULL."""
        result = await card_repository.get(db, {"user_id": {"neq": None}})
        assert len(result.output) == 2

    async def test_eq_none_is_null(self, db: AsyncSession, seed):
        result = await card_repository.get(db, {"user_id": {"eq": None}})
        assert [c.masked_number for c in result.output] == ["**** 3333"]

    async def test_unknown_field_is_error(self, db: AsyncSession, seed):
        """존재하지 않는 필드는 무시하지 않고 400 오류."""
        result = await user_repository.get(db, {"nickname": "al"})
        assert result.code == 400
        assert result.message == 'Error fetching users: Unknown field "nickname" on User'
        assert result.error["fault"] == "InvalidQuerySpecFault"

    async def test_unknown_relation_in_include_is_error(self, db: AsyncSession, seed):
        result = await user_repository.get(db, include={"pets": True})
        assert result.code == 400
        assert "Unknown relation" in result.message

    async def test_count(self, db: AsyncSession, seed):
        """조건에 맞는 레코드 수."""
        assert (await card_repository.count(db, {"company_id": seed.acme.id})).output == 2
        assert (await card_repository.count(db)).output == 3
        assert (await company_repository.count(db, {"name": "Initech"})).output == 0

    async def test_empty_in_matches_nothing(self, db: AsyncSession, seed):
        """빈 in 목록은 아무 행도 일치하지 않고, 빈 nin 목록은 아무것도 제외하지 않음."""
        assert (await card_repository.count(db, {"id": {"in": []}})).output == 0
        assert (await card_repository.get(db, {"id": {"in": []}})).output == []
        assert (await card_repository.count(db, {"status": {"nin": []}})).output == 3


class TestMembershipFilters:
    """role_id/company_id 멤버십 필터 테스트."""

    async def test_company_id_on_users(self, db: AsyncSession, seed):
        """company_id는 소속 관계로 필터링."""
        result = await user_repository.get(db, {"company_id": seed.acme.id}, order={"email": "asc"})
        assert [u.email for u in result.output] == ["alice@example.com", "bob@example.com"]

    async def test_role_and_company_match_same_membership(self, db: AsyncSession, seed):
        """role_id와 company_id는 같은 소속 행에서 함께 만족해야 함."""
        result = await user_repository.get(db, {"company_id": seed.acme.id, "role_id": seed.member.id})
        assert [u.email for u in result.output] == ["bob@example.com"]

        result = await user_repository.get(db, {"company_id": seed.globex.id, "role_id": seed.admin.id})
        assert result.output == []

    async def test_empty_membership_filter_ignored(self, db: AsyncSession, seed):
        """값이 없는 멤버십 필터는 조건이 되지 않음."""
        result = await user_repository.count(db, {"company_id": None})
        assert result.output == 4

    async def test_company_id_is_a_column_on_wallets(self, db: AsyncSession, seed):
        """관계가 없는 모델에서는 일반 컬럼 필터."""
        result = await wallet_repository.count(db, {"company_id": seed.acme.id})
        assert result.output == 2

    async def test_get_with_roles_and_company(self, db: AsyncSession, seed):
        """역할로 조회하고 소속 정보를 함께 로드."""
        result = await user_repository.get_with_roles_and_company(db, role_id=seed.member.id)
        users = sorted(result.output, key=lambda u: u.email)
        assert [u.email for u in users] == ["bob@example.com", "carol@example.com"]
        memberships = {u.first_name: [(m.company.name, m.role.name) for m in u.user_company_roles] for u in users}
        assert memberships == {"Bob": [("Acme", "member")], "Carol": [("Globex", "member")]}

    async def test_get_by_company_paginated(self, db: AsyncSession, seed):
        """회사 소속 사용자 페이지 조회 (최신순)."""
        result = await user_repository.get_by_company(db, seed.acme.id, page=1, per_page=1)
        page = result.output
        assert isinstance(page, Page)
        assert page.total == 2
        assert page.pages == 2
        assert [u.first_name for u in page.items] == ["Bob"]

        result = await user_repository.get_by_company(db, seed.acme.id, page=2, per_page=1)
        assert [u.first_name for u in result.output.items] == ["Alice"]

    async def test_get_by_company_skips_inactive_memberships(self, db: AsyncSession, seed):
        """비활성 소속은 회사 사용자 목록과 개수에서 제외."""
        created = await user_company_role_repository.create(db, {
            "user_id": seed.dave.id,
            "company_id": seed.acme.id,
            "role_id": seed.member.id,
            "is_active": False,
        })
        assert created.code == 201

        result = await user_repository.get_by_company(db, seed.acme.id)
        assert result.error is None
        assert result.output.total == 2
        assert {u.first_name for u in result.output.items} == {"Alice", "Bob"}

        # 일반 company_id 필터는 소속 활성 여부와 무관 — the plain filter still sees every link
        assert (await user_repository.count(db, {"company_id": seed.acme.id})).output == 3


class TestInclude:
    """include 로딩 테스트."""

    async def test_default_include_projects_company_name(self, db: AsyncSession, seed):
        """지갑 조회 시 회사 이름이 기본으로 로드됨."""
        result = await wallet_repository.get_by_company_and_currency(db, seed.acme.id, "xaf")
        assert result.error is None
        assert result.output.balance == Decimal("1000.00")
        assert result.output.company.name == "Acme"

    async def test_wallet_not_found(self, db: AsyncSession, seed):
        result = await wallet_repository.get_by_company_and_currency(db, seed.globex.id, "EUR")
        assert result.code == 404
        assert result.message == "Wallet not found"

    async def test_cards_by_status_with_holder(self, db: AsyncSession, seed):
        """상태 목록으로 카드 조회, 소유자 정보 포함."""
        result = await card_repository.get_by_company_and_status(db, seed.acme.id, ["ACTIVE", "FROZEN"])
        assert [(c.status, c.user.email) for c in result.output] == [
            ("FROZEN", "bob@example.com"),
            ("ACTIVE", "alice@example.com"),
        ]

    async def test_card_without_holder(self, db: AsyncSession, seed):
        result = await card_repository.get_by_company_and_status(db, seed.globex.id, "TERMINATED")
        assert len(result.output) == 1
        assert result.output[0].user is None

    async def test_memberships_with_role_and_company(self, db: AsyncSession, seed):
        """소속 목록에 역할과 회사 이름 포함."""
        result = await user_company_role_repository.get_memberships(db, seed.alice.id)
        assert [(m.role.name, m.company.name) for m in result.output] == [("admin", "Acme")]

    async def test_kind_include(self, db: AsyncSession, seed):
        """kind 구분자 include."""
        result = await company_repository.get_one(
            db,
            {"name": "Globex"},
            include={"wallets": {"kind": "select", "fields": ["currency"]}},
        )
        assert [w.currency for w in result.output.wallets] == ["XAF"]


class TestCreate:
    """생성 테스트."""

    async def test_create(self, db: AsyncSession, seed):
        """생성 성공 시 201."""
        result = await company_repository.create(db, {"name": "Initech", "country": "GH"})
        assert result.error is None
        assert result.code == 201
        assert isinstance(result.output.id, uuid.UUID)
        assert result.output.name == "Initech"

    async def test_create_from_pydantic_model(self, db: AsyncSession, seed):
        """Pydantic 입력은 설정된 필드만 사용."""
        result = await company_repository.create(db, CompanyCreate(name="Umbrella"))
        assert result.code == 201
        assert result.output.country is None

    async def test_duplicate_is_conflict(self, db: AsyncSession, seed):
        """고유 제약 위반은 409 ConstraintViolationFault."""
        result = await company_repository.create(db, {"name": "Acme"})
        assert result.status == "error"
        assert result.code == 409
        assert result.message.startswith("Error creating company: ")
        assert result.error["fault"] == "ConstraintViolationFault"
        await db.rollback()

    async def test_failure_logged_with_masked_payload(self, db: AsyncSession, seed, caplog):
        """실패 로그에서 민감 필드는 마스킹."""
        caplog.set_level(logging.WARNING, logger="querystore")
        result = await user_repository.create(db, {
            "email": "alice@example.com",
            "first_name": "Alice",
            "last_name": "Again",
            "password_hash": "hunter2-hash",
        })
        assert result.code == 409
        assert "Error creating user" in caplog.text
        assert "hunter2-hash" not in caplog.text
        assert "***" in caplog.text
        await db.rollback()


class TestUpdate:
    """업데이트 테스트."""

    async def test_update_by_primary_key(self, db: AsyncSession, seed):
        """기본 키로 업데이트, 204 반환."""
        result = await role_repository.update(db, seed.member.id, {"description": "Regular member"})
        assert result.error is None
        assert result.code == 204
        assert result.output.description == "Regular member"

    async def test_update_by_unique_column(self, db: AsyncSession, seed):
        """{고유컬럼: 값} 식별자로 업데이트."""
        result = await user_repository.update(db, {"email": "dave@example.com"}, {"kyc_status": "APPROVED"})
        assert result.code == 204
        assert result.output.id == seed.dave.id
        assert result.output.kyc_status == "APPROVED"

    async def test_non_column_fields_ignored(self, db: AsyncSession, seed):
        """컬럼이 아닌 필드는 반영되지 않음."""
        result = await role_repository.update(db, seed.admin.id, {"name": "owner", "level": 1})
        assert result.code == 204
        assert result.output.name == "owner"

    async def test_invalid_identifier_never_touches_storage(self, seed):
        """값 없는 식별자는 저장소 호출 없이 400."""
        # 세션 없이 호출해도 저장소에 닿지 않음 — no session is needed to be rejected
        for identifier in ({"id": None}, {}, None, True, object()):
            result = await role_repository.update(None, identifier, {"name": "x"})
            assert result.code == 400
            assert result.message == "Invalid identifier provided"
            assert result.error["fault"] == "InvalidIdentifierFault"

    async def test_update_missing_row(self, db: AsyncSession, seed):
        """없는 레코드 업데이트는 404."""
        result = await role_repository.update(db, uuid.uuid4(), {"name": "ghost"})
        assert result.code == 404
        assert result.message == "Error updating role: Role not found"
        assert result.error["fault"] == "NotFoundFault"

    async def test_update_unknown_identifier_column(self, db: AsyncSession, seed):
        result = await role_repository.update(db, {"slug": "admin"}, {"name": "x"})
        assert result.code == 400
        assert result.error["fault"] == "InvalidQuerySpecFault"


class TestDelete:
    """삭제 테스트."""

    async def test_delete(self, db: AsyncSession, seed):
        """삭제 후 조회하면 404."""
        card_id = seed.cards["spare"].id
        result = await card_repository.delete(db, card_id)
        assert result.error is None
        assert result.output.id == card_id

        missing = await card_repository.get_one(db, {"id": card_id})
        assert missing.code == 404
        assert missing.message == "Card not found"

    async def test_delete_invalid_identifier(self, seed):
        result = await card_repository.delete(None, {"masked_number": None})
        assert result.code == 400

    async def test_delete_missing_row(self, db: AsyncSession, seed):
        result = await card_repository.delete(db, uuid.uuid4())
        assert result.code == 404
        assert result.message == "Error deleting card: Card not found"


class TestUpsert:
    """upsert 테스트."""

    async def test_insert_then_update(self, db: AsyncSession, seed):
        """없으면 201로 생성, 있으면 200으로 갱신."""
        where = {"company_id": seed.globex.id, "currency": "USD"}
        created = await wallet_repository.upsert(db, where, create={"balance": Decimal("5.00")}, update={"balance": Decimal("7.00")})
        assert created.code == 201
        assert created.output.balance == Decimal("5.00")

        updated = await wallet_repository.upsert(db, where, create={"balance": Decimal("5.00")}, update={"balance": Decimal("7.00")})
        assert updated.code == 200
        assert updated.output.id == created.output.id
        assert updated.output.balance == Decimal("7.00")

    async def test_update_ignores_non_column_fields(self, db: AsyncSession, seed):
        """갱신 시 관계나 없는 필드는 반영되지 않음."""
        wallet_id = seed.wallets["acme_usd"].id
        where = {"company_id": seed.acme.id, "currency": "USD"}
        result = await wallet_repository.upsert(
            db,
            where,
            create={},
            update={"balance": Decimal("9.00"), "company": None, "nickname": "petty cash"},
        )
        assert result.code == 200
        assert result.output.id == wallet_id
        assert result.output.balance == Decimal("9.00")
        assert result.output.company_id == seed.acme.id
        assert "nickname" not in result.output.__dict__
