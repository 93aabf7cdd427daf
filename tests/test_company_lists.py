"""Tests for company list CRUD and the lists overview."""

import pytest
from sqlalchemy import event
from sqlmodel import select

from prospector.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from prospector.models import CompanyList, CompanyListItem
from prospector.schemas.company_list import CompanyListCreate, CompanyListScopeQuery, CompanyListUpdate
from prospector.services.company_list_service import CompanyListService
from prospector.services.membership_service import MembershipService


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_owned_by_principal(self, db_session, world):
        principal = world.principals["colleague"]
        data = CompanyListCreate.model_validate({"name": "  Rayong suppliers ", "visibility": "organization"})

        company_list = await CompanyListService(db_session).create(principal, data)

        assert company_list.name == "Rayong suppliers"
        assert company_list.owner_user_id == principal.id
        assert company_list.organization_id == principal.organization_id
        assert company_list.visibility == "organization"
        assert company_list.total_companies == 0
        assert company_list.smart_criteria == {}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload, code", [
        ({}, "INVALID_NAME"),
        ({"name": "   "}, "INVALID_NAME"),
        ({"name": "ok", "visibility": "everyone"}, "INVALID_VISIBILITY"),
    ])
    async def test_invalid_input(self, db_session, world, payload, code):
        with pytest.raises(ValidationError) as exc_info:
            await CompanyListService(db_session).create(
                world.principals["owner"], CompanyListCreate.model_validate(payload)
            )
        assert exc_info.value.code == code


class TestGetUpdateDelete:
    @pytest.mark.asyncio
    async def test_get_hidden_list(self, db_session, world):
        service = CompanyListService(db_session)
        assert (await service.get(world.principals["owner"], world.lists["private"].id)).name == "My targets"
        with pytest.raises(NotFoundError):
            await service.get(world.principals["colleague"], world.lists["private"].id)

    @pytest.mark.asyncio
    async def test_update(self, db_session, world):
        data = CompanyListUpdate.model_validate({"name": " Renamed ", "isShared": True})

        company_list = await CompanyListService(db_session).update(
            world.principals["editor"], world.lists["private"].id, data
        )

        assert company_list.name == "Renamed"
        assert company_list.is_shared is True
        assert company_list.owner_user_id == world.users["owner"].id
        assert company_list.visibility == "private"

    @pytest.mark.asyncio
    async def test_update_forbidden(self, db_session, world):
        with pytest.raises(ForbiddenError):
            await CompanyListService(db_session).update(
                world.principals["org_reader"], world.lists["org"].id, CompanyListUpdate(name="Mine now")
            )

    @pytest.mark.asyncio
    async def test_update_rejects_blank_name(self, db_session, world):
        with pytest.raises(ValidationError) as exc_info:
            await CompanyListService(db_session).update(
                world.principals["owner"], world.lists["org"].id, CompanyListUpdate(name=" ")
            )
        assert exc_info.value.code == "INVALID_NAME"

    @pytest.mark.asyncio
    async def test_delete_removes_items(self, db_session, world):
        list_id = world.lists["org"].id
        await MembershipService(db_session).add_companies(
            world.principals["owner"], list_id, [str(world.companies["abc"].id)]
        )

        await CompanyListService(db_session).delete(world.principals["admin"], list_id)

        assert await db_session.get(CompanyList, list_id) is None
        result = await db_session.exec(select(CompanyListItem).where(CompanyListItem.list_id == list_id))
        assert result.all() == []

    @pytest.mark.asyncio
    async def test_delete_needs_delete_permission(self, db_session, world):
        with pytest.raises(ForbiddenError):
            await CompanyListService(db_session).delete(world.principals["editor"], world.lists["private"].id)


class TestSearch:
    async def search(self, db_session, principal, **query):
        return await CompanyListService(db_session).search(principal, CompanyListScopeQuery.build(**query))

    @pytest.mark.asyncio
    async def test_mine(self, db_session, world):
        result = await self.search(db_session, world.principals["owner"])
        assert result["total"] == 3
        assert {company_list.name for company_list in result["items"]} == {
            "My targets", "Team pipeline", "Public showcase",
        }

    @pytest.mark.asyncio
    @pytest.mark.parametrize("principal, expected", [
        ("colleague", set()),
        ("org_reader", {"Team pipeline", "Public showcase"}),
        ("outsider", {"Public showcase"}),
        ("admin", {"Team pipeline", "Public showcase"}),
        ("owner", set()),
    ])
    async def test_shared(self, db_session, world, principal, expected):
        result = await self.search(db_session, world.principals[principal], scope="shared")
        assert {company_list.name for company_list in result["items"]} == expected

    @pytest.mark.asyncio
    async def test_org(self, db_session, world):
        result = await self.search(db_session, world.principals["org_reader"], scope="org")
        assert [company_list.name for company_list in result["items"]] == ["Team pipeline"]
        outsider = await self.search(db_session, world.principals["outsider"], scope="org")
        assert outsider["items"] == []

    @pytest.mark.asyncio
    async def test_text_search(self, db_session, world):
        by_name = await self.search(db_session, world.principals["owner"], q="PIPELINE")
        by_description = await self.search(db_session, world.principals["owner"], q="open to")
        assert [company_list.name for company_list in by_name["items"]] == ["Team pipeline"]
        assert [company_list.name for company_list in by_description["items"]] == ["Public showcase"]

    @pytest.mark.asyncio
    async def test_paging(self, db_session, world):
        result = await self.search(db_session, world.principals["owner"], page=2, limit=2)
        assert len(result["items"]) == 1
        assert (result["total"], result["pages"], result["has_next"], result["has_prev"]) == (3, 2, False, True)

    @pytest.mark.asyncio
    async def test_hidden_lists_do_not_count(self, db_session, world):
        colleague = world.users["colleague"]
        db_session.add_all([
            CompanyList(organization_id=world.org.id, owner_user_id=colleague.id,
                        name=f"Shared {n:02d}", visibility="public", is_shared=True)
            for n in range(12)
        ] + [
            CompanyList(organization_id=world.org.id, owner_user_id=colleague.id,
                        name=f"Private {n:02d}", visibility="private", is_shared=True)
            for n in range(5)
        ])
        await db_session.commit()

        first = await self.search(db_session, world.principals["org_reader"], scope="shared", limit=5)
        last = await self.search(db_session, world.principals["org_reader"], scope="shared", page=3, limit=5)

        assert (first["total"], first["pages"], len(first["items"])) == (14, 3, 5)
        assert len(last["items"]) == 4
        assert not any(company_list.visibility == "private" for company_list in first["items"] + last["items"])

    @pytest.mark.asyncio
    async def test_pages_in_the_database(self, engine, db_session, world):
        statements = []

        def record(conn, cursor, statement, parameters, context, executemany):
            statements.append(statement.lower())

        event.listen(engine.sync_engine, "before_cursor_execute", record)
        try:
            result = await self.search(db_session, world.principals["admin"], scope="shared", limit=1)
        finally:
            event.remove(engine.sync_engine, "before_cursor_execute", record)

        assert result["total"] == 2
        assert len(result["items"]) == 1
        assert any("count(*)" in statement for statement in statements)
        assert any("limit" in statement and "offset" in statement for statement in statements)

    @pytest.mark.parametrize("query, code", [
        ({"scope": "everything"}, "INVALID_SCOPE"),
        ({"page": 0}, "INVALID_PAGE"),
        ({"limit": 0}, "INVALID_LIMIT"),
    ])
    def test_invalid_query(self, query, code):
        with pytest.raises(ValidationError) as exc_info:
            CompanyListScopeQuery.build(**query)
        assert exc_info.value.code == code
