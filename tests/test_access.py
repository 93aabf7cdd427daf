"""Tests for the company list access guard."""

import uuid
from types import SimpleNamespace

import pytest

from prospector.core.access import ListAction, ReadGrants, can_access_list, ensure_can_modify, ensure_can_read, read_grants
from prospector.core.exceptions import ForbiddenError, NotFoundError

ORG = uuid.uuid4()
OTHER_ORG = uuid.uuid4()
OWNER = uuid.uuid4()


def company_list(visibility="private", organization_id=ORG, owner_user_id=OWNER):
    return SimpleNamespace(
        id=uuid.uuid4(),
        organization_id=organization_id,
        owner_user_id=owner_user_id,
        visibility=visibility,
    )


class TestOwnership:
    @pytest.mark.parametrize("action", list(ListAction))
    @pytest.mark.parametrize("visibility", ["private", "team", "organization", "public"])
    def test_owner_may_do_everything(self, make_principal, action, visibility):
        owner = make_principal(user_id=OWNER, organization_id=ORG)
        assert can_access_list(owner, company_list(visibility), action)

    @pytest.mark.parametrize("action", list(ListAction))
    def test_stranger_without_roles_may_do_nothing(self, make_principal, action):
        stranger = make_principal(organization_id=ORG)
        assert not can_access_list(stranger, company_list("public"), action)


class TestElevatedPermissions:
    @pytest.mark.parametrize("key", ["*", "company-lists:*"])
    @pytest.mark.parametrize("action", list(ListAction))
    def test_wildcards_grant_any_action(self, make_principal, key, action):
        principal = make_principal(key, organization_id=OTHER_ORG)
        assert can_access_list(principal, company_list("private"), action)

    def test_update_any(self, make_principal):
        editor = make_principal("company-lists:update-any", organization_id=ORG)
        target = company_list("private")
        assert can_access_list(editor, target, ListAction.UPDATE)
        assert not can_access_list(editor, target, ListAction.DELETE)
        assert not can_access_list(editor, target, ListAction.READ)

    def test_delete_any(self, make_principal):
        deleter = make_principal("company-lists:delete-any", organization_id=ORG)
        target = company_list("organization")
        assert can_access_list(deleter, target, ListAction.DELETE)
        assert not can_access_list(deleter, target, ListAction.UPDATE)


class TestReadVisibility:
    def test_public_list_needs_read_public(self, make_principal):
        reader = make_principal("company-lists:read-public", organization_id=OTHER_ORG)
        assert can_access_list(reader, company_list("public"), ListAction.READ)
        assert not can_access_list(reader, company_list("organization"), ListAction.READ)

    def test_organization_list_needs_same_org(self, make_principal):
        colleague = make_principal("company-lists:read-org", organization_id=ORG)
        outsider = make_principal("company-lists:read-org", organization_id=OTHER_ORG)
        target = company_list("organization")
        assert can_access_list(colleague, target, ListAction.READ)
        assert not can_access_list(outsider, target, ListAction.READ)

    @pytest.mark.parametrize("visibility", ["private", "team"])
    def test_private_and_team_lists_are_owner_only(self, make_principal, visibility):
        reader = make_principal("company-lists:read-org", "company-lists:read-public", organization_id=ORG)
        assert not can_access_list(reader, company_list(visibility), ListAction.READ)

    def test_read_permission_never_allows_writes(self, make_principal):
        reader = make_principal("company-lists:read-org", "company-lists:read-public", organization_id=ORG)
        target = company_list("organization")
        assert not can_access_list(reader, target, ListAction.UPDATE)
        assert not can_access_list(reader, target, ListAction.DELETE)


class TestEnsure:
    def test_hidden_list_reads_as_not_found(self, make_principal):
        stranger = make_principal(organization_id=ORG)
        with pytest.raises(NotFoundError) as exc_info:
            ensure_can_read(stranger, company_list("private"))
        assert exc_info.value.public_code == "NOT_FOUND"
        assert exc_info.value.status_code == 404

    def test_modify_denied_is_forbidden(self, make_principal):
        reader = make_principal("company-lists:read-org", organization_id=ORG)
        with pytest.raises(ForbiddenError) as exc_info:
            ensure_can_modify(reader, company_list("organization"))
        assert exc_info.value.code == "FORBIDDEN"
        assert exc_info.value.status_code == 403

    def test_delete_checks_delete_permission(self, make_principal):
        editor = make_principal("company-lists:update-any", organization_id=ORG)
        target = company_list()
        ensure_can_modify(editor, target)
        with pytest.raises(ForbiddenError):
            ensure_can_modify(editor, target, ListAction.DELETE)


class TestReadGrants:
    @pytest.mark.parametrize("keys, expected", [
        ((), ReadGrants(False, False, False)),
        (("*",), ReadGrants(True, True, True)),
        (("company-lists:*",), ReadGrants(True, True, True)),
        (("company-lists:read-public",), ReadGrants(False, True, False)),
        (("company-lists:read-org", "company-lists:update-any"), ReadGrants(False, False, True)),
    ])
    def test_resolved_once(self, make_principal, keys, expected):
        assert read_grants(make_principal(*keys)) == expected
