"""
Tests for user profile reads, updates and search.
"""

import pytest

from taskflow.exceptions import DuplicateResourceError
from taskflow.schemas.project import ProjectCreate
from taskflow.services import project_service, user_service


class TestUserService:
    @pytest.mark.asyncio
    async def test_tenant_scoping(self, test_db, tenant, owner):
        assert (await user_service.get_user_by_id(test_db, owner.id, tenant.id)).id == owner.id
        assert await user_service.get_user_by_id(test_db, owner.id, "tenant-2") is None

    @pytest.mark.asyncio
    async def test_update_names(self, test_db, owner):
        updated = await user_service.update_user(test_db, owner.id, {"first_name": "Opal", "last_name": None})
        assert updated.first_name == "Opal"
        assert updated.last_name == "Owner"

    @pytest.mark.asyncio
    async def test_email_taken_in_tenant(self, test_db, tenant, owner, make_user):
        await make_user(tenant.id, "taken@acme.io")
        with pytest.raises(DuplicateResourceError):
            await user_service.update_user(test_db, owner.id, {"email": "taken@acme.io"})

    @pytest.mark.asyncio
    async def test_update_unknown(self, test_db):
        assert await user_service.update_user(test_db, "missing", {"first_name": "X"}) is None

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive(self, test_db, tenant, make_user):
        await make_user(tenant.id, "ada@acme.io", "Ada", "Lovelace")
        await make_user(tenant.id, "alan@acme.io", "Alan", "Turing")
        await make_user("tenant-2", "ada@other.io", "Ada", "Other")

        found = await user_service.search_users(test_db, "ADA", tenant.id)

        assert [u.email for u in found] == ["ada@acme.io"]

    @pytest.mark.asyncio
    async def test_users_by_project(self, test_db, tenant, owner, make_user):
        alice = await make_user(tenant.id, "alice@acme.io")
        project = await project_service.create_project(
            test_db, ProjectCreate(name="P", members=[alice.id]), tenant_id=tenant.id, owner_id=owner.id
        )

        users = await user_service.get_users_by_project(test_db, project.id, tenant.id)

        assert {u.id for u in users} == {owner.id, alice.id}
