"""
Tests for projects, memberships and derived progress.
"""

from unittest.mock import patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from taskflow.exceptions import (
    DatabaseError,
    DuplicateResourceError,
    InvalidOperationError,
    ProjectMemberNotFoundError,
    ProjectNotFoundError,
    ProtectedOwnerError,
    ValidationError,
)
from taskflow.models import Project, ProjectMember, Task, Tenant, User
from taskflow.schemas.project import ProjectCreate
from taskflow.services import project_service
from taskflow.services.plan_policy import get_plan_limits
from taskflow.services.project_service import compute_progress


async def _count(db, model, *criteria):
    return (await db.execute(select(func.count()).select_from(model).where(*criteria))).scalar()


async def _add_tasks(db, project, statuses):
    for i, status in enumerate(statuses):
        db.add(
            Task(
                title=f"Task {i}",
                status=status,
                project_id=project.id,
                tenant_id=project.tenant_id,
                created_by=project.owner_id,
                tags=[],
            )
        )
    await db.commit()


class TestComputeProgress:
    def test_no_tasks(self):
        assert compute_progress(0, 0) == 0.0

    def test_partial(self):
        assert compute_progress(1, 4) == 25.0

    def test_all_done(self):
        assert compute_progress(3, 3) == 100.0


class TestCreateProject:
    @pytest.mark.asyncio
    async def test_owner_and_members_are_added(self, test_db, tenant, owner, make_user):
        alice = await make_user(tenant.id, "alice@acme.io")
        bob = await make_user(tenant.id, "bob@acme.io")

        project = await project_service.create_project(
            test_db,
            ProjectCreate(name="Launch", members=[alice.id, bob.id]),
            tenant_id=tenant.id,
            owner_id=owner.id,
        )

        assert project.status == "planning"
        assert project.owner_id == owner.id
        roles = {m.user_id: (m.role, m.permissions) for m in project.members}
        assert len(roles) == 3
        assert roles[owner.id] == ("owner", ["*"])
        assert roles[alice.id] == ("member", ["read", "write"])
        assert roles[bob.id] == ("member", ["read", "write"])

    @pytest.mark.asyncio
    async def test_owner_listed_as_member_is_not_duplicated(self, test_db, tenant, owner, make_user):
        alice = await make_user(tenant.id, "alice@acme.io")

        project = await project_service.create_project(
            test_db,
            ProjectCreate(name="Launch", members=[owner.id, alice.id, alice.id]),
            tenant_id=tenant.id,
            owner_id=owner.id,
        )

        assert len(project.members) == 2

    @pytest.mark.asyncio
    async def test_nothing_persists_when_membership_insert_fails(self, test_db, tenant, owner):
        with patch("taskflow.services.project_service.ProjectMember", side_effect=SQLAlchemyError("boom")):
            with pytest.raises(DatabaseError):
                await project_service.create_project(
                    test_db, ProjectCreate(name="Doomed"), tenant_id=tenant.id, owner_id=owner.id
                )

        assert await _count(test_db, Project) == 0
        assert await _count(test_db, ProjectMember) == 0

    @pytest.mark.asyncio
    async def test_database_rejected_member_rolls_back_project(self, fk_test_db):
        owner = User(
            email="olive@acme.io",
            username="olive",
            first_name="Olive",
            last_name="Owner",
            password_hash="not-a-real-hash",
            tenant_id="tenant-fk",
        )
        fk_test_db.add(owner)
        await fk_test_db.flush()
        limits = get_plan_limits("free").as_update()
        fk_test_db.add(Tenant(id="tenant-fk", name="Acme", domain="acme.io", owner_id=owner.id, **limits))
        await fk_test_db.commit()

        with pytest.raises(DatabaseError):
            await project_service.create_project(
                fk_test_db,
                ProjectCreate(name="Doomed", members=["no-such-user"]),
                tenant_id="tenant-fk",
                owner_id=owner.id,
            )

        assert await _count(fk_test_db, Project) == 0
        assert await _count(fk_test_db, ProjectMember) == 0

    @pytest.mark.asyncio
    async def test_new_project_has_zero_progress(self, test_db, tenant, owner):
        project = await project_service.create_project(
            test_db, ProjectCreate(name="Empty"), tenant_id=tenant.id, owner_id=owner.id
        )
        assert project.progress == 0.0


class TestProgress:
    @pytest.mark.asyncio
    async def test_progress_is_share_of_done_tasks(self, test_db, tenant, owner):
        project = await project_service.create_project(
            test_db, ProjectCreate(name="Half"), tenant_id=tenant.id, owner_id=owner.id
        )
        await _add_tasks(test_db, project, ["done", "todo", "in_progress", "done"])

        fetched = await project_service.get_project_by_id(test_db, project.id, tenant.id)

        assert fetched.progress == pytest.approx(50.0)

    @pytest.mark.asyncio
    async def test_progress_reflects_later_changes(self, test_db, tenant, owner):
        project = await project_service.create_project(
            test_db, ProjectCreate(name="Thirds"), tenant_id=tenant.id, owner_id=owner.id
        )
        await _add_tasks(test_db, project, ["done", "todo", "todo"])
        assert (await project_service.get_project_by_id(test_db, project.id, tenant.id)).progress == pytest.approx(
            100 / 3
        )

        await _add_tasks(test_db, project, ["done"])
        assert (await project_service.get_project_by_id(test_db, project.id, tenant.id)).progress == pytest.approx(
            50.0
        )


class TestProjectQueries:
    @pytest.mark.asyncio
    async def test_other_tenant_cannot_see_project(self, test_db, tenant, owner):
        project = await project_service.create_project(
            test_db, ProjectCreate(name="Private"), tenant_id=tenant.id, owner_id=owner.id
        )
        assert await project_service.get_project_by_id(test_db, project.id, "tenant-2") is None

    @pytest.mark.asyncio
    async def test_list_by_member(self, test_db, tenant, owner, make_user):
        alice = await make_user(tenant.id, "alice@acme.io")
        await project_service.create_project(
            test_db, ProjectCreate(name="With Alice", members=[alice.id]), tenant_id=tenant.id, owner_id=owner.id
        )
        await project_service.create_project(
            test_db, ProjectCreate(name="Without"), tenant_id=tenant.id, owner_id=owner.id
        )

        projects, total = await project_service.list_projects(test_db, tenant.id, member_id=alice.id)

        assert total == 1
        assert projects[0].name == "With Alice"

    @pytest.mark.asyncio
    async def test_update_returns_none_for_unknown(self, test_db, tenant):
        assert await project_service.update_project(test_db, "missing", tenant.id, {"name": "x"}) is None

    @pytest.mark.asyncio
    async def test_update_changes_fields(self, test_db, tenant, owner):
        project = await project_service.create_project(
            test_db, ProjectCreate(name="Old"), tenant_id=tenant.id, owner_id=owner.id
        )
        updated = await project_service.update_project(
            test_db, project.id, tenant.id, {"name": "New", "status": "active"}
        )
        assert updated.name == "New"
        assert updated.status == "active"

    @pytest.mark.asyncio
    async def test_delete_removes_memberships(self, test_db, tenant, owner, make_user):
        alice = await make_user(tenant.id, "alice@acme.io")
        project = await project_service.create_project(
            test_db, ProjectCreate(name="Gone", members=[alice.id]), tenant_id=tenant.id, owner_id=owner.id
        )

        assert await project_service.delete_project(test_db, project.id, tenant.id) is True

        assert await _count(test_db, Project) == 0
        assert await _count(test_db, ProjectMember) == 0

    @pytest.mark.asyncio
    async def test_delete_in_wrong_tenant_keeps_everything(self, test_db, tenant, owner):
        project = await project_service.create_project(
            test_db, ProjectCreate(name="Kept"), tenant_id=tenant.id, owner_id=owner.id
        )

        assert await project_service.delete_project(test_db, project.id, "tenant-2") is False

        assert await _count(test_db, Project) == 1
        assert await _count(test_db, ProjectMember) == 1


class TestMembership:
    @pytest.fixture
    async def project(self, test_db, tenant, owner):
        return await project_service.create_project(
            test_db, ProjectCreate(name="Team"), tenant_id=tenant.id, owner_id=owner.id
        )

    @pytest.mark.asyncio
    async def test_add_member_defaults_to_read(self, test_db, tenant, project, make_user):
        alice = await make_user(tenant.id, "alice@acme.io")

        member = await project_service.add_project_member(test_db, project.id, tenant.id, alice.id)

        assert member.role == "member"
        assert member.permissions == ["read"]

    @pytest.mark.asyncio
    async def test_add_member_twice_conflicts(self, test_db, tenant, project, make_user):
        alice = await make_user(tenant.id, "alice@acme.io")
        await project_service.add_project_member(test_db, project.id, tenant.id, alice.id)

        with pytest.raises(DuplicateResourceError):
            await project_service.add_project_member(test_db, project.id, tenant.id, alice.id)

    @pytest.mark.asyncio
    async def test_owner_role_cannot_be_granted(self, test_db, tenant, project, make_user):
        alice = await make_user(tenant.id, "alice@acme.io")
        with pytest.raises(InvalidOperationError):
            await project_service.add_project_member(test_db, project.id, tenant.id, alice.id, role="owner")

    @pytest.mark.asyncio
    async def test_add_to_unknown_project(self, test_db, tenant):
        with pytest.raises(ProjectNotFoundError):
            await project_service.add_project_member(test_db, "missing", tenant.id, "someone")

    @pytest.mark.asyncio
    async def test_update_member_role(self, test_db, tenant, project, make_user):
        alice = await make_user(tenant.id, "alice@acme.io")
        await project_service.add_project_member(test_db, project.id, tenant.id, alice.id)

        member = await project_service.update_project_member(
            test_db, project.id, tenant.id, alice.id, role="admin", permissions=["read", "write", "delete"]
        )

        assert member.role == "admin"
        assert member.permissions == ["read", "write", "delete"]

    @pytest.mark.asyncio
    async def test_update_without_fields(self, test_db, tenant, project, owner):
        with pytest.raises(ValidationError):
            await project_service.update_project_member(test_db, project.id, tenant.id, owner.id)

    @pytest.mark.asyncio
    async def test_owner_cannot_be_demoted(self, test_db, tenant, project, owner):
        with pytest.raises(ProtectedOwnerError):
            await project_service.update_project_member(test_db, project.id, tenant.id, owner.id, role="viewer")

    @pytest.mark.asyncio
    async def test_update_unknown_member(self, test_db, tenant, project):
        with pytest.raises(ProjectMemberNotFoundError):
            await project_service.update_project_member(test_db, project.id, tenant.id, "stranger", role="viewer")

    @pytest.mark.asyncio
    async def test_owner_cannot_be_removed(self, test_db, tenant, project, owner):
        with pytest.raises(ProtectedOwnerError) as exc_info:
            await project_service.remove_project_member(test_db, project.id, tenant.id, owner.id)

        assert exc_info.value.status_code == 400
        assert await _count(test_db, ProjectMember, ProjectMember.user_id == owner.id) == 1

    @pytest.mark.asyncio
    async def test_owner_protected_even_if_stored_role_changed(self, test_db, tenant, project, owner):
        row = (
            await test_db.execute(
                select(ProjectMember).where(ProjectMember.project_id == project.id, ProjectMember.user_id == owner.id)
            )
        ).scalars().one()
        row.role = "member"
        await test_db.commit()

        with pytest.raises(ProtectedOwnerError):
            await project_service.remove_project_member(test_db, project.id, tenant.id, owner.id)
        assert await _count(test_db, ProjectMember, ProjectMember.user_id == owner.id) == 1

    @pytest.mark.asyncio
    async def test_remove_member(self, test_db, tenant, project, make_user):
        alice = await make_user(tenant.id, "alice@acme.io")
        await project_service.add_project_member(test_db, project.id, tenant.id, alice.id)

        assert await project_service.remove_project_member(test_db, project.id, tenant.id, alice.id) is True
        assert await project_service.remove_project_member(test_db, project.id, tenant.id, alice.id) is False
