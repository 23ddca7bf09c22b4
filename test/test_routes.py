"""
HTTP tests for the API routers: status codes and the response envelope.
"""

import pytest


class TestEnvelope:
    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["success"] is True

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, client):
        response = await client.get("/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"

    @pytest.mark.asyncio
    async def test_missing_tenant_header(self, client):
        response = await client.get("/api/projects")

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Tenant ID is required"
        assert body["error_code"] == "MISSING_TENANT_ID"

    @pytest.mark.asyncio
    async def test_missing_user_header(self, client, tenant):
        response = await client.post("/api/projects", json={"name": "X"}, headers={"X-Tenant-ID": tenant.id})

        assert response.status_code == 400
        assert response.json()["error"] == "User ID is required"

    @pytest.mark.asyncio
    async def test_not_found_envelope(self, client, tenant_headers):
        response = await client.get("/api/projects/missing", headers=tenant_headers)

        assert response.status_code == 404
        body = response.json()
        assert body == {
            "success": False,
            "error": "Project with id 'missing' not found",
            "error_code": "RESOURCE_PROJECT_NOT_FOUND",
            "details": {"resource_type": "Project", "resource_id": "missing"},
        }

    @pytest.mark.asyncio
    async def test_schema_validation_is_422(self, client, tenant_headers):
        response = await client.post("/api/projects", json={"name": ""}, headers=tenant_headers)

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["details"]["validation_errors"][0]["field"] == "name"

    @pytest.mark.asyncio
    async def test_unknown_route(self, client):
        response = await client.get("/api/nothing-here")
        assert response.status_code == 404
        assert response.json()["success"] is False


class TestTenantRoutes:
    @pytest.mark.asyncio
    async def test_provision_and_upgrade(self, client):
        response = await client.post(
            "/api/tenants", json={"name": "Initech", "domain": "initech.io", "owner_id": "user-9"}
        )
        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        tenant = body["data"]
        assert tenant["status"] == "pending"
        assert (tenant["max_users"], tenant["max_projects"], tenant["max_storage_gb"]) == (5, 3, 1)

        response = await client.put(f"/api/tenants/{tenant['id']}/upgrade-plan", json={"plan": "professional"})
        assert response.status_code == 200
        upgraded = response.json()["data"]
        assert (upgraded["max_users"], upgraded["max_projects"], upgraded["max_storage_gb"]) == (100, 50, 100)
        assert "integrations" in upgraded["features"]

    @pytest.mark.asyncio
    async def test_duplicate_domain_is_409(self, client):
        payload = {"name": "Initech", "domain": "initech.io", "owner_id": "user-9"}
        await client.post("/api/tenants", json=payload)
        response = await client.post("/api/tenants", json=payload)

        assert response.status_code == 409
        assert response.json()["error_code"] == "VALIDATION_DUPLICATE_RESOURCE"

    @pytest.mark.asyncio
    async def test_soft_delete_twice(self, client):
        created = (await client.post("/api/tenants", json={"name": "A", "domain": "a-co.io", "owner_id": "u"})).json()
        tenant_id = created["data"]["id"]

        assert (await client.delete(f"/api/tenants/{tenant_id}")).status_code == 200
        assert (await client.delete(f"/api/tenants/{tenant_id}")).status_code == 200
        fetched = (await client.get(f"/api/tenants/{tenant_id}")).json()["data"]
        assert fetched["status"] == "cancelled"

    @pytest.mark.asyncio
    async def test_lookup_by_domain(self, client, tenant):
        response = await client.get("/api/tenants/domain/acme.io")
        assert response.json()["data"]["id"] == tenant.id

    @pytest.mark.asyncio
    async def test_pagination_block(self, client):
        for i in range(3):
            await client.post("/api/tenants", json={"name": f"T{i}", "domain": f"t{i}.io", "owner_id": "u"})

        response = await client.get("/api/tenants", params={"page": 1, "limit": 2})

        body = response.json()
        assert len(body["data"]) == 2
        assert body["pagination"] == {"total": 3, "page": 1, "limit": 2, "totalPages": 2}

    @pytest.mark.asyncio
    async def test_usage(self, client, tenant, owner):
        response = await client.get(f"/api/tenants/{tenant.id}/usage")
        usage = response.json()["data"]
        assert usage["current_users"] == 1
        assert usage["max_projects"] == 3


class TestProjectRoutes:
    @pytest.mark.asyncio
    async def test_create_with_members(self, client, tenant, tenant_headers, make_user):
        alice = await make_user(tenant.id, "alice@acme.io")
        bob = await make_user(tenant.id, "bob@acme.io")

        response = await client.post(
            "/api/projects", json={"name": "Launch", "members": [alice.id, bob.id]}, headers=tenant_headers
        )

        assert response.status_code == 201
        project = response.json()["data"]
        assert project["progress"] == 0.0
        assert len(project["members"]) == 3
        owners = [m for m in project["members"] if m["role"] == "owner"]
        assert [m["user_id"] for m in owners] == [tenant_headers["X-User-ID"]]

    @pytest.mark.asyncio
    async def test_owner_removal_is_refused(self, client, tenant_headers):
        project = (await client.post("/api/projects", json={"name": "P"}, headers=tenant_headers)).json()["data"]
        owner_id = tenant_headers["X-User-ID"]

        response = await client.delete(f"/api/projects/{project['id']}/members/{owner_id}", headers=tenant_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Cannot remove project owner"
        members = (await client.get(f"/api/projects/{project['id']}/members", headers=tenant_headers)).json()["data"]
        assert [m["user_id"] for m in members] == [owner_id]

    @pytest.mark.asyncio
    async def test_member_lifecycle(self, client, tenant, tenant_headers, make_user):
        alice = await make_user(tenant.id, "alice@acme.io")
        project = (await client.post("/api/projects", json={"name": "P"}, headers=tenant_headers)).json()["data"]
        base = f"/api/projects/{project['id']}/members"

        added = await client.post(base, json={"user_id": alice.id}, headers=tenant_headers)
        assert added.status_code == 201
        assert added.json()["data"]["permissions"] == ["read"]

        updated = await client.put(f"{base}/{alice.id}", json={"role": "admin"}, headers=tenant_headers)
        assert updated.json()["data"]["role"] == "admin"

        removed = await client.delete(f"{base}/{alice.id}", headers=tenant_headers)
        assert removed.status_code == 200
        assert (await client.delete(f"{base}/{alice.id}", headers=tenant_headers)).status_code == 404

    @pytest.mark.asyncio
    async def test_progress_through_tasks(self, client, tenant_headers):
        project = (await client.post("/api/projects", json={"name": "P"}, headers=tenant_headers)).json()["data"]
        task_ids = []
        for title in ("a", "b", "c", "d"):
            created = await client.post(
                "/api/tasks", json={"title": title, "project_id": project["id"]}, headers=tenant_headers
            )
            task_ids.append(created.json()["data"]["id"])
        await client.put(f"/api/tasks/{task_ids[0]}", json={"status": "done"}, headers=tenant_headers)

        fetched = (await client.get(f"/api/projects/{project['id']}", headers=tenant_headers)).json()["data"]

        assert fetched["progress"] == 25.0

    @pytest.mark.asyncio
    async def test_delete_project(self, client, tenant_headers):
        project = (await client.post("/api/projects", json={"name": "P"}, headers=tenant_headers)).json()["data"]

        assert (await client.delete(f"/api/projects/{project['id']}", headers=tenant_headers)).status_code == 200
        assert (await client.get(f"/api/projects/{project['id']}", headers=tenant_headers)).status_code == 404

    @pytest.mark.asyncio
    async def test_null_for_required_field_is_ignored(self, client, tenant_headers):
        created = await client.post("/api/projects", json={"name": "P", "description": "old"}, headers=tenant_headers)
        project = created.json()["data"]

        response = await client.put(
            f"/api/projects/{project['id']}",
            json={"name": None, "status": None, "tags": None, "description": None},
            headers=tenant_headers,
        )

        assert response.status_code == 200
        updated = response.json()["data"]
        assert updated["name"] == "P"
        assert updated["status"] == "planning"
        assert updated["tags"] == []
        assert updated["description"] is None


class TestTaskRoutes:
    @pytest.mark.asyncio
    async def test_create_defaults_and_assign(self, client, tenant, tenant_headers, make_user):
        alice = await make_user(tenant.id, "alice@acme.io")
        project = (await client.post("/api/projects", json={"name": "P"}, headers=tenant_headers)).json()["data"]

        created = await client.post(
            "/api/tasks", json={"title": "Ship", "project_id": project["id"]}, headers=tenant_headers
        )
        assert created.status_code == 201
        task = created.json()["data"]
        assert task["status"] == "todo"
        assert task["priority"] == "medium"

        assigned = await client.post(
            f"/api/tasks/{task['id']}/assign", json={"assignee_id": alice.id}, headers=tenant_headers
        )
        assert assigned.json()["data"]["assignee_id"] == alice.id

        mine = (await client.get(f"/api/tasks/assignee/{alice.id}", headers=tenant_headers)).json()["data"]
        assert [t["id"] for t in mine] == [task["id"]]

    @pytest.mark.asyncio
    async def test_task_in_foreign_project(self, client, tenant_headers):
        response = await client.post(
            "/api/tasks", json={"title": "Ship", "project_id": "missing"}, headers=tenant_headers
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_invalid_status_is_422(self, client, tenant_headers):
        project = (await client.post("/api/projects", json={"name": "P"}, headers=tenant_headers)).json()["data"]
        task = (
            await client.post("/api/tasks", json={"title": "Ship", "project_id": project["id"]}, headers=tenant_headers)
        ).json()["data"]

        response = await client.put(f"/api/tasks/{task['id']}", json={"status": "nope"}, headers=tenant_headers)

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_null_for_required_field_is_ignored(self, client, tenant_headers):
        project = (await client.post("/api/projects", json={"name": "P"}, headers=tenant_headers)).json()["data"]
        payload = {"title": "Ship", "project_id": project["id"], "due_date": "2030-01-01T00:00:00Z"}
        task = (await client.post("/api/tasks", json=payload, headers=tenant_headers)).json()["data"]

        response = await client.put(
            f"/api/tasks/{task['id']}",
            json={"title": None, "priority": None, "status": None, "tags": None, "due_date": None},
            headers=tenant_headers,
        )

        assert response.status_code == 200
        updated = response.json()["data"]
        assert updated["title"] == "Ship"
        assert updated["priority"] == "medium"
        assert updated["status"] == "todo"
        assert updated["tags"] == []
        assert updated["due_date"] is None


class TestAuthRoutes:
    @pytest.mark.asyncio
    async def test_register_login_refresh_validate(self, client, tenant):
        registered = await client.post(
            "/api/auth/register",
            json={
                "email": "mulder@acme.io",
                "password": "trust-no-one",
                "firstName": "Fox",
                "lastName": "Mulder",
                "tenantId": tenant.id,
            },
        )
        assert registered.status_code == 201
        data = registered.json()["data"]
        assert data["user"]["email"] == "mulder@acme.io"
        assert "password_hash" not in data["user"]

        login = await client.post("/api/auth/login", json={"email": "mulder@acme.io", "password": "trust-no-one"})
        tokens = login.json()["data"]

        refreshed = await client.post("/api/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
        assert refreshed.status_code == 200
        assert refreshed.json()["data"]["refreshToken"] != tokens["refreshToken"]

        replayed = await client.post("/api/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
        assert replayed.status_code == 401

        validated = await client.get(
            "/api/auth/validate", headers={"Authorization": f"Bearer {tokens['accessToken']}"}
        )
        assert validated.json()["data"]["email"] == "mulder@acme.io"

    @pytest.mark.asyncio
    async def test_bad_credentials(self, client, owner):
        response = await client.post("/api/auth/login", json={"email": owner.email, "password": "wrong-password"})

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_validate_requires_token(self, client):
        response = await client.get("/api/auth/validate")
        assert response.status_code == 401
        assert response.json()["error"] == "Token required"

    @pytest.mark.asyncio
    async def test_forgot_password_does_not_leak(self, client, owner):
        known = await client.post("/api/auth/forgot-password", json={"email": owner.email})
        unknown = await client.post("/api/auth/forgot-password", json={"email": "ghost@acme.io"})

        assert known.status_code == unknown.status_code == 200
        assert known.json() == unknown.json()


class TestUserRoutes:
    @pytest.mark.asyncio
    async def test_profile(self, client, tenant_headers):
        response = await client.get("/api/users/profile", headers=tenant_headers)
        assert response.json()["data"]["first_name"] == "Olive"

        updated = await client.put("/api/users/profile", json={"last_name": "Oyl"}, headers=tenant_headers)
        assert updated.json()["data"]["last_name"] == "Oyl"

    @pytest.mark.asyncio
    async def test_search(self, client, tenant, tenant_headers, make_user):
        await make_user(tenant.id, "alice@acme.io", "Alice", "Liddell")

        response = await client.get("/api/users/search", params={"q": "lid"}, headers=tenant_headers)

        assert [u["email"] for u in response.json()["data"]] == ["alice@acme.io"]


class TestNotificationRoutes:
    @pytest.mark.asyncio
    async def test_create_list_and_read(self, client, tenant_headers):
        user_id = tenant_headers["X-User-ID"]
        created = await client.post(
            "/api/notifications",
            json={"user_id": user_id, "title": "Hi", "message": "There", "type": "system_alert"},
            headers=tenant_headers,
        )
        assert created.status_code == 201
        notification_id = created.json()["data"]["id"]

        count = (await client.get("/api/notifications/unread-count", headers=tenant_headers)).json()["data"]
        assert count == {"count": 1}

        listed = (await client.get("/api/notifications", headers=tenant_headers)).json()
        assert listed["pagination"]["total"] == 1

        read = await client.put(f"/api/notifications/{notification_id}/read", headers=tenant_headers)
        assert read.json()["data"]["status"] == "read"

    @pytest.mark.asyncio
    async def test_preferences(self, client, tenant_headers):
        defaults = (await client.get("/api/notifications/preferences", headers=tenant_headers)).json()["data"]
        assert defaults["email_enabled"] is True

        updated = await client.put(
            "/api/notifications/preferences", json={"email_enabled": False}, headers=tenant_headers
        )
        assert updated.json()["data"]["email_enabled"] is False
        assert updated.json()["data"]["push_enabled"] is True
