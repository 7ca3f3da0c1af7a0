"""End-to-end tests for the /admin/roles API."""

BASE = "/admin/roles"


class TestRoleCatalogRoutes:

    def test_admin_users(self, client, token_for):
        response = client.get(f"{BASE}/admin-users", headers=token_for("super-1"))
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert {u["id"] for u in body["users"]} == {"super-1", "content-1", "usermgr-1"}

    def test_available_roles(self, client, token_for):
        response = client.get(f"{BASE}/available-roles", headers=token_for("super-1"))
        assert response.json()["roles"] == [
            "super_admin", "content_moderator", "investment_moderator", "user_manager", "read_only_admin",
        ]

    def test_role_permissions(self, client, token_for):
        response = client.get(f"{BASE}/role-permissions/user_manager", headers=token_for("super-1"))
        assert response.json()["permissions"] == ["manage_users", "view_users", "view_analytics"]

        response = client.get(f"{BASE}/role-permissions/janitor", headers=token_for("super-1"))
        assert response.status_code == 400
        assert response.json()["code"] == "BUSINESS_RULE_VIOLATION"

    def test_requirements_listing(self, client, token_for):
        response = client.get(f"{BASE}/requirements", headers=token_for("super-1"))
        requirements = response.json()["requirements"]
        assert requirements["admin_roles"] == {"permissions": ["assign_admin_roles"], "combinator": "any"}
        assert requirements["admin_roles.get_user_stats"]["permissions"] == ["view_analytics"]

    def test_user_permissions(self, client, token_for):
        response = client.get(f"{BASE}/content-1/permissions", headers=token_for("super-1"))
        permissions = response.json()["permissions"]
        assert permissions["explicit_permissions"] == ["manage_users"]
        assert "manage_users" in permissions["effective_permissions"]
        assert "manage_users" not in permissions["default_role_permissions"]


class TestRoleMutationRoutes:

    def test_update_role_clears_permissions(self, client, token_for):
        response = client.put(
            f"{BASE}/content-1/role",
            json={"admin_role": "investment_moderator"},
            headers=token_for("super-1"),
        )
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "User role updated successfully"
        assert body["user"]["admin_role"] == "investment_moderator"
        assert body["user"]["permissions"] == []

        # The change is visible to the next request
        response = client.get(f"{BASE}/content-1/permissions", headers=token_for("super-1"))
        assert response.json()["permissions"]["explicit_permissions"] == []

    def test_update_role_validation(self, client, token_for):
        response = client.put(f"{BASE}/content-1/role", json={"admin_role": "king"}, headers=token_for("super-1"))
        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_self_demotion_refused(self, client, token_for):
        response = client.put(
            f"{BASE}/super-1/role", json={"admin_role": "read_only_admin"}, headers=token_for("super-1")
        )
        assert response.status_code == 403
        assert response.json()["message"] == "Cannot demote yourself from Super Admin"

    def test_update_permissions(self, client, token_for):
        response = client.patch(
            f"{BASE}/usermgr-1/permissions",
            json={"permissions": ["verify_businesses", "view_businesses"]},
            headers=token_for("super-1"),
        )
        assert response.status_code == 200
        assert response.json()["user"]["permissions"] == ["verify_businesses", "view_businesses"]

    def test_update_permissions_on_non_admin(self, client, token_for):
        response = client.patch(
            f"{BASE}/investor-1/permissions", json={"permissions": ["view_users"]}, headers=token_for("super-1")
        )
        assert response.status_code == 400
        assert response.json()["message"] == "User must be an admin to have permissions"

    def test_promote_and_revoke(self, client, token_for):
        response = client.put(
            f"{BASE}/investor-1/promote-to-admin",
            json={"admin_role": "read_only_admin"},
            headers=token_for("super-1"),
        )
        assert response.status_code == 200
        assert response.json()["user"]["role"] == "admin"

        # The promoted user can now read the user list
        assert client.get(f"{BASE}/users", headers=token_for("investor-1")).status_code == 200

        response = client.put(f"{BASE}/investor-1/revoke-admin", headers=token_for("super-1"))
        assert response.status_code == 200
        assert response.json()["user"]["role"] == "project_owner"
        assert client.get(f"{BASE}/users", headers=token_for("investor-1")).status_code == 403

    def test_promote_requires_manage_admins(self, client, token_for):
        response = client.put(
            f"{BASE}/investor-1/promote-to-admin",
            json={"admin_role": "read_only_admin"},
            headers=token_for("usermgr-1"),
        )
        assert response.status_code == 403

    def test_promote_unknown_user(self, client, token_for):
        response = client.put(
            f"{BASE}/ghost/promote-to-admin", json={"admin_role": "read_only_admin"}, headers=token_for("super-1")
        )
        assert response.status_code == 404
        assert response.json()["code"] == "RESOURCE_NOT_FOUND"

    def test_self_revoke_refused(self, client, token_for):
        response = client.put(f"{BASE}/super-1/revoke-admin", headers=token_for("super-1"))
        assert response.status_code == 403
        assert response.json()["message"] == "Cannot revoke your own admin access"


class TestUserRoutes:

    def test_list_users(self, client, token_for):
        response = client.get(
            f"{BASE}/users",
            params={"role": "admin", "sort_by": "name", "sort_order": "asc", "limit": 2},
            headers=token_for("usermgr-1"),
        )
        assert response.status_code == 200
        body = response.json()
        assert [u["id"] for u in body["users"]] == ["content-1", "super-1"]
        assert body["pagination"]["total_count"] == 3
        assert body["pagination"]["has_next_page"] is True

    def test_list_users_rejects_unknown_role_filter(self, client, token_for):
        response = client.get(f"{BASE}/users", params={"role": "wizard"}, headers=token_for("usermgr-1"))
        assert response.status_code == 422

    def test_search(self, client, token_for):
        response = client.get(f"{BASE}/users/search", params={"q": "olga"}, headers=token_for("usermgr-1"))
        assert [u["id"] for u in response.json()["users"]] == ["owner-1"]

    def test_search_requires_query(self, client, token_for):
        assert client.get(f"{BASE}/users/search", headers=token_for("usermgr-1")).status_code == 422

    def test_get_user(self, client, token_for):
        response = client.get(f"{BASE}/users/owner-1", headers=token_for("usermgr-1"))
        assert response.json()["user"]["city"] == "Lagos"
        assert client.get(f"{BASE}/users/ghost", headers=token_for("usermgr-1")).status_code == 404

    def test_stats(self, client, token_for):
        response = client.get(f"{BASE}/users/stats/overview", headers=token_for("content-1"))
        assert response.status_code == 200
        stats = response.json()["stats"]
        assert stats["overview"]["total_users"] == 5
        assert stats["overview"]["total_admins"] == 3
        assert stats["top_cities"] == [{"city": "Lagos", "count": 2}]

    def test_update_status(self, client, token_for):
        response = client.patch(
            f"{BASE}/users/owner-1/status",
            json={"phone_verified": True, "business_type": "retail"},
            headers=token_for("usermgr-1"),
        )
        assert response.status_code == 200
        user = response.json()["user"]
        assert user["phone_verified"] is True
        assert user["business_type"] == "retail"

    def test_update_status_clears_city(self, client, token_for):
        response = client.patch(
            f"{BASE}/users/owner-1/status", json={"city": None}, headers=token_for("usermgr-1")
        )
        assert response.status_code == 200
        assert response.json()["user"]["city"] is None

    def test_request_id_echoed(self, client, token_for):
        response = client.get(
            f"{BASE}/users/ghost", headers={**token_for("usermgr-1"), "X-Request-ID": "req-123"}
        )
        assert response.headers["X-Request-ID"] == "req-123"
        assert response.json()["request_id"] == "req-123"
