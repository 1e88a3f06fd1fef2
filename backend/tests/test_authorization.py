"""
HTTP authorization and routing tests.

Verifies:
- Protected endpoints return 401 without a session
- Role capabilities gate endpoints (403)
- Destructive routes and role changes need the matching X-Passkey
- Action results map to 200/201 on success and 400 on failure
"""

import pytest

from conftest import AUTH_PASSKEY, DELETE_PASSKEY, auth_headers, token_for
from stockroom.services import inventory_service, store_service


# =============================================================================
# UNAUTHENTICATED ACCESS — 401
# =============================================================================


class TestUnauthenticatedAccess:

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/inventory"),
            ("GET", "/api/items"),
            ("POST", "/api/items"),
            ("GET", "/api/units/000001"),
            ("GET", "/api/bills"),
            ("GET", "/api/users"),
            ("GET", "/api/notifications"),
            ("POST", "/api/notifications/allot"),
            ("PUT", "/api/settings/contact-email"),
            ("GET", "/api/auth/me"),
        ],
    )
    def test_requires_auth(self, client, seed, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_bogus_token(self, client, seed):
        resp = client.get("/api/items", headers=auth_headers("not-a-token"))
        assert resp.status_code == 401

    def test_public_endpoints(self, client, seed):
        assert client.get("/health").status_code == 200
        resp = client.get("/api/settings/contact-email")
        assert resp.json == {"contactEmail": "contact@example.com"}


# =============================================================================
# SESSIONS
# =============================================================================


class TestSessions:

    def test_login_me_logout(self, client, seed):
        resp = client.post("/api/auth/login", json={"personId": "CLERK", "email": "CLERK@example.com"})
        assert resp.status_code == 200
        token = resp.json["token"]
        assert "HANDLE_NOTIFICATIONS" in resp.json["permissions"]

        me = client.get("/api/auth/me", headers=auth_headers(token))
        assert me.json["user"]["personId"] == "CLERK"

        assert client.post("/api/auth/logout", headers=auth_headers(token)).status_code == 200
        assert client.get("/api/auth/me", headers=auth_headers(token)).status_code == 401

    def test_login_rejects_mismatched_email(self, client, seed):
        resp = client.post("/api/auth/login", json={"personId": "CLERK", "email": "u1@example.com"})
        assert resp.status_code == 401

    def test_login_requires_fields(self, client, seed):
        assert client.post("/api/auth/login", json={"personId": "CLERK"}).status_code == 400

    def test_deleted_user_loses_session(self, client, seed, admin_headers):
        token = token_for("U1")
        resp = client.delete("/api/users/U1", headers={**admin_headers, "X-Passkey": DELETE_PASSKEY})
        assert resp.status_code == 200

        assert client.get("/api/auth/me", headers=auth_headers(token)).status_code == 401


# =============================================================================
# ROLE CAPABILITIES — 403
# =============================================================================


class TestRoleCapabilities:

    def test_member_cannot_browse(self, client, member_headers):
        assert client.get("/api/items", headers=member_headers).status_code == 403
        assert client.get("/api/users", headers=member_headers).status_code == 403
        assert client.get("/api/notifications", headers=member_headers).status_code == 403

    def test_member_can_read_own_record(self, client, member_headers):
        assert client.get("/api/users/U1", headers=member_headers).status_code == 200
        assert client.get("/api/users/CLERK", headers=member_headers).status_code == 403

    def test_clerk_cannot_manage_items(self, client, clerk_headers):
        resp = client.post("/api/items", json={"name": "Desk"}, headers=clerk_headers)
        assert resp.status_code == 403
        assert resp.json["required_permission"] == "MANAGE_ITEMS"

    def test_manager_cannot_change_settings_or_roles(self, client, manager_headers):
        resp = client.put("/api/settings/contact-email", json={"contactEmail": "a@b.co"}, headers=manager_headers)
        assert resp.status_code == 403
        resp = client.put(
            "/api/users/U1/role",
            json={"role": "C"},
            headers={**manager_headers, "X-Passkey": AUTH_PASSKEY},
        )
        assert resp.status_code == 403


# =============================================================================
# SCAN LOOKUP
# =============================================================================


class TestScan:

    def test_member_sees_own_assignment(self, client, member_headers):
        resp = client.get("/api/units/000002", headers=member_headers)
        assert resp.status_code == 200
        assert resp.json["subItem"]["assignedTo"]["personId"] == "U1"

    def test_other_assignment_is_hidden_without_inventory_view(self, client, seed):
        tree = store_service.load()
        tree["users"].append({
            "personId": "U2", "name": "Two", "email": "u2@example.com", "phone": "555-U2", "role": "D",
        })
        store_service.save({"users": tree["users"]})
        headers = auth_headers(token_for("U2"))

        resp = client.get("/api/units/000002", headers=headers)

        assert resp.status_code == 200
        assert resp.json["subItem"]["availabilityStatus"] == "In Use"
        assert "assignedTo" not in resp.json["subItem"]

    def test_clerk_sees_everything(self, client, clerk_headers):
        resp = client.get("/api/units/000002", headers=clerk_headers)
        assert resp.json["subItem"]["assignedTo"]["personId"] == "U1"

    def test_unknown_unit(self, client, clerk_headers):
        assert client.get("/api/units/999999", headers=clerk_headers).status_code == 404


# =============================================================================
# PASSKEY CONFIRMATION
# =============================================================================


class TestPasskeys:

    def test_delete_needs_passkey(self, client, admin_headers):
        assert client.delete("/api/items/item-1", headers=admin_headers).status_code == 403
        resp = client.delete("/api/items/item-1", headers={**admin_headers, "X-Passkey": "000000"})
        assert resp.status_code == 403
        assert inventory_service.get_item("item-1") is not None

        resp = client.delete("/api/items/item-1", headers={**admin_headers, "X-Passkey": DELETE_PASSKEY})
        assert resp.status_code == 200
        assert resp.json == {"success": True, "message": "Item deleted."}

    def test_role_change_needs_auth_passkey(self, client, admin_headers):
        resp = client.put("/api/users/U1/role", json={"role": "C"}, headers=admin_headers)
        assert resp.status_code == 403

        resp = client.put(
            "/api/users/U1/role", json={"role": "C"}, headers={**admin_headers, "X-Passkey": AUTH_PASSKEY},
        )
        assert resp.status_code == 200
        assert client.get("/api/users/U1", headers=admin_headers).json["role"] == "C"

    def test_general_edit_cannot_change_role(self, client, admin_headers):
        resp = client.put("/api/users/U1", json={
            "personId": "U1", "name": "User U1", "email": "u1@example.com", "phone": "555-U1", "role": "A",
        }, headers=admin_headers)
        assert resp.status_code == 200
        assert client.get("/api/users/U1", headers=admin_headers).json["role"] == "D"


# =============================================================================
# REQUEST / APPROVAL FLOW OVER HTTP
# =============================================================================


class TestRequestFlow:

    def test_member_allots_to_self_and_clerk_approves(self, client, member_headers, clerk_headers):
        resp = client.post(
            "/api/notifications/allot",
            json={"itemId": "item-1", "subItemId": "000001", "assignment": {"project": "Apollo"}},
            headers=member_headers,
        )
        assert resp.status_code == 201
        notification_id = resp.json["data"]["id"]

        resp = client.post(f"/api/notifications/{notification_id}/approve", headers=clerk_headers)
        assert resp.status_code == 200
        assigned = inventory_service.find_unit("000001")["subItem"]["assignedTo"]
        assert assigned["personId"] == "U1"
        assert assigned["project"] == "Apollo"

        resp = client.post(f"/api/notifications/{notification_id}/approve", headers=clerk_headers)
        assert resp.status_code == 400
        assert resp.json["message"] == "This request has already been handled."

    def test_member_cannot_allot_to_others(self, client, member_headers):
        resp = client.post(
            "/api/notifications/allot",
            json={"itemId": "item-1", "subItemId": "000001", "assignment": {"personId": "CLERK"}},
            headers=member_headers,
        )
        assert resp.status_code == 403

    def test_member_cannot_return_others_units(self, client, seed, member_headers):
        resp = client.post(
            "/api/notifications/status-change",
            json={"itemId": "item-1", "subItemId": "000002", "type": "unallot"},
            headers=member_headers,
        )
        assert resp.status_code == 201

        other = auth_headers(token_for("MGR"))
        tree = store_service.load()
        tree["users"] = [dict(u, role="D") if u["personId"] == "MGR" else u for u in tree["users"]]
        store_service.save({"users": tree["users"]})
        resp = client.post(
            "/api/notifications/status-change",
            json={"itemId": "item-1", "subItemId": "000002", "type": "unallot"},
            headers=other,
        )
        assert resp.status_code == 403

    def test_member_cannot_handle_requests(self, client, member_headers):
        assert client.post("/api/notifications/x/approve", headers=member_headers).status_code == 403

    def test_failed_action_is_400(self, client, admin_headers):
        resp = client.post(
            "/api/notifications/allot",
            json={"itemId": "nope", "subItemId": "000001", "assignment": {
                "personId": "U1", "name": "User U1", "email": "u1@example.com", "phone": "555-U1",
            }},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json == {"success": False, "message": "Item not found."}

    def test_malformed_assignment_is_400(self, client, admin_headers):
        for assignment in ("U1", ["U1"]):
            resp = client.post(
                "/api/notifications/allot",
                json={"itemId": "item-1", "subItemId": "000001", "assignment": assignment},
                headers=admin_headers,
            )
            assert resp.status_code == 400
            assert resp.json == {"success": False, "message": "Assignment details must be an object."}

        resp = client.post("/api/notifications/allot", json=["item-1"], headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json == {"success": False, "message": "Invalid JSON payload"}
        assert store_service.load()["notifications"] == []

    def test_public_registration(self, client, seed, clerk_headers):
        resp = client.post("/api/register", json={
            "personId": "N1", "name": "New", "email": "n1@example.com", "phone": "555-N1",
        })
        assert resp.status_code == 202

        pending = client.get("/api/notifications?status=pending", headers=clerk_headers).json["items"]
        assert [n["type"] for n in pending] == ["register"]

        resp = client.post("/api/register", json={
            "personId": "N2", "name": "Dup", "email": "N1@example.com", "phone": "555-N2",
        })
        assert resp.status_code == 400


# =============================================================================
# INVENTORY SNAPSHOT
# =============================================================================


class TestInventorySnapshot:

    def test_etag_and_secure_hidden(self, client, clerk_headers):
        resp = client.get("/api/inventory", headers=clerk_headers)
        assert resp.status_code == 200
        assert "secure" not in resp.json
        etag = resp.headers["ETag"]

        again = client.get("/api/inventory", headers={**clerk_headers, "If-None-Match": etag})
        assert again.status_code == 304

    def test_add_units_over_http(self, client, admin_headers):
        resp = client.post("/api/items/item-1/units", json={
            "quantity": 2, "billNumber": "B5", "billDate": "2024-09-01", "company": "Acme", "lotName": "L5",
        }, headers=admin_headers)

        assert resp.status_code == 201
        assert resp.json["data"]["ids"] == ["000005", "000006"]
