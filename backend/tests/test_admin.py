"""
Admin endpoint tests and envelope behavior for unknown routes.
"""

import pytest

from marketplace.models import User

from test_orders import order_payload


@pytest.fixture
def orders(client, customer_headers, product):
    """Three orders: upi (paid), cod (pending payment), upi then cancelled."""
    paid = client.post("/api/orders", json=order_payload([(product, 1)]), headers=customer_headers)
    cod = client.post("/api/orders", json=order_payload([(product, 1)], payment_method="cod"), headers=customer_headers)
    cancelled = client.post("/api/orders", json=order_payload([(product, 2)]), headers=customer_headers)
    client.put(f"/api/orders/{cancelled.get_json()['data']['id']}/cancel", headers=customer_headers)
    return [r.get_json()["data"] for r in (paid, cod, cancelled)]


class TestAdminAccess:
    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/admin/dashboard"),
            ("GET", "/api/admin/users"),
            ("GET", "/api/admin/vendors"),
            ("GET", "/api/admin/products"),
            ("GET", "/api/admin/orders"),
        ],
    )
    def test_requires_auth(self, client, method, path):
        assert getattr(client, method.lower())(path).status_code == 401

    def test_vendor_forbidden(self, client, vendor_headers):
        assert client.get("/api/admin/dashboard", headers=vendor_headers).status_code == 403


class TestDashboard:
    def test_totals(self, client, admin_headers, customer, pending_vendor, vendor, product, orders):
        stats = client.get("/api/admin/dashboard", headers=admin_headers).get_json()["data"]["stats"]

        # customer plus the pending vendor's owner; admins and vendors excluded
        assert stats["total_users"] == 2
        assert stats["total_vendors"] == 2
        assert stats["pending_vendors"] == 1
        assert stats["active_vendors"] == 1
        assert stats["total_products"] == 1
        assert stats["total_orders"] == 3
        # Only the paid, non-cancelled order counts
        assert stats["total_revenue_cents"] == 2500

    def test_recent_orders_newest_first(self, client, admin_headers, orders):
        recent = client.get("/api/admin/dashboard", headers=admin_headers).get_json()["data"]["recent_orders"]
        assert [o["id"] for o in recent] == [o["id"] for o in reversed(orders)]
        assert recent[0]["user"]["email"] == "casey@example.com"


class TestUserManagement:
    def test_list_and_filter(self, client, admin_headers, customer, other_customer, vendor):
        body = client.get("/api/admin/users", headers=admin_headers).get_json()
        assert body["count"] == 4
        assert all("password_hash" not in u for u in body["data"])

        vendors_only = client.get("/api/admin/users?role=vendor", headers=admin_headers).get_json()
        assert vendors_only["count"] == 1

        found = client.get("/api/admin/users?search=OLIVE", headers=admin_headers).get_json()
        assert [u["id"] for u in found["data"]] == [other_customer.id]

    def test_set_status(self, client, admin_headers, customer, customer_headers, load):
        resp = client.put(f"/api/admin/users/{customer.id}/status", headers=admin_headers, json={"status": "suspended"})
        assert resp.status_code == 200
        assert load(User, customer.id).status == "suspended"
        assert client.get("/api/auth/me", headers=customer_headers).status_code == 403

        filtered = client.get("/api/admin/users?status=suspended", headers=admin_headers).get_json()
        assert [u["id"] for u in filtered["data"]] == [customer.id]

    def test_set_invalid_status(self, client, admin_headers, customer):
        resp = client.put(f"/api/admin/users/{customer.id}/status", headers=admin_headers, json={"status": "banned"})
        assert resp.status_code == 400

    def test_set_status_missing_user(self, client, admin_headers):
        resp = client.put(f"/api/admin/users/{'a' * 24}/status", headers=admin_headers, json={"status": "active"})
        assert resp.status_code == 404

    def test_delete_user(self, client, admin_headers, customer, load):
        resp = client.delete(f"/api/admin/users/{customer.id}", headers=admin_headers)
        assert resp.status_code == 200
        assert load(User, customer.id) is None

    def test_cannot_delete_admin(self, client, admin, admin_headers, make_user, load):
        other_admin = make_user(name="Second Admin", role="admin")
        for target in (admin, other_admin):
            resp = client.delete(f"/api/admin/users/{target.id}", headers=admin_headers)
            assert resp.status_code == 403
            assert resp.get_json()["message"] == "Cannot delete admin accounts"
            assert load(User, target.id) is not None

    def test_delete_missing_user(self, client, admin_headers):
        assert client.delete(f"/api/admin/users/{'a' * 24}", headers=admin_headers).status_code == 404


class TestAdminListings:
    def test_vendors_by_status(self, client, admin_headers, vendor, pending_vendor):
        body = client.get("/api/admin/vendors?status=pending", headers=admin_headers).get_json()
        assert [v["id"] for v in body["data"]] == [pending_vendor.id]
        assert client.get("/api/admin/vendors", headers=admin_headers).get_json()["count"] == 2

    def test_products_include_inactive(self, client, admin_headers, vendor, make_product):
        make_product(vendor, name="Live")
        make_product(vendor, name="Hidden", status="inactive")
        assert client.get("/api/admin/products", headers=admin_headers).get_json()["count"] == 2
        hidden = client.get("/api/admin/products?status=inactive", headers=admin_headers).get_json()
        assert [p["name"] for p in hidden["data"]] == ["Hidden"]

    def test_orders_filters(self, client, admin_headers, orders):
        assert client.get("/api/admin/orders", headers=admin_headers).get_json()["count"] == 3
        cod = client.get("/api/admin/orders?payment_status=pending", headers=admin_headers).get_json()
        assert [o["id"] for o in cod["data"]] == [orders[1]["id"]]
        cancelled = client.get("/api/admin/orders?status=cancelled", headers=admin_headers).get_json()
        assert [o["id"] for o in cancelled["data"]] == [orders[2]["id"]]


class TestEnvelope:
    def test_unknown_route(self, client):
        resp = client.get("/api/nowhere")
        assert resp.status_code == 404
        assert resp.get_json() == {"status": "error", "message": "Route not found"}

    def test_method_not_allowed(self, client):
        resp = client.delete("/api/products")
        assert resp.status_code == 405
        assert resp.get_json()["status"] == "error"

    def test_health(self, client, app):
        body = client.get("/api/health").get_json()
        assert body["status"] == "success"
        assert body["data"]["storage"] == app.config["STORAGE_BACKEND"]

    def test_cors_allowed_origin(self, client):
        resp = client.get("/api/health", headers={"Origin": "http://localhost:5173"})
        assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"

    def test_cors_unknown_origin(self, client):
        resp = client.get("/api/health", headers={"Origin": "http://evil.example.com"})
        assert "Access-Control-Allow-Origin" not in resp.headers
