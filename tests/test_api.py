"""HTTP layer: status codes, payload shapes and auth plumbing."""

import pytest
from fastapi.testclient import TestClient

from storefront.api import create_app

SHIPPING_INFO = {
    "fullName": "Asha Rao",
    "email": "asha@example.com",
    "phone": "98765 43210",
    "address": "12 MG Road",
    "city": "Bengaluru",
    "state": "Karnataka",
    "zipCode": "560001",
}


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as client:
        yield client


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def register(client: TestClient, email: str = "asha@example.com") -> str:
    response = client.post(
        "/api/auth/register",
        json={"email": email, "password": "secret1", "firstName": "Asha", "lastName": "Rao"},
    )
    assert response.status_code == 200, response.text
    return response.json()["token"]


def register_admin(client: TestClient) -> str:
    response = client.post(
        "/api/admin/register",
        json={
            "email": "seller@example.com",
            "password": "s3cret!pass",
            "firstName": "Meera",
            "lastName": "Iyer",
            "adminCode": "ADMIN-SECRET-2024",
        },
    )
    assert response.status_code == 200, response.text
    return response.json()["token"]


@pytest.fixture
def stocked(client):
    """An admin token and a product with two units in stock."""
    admin = register_admin(client)
    category = client.post("/api/admin/categories", json={"name": "Kitchen"}, headers=bearer(admin))
    assert category.status_code == 201, category.text
    product = client.post(
        "/api/admin/products",
        json={
            "name": "Blue Mug",
            "description": "ceramic",
            "price": 1299,
            "stock": 2,
            "categoryId": category.json()["id"],
        },
        headers=bearer(admin),
    )
    assert product.status_code == 201, product.text
    client.cookies.clear()
    return admin, product.json()


class TestAuthRoutes:
    def test_register_sets_cookie_and_me_reads_it(self, client, settings):
        register(client)

        assert settings.auth_cookie in client.cookies
        me = client.get("/api/auth/me")
        assert me.status_code == 200
        assert me.json()["user"]["email"] == "asha@example.com"
        assert me.json()["user"]["firstName"] == "Asha"

    def test_logout_clears_cookie(self, client):
        register(client)

        client.post("/api/auth/logout")

        assert client.get("/api/auth/me").status_code == 401

    def test_error_body_shape(self, client):
        register(client)

        response = client.post(
            "/api/auth/login", json={"email": "asha@example.com", "password": "wrong!!"}
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid credentials"}

    def test_bad_token_is_anonymous(self, client):
        assert client.get("/api/cart", headers=bearer("garbage")).status_code == 401

    def test_admin_routes_need_admin(self, client):
        token = register(client)

        assert client.get("/api/admin/analytics/sales", headers=bearer(token)).status_code == 403


class TestShopRoutes:
    def test_catalog_is_public(self, client, stocked):
        _, product = stocked

        listing = client.get("/api/products", params={"search": "CERAMIC"})
        single = client.get(f"/api/products/{product['slug']}")

        assert listing.json()["total"] == 1
        assert single.json()["price"] == 1299
        assert client.get("/api/products/missing").status_code == 404
        assert client.get("/api/categories").json()["categories"][0]["slug"] == "kitchen"

    def test_cart_and_checkout_flow(self, client, stocked):
        _, product = stocked
        token = register(client)

        cart = client.post(
            "/api/cart", json={"productId": product["id"], "quantity": 2}, headers=bearer(token)
        )
        assert cart.json()["totalItems"] == 2

        preview = client.get("/api/checkout/preview", headers=bearer(token)).json()
        assert preview["subtotal"] == 2598
        assert preview["total"] == 2598 + 208 + 999

        order = client.post(
            "/api/orders", json={"shippingInfo": SHIPPING_INFO}, headers=bearer(token)
        )
        assert order.status_code == 201, order.text
        body = order.json()
        assert body["status"] == "PENDING"
        assert body["items"][0]["price"] == 1299
        assert body["total"] == preview["total"]

        assert client.get("/api/cart", headers=bearer(token)).json()["itemCount"] == 0
        assert client.get(f"/api/products/{product['slug']}").json()["stock"] == 0

    def test_over_stock_order_is_409(self, client, stocked, settings):
        _, product = stocked
        first = register(client, "first@example.com")
        second = register(client, "second@example.com")
        client.post("/api/cart", json={"productId": product["id"], "quantity": 2}, headers=bearer(first))
        client.post("/api/cart", json={"productId": product["id"], "quantity": 1}, headers=bearer(second))

        ok = client.post("/api/orders", json={"shippingInfo": SHIPPING_INFO}, headers=bearer(first))
        late = client.post("/api/orders", json={"shippingInfo": SHIPPING_INFO}, headers=bearer(second))

        assert ok.status_code == 201
        assert late.status_code == 409
        assert "Blue Mug" in late.json()["error"]

    def test_invalid_shipping_is_400(self, client, stocked):
        _, product = stocked
        token = register(client)
        client.post("/api/cart", json={"productId": product["id"]}, headers=bearer(token))

        response = client.post(
            "/api/orders",
            json={"shippingInfo": {**SHIPPING_INFO, "zipCode": "12"}},
            headers=bearer(token),
        )

        assert response.status_code == 400
        assert "error" in response.json()

    def test_idempotency_key_replays(self, client, stocked):
        _, product = stocked
        token = register(client)
        client.post("/api/cart", json={"productId": product["id"]}, headers=bearer(token))
        headers = {**bearer(token), "Idempotency-Key": "retry-1"}

        first = client.post("/api/orders", json={"shippingInfo": SHIPPING_INFO}, headers=headers)
        again = client.post("/api/orders", json={"shippingInfo": SHIPPING_INFO}, headers=headers)

        assert first.status_code == 201
        assert again.status_code == 200
        assert again.json()["id"] == first.json()["id"]

    def test_cancel_restores_stock(self, client, stocked):
        admin, product = stocked
        token = register(client)
        client.post("/api/cart", json={"productId": product["id"], "quantity": 2}, headers=bearer(token))
        order = client.post("/api/orders", json={"shippingInfo": SHIPPING_INFO}, headers=bearer(token)).json()

        cancelled = client.patch(
            f"/api/orders/{order['id']}", json={"status": "CANCELLED"}, headers=bearer(token)
        )

        assert cancelled.json()["status"] == "CANCELLED"
        assert client.get(f"/api/products/{product['slug']}").json()["stock"] == 2
        deleted = client.delete(f"/api/orders/{order['id']}", headers=bearer(admin))
        assert deleted.json()["deletedId"] == order["id"]


class TestAdminRoutes:
    def test_analytics_overview(self, client, stocked):
        admin, product = stocked
        token = register(client)
        client.post("/api/cart", json={"productId": product["id"]}, headers=bearer(token))
        client.post("/api/orders", json={"shippingInfo": SHIPPING_INFO}, headers=bearer(token))

        overview = client.get("/api/admin/analytics/overview", headers=bearer(admin))
        breakdown = client.get("/api/admin/analytics/orders", headers=bearer(admin))

        assert overview.status_code == 200, overview.text
        assert overview.json()["sales"]["totalSales"] == 1299
        assert len(overview.json()["revenue"]["chartData"]) == 12
        assert overview.json()["products"]["totalProducts"] == 1
        assert breakdown.json()["totalOrders"] == 1

    def test_negative_price_is_rejected(self, client, stocked):
        admin, product = stocked

        response = client.patch(
            f"/api/admin/products/{product['id']}", json={"price": -5}, headers=bearer(admin)
        )

        assert response.status_code == 400
