import pytest
from conftest import make_product


def _lines(cart_json):
    return {item["productId"]: item["quantity"] for item in cart_json["cartItems"]}


@pytest.fixture()
def second_product(db, category):
    return make_product(db, category, name="Charger", price="15.00")


@pytest.fixture()
def cart(client, product, user_headers):
    response = client.post(
        "/api/cart",
        json={"cartItems": [{"productId": product.id, "quantity": 1}]},
        headers=user_headers,
    )
    assert response.status_code == 201
    return response.json()


class TestCartLifecycle:
    def test_create_and_get(self, client, cart, product, user, user_headers):
        assert cart["userId"] == user.id
        assert _lines(cart) == {product.id: 1}

        response = client.get("/api/cart", headers=user_headers)
        assert response.status_code == 200
        assert _lines(response.json()) == {product.id: 1}

    def test_one_cart_per_user(self, client, cart, product, user_headers):
        response = client.post(
            "/api/cart",
            json={"cartItems": [{"productId": product.id, "quantity": 1}]},
            headers=user_headers,
        )
        assert response.status_code == 409

    def test_create_with_unknown_product(self, client, user_headers):
        response = client.post(
            "/api/cart",
            json={"cartItems": [{"productId": "missing", "quantity": 1}]},
            headers=user_headers,
        )
        assert response.status_code == 400
        assert client.get("/api/cart", headers=user_headers).status_code == 404

    def test_no_cart(self, client, user_headers):
        assert client.get("/api/cart", headers=user_headers).status_code == 404

    def test_replace(self, client, cart, second_product, user_headers):
        response = client.put(
            "/api/cart",
            json={"cartItems": [{"productId": second_product.id, "quantity": 3}]},
            headers=user_headers,
        )
        assert response.status_code == 200
        assert _lines(response.json()) == {second_product.id: 3}
        assert _lines(client.get("/api/cart", headers=user_headers).json()) == {second_product.id: 3}

    def test_replace_with_unknown_product_keeps_cart(self, client, cart, product, user_headers):
        response = client.put(
            "/api/cart",
            json={"cartItems": [{"productId": "missing", "quantity": 3}]},
            headers=user_headers,
        )
        assert response.status_code == 400
        assert _lines(client.get("/api/cart", headers=user_headers).json()) == {product.id: 1}

    def test_delete(self, client, cart, user_headers):
        assert client.delete("/api/cart", headers=user_headers).status_code == 200
        assert client.get("/api/cart", headers=user_headers).status_code == 404

    def test_carts_are_per_user(self, client, cart, other_headers):
        assert client.get("/api/cart", headers=other_headers).status_code == 404


class TestCartItems:
    def test_add_existing_product_increments(self, client, cart, product, user_headers):
        response = client.post(
            "/api/cart/add",
            json={"productId": product.id, "quantity": 2},
            headers=user_headers,
        )
        assert response.status_code == 200
        assert _lines(response.json()) == {product.id: 3}

    def test_add_new_product(self, client, cart, product, second_product, user_headers):
        response = client.post(
            "/api/cart/add",
            json={"productId": second_product.id, "quantity": 1},
            headers=user_headers,
        )
        assert _lines(response.json()) == {product.id: 1, second_product.id: 1}
        assert _lines(client.get("/api/cart", headers=user_headers).json()) == {product.id: 1, second_product.id: 1}

    def test_add_unknown_product(self, client, cart, user_headers):
        response = client.post("/api/cart/add", json={"productId": "missing", "quantity": 1}, headers=user_headers)
        assert response.status_code == 400

    def test_add_without_cart(self, client, product, user_headers):
        response = client.post("/api/cart/add", json={"productId": product.id, "quantity": 1}, headers=user_headers)
        assert response.status_code == 404

    def test_add_zero_quantity(self, client, cart, product, user_headers):
        response = client.post("/api/cart/add", json={"productId": product.id, "quantity": 0}, headers=user_headers)
        assert response.status_code == 400

    def test_remove(self, client, cart, product, user_headers):
        response = client.post("/api/cart/delete", json={"productId": product.id}, headers=user_headers)
        assert response.status_code == 200
        assert _lines(response.json()) == {}

    def test_remove_missing_line(self, client, cart, second_product, user_headers):
        response = client.post("/api/cart/delete", json={"productId": second_product.id}, headers=user_headers)
        assert response.status_code == 404

    def test_increment(self, client, cart, product, user_headers):
        response = client.put(f"/api/cart/quantity/increment/{product.id}", headers=user_headers)
        assert response.status_code == 200
        assert _lines(response.json()) == {product.id: 2}

    def test_decrement(self, client, cart, product, user_headers):
        client.put(f"/api/cart/quantity/increment/{product.id}", headers=user_headers)
        response = client.put(f"/api/cart/quantity/decrement/{product.id}", headers=user_headers)
        assert _lines(response.json()) == {product.id: 1}

    def test_decrement_from_one_removes_line(self, client, cart, product, user_headers):
        response = client.put(f"/api/cart/quantity/decrement/{product.id}", headers=user_headers)
        assert response.status_code == 200
        assert _lines(response.json()) == {}
        assert client.get("/api/cart", headers=user_headers).json()["cartItems"] == []

    def test_change_quantity_of_missing_line(self, client, cart, second_product, user_headers):
        assert client.put(f"/api/cart/quantity/increment/{second_product.id}", headers=user_headers).status_code == 404
        assert client.put(f"/api/cart/quantity/decrement/{second_product.id}", headers=user_headers).status_code == 404
