from conftest import make_category, make_order, make_product

from app.data.models.category import CategoryModel
from app.data.models.product import ProductModel
from app.data.models.variant import VariantModel


class TestCategoryCrud:
    def test_create(self, client, admin_headers):
        response = client.post(
            "/api/categories",
            json={"name": "Books", "description": "Paper and ink"},
            headers=admin_headers,
        )
        assert response.status_code == 201
        assert response.json()["name"] == "Books"

    def test_create_duplicate(self, client, admin_headers, category):
        response = client.post("/api/categories", json={"name": category.name}, headers=admin_headers)
        assert response.status_code == 400

    def test_create_requires_admin(self, client, user_headers):
        response = client.post("/api/categories", json={"name": "Books"}, headers=user_headers)
        assert response.status_code == 403

    def test_list_is_public(self, client, category):
        response = client.get("/api/categories")
        assert response.status_code == 200
        assert [c["name"] for c in response.json()] == ["Electronics"]

    def test_get_includes_products(self, client, category, product):
        response = client.get(f"/api/categories/{category.id}")
        assert response.status_code == 200
        assert [p["id"] for p in response.json()["products"]] == [product.id]

    def test_get_missing(self, client):
        assert client.get("/api/categories/missing").status_code == 404

    def test_update_to_existing_name(self, client, db, admin_headers, category):
        other = make_category(db, "Garden")
        response = client.put(
            f"/api/categories/{other.id}",
            json={"name": category.name},
            headers=admin_headers,
        )
        assert response.status_code == 409


class TestCategoryDelete:
    def test_requires_confirmation_when_products_exist(self, client, db, admin_headers, category):
        make_product(db, category, name="Phone")
        make_product(db, category, name="Tablet")

        response = client.delete(f"/api/categories/{category.id}", headers=admin_headers)
        assert response.status_code == 409
        body = response.json()
        assert body["requiresConfirmation"] is True
        assert body["productCount"] == 2

        db.expire_all()
        assert db.get(CategoryModel, category.id) is not None
        assert db.query(ProductModel).count() == 2

    def test_confirmed_delete_removes_products(self, client, db, admin_headers, category, product):
        db.add(VariantModel(product_id=product.id, variant_name="Color", variations=["Red"]))
        db.commit()

        response = client.delete(f"/api/categories/{category.id}?confirmed=true", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["count"] == 1

        db.expire_all()
        assert db.get(CategoryModel, category.id) is None
        assert db.query(ProductModel).count() == 0
        assert db.query(VariantModel).count() == 0

    def test_empty_category_deletes_without_confirmation(self, client, db, admin_headers, category):
        response = client.delete(f"/api/categories/{category.id}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["count"] == 0

    def test_ordered_product_blocks_delete(self, client, db, admin_headers, category, product, user):
        make_order(db, user, product)

        response = client.delete(f"/api/categories/{category.id}?confirmed=true", headers=admin_headers)
        assert response.status_code == 409

        db.expire_all()
        assert db.get(CategoryModel, category.id) is not None
        assert db.get(ProductModel, product.id) is not None

    def test_missing(self, client, admin_headers):
        assert client.delete("/api/categories/missing", headers=admin_headers).status_code == 404
