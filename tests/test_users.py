from conftest import PASSWORD, make_order

from app.data.models.user import UserModel
from app.data.seed import seed_admin
from app.utils.security import verify_password


class TestUserAdministration:
    def test_admin_creates_user(self, client, admin_headers):
        response = client.post(
            "/api/user",
            json={
                "firstname": "Carol",
                "lastname": "Jones",
                "email": "carol@example.com",
                "password": "secret123",
                "role": "admin",
                "phoneNo": "0712345678",
            },
            headers=admin_headers,
        )
        assert response.status_code == 201
        body = response.json()
        assert body["role"] == "admin"
        assert body["phoneNo"] == "0712345678"

    def test_duplicate_email_is_conflict(self, client, admin_headers, user):
        response = client.post(
            "/api/user",
            json={"firstname": "Jane", "lastname": "Again", "email": user.email, "password": "secret123"},
            headers=admin_headers,
        )
        assert response.status_code == 409

    def test_user_cannot_create_users(self, client, user_headers):
        response = client.post(
            "/api/user",
            json={"firstname": "Carol", "lastname": "Jones", "email": "c@example.com", "password": "secret123"},
            headers=user_headers,
        )
        assert response.status_code == 403

    def test_list_users_admin_only(self, client, admin_headers, user):
        response = client.get("/api/users", headers=admin_headers)
        assert response.status_code == 200
        assert {u["email"] for u in response.json()} == {"admin@example.com", user.email}


class TestUserSelfService:
    def test_get_self(self, client, user, user_headers):
        response = client.get(f"/api/users/{user.id}", headers=user_headers)
        assert response.status_code == 200
        assert response.json()["firstname"] == "Jane"

    def test_get_other_user_forbidden(self, client, other_user, user_headers):
        response = client.get(f"/api/users/{other_user.id}", headers=user_headers)
        assert response.status_code == 403

    def test_admin_get_missing_user(self, client, admin_headers):
        response = client.get("/api/users/does-not-exist", headers=admin_headers)
        assert response.status_code == 404

    def test_update_rehashes_password(self, client, db, user, user_headers):
        response = client.put(
            f"/api/user/{user.id}",
            json={"firstname": "Janet", "lastname": "Doe", "password": "newpass123"},
            headers=user_headers,
        )
        assert response.status_code == 200
        assert response.json()["firstname"] == "Janet"

        db.expire_all()
        stored = db.get(UserModel, user.id)
        assert stored.password != "newpass123"
        assert verify_password("newpass123", stored.password)

    def test_user_cannot_promote_self(self, client, db, user, user_headers):
        response = client.put(
            f"/api/user/{user.id}",
            json={"firstname": "Jane", "lastname": "Doe", "role": "admin"},
            headers=user_headers,
        )
        assert response.status_code == 403
        db.expire_all()
        assert db.get(UserModel, user.id).role == "user"

    def test_admin_changes_role(self, client, user, admin_headers):
        response = client.put(
            f"/api/user/{user.id}",
            json={"firstname": "Jane", "lastname": "Doe", "role": "admin"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["role"] == "admin"

    def test_delete_self(self, client, db, user, user_headers):
        response = client.delete(f"/api/user/{user.id}", headers=user_headers)
        assert response.status_code == 204
        db.expire_all()
        assert db.get(UserModel, user.id) is None


class TestDashboard:
    def test_empty_totals(self, client, admin_headers):
        response = client.get("/api/admin/dashboard", headers=admin_headers)
        assert response.status_code == 200
        assert response.json() == {"totalUsers": 1, "totalOrders": 0, "totalProducts": 0, "totalSales": 0}

    def test_totals(self, client, db, admin_headers, user, product):
        make_order(db, user, product, total="50.00")
        make_order(db, user, product, total="25.50")

        body = client.get("/api/admin/dashboard", headers=admin_headers).json()
        assert body["totalUsers"] == 2
        assert body["totalOrders"] == 2
        assert body["totalProducts"] == 1
        assert body["totalSales"] == 75.5

    def test_requires_admin(self, client, user_headers):
        assert client.get("/api/admin/dashboard", headers=user_headers).status_code == 403


class TestSeedAdmin:
    def test_creates_admin_once(self, db):
        first = seed_admin("root@example.com", PASSWORD)
        second = seed_admin("root@example.com", PASSWORD)

        assert first.role == "admin"
        assert second.id == first.id
        assert db.query(UserModel).filter_by(role="admin").count() == 1

    def test_skips_without_credentials(self):
        assert seed_admin("", "") is None
