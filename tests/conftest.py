import json
import os

# settings are read at import time, so the environment is fixed before the app loads
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["MPESA_CALLBACK_SECRET"] = "callback-secret"
os.environ["STRIPE_CURRENCY"] = "kes"

import hashlib  # noqa: E402
import hmac  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.api.deps import get_blocklist, get_mpesa_client, get_stripe_client  # noqa: E402
from app.data.database import Base, SessionLocal, engine  # noqa: E402
from app.data.models.category import CategoryModel  # noqa: E402
from app.data.models.order import OrderModel  # noqa: E402
from app.data.models.order_item import OrderItemModel  # noqa: E402
from app.data.models.product import ProductModel  # noqa: E402
from app.data.models.user import UserModel  # noqa: E402
from app.domain.errors import InvalidSignatureError, PaymentProviderError  # noqa: E402
from app.main import app  # noqa: E402
from app.services.stripe_client import IntentResult  # noqa: E402
from app.utils.security import create_access_token, hash_password  # noqa: E402

CALLBACK_SECRET = "callback-secret"
PASSWORD = "secret123"


class FakeBlocklist:
    """In-memory stand-in for the Redis revocation store."""

    def __init__(self):
        self.revoked = {}

    def revoke(self, token, ttl):
        self.revoked[token] = ttl

    def is_revoked(self, token):
        return token in self.revoked


class FakeMpesaClient:
    def __init__(self):
        self.pushes = []
        self.token_error = False
        self.response = {
            "MerchantRequestID": "29115-34620561-1",
            "CheckoutRequestID": "ws_CO_191220191020363925",
            "ResponseCode": "0",
            "ResponseDescription": "Success. Request accepted for processing",
            "CustomerMessage": "Success. Request accepted for processing",
        }

    def get_access_token(self):
        if self.token_error:
            raise PaymentProviderError("Could not authenticate with M-Pesa")
        return "fake-token"

    def stk_push(self, phone_number, amount, token, description="Payment for order"):
        self.pushes.append({"phone": phone_number, "amount": amount, "token": token})
        return dict(self.response)


class FakeStripeClient:
    def __init__(self):
        self.created = []
        self.confirmed = []
        self.create_result = IntentResult(success=True, intent_id="pi_123", status="requires_confirmation")
        self.confirm_result = IntentResult(success=True, intent_id="pi_123", status="succeeded")

    def create_payment_intent(self, amount, currency, idempotency_key, metadata=None):
        self.created.append(
            {"amount": amount, "currency": currency, "idempotency_key": idempotency_key, "metadata": metadata}
        )
        return self.create_result

    def confirm_payment(self, intent_id, payment_method_id):
        self.confirmed.append((intent_id, payment_method_id))
        return self.confirm_result

    def construct_event(self, payload, signature):
        if signature != "valid-signature":
            raise InvalidSignatureError("Invalid Stripe signature")
        return json.loads(payload)


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture()
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def blocklist():
    return FakeBlocklist()


@pytest.fixture()
def mpesa():
    return FakeMpesaClient()


@pytest.fixture()
def stripe_client():
    return FakeStripeClient()


@pytest.fixture()
def client(blocklist, mpesa, stripe_client):
    app.dependency_overrides[get_blocklist] = lambda: blocklist
    app.dependency_overrides[get_mpesa_client] = lambda: mpesa
    app.dependency_overrides[get_stripe_client] = lambda: stripe_client
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_user(db, email, role="user", firstname="Jane", lastname="Doe"):
    user = UserModel(
        firstname=firstname,
        lastname=lastname,
        email=email,
        password=hash_password(PASSWORD),
        role=role,
    )
    db.add(user)
    db.commit()
    return user


def auth_headers(user):
    token = create_access_token(
        {
            "id": user.id,
            "firstname": user.firstname,
            "lastname": user.lastname,
            "email": user.email,
            "role": user.role,
        }
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin(db):
    return make_user(db, "admin@example.com", role="admin", firstname="Admin", lastname="User")


@pytest.fixture()
def user(db):
    return make_user(db, "jane@example.com")


@pytest.fixture()
def other_user(db):
    return make_user(db, "john@example.com", firstname="John", lastname="Smith")


@pytest.fixture()
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture()
def user_headers(user):
    return auth_headers(user)


@pytest.fixture()
def other_headers(other_user):
    return auth_headers(other_user)


def make_category(db, name="Electronics"):
    category = CategoryModel(name=name, description=f"{name} category")
    db.add(category)
    db.commit()
    return category


def make_product(db, category, name="Phone", price="50.00", stock=10, description="A product"):
    product = ProductModel(
        category_id=category.id,
        name=name,
        description=description,
        current_price=Decimal(price),
        stock=stock,
        images=[],
    )
    db.add(product)
    db.commit()
    return product


def make_order(db, user, product, quantity=1, total="50.00", status="pending"):
    order = OrderModel(user_id=user.id, status=status, total_amount=Decimal(total))
    db.add(order)
    db.flush()
    db.add(OrderItemModel(order_id=order.id, product_id=product.id, quantity=quantity))
    db.commit()
    return order


@pytest.fixture()
def category(db):
    return make_category(db)


@pytest.fixture()
def product(db, category):
    return make_product(db, category)


@pytest.fixture()
def order(db, user, product):
    return make_order(db, user, product)


def sign(body: bytes, secret: str = CALLBACK_SECRET) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
