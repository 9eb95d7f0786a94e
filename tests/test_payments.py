"""Payment creation, idempotency and provider callbacks."""

import json

import pytest
from conftest import make_order, sign

from app.data.models.payment import PaymentModel
from app.services.stripe_client import IntentResult
from app.utils import settings

CHECKOUT_ID = "ws_CO_191220191020363925"


def _pay(client, headers, order_id, key="key-1", **overrides):
    payload = {"orderId": order_id, "paymentMethod": "mpesa", "amount": 50, "phoneNo": "0712345678"}
    payload.update(overrides)
    return client.post("/api/payments", json=payload, headers={**headers, "Idempotency-Key": key})


def _card(client, headers, order_id, key="card-1", **overrides):
    overrides.setdefault("paymentMethodId", "pm_card_visa")
    return _pay(client, headers, order_id, key, paymentMethod="credit_card", phoneNo=None, **overrides)


def _callback(
    client,
    result_code=0,
    result_desc="The service request is processed successfully.",
    checkout_id=CHECKOUT_ID,
    signature=None,
):
    body = json.dumps(
        {
            "Body": {
                "stkCallback": {
                    "MerchantRequestID": "29115-34620561-1",
                    "CheckoutRequestID": checkout_id,
                    "ResultCode": result_code,
                    "ResultDesc": result_desc,
                }
            }
        }
    ).encode("utf-8")
    headers = {"Content-Type": "application/json"}
    headers["X-Callback-Signature"] = sign(body) if signature is None else signature
    return client.post("/api/payments/mpesa-callback", content=body, headers=headers)


def _stored(db, payment_id):
    db.expire_all()
    return db.get(PaymentModel, payment_id)


class TestMpesaPayment:
    def test_stk_push_creates_pending_payment(self, client, mpesa, order, user_headers):
        response = _pay(client, user_headers, order.id, phoneNo="+254712345678")
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "pending"
        assert body["paymentMethod"] == "mpesa"
        assert body["providerTransactionId"] == CHECKOUT_ID
        assert body["amount"] == 50

        [push] = mpesa.pushes
        assert push["phone"] == "254712345678"
        assert push["token"] == "fake-token"

    def test_phone_required(self, client, db, order, user_headers):
        response = _pay(client, user_headers, order.id, phoneNo=None)
        assert response.status_code == 400
        assert db.query(PaymentModel).count() == 0

    def test_invalid_phone_format(self, client, order, user_headers):
        assert _pay(client, user_headers, order.id, phoneNo="12345").status_code == 400

    def test_amount_wider_than_column(self, client, mpesa, order, user_headers):
        assert _pay(client, user_headers, order.id, amount=12345678901).status_code == 400
        assert mpesa.pushes == []

    def test_provider_rejection(self, client, db, mpesa, order, user_headers):
        mpesa.response = {"ResponseCode": "1", "ResponseDescription": "Invalid PhoneNumber"}

        response = _pay(client, user_headers, order.id)
        assert response.status_code == 502
        assert response.json()["detail"] == "Invalid PhoneNumber"
        assert db.query(PaymentModel).count() == 0

    def test_token_failure(self, client, db, mpesa, order, user_headers):
        mpesa.token_error = True
        assert _pay(client, user_headers, order.id).status_code == 502
        assert mpesa.pushes == []
        assert db.query(PaymentModel).count() == 0


class TestIdempotency:
    def test_key_is_required(self, client, order, user_headers):
        response = client.post(
            "/api/payments",
            json={"orderId": order.id, "paymentMethod": "mpesa", "amount": 50, "phoneNo": "0712345678"},
            headers=user_headers,
        )
        assert response.status_code == 400

    def test_replay_returns_same_payment(self, client, db, mpesa, order, user_headers):
        first = _pay(client, user_headers, order.id)
        second = _pay(client, user_headers, order.id)

        assert first.status_code == 201
        assert second.status_code == 200
        assert second.json()["id"] == first.json()["id"]
        assert len(mpesa.pushes) == 1
        assert db.query(PaymentModel).count() == 1

    def test_key_reused_for_other_order(self, client, db, user, product, order, user_headers):
        other_order = make_order(db, user, product)
        _pay(client, user_headers, order.id)

        response = _pay(client, user_headers, other_order.id)
        assert response.status_code == 409

    def test_card_replay_does_not_charge_twice(self, client, stripe_client, order, user_headers):
        _card(client, user_headers, order.id)
        response = _card(client, user_headers, order.id)
        assert response.status_code == 200
        assert len(stripe_client.created) == 1
        assert len(stripe_client.confirmed) == 1


class TestPaymentAccess:
    def test_missing_order(self, client, user_headers):
        assert _pay(client, user_headers, "missing").status_code == 404

    def test_other_users_order(self, client, order, other_headers):
        assert _pay(client, other_headers, order.id).status_code == 403

    def test_list_and_get(self, client, order, user_headers, other_headers, admin_headers):
        payment_id = _pay(client, user_headers, order.id).json()["id"]

        assert [p["id"] for p in client.get("/api/payments", headers=user_headers).json()] == [payment_id]
        assert client.get("/api/payments", headers=other_headers).json() == []
        assert len(client.get("/api/payments", headers=admin_headers).json()) == 1

        assert client.get(f"/api/payments/{payment_id}", headers=user_headers).status_code == 200
        assert client.get(f"/api/payments/{payment_id}", headers=other_headers).status_code == 403
        assert client.get("/api/payments/missing", headers=admin_headers).status_code == 404


class TestCardPayment:
    def test_confirmed_payment_completes(self, client, stripe_client, order, user_headers):
        response = _card(client, user_headers, order.id, amount=19.99)
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "completed"
        assert body["providerTransactionId"] == "pi_123"

        [created] = stripe_client.created
        assert created["currency"] == "kes"
        assert created["idempotency_key"] == "card-1"
        assert created["metadata"] == {"order_id": order.id}
        assert stripe_client.confirmed == [("pi_123", "pm_card_visa")]

    def test_processing_stays_pending(self, client, stripe_client, order, user_headers):
        stripe_client.confirm_result = IntentResult(success=False, intent_id="pi_123", status="processing")
        assert _card(client, user_headers, order.id).json()["status"] == "pending"

    def test_declined_card_fails_with_reason(self, client, stripe_client, order, user_headers):
        stripe_client.confirm_result = IntentResult(
            success=False,
            intent_id="pi_123",
            status="requires_payment_method",
            error="Your card was declined.",
        )
        body = _card(client, user_headers, order.id).json()
        assert body["status"] == "failed"
        assert body["failureReason"] == "Your card was declined."

    def test_intent_creation_failure_stores_nothing(self, client, db, stripe_client, order, user_headers):
        stripe_client.create_result = IntentResult(success=False, error="Invalid API Key provided")

        response = _card(client, user_headers, order.id)
        assert response.status_code == 502
        assert db.query(PaymentModel).count() == 0
        assert stripe_client.confirmed == []

    def test_payment_method_required(self, client, order, user_headers):
        response = _pay(client, user_headers, order.id, paymentMethod="credit_card", phoneNo=None)
        assert response.status_code == 400


class TestMpesaCallback:
    @pytest.fixture()
    def payment_id(self, client, order, user_headers):
        return _pay(client, user_headers, order.id).json()["id"]

    def test_success(self, client, db, payment_id):
        response = _callback(client, result_code=0)
        assert response.status_code == 200
        assert _stored(db, payment_id).status == "successful"

    def test_failure_records_reason(self, client, db, payment_id):
        response = _callback(client, result_code=1032, result_desc="Request cancelled by user")
        assert response.status_code == 200
        stored = _stored(db, payment_id)
        assert stored.status == "failed"
        assert stored.failure_reason == "Request cancelled by user"

    def test_forged_signature(self, client, db, payment_id):
        response = _callback(client, result_code=0, signature="0" * 64)
        assert response.status_code == 401
        assert _stored(db, payment_id).status == "pending"

    def test_missing_signature(self, client, db, payment_id):
        body = json.dumps({"Body": {"stkCallback": {"CheckoutRequestID": CHECKOUT_ID, "ResultCode": 0}}})
        response = client.post(
            "/api/payments/mpesa-callback",
            content=body,
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 401
        assert _stored(db, payment_id).status == "pending"

    def test_unconfigured_secret_rejects(self, client, db, monkeypatch, payment_id):
        monkeypatch.setattr(settings, "MPESA_CALLBACK_SECRET", "")
        assert _callback(client, result_code=0).status_code == 401
        assert _stored(db, payment_id).status == "pending"

    def test_terminal_payment_unchanged(self, client, db, payment_id):
        _callback(client, result_code=0)
        response = _callback(client, result_code=1, result_desc="Insufficient funds")
        assert response.status_code == 200
        assert _stored(db, payment_id).status == "successful"

    def test_unknown_checkout(self, client, payment_id):
        assert _callback(client, checkout_id="ws_CO_unknown").status_code == 404

    def test_malformed_payload(self, client, payment_id):
        body = b'{"Body": {}}'
        response = client.post(
            "/api/payments/mpesa-callback",
            content=body,
            headers={"Content-Type": "application/json", "X-Callback-Signature": sign(body)},
        )
        assert response.status_code == 400


class TestStripeWebhook:
    @pytest.fixture()
    def pending_card_payment(self, client, stripe_client, order, user_headers):
        stripe_client.confirm_result = IntentResult(success=False, intent_id="pi_123", status="processing")
        return _card(client, user_headers, order.id).json()["id"]

    def _event(self, client, event_type, intent, signature="valid-signature"):
        return client.post(
            "/api/payments/stripe-webhook",
            content=json.dumps({"type": event_type, "data": {"object": intent}}),
            headers={"Stripe-Signature": signature, "Content-Type": "application/json"},
        )

    def test_succeeded(self, client, db, pending_card_payment):
        response = self._event(client, "payment_intent.succeeded", {"id": "pi_123"})
        assert response.status_code == 200
        assert _stored(db, pending_card_payment).status == "completed"

    def test_payment_failed(self, client, db, pending_card_payment):
        intent = {"id": "pi_123", "last_payment_error": {"message": "Insufficient funds"}}
        self._event(client, "payment_intent.payment_failed", intent)
        stored = _stored(db, pending_card_payment)
        assert stored.status == "failed"
        assert stored.failure_reason == "Insufficient funds"

    def test_bad_signature(self, client, db, pending_card_payment):
        response = self._event(client, "payment_intent.succeeded", {"id": "pi_123"}, signature="forged")
        assert response.status_code == 401
        assert _stored(db, pending_card_payment).status == "pending"

    def test_other_events_acknowledged(self, client, db, pending_card_payment):
        response = self._event(client, "charge.refunded", {"id": "ch_1"})
        assert response.status_code == 200
        assert _stored(db, pending_card_payment).status == "pending"
