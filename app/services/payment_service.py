import hashlib
import hmac
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.data.models.order import OrderModel
from app.data.models.payment import PaymentModel
from app.domain.errors import ConflictError, InvalidSignatureError, NotFoundError, PaymentProviderError
from app.domain.schemas import CurrentUser, PaymentIn, StkCallback
from app.repos.order_repo import OrderRepo
from app.repos.payment_repo import PaymentRepo
from app.services.mpesa_client import MpesaClient, normalize_phone
from app.services.stripe_client import StripeClient
from app.utils import settings
from app.utils.logging import get_logger

logger = get_logger(__name__)

# intent states that are neither paid nor lost; the webhook settles them later
STRIPE_PENDING_STATES = ("processing", "requires_action", "requires_capture")


def verify_mpesa_signature(raw_body: bytes, signature: str | None, secret: str | None) -> None:
    """Raise InvalidSignatureError unless `signature` is the hex HMAC-SHA256 of the body."""
    if not secret:
        logger.error("MPESA_CALLBACK_SECRET is not configured, rejecting callback")
        raise InvalidSignatureError("Callback verification is not configured")
    if not signature:
        raise InvalidSignatureError("Missing callback signature")

    expected = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()
    if not hmac.compare_digest(expected, signature.strip().lower()):
        raise InvalidSignatureError("Invalid callback signature")


def _field(obj: Any, name: str) -> Any:
    try:
        return obj[name]
    except (KeyError, TypeError):
        return None


class PaymentService:
    """
    Payment creation against M-Pesa (STK push) and Stripe (PaymentIntent),
    plus reconciliation from provider callbacks.

    pending -> successful | completed | failed; terminal rows never change.
    """

    def __init__(self, db: Session, mpesa: MpesaClient, stripe_client: StripeClient):
        self.repo = PaymentRepo(db)
        self.orders = OrderRepo(db)
        self.mpesa = mpesa
        self.stripe = stripe_client

    # query

    def list_payments(self, actor: CurrentUser) -> list[PaymentModel]:
        payments = self.repo.list_payments(None if actor.is_admin else actor.id)
        logger.info(f"Fetched {len(payments)} payments for user ID: {actor.id}")
        return payments

    def get_payment(self, payment_id: str, actor: CurrentUser) -> PaymentModel:
        payment = self.repo.get_payment(payment_id)
        if not payment:
            raise NotFoundError("Payment not found")
        if not actor.is_admin and payment.order.user_id != actor.id:
            raise PermissionError("Not allowed to access this payment")
        return payment

    # commands

    def _replayed(self, idempotency_key: str, order_id: str) -> PaymentModel | None:
        existing = self.repo.get_by_idempotency_key(idempotency_key)
        if existing is None:
            return None
        if existing.order_id != order_id:
            logger.warning(f"Idempotency key reused for order {order_id}, owned by order {existing.order_id}")
            raise ConflictError("Idempotency-Key already used for a different order")
        logger.info(f"Replayed idempotency key, returning payment {existing.id}")
        return existing

    def _save(self, payment: PaymentModel) -> PaymentModel:
        try:
            self.repo.add(payment)
            self.repo.commit()
        except IntegrityError:
            # concurrent request with the same key won the insert
            self.repo.rollback()
            existing = self._replayed(payment.idempotency_key, payment.order_id)
            if existing is None:
                raise
            return existing
        return payment

    def create_payment(
        self,
        payload: PaymentIn,
        idempotency_key: str,
        actor: CurrentUser,
    ) -> tuple[PaymentModel, bool]:
        """Returns (payment, created). created is False for a replayed key."""
        logger.info(f"Processing {payload.payment_method} payment for order {payload.order_id}")

        order = self.orders.get_order(payload.order_id)
        if not order:
            raise NotFoundError("Order not found")
        if order.user_id != actor.id and not actor.is_admin:
            raise PermissionError("Not allowed to pay for this order")

        existing = self._replayed(idempotency_key, order.id)
        if existing is not None:
            return existing, False

        if payload.payment_method == "mpesa":
            payment = self._pay_with_mpesa(order, payload, idempotency_key)
        else:
            payment = self._pay_with_card(order, payload, idempotency_key)
        return payment, True

    def _pay_with_mpesa(self, order: OrderModel, payload: PaymentIn, idempotency_key: str) -> PaymentModel:
        if not payload.phone_no:
            raise ValueError("Phone number is required for M-Pesa payments")

        phone_number = normalize_phone(payload.phone_no)
        token = self.mpesa.get_access_token()
        response = self.mpesa.stk_push(phone_number, payload.amount, token, "Payment for order")

        if str(response.get("ResponseCode")) != "0":
            reason = response.get("ResponseDescription") or "STK push rejected"
            logger.warning(f"M-Pesa STK push rejected for order {order.id}: {reason}")
            raise PaymentProviderError(reason)

        payment = self._save(
            PaymentModel(
                order_id=order.id,
                payment_method="mpesa",
                amount=payload.amount,
                status="pending",
                provider_transaction_id=response.get("CheckoutRequestID"),
                idempotency_key=idempotency_key,
            )
        )
        logger.info(f"M-Pesa payment {payment.id} pending, checkout {payment.provider_transaction_id}")
        return payment

    def _pay_with_card(self, order: OrderModel, payload: PaymentIn, idempotency_key: str) -> PaymentModel:
        if not payload.payment_method_id:
            raise ValueError("paymentMethodId is required for card payments")

        intent = self.stripe.create_payment_intent(
            payload.amount,
            settings.STRIPE_CURRENCY,
            idempotency_key,
            metadata={"order_id": order.id},
        )
        if not intent.success:
            raise PaymentProviderError(intent.error or "Could not create payment intent")

        payment = self._save(
            PaymentModel(
                order_id=order.id,
                payment_method="credit_card",
                amount=payload.amount,
                status="pending",
                provider_transaction_id=intent.intent_id,
                idempotency_key=idempotency_key,
            )
        )
        if payment.is_terminal or payment.provider_transaction_id != intent.intent_id:
            return payment

        result = self.stripe.confirm_payment(intent.intent_id, payload.payment_method_id)
        if result.success:
            payment.status = "completed"
        elif result.error is None and result.status in STRIPE_PENDING_STATES:
            logger.info(f"Payment {payment.id} is {result.status}, waiting for webhook")
        else:
            payment.status = "failed"
            payment.failure_reason = result.error or f"Payment intent {result.status}"
        self.repo.commit()

        logger.info(f"Card payment {payment.id} is {payment.status}")
        return payment

    def handle_mpesa_callback(self, callback: StkCallback) -> PaymentModel:
        checkout_id = callback.checkout_request_id
        logger.info(f"M-Pesa callback for checkout {checkout_id}, result {callback.result_code}")

        payment = self.repo.get_by_provider_transaction_id(checkout_id)
        if not payment:
            raise NotFoundError("Payment not found")

        if payment.is_terminal:
            logger.info(f"Payment {payment.id} already {payment.status}, callback ignored")
            return payment

        if callback.result_code == 0:
            payment.status = "successful"
        else:
            payment.status = "failed"
            payment.failure_reason = callback.result_desc
        self.repo.commit()

        logger.info(f"Payment {payment.id} is {payment.status}")
        return payment

    def handle_stripe_event(self, event: Any) -> PaymentModel | None:
        event_type = _field(event, "type")
        if event_type not in ("payment_intent.succeeded", "payment_intent.payment_failed"):
            logger.info(f"Ignoring Stripe event {event_type}")
            return None

        intent = _field(_field(event, "data"), "object")
        intent_id = _field(intent, "id")
        payment = self.repo.get_by_provider_transaction_id(intent_id) if intent_id else None
        if not payment:
            logger.warning(f"Stripe event {event_type} for unknown intent {intent_id}")
            return None

        if payment.is_terminal:
            logger.info(f"Payment {payment.id} already {payment.status}, event ignored")
            return payment

        if event_type == "payment_intent.succeeded":
            payment.status = "completed"
        else:
            last_error = _field(intent, "last_payment_error")
            payment.status = "failed"
            payment.failure_reason = _field(last_error, "message") or "Payment failed"
        self.repo.commit()

        logger.info(f"Payment {payment.id} is {payment.status} after {event_type}")
        return payment
