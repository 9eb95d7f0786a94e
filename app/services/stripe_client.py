# app/services/stripe_client.py
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

import stripe

from app.domain.errors import InvalidSignatureError
from app.utils import settings
from app.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class IntentResult:
    success: bool
    intent_id: str | None = None
    status: str | None = None
    error: str | None = None


def to_minor_units(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class StripeClient:
    """Thin wrapper over stripe-python's PaymentIntent API.

    Never raises for card/provider outcomes; callers get an IntentResult and
    decide what the payment row should say.
    """

    def __init__(self, api_key: str | None = None, webhook_secret: str | None = None):
        self.api_key = api_key or settings.STRIPE_SECRET_KEY
        self.webhook_secret = webhook_secret or settings.STRIPE_WEBHOOK_SECRET

    def create_payment_intent(
        self,
        amount: Decimal,
        currency: str,
        idempotency_key: str,
        metadata: dict | None = None,
    ) -> IntentResult:
        logger.info(f"Creating Stripe PaymentIntent for {amount} {currency}")
        try:
            intent = stripe.PaymentIntent.create(
                amount=to_minor_units(amount),
                currency=currency,
                metadata=metadata or {},
                payment_method_types=["card"],
                capture_method="automatic",
                api_key=self.api_key,
                idempotency_key=idempotency_key,
            )
        except stripe.StripeError as e:
            logger.warning(f"Stripe PaymentIntent creation failed: {e.user_message or e}")
            return IntentResult(success=False, error=e.user_message or str(e))

        logger.info(f"Stripe PaymentIntent {intent.id} created")
        return IntentResult(success=True, intent_id=intent.id, status=intent.status)

    def confirm_payment(self, intent_id: str, payment_method_id: str) -> IntentResult:
        logger.info(f"Confirming Stripe PaymentIntent {intent_id}")
        try:
            intent = stripe.PaymentIntent.confirm(
                intent_id,
                payment_method=payment_method_id,
                api_key=self.api_key,
            )
        except stripe.StripeError as e:
            logger.warning(f"Stripe confirmation of {intent_id} failed: {e.user_message or e}")
            return IntentResult(success=False, intent_id=intent_id, error=e.user_message or str(e))

        logger.info(f"Stripe PaymentIntent {intent_id} is {intent.status}")
        last_error = getattr(intent, "last_payment_error", None)
        error = getattr(last_error, "message", None) if last_error else None
        return IntentResult(
            success=intent.status == "succeeded",
            intent_id=intent.id,
            status=intent.status,
            error=error,
        )

    def construct_event(self, payload: bytes, signature: str):
        if not self.webhook_secret:
            logger.error("STRIPE_WEBHOOK_SECRET is not configured, rejecting webhook")
            raise InvalidSignatureError("Webhook verification is not configured")
        try:
            return stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            raise InvalidSignatureError("Invalid Stripe signature") from e
