# app/api/routers/payments.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_mpesa_client, get_stripe_client
from app.data.database import get_db
from app.domain.errors import ConflictError, InvalidSignatureError, NotFoundError, PaymentProviderError
from app.domain.schemas import CurrentUser, MessageOut, MpesaCallbackIn, PaymentIn, PaymentOut
from app.services.mpesa_client import MpesaClient
from app.services.payment_service import PaymentService, verify_mpesa_signature
from app.services.stripe_client import StripeClient
from app.utils import settings
from app.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/payments", tags=["payments"])


def get_service(db: Session, mpesa: MpesaClient, stripe_client: StripeClient):
    return PaymentService(db, mpesa, stripe_client)


async def raw_body(request: Request) -> bytes:
    return await request.body()


async def verified_mpesa_callback(
    request: Request,
    x_callback_signature: Optional[str] = Header(None),
) -> MpesaCallbackIn:
    """Checks the HMAC over the raw body before the payload is trusted."""
    body = await request.body()
    try:
        verify_mpesa_signature(body, x_callback_signature, settings.MPESA_CALLBACK_SECRET)
    except InvalidSignatureError as e:
        logger.warning(f"Rejected M-Pesa callback: {e}")
        raise HTTPException(status_code=401, detail=str(e))

    try:
        return MpesaCallbackIn.model_validate_json(body)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.errors(include_url=False, include_context=False))


@router.post("", response_model=PaymentOut, status_code=201)
def create_payment(
    payload: PaymentIn,
    response: Response,
    idempotency_key: str = Header(..., alias="Idempotency-Key", min_length=1, max_length=255),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    mpesa: MpesaClient = Depends(get_mpesa_client),
    stripe_client: StripeClient = Depends(get_stripe_client),
):
    """
    Starts a payment for an order.

    A repeated Idempotency-Key for the same order returns the stored
    payment with 200 and does not contact the provider again.
    """
    svc = get_service(db, mpesa, stripe_client)
    try:
        payment, created = svc.create_payment(payload, idempotency_key, user)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except PaymentProviderError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not created:
        response.status_code = 200
    return payment


@router.post("/mpesa-callback", response_model=MessageOut)
def mpesa_callback(
    callback: MpesaCallbackIn = Depends(verified_mpesa_callback),
    db: Session = Depends(get_db),
    mpesa: MpesaClient = Depends(get_mpesa_client),
    stripe_client: StripeClient = Depends(get_stripe_client),
):
    svc = get_service(db, mpesa, stripe_client)
    try:
        svc.handle_mpesa_callback(callback.body.stk_callback)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return MessageOut(message="Callback processed successfully")


@router.post("/stripe-webhook", response_model=MessageOut)
def stripe_webhook(
    payload: bytes = Depends(raw_body),
    stripe_signature: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    mpesa: MpesaClient = Depends(get_mpesa_client),
    stripe_client: StripeClient = Depends(get_stripe_client),
):
    try:
        event = stripe_client.construct_event(payload, stripe_signature or "")
    except InvalidSignatureError as e:
        logger.warning(f"Rejected Stripe webhook: {e}")
        raise HTTPException(status_code=401, detail=str(e))

    get_service(db, mpesa, stripe_client).handle_stripe_event(event)
    return MessageOut(message="Event received")


@router.get("", response_model=List[PaymentOut])
def list_payments(
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    mpesa: MpesaClient = Depends(get_mpesa_client),
    stripe_client: StripeClient = Depends(get_stripe_client),
):
    return get_service(db, mpesa, stripe_client).list_payments(user)


@router.get("/{payment_id}", response_model=PaymentOut)
def get_payment(
    payment_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    mpesa: MpesaClient = Depends(get_mpesa_client),
    stripe_client: StripeClient = Depends(get_stripe_client),
):
    svc = get_service(db, mpesa, stripe_client)
    try:
        return svc.get_payment(payment_id, user)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
