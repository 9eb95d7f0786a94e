# app/api/deps.py
from functools import lru_cache

from fastapi import Depends, HTTPException, Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.data.database import get_db
from app.domain.schemas import CurrentUser
from app.services.auth_service import AuthError, AuthService
from app.services.mpesa_client import MpesaClient
from app.services.stripe_client import StripeClient
from app.services.token_blocklist import TokenBlocklist
from app.utils.logging import add_context, get_logger

logger = get_logger(__name__)


@lru_cache
def get_blocklist() -> TokenBlocklist:
    return TokenBlocklist()


@lru_cache
def get_mpesa_client() -> MpesaClient:
    return MpesaClient()


@lru_cache
def get_stripe_client() -> StripeClient:
    return StripeClient()


def get_token(request: Request) -> str | None:
    """Access token from the `token` cookie, else from `Authorization: Bearer`."""
    token = request.cookies.get("token")
    if token:
        return token
    auth = request.headers.get("Authorization", "")
    scheme, _, credentials = auth.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    blocklist: TokenBlocklist = Depends(get_blocklist),
) -> CurrentUser:
    try:
        user = AuthService(db, blocklist).authenticate(get_token(request))
    except AuthError as e:
        raise HTTPException(status_code=401, detail=str(e))
    add_context(user_id=user.id)
    return user


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        logger.warning(f"User {user.id} denied admin access")
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


def integrity_error(e: IntegrityError) -> HTTPException:
    """Unique violations -> 409, everything else (foreign keys, not null) -> 400."""
    message = str(e.orig).lower()
    if "unique" in message or "duplicate" in message:
        return HTTPException(status_code=409, detail="Resource already exists")
    return HTTPException(status_code=400, detail="Referenced resource does not exist")
