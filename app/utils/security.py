# app/utils/security.py
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from app.utils import settings
from app.utils.logging import get_logger

logger = get_logger(__name__)

if not settings.JWT_SECRET:
    logger.warning("JWT_SECRET is not set, using the development secret")


def _secret() -> str:
    return settings.JWT_SECRET or settings.JWT_SECRET_FALLBACK


def hash_password(password: str) -> str:
    # bcrypt only looks at the first 72 bytes
    hashed = bcrypt.hashpw(password.encode("utf-8")[:72], bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8")[:72], hashed.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(claims: dict, expires_in: int | None = None) -> str:
    exp = datetime.now(timezone.utc) + timedelta(seconds=expires_in or settings.JWT_EXPIRES_SECONDS)
    return jwt.encode({**claims, "exp": exp}, _secret(), algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Raises jwt.InvalidTokenError (incl. ExpiredSignatureError)."""
    return jwt.decode(token, _secret(), algorithms=[settings.JWT_ALGORITHM])


def seconds_until_expiry(claims: dict) -> int:
    exp = claims.get("exp")
    if exp is None:
        return settings.JWT_EXPIRES_SECONDS
    remaining = int(exp - datetime.now(timezone.utc).timestamp())
    return max(remaining, 1)
