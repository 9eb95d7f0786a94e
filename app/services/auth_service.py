# app/services/auth_service.py
import jwt
from sqlalchemy.orm import Session

from app.data.models.user import UserModel
from app.domain.schemas import CurrentUser, RegisterIn
from app.repos.user_repo import UserRepo
from app.services.token_blocklist import TokenBlocklist
from app.utils.logging import get_logger
from app.utils.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    seconds_until_expiry,
    verify_password,
)

logger = get_logger(__name__)


class AuthError(Exception):
    """Token missing, invalid, expired or revoked (401)."""


class AuthService:
    def __init__(self, db: Session, blocklist: TokenBlocklist):
        self.repo = UserRepo(db)
        self.blocklist = blocklist

    def register(self, payload: RegisterIn) -> UserModel:
        if self.repo.get_by_email(payload.email):
            logger.info(f"Registration refused, email in use: {payload.email}")
            raise ValueError("Email address in use.")

        user = UserModel(
            firstname=payload.firstname,
            lastname=payload.lastname,
            email=payload.email.lower(),
            password=hash_password(payload.password),
            role="user",
        )
        self.repo.add(user)
        self.repo.commit()
        logger.info(f"Registered user {user.id}")
        return user

    def login(self, email: str, password: str) -> tuple[str, UserModel]:
        user = self.repo.get_by_email(email)
        if not user:
            logger.info(f"Invalid login attempt for email: {email}")
            raise ValueError("Invalid email address")

        if not verify_password(password, user.password):
            logger.info(f"Invalid password attempt for email: {email}")
            raise ValueError("Invalid password")

        token = create_access_token(
            {
                "id": user.id,
                "firstname": user.firstname,
                "lastname": user.lastname,
                "email": user.email,
                "role": user.role,
            }
        )
        logger.info(f"User {user.id} logged in")
        return token, user

    def authenticate(self, token: str | None) -> CurrentUser:
        if not token:
            raise AuthError("No token provided")

        if self.blocklist.is_revoked(token):
            raise AuthError("Token has been revoked")

        try:
            claims = decode_access_token(token)
        except jwt.ExpiredSignatureError as e:
            raise AuthError("Token expired") from e
        except jwt.InvalidTokenError as e:
            raise AuthError("Invalid token") from e

        try:
            current = CurrentUser(**claims)
        except ValueError as e:
            raise AuthError("Invalid token claims") from e

        # tokens outlive deleted accounts and role changes; the row wins
        user = self.repo.get_user(current.id)
        if not user:
            logger.warning(f"Token presented for deleted user {current.id}")
            raise AuthError("User no longer exists")
        return CurrentUser(
            id=user.id,
            email=user.email,
            role=user.role,
            firstname=user.firstname,
            lastname=user.lastname,
        )

    def logout(self, token: str | None) -> None:
        if not token:
            raise ValueError("Token is missing")

        if self.blocklist.is_revoked(token):
            raise AuthError("Token has been revoked")

        try:
            claims = decode_access_token(token)
            ttl = seconds_until_expiry(claims)
        except jwt.ExpiredSignatureError:
            # already unusable, nothing to remember
            logger.info("Logout with an expired token")
            return
        except jwt.InvalidTokenError as e:
            raise AuthError("Invalid token") from e

        self.blocklist.revoke(token, ttl)
        logger.info(f"User {claims.get('id')} logged out")
