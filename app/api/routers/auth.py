# app/api/routers/auth.py
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from app.api.deps import get_blocklist, get_token
from app.data.database import get_db
from app.domain.schemas import AuthOut, LoginIn, MessageOut, RegisterIn, UserOut
from app.services.auth_service import AuthError, AuthService
from app.services.token_blocklist import TokenBlocklist
from app.utils import settings
from app.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])


def get_service(db: Session, blocklist: TokenBlocklist):
    return AuthService(db, blocklist)


@router.post("/register", response_model=UserOut, status_code=201)
def register(
    payload: RegisterIn,
    db: Session = Depends(get_db),
    blocklist: TokenBlocklist = Depends(get_blocklist),
):
    svc = get_service(db, blocklist)
    try:
        return svc.register(payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/auth/login", response_model=AuthOut)
def login(
    payload: LoginIn,
    response: Response,
    db: Session = Depends(get_db),
    blocklist: TokenBlocklist = Depends(get_blocklist),
):
    svc = get_service(db, blocklist)
    try:
        token, user = svc.login(payload.email, payload.password)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    response.set_cookie(
        key="token",
        value=token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        max_age=settings.JWT_EXPIRES_SECONDS,
    )
    response.headers["Authorization"] = f"Bearer {token}"
    return AuthOut(message="Login successful", token=token, user=UserOut.model_validate(user))


@router.post("/auth/logout", response_model=MessageOut)
def logout(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    blocklist: TokenBlocklist = Depends(get_blocklist),
):
    svc = get_service(db, blocklist)
    try:
        svc.logout(get_token(request))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AuthError as e:
        raise HTTPException(status_code=401, detail=str(e))

    response.delete_cookie("token")
    return MessageOut(message="Logged out successfully")
