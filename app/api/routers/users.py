# app/api/routers/users.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, require_admin
from app.data.database import get_db
from app.domain.errors import ConflictError, NotFoundError
from app.domain.schemas import CurrentUser, DashboardOut, UserCreate, UserOut, UserUpdate
from app.services.user_service import UserService

router = APIRouter(prefix="/api", tags=["users"])


def get_service(db: Session):
    return UserService(db)


@router.post("/user", response_model=UserOut, status_code=201)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
):
    service = get_service(db)
    try:
        return service.create_user(payload)
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/users", response_model=List[UserOut])
def list_users(db: Session = Depends(get_db), _: CurrentUser = Depends(require_admin)):
    return get_service(db).list_users()


@router.get("/users/{user_id}", response_model=UserOut)
def get_user(
    user_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    service = get_service(db)
    try:
        return service.get_user(user_id, user)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))


@router.put("/user/{user_id}", response_model=UserOut)
def update_user(
    user_id: str,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    service = get_service(db)
    try:
        return service.update_user(user_id, payload, user)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))


@router.delete("/user/{user_id}", status_code=204)
def delete_user(
    user_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    service = get_service(db)
    try:
        service.delete_user(user_id, user)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    return Response(status_code=204)


@router.get("/admin/dashboard", response_model=DashboardOut)
def dashboard(db: Session = Depends(get_db), _: CurrentUser = Depends(require_admin)):
    return get_service(db).dashboard()
