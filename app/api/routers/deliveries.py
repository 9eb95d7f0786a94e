# app/api/routers/deliveries.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, require_admin
from app.data.database import get_db
from app.domain.errors import NotFoundError
from app.domain.schemas import CurrentUser, DeliveryIn, DeliveryOut, DeliveryStatusIn
from app.services.delivery_service import DeliveryService

router = APIRouter(prefix="/api", tags=["deliveries"])


def get_service(db: Session):
    return DeliveryService(db)


@router.post("/delivery/{order_id}", response_model=DeliveryOut, status_code=201)
def create_delivery(
    order_id: str,
    payload: DeliveryIn,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    svc = get_service(db)
    try:
        return svc.create_delivery(order_id, payload, user)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))


@router.get("/delivery", response_model=List[DeliveryOut])
def list_deliveries(db: Session = Depends(get_db), _: CurrentUser = Depends(require_admin)):
    return get_service(db).list_deliveries()


@router.get("/delivery/{delivery_id}", response_model=DeliveryOut)
def get_delivery(
    delivery_id: str,
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
):
    svc = get_service(db)
    try:
        return svc.get_delivery(delivery_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/delivery/{delivery_id}", response_model=DeliveryOut)
def update_delivery(
    delivery_id: str,
    payload: DeliveryIn,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    svc = get_service(db)
    try:
        return svc.update_delivery(delivery_id, payload, user)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))


@router.put("/delivery/{delivery_id}/status", response_model=DeliveryOut)
def update_delivery_status(
    delivery_id: str,
    payload: DeliveryStatusIn,
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
):
    svc = get_service(db)
    try:
        return svc.update_status(delivery_id, payload.status)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
