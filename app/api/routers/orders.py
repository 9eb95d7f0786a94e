# app/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, require_admin
from app.data.database import get_db
from app.domain.errors import NotFoundError
from app.domain.schemas import CountOut, CurrentUser, DeleteOrdersIn, MessageOut, OrderIn, OrderOut
from app.services.order_service import OrderService

router = APIRouter(prefix="/api", tags=["orders"])


def get_service(db: Session):
    return OrderService(db)


@router.post("/orders", response_model=OrderOut, status_code=201)
def create_order(
    payload: OrderIn,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """
    Creates an order with its items for the caller.
    The notification is sent asynchronously.
    """
    svc = get_service(db)
    try:
        return svc.create_order(payload, user)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/orders", response_model=List[OrderOut])
def list_orders(
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return get_service(db).list_orders(user)


@router.get("/order/status/{status}", response_model=List[OrderOut])
def get_orders_by_status(
    status: str,
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
):
    svc = get_service(db)
    try:
        return svc.get_orders_by_status(status)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


# before /orders/{order_id}, otherwise "many" is taken for an id
@router.delete("/orders/many", response_model=CountOut)
def delete_orders(
    payload: DeleteOrdersIn,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    svc = get_service(db)
    try:
        deleted = svc.delete_orders(payload.order_ids, user)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return CountOut(message=f"{deleted} orders deleted successfully", count=deleted)


@router.get("/orders/{order_id}", response_model=OrderOut)
def get_order(
    order_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    svc = get_service(db)
    try:
        return svc.get_order(order_id, user)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))


@router.put("/orders/{order_id}", response_model=OrderOut)
def update_order(
    order_id: str,
    payload: OrderIn,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    svc = get_service(db)
    try:
        return svc.update_order(order_id, payload, user)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/orders/{order_id}", response_model=MessageOut)
def delete_order(
    order_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    svc = get_service(db)
    try:
        svc.delete_order(order_id, user)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    return MessageOut(message="Order deleted successfully")
