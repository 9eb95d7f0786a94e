# app/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.data.database import get_db
from app.domain.errors import ConflictError, NotFoundError
from app.domain.schemas import (
    CartAddIn,
    CartIn,
    CartOut,
    CartRemoveIn,
    CurrentUser,
    MessageOut,
)
from app.services.cart_service import CartService

router = APIRouter(prefix="/api/cart", tags=["carts"])


def get_service(db: Session):
    return CartService(db)


@router.post("", response_model=CartOut, status_code=201)
def create_cart(
    payload: CartIn,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    svc = get_service(db)
    try:
        return svc.create_cart(user.id, payload.cart_items)
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("", response_model=CartOut)
def get_cart(
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    svc = get_service(db)
    try:
        return svc.get_cart(user.id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("", response_model=CartOut)
def replace_cart(
    payload: CartIn,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    svc = get_service(db)
    try:
        return svc.replace_cart(user.id, payload.cart_items)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("", response_model=MessageOut)
def delete_cart(
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    svc = get_service(db)
    try:
        svc.delete_cart(user.id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return MessageOut(message="Cart deleted successfully")


@router.post("/add", response_model=CartOut)
def add_item(
    payload: CartAddIn,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    svc = get_service(db)
    try:
        return svc.add_product(user.id, payload.product_id, payload.quantity)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/delete", response_model=CartOut)
def remove_item(
    payload: CartRemoveIn,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    svc = get_service(db)
    try:
        return svc.remove_product(user.id, payload.product_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/quantity/increment/{product_id}", response_model=CartOut)
def increment_quantity(
    product_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    svc = get_service(db)
    try:
        return svc.increment(user.id, product_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/quantity/decrement/{product_id}", response_model=CartOut)
def decrement_quantity(
    product_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """Quantity 1 -> 0 removes the line from the cart."""
    svc = get_service(db)
    try:
        return svc.decrement(user.id, product_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
