# app/api/routers/categories.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.api.deps import require_admin
from app.data.database import get_db
from app.domain.errors import ConfirmationRequired, ConflictError, NotFoundError
from app.domain.schemas import (
    CategoryDetailOut,
    CategoryIn,
    CategoryOut,
    CountOut,
    CurrentUser,
    ProductIn,
    ProductOut,
)
from app.services.category_service import CategoryService
from app.services.product_service import ProductService

router = APIRouter(prefix="/api/categories", tags=["categories"])


def get_service(db: Session):
    return CategoryService(db)


@router.post("", response_model=CategoryOut, status_code=201)
def create_category(
    payload: CategoryIn,
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
):
    svc = get_service(db)
    try:
        return svc.create_category(payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("", response_model=List[CategoryOut])
def list_categories(db: Session = Depends(get_db)):
    return get_service(db).list_categories()


@router.get("/{category_id}", response_model=CategoryDetailOut)
def get_category(category_id: str, db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.get_category(category_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/{category_id}", response_model=CategoryOut)
def update_category(
    category_id: str,
    payload: CategoryIn,
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
):
    svc = get_service(db)
    try:
        return svc.update_category(category_id, payload)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.delete("/{category_id}", response_model=CountOut)
def delete_category(
    category_id: str,
    confirmed: bool = Query(False),
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
):
    """
    Deleting a category that still has products needs ?confirmed=true;
    without it the response is 409 with the product count.
    """
    svc = get_service(db)
    try:
        count = svc.delete_category(category_id, confirmed)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConfirmationRequired as e:
        return JSONResponse(
            status_code=409,
            content={
                "message": str(e),
                "requiresConfirmation": True,
                "productCount": e.product_count,
            },
        )
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return CountOut(message="Category and related products deleted successfully", count=count)


@router.post("/{category_id}/product", response_model=ProductOut, status_code=201)
def create_product(
    category_id: str,
    payload: ProductIn,
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
):
    svc = ProductService(db)
    try:
        return svc.create_product(category_id, payload)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{category_id}/products", response_model=CountOut, status_code=201)
def create_products(
    category_id: str,
    payload: List[ProductIn],
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
):
    svc = ProductService(db)
    try:
        count = svc.create_products(category_id, payload)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return CountOut(message="Products created successfully", count=count)
