# app/api/routers/products.py
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.api.deps import require_admin
from app.data.database import get_db
from app.domain.errors import ConflictError, NotFoundError
from app.domain.schemas import CurrentUser, MessageOut, ProductIn, ProductListOut, ProductOut
from app.services.product_service import NoSearchResults, ProductService

router = APIRouter(prefix="/api/products", tags=["products"])


def get_service(db: Session):
    return ProductService(db)


@router.get("", response_model=List[ProductListOut])
def list_products(db: Session = Depends(get_db)):
    return get_service(db).list_products()


# literal paths first so they are not captured by /{product_id}


@router.get("/filter", response_model=List[ProductOut])
def filter_products(
    min_price: Optional[Decimal] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[Decimal] = Query(None, alias="maxPrice", ge=0),
    category: Optional[str] = Query(None),
    stock: Optional[int] = Query(None, ge=0),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.filter_products(min_price, max_price, category, stock)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/search", response_model=List[ProductOut])
def search_products(query: str = Query(""), db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.search_products(query)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NoSearchResults as e:
        return JSONResponse(status_code=404, content={"message": str(e), "suggestions": e.suggestions})


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: str, db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.get_product(product_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: str,
    payload: ProductIn,
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
):
    svc = get_service(db)
    try:
        return svc.update_product(product_id, payload)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{product_id}", response_model=MessageOut)
def delete_product(
    product_id: str,
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
):
    svc = get_service(db)
    try:
        svc.delete_product(product_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return MessageOut(message="Product deleted successfully")
