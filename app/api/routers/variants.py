# app/api/routers/variants.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, require_admin
from app.data.database import get_db
from app.domain.errors import NotFoundError
from app.domain.schemas import CurrentUser, MessageOut, VariantIn, VariantOut
from app.services.product_service import ProductService

router = APIRouter(prefix="/api/variant", tags=["variants"])


def get_service(db: Session):
    return ProductService(db)


@router.post("/{product_id}", response_model=VariantOut, status_code=201)
def create_variant(
    product_id: str,
    payload: VariantIn,
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
):
    svc = get_service(db)
    try:
        return svc.create_variant(product_id, payload)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("", response_model=List[VariantOut])
def list_variants(db: Session = Depends(get_db), _: CurrentUser = Depends(get_current_user)):
    return get_service(db).list_variants()


@router.get("/{variant_id}", response_model=VariantOut)
def get_variant(
    variant_id: str,
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(get_current_user),
):
    svc = get_service(db)
    try:
        return svc.get_variant(variant_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/{variant_id}", response_model=VariantOut)
def update_variant(
    variant_id: str,
    payload: VariantIn,
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
):
    svc = get_service(db)
    try:
        return svc.update_variant(variant_id, payload)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{variant_id}", response_model=MessageOut)
def delete_variant(
    variant_id: str,
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
):
    svc = get_service(db)
    try:
        svc.delete_variant(variant_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return MessageOut(message="Variant deleted successfully")
