# app/api/routers/reviews.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.data.database import get_db
from app.domain.errors import ConflictError, NotFoundError
from app.domain.schemas import CurrentUser, MessageOut, ReviewIn, ReviewOut
from app.services.review_service import ReviewService

router = APIRouter(prefix="/api", tags=["reviews"])


def get_service(db: Session):
    return ReviewService(db)


@router.post("/review/{product_id}", response_model=ReviewOut, status_code=201)
def create_review(
    product_id: str,
    payload: ReviewIn,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    svc = get_service(db)
    try:
        return svc.create_review(product_id, payload, user)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/reviews", response_model=List[ReviewOut])
def list_reviews(db: Session = Depends(get_db), _: CurrentUser = Depends(get_current_user)):
    return get_service(db).list_reviews()


@router.get("/review/{review_id}", response_model=ReviewOut)
def get_review(
    review_id: str,
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(get_current_user),
):
    svc = get_service(db)
    try:
        return svc.get_review(review_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/review/{review_id}", response_model=ReviewOut)
def update_review(
    review_id: str,
    payload: ReviewIn,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    svc = get_service(db)
    try:
        return svc.update_review(review_id, payload, user)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))


@router.delete("/review/{review_id}", response_model=MessageOut)
def delete_review(
    review_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    svc = get_service(db)
    try:
        svc.delete_review(review_id, user)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    return MessageOut(message="Review deleted successfully")
