from sqlalchemy import select
from sqlalchemy.orm import selectinload

from app.data.models.review import ReviewModel
from app.repos.base import BaseRepo


class ReviewRepo(BaseRepo):
    def get_review(self, review_id: str) -> ReviewModel | None:
        return self.db.execute(
            select(ReviewModel).where(ReviewModel.id == review_id).options(selectinload(ReviewModel.user))
        ).scalar_one_or_none()

    def list_reviews(self) -> list[ReviewModel]:
        stmt = select(ReviewModel).options(selectinload(ReviewModel.user)).order_by(ReviewModel.created_at.desc())
        return list(self.db.execute(stmt).scalars())

    def get_by_user_and_product(self, user_id: str, product_id: str) -> ReviewModel | None:
        return self.db.execute(
            select(ReviewModel).where(ReviewModel.user_id == user_id, ReviewModel.product_id == product_id)
        ).scalars().first()
