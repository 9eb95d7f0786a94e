from sqlalchemy.orm import Session

from app.data.models.review import ReviewModel
from app.domain.errors import ConflictError, NotFoundError
from app.domain.schemas import CurrentUser, ReviewIn
from app.repos.product_repo import ProductRepo
from app.repos.review_repo import ReviewRepo
from app.utils.logging import get_logger

logger = get_logger(__name__)


class ReviewService:
    def __init__(self, db: Session):
        self.repo = ReviewRepo(db)
        self.products = ProductRepo(db)

    def create_review(self, product_id: str, payload: ReviewIn, actor: CurrentUser) -> ReviewModel:
        if not self.products.get_product(product_id):
            raise NotFoundError("Product not found")

        # one review per (user, product); there is no db constraint behind this
        if self.repo.get_by_user_and_product(actor.id, product_id):
            logger.info(f"User {actor.id} already reviewed product {product_id}")
            raise ConflictError("You have already reviewed this product")

        review = ReviewModel(
            product_id=product_id,
            user_id=actor.id,
            star_rating=payload.star_rating,
            comment=payload.comment,
        )
        self.repo.add(review)
        self.repo.commit()
        logger.info(f"Review created successfully with ID: {review.id}")
        return self.repo.get_review(review.id)

    def list_reviews(self) -> list[ReviewModel]:
        reviews = self.repo.list_reviews()
        logger.info(f"Fetched {len(reviews)} reviews")
        return reviews

    def get_review(self, review_id: str) -> ReviewModel:
        review = self.repo.get_review(review_id)
        if not review:
            raise NotFoundError("Review not found")
        return review

    def update_review(self, review_id: str, payload: ReviewIn, actor: CurrentUser) -> ReviewModel:
        review = self.get_review(review_id)
        if review.user_id != actor.id:
            raise PermissionError("Not authorized to update this review")

        review.star_rating = payload.star_rating
        review.comment = payload.comment
        self.repo.commit()
        logger.info(f"Review updated successfully with ID: {review.id}")
        return review

    def delete_review(self, review_id: str, actor: CurrentUser) -> None:
        review = self.get_review(review_id)
        if review.user_id != actor.id and not actor.is_admin:
            raise PermissionError("Not authorized to delete this review")

        self.repo.delete(review)
        self.repo.commit()
        logger.info(f"Review deleted successfully with ID: {review_id}")
