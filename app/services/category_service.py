from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.data.models.category import CategoryModel
from app.domain.errors import ConfirmationRequired, ConflictError, NotFoundError
from app.domain.schemas import CategoryIn
from app.repos.category_repo import CategoryRepo
from app.utils.logging import get_logger

logger = get_logger(__name__)


class CategoryService:
    def __init__(self, db: Session):
        self.repo = CategoryRepo(db)

    def create_category(self, payload: CategoryIn) -> CategoryModel:
        logger.info("Creating a new category")
        if self.repo.get_by_name(payload.name):
            raise ValueError("This category already exists.")

        category = CategoryModel(name=payload.name, description=payload.description)
        self.repo.add(category)
        self.repo.commit()
        logger.info(f"Successfully created the category: {category.id}")
        return category

    def list_categories(self) -> list[CategoryModel]:
        return self.repo.list_categories()

    def get_category(self, category_id: str) -> CategoryModel:
        category = self.repo.get_category(category_id, with_products=True)
        if not category:
            logger.info(f"Category {category_id} not found")
            raise NotFoundError("Category not found")
        return category

    def update_category(self, category_id: str, payload: CategoryIn) -> CategoryModel:
        category = self.repo.get_category(category_id)
        if not category:
            raise NotFoundError("Category not found")

        clash = self.repo.get_by_name(payload.name)
        if clash and clash.id != category_id:
            raise ConflictError("This category already exists.")

        category.name = payload.name
        category.description = payload.description
        self.repo.commit()
        logger.info(f"Successfully updated category: {category.id}")
        return category

    def delete_category(self, category_id: str, confirmed: bool = False) -> int:
        """
        Two-phase delete: a category that still holds products is only
        removed (together with its products) when `confirmed` is set.

        Products, their variants/reviews/cart lines and the category go in one
        transaction. Returns the number of products removed.
        """
        logger.info(f"Starts to delete: {category_id}")
        category = self.repo.get_category(category_id)
        if not category:
            raise NotFoundError("Category not found")

        product_count = self.repo.count_products(category_id)
        if product_count > 0 and not confirmed:
            logger.info(f"Category {category_id} has {product_count} products. Confirmation required")
            raise ConfirmationRequired(
                f"This category contains {product_count} products. "
                "Please confirm deletion by adding ?confirmed=true to your request.",
                product_count=product_count,
            )

        try:
            for product in self.repo.products_in(category_id):
                self.repo.db.delete(product)
            self.repo.db.flush()
            self.repo.delete(category)
            self.repo.commit()
        except IntegrityError as e:
            self.repo.rollback()
            logger.warning(f"Category {category_id} not deleted, products still referenced: {e.orig}")
            raise ConflictError("Products in this category are referenced by existing orders") from e
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Deleted {product_count} products related to category ID: {category_id}")
        return product_count
