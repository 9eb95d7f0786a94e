from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.data.models.product import ProductModel
from app.data.models.variant import VariantModel
from app.domain.errors import ConflictError, NotFoundError
from app.domain.schemas import ProductIn, VariantIn
from app.repos.category_repo import CategoryRepo
from app.repos.product_repo import ProductRepo
from app.utils.logging import get_logger

logger = get_logger(__name__)


class NoSearchResults(NotFoundError):
    def __init__(self, message: str, suggestions: list[str]):
        super().__init__(message)
        self.suggestions = suggestions


def _product_fields(payload: ProductIn) -> dict:
    return {
        "name": payload.name,
        "description": payload.description,
        "current_price": payload.current_price,
        "previous_price": payload.previous_price,
        "stock": payload.stock,
        "images": [str(url) for url in payload.images],
    }


class ProductService:
    """Products and their variants."""

    def __init__(self, db: Session):
        self.repo = ProductRepo(db)
        self.categories = CategoryRepo(db)

    def _require_category(self, category_id: str) -> None:
        if not self.categories.get_category(category_id):
            raise NotFoundError("Category not found")

    def get_product(self, product_id: str) -> ProductModel:
        product = self.repo.get_product(product_id)
        if not product:
            raise NotFoundError("Product not found")
        return product

    def create_product(self, category_id: str, payload: ProductIn) -> ProductModel:
        logger.info(f"Creating new product in category {category_id}")
        self._require_category(category_id)

        product = ProductModel(category_id=category_id, **_product_fields(payload))
        self.repo.add(product)
        self.repo.commit()
        logger.info(f"Product created successfully with ID: {product.id}")
        return product

    def create_products(self, category_id: str, payloads: list[ProductIn]) -> int:
        logger.info(f"Creating {len(payloads)} products in category {category_id}")
        self._require_category(category_id)

        try:
            self.repo.db.add_all(
                [ProductModel(category_id=category_id, **_product_fields(p)) for p in payloads]
            )
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise
        logger.info(f"Products created successfully in category {category_id}")
        return len(payloads)

    def list_products(self) -> list[ProductModel]:
        return self.repo.list_products()

    def update_product(self, product_id: str, payload: ProductIn) -> ProductModel:
        product = self.get_product(product_id)
        logger.info(f"Updating an existing product {product_id}")
        for field, value in _product_fields(payload).items():
            setattr(product, field, value)
        self.repo.commit()
        logger.info(f"Product successfully updated {product.id}")
        return product

    def delete_product(self, product_id: str) -> None:
        product = self.get_product(product_id)
        logger.info(f"Attempting to delete product with ID: {product_id}")
        try:
            self.repo.delete(product)
            self.repo.commit()
        except IntegrityError as e:
            self.repo.rollback()
            raise ConflictError("Product is referenced by existing orders") from e
        logger.info(f"Successfully deleted product with ID: {product_id}")

    def filter_products(
        self,
        min_price: Decimal | None,
        max_price: Decimal | None,
        category: str | None,
        stock: int | None,
    ) -> list[ProductModel]:
        products = self.repo.filter_products(min_price, max_price, category, stock)
        if not products:
            raise NotFoundError("No products found matching the specified criteria.")
        logger.info(f"Successfully fetched {len(products)} products")
        return products

    def search_products(self, query: str) -> list[ProductModel]:
        query = query.strip()
        if len(query) < 3:
            raise ValueError("Please enter a valid search name")

        logger.info("Fetching searched products")
        products = self.repo.search_products(query)
        if not products:
            suggestions = self.repo.suggest_names(query)
            logger.info(f"No products for '{query}', {len(suggestions)} suggestions")
            raise NoSearchResults("No products found matching the search.", suggestions)
        logger.info(f"Successfully fetched {len(products)} products")
        return products

    # variants

    def create_variant(self, product_id: str, payload: VariantIn) -> VariantModel:
        logger.info("Starting to create a new variant")
        self.get_product(product_id)
        variant = VariantModel(
            product_id=product_id,
            variant_name=payload.variant_name,
            variations=list(payload.variations),
        )
        self.repo.add(variant)
        self.repo.commit()
        logger.info(f"Variant created successfully with ID: {variant.id}")
        return variant

    def list_variants(self) -> list[VariantModel]:
        return self.repo.list_variants()

    def get_variant(self, variant_id: str) -> VariantModel:
        variant = self.repo.get_variant(variant_id)
        if not variant:
            raise NotFoundError("Variant not found")
        return variant

    def update_variant(self, variant_id: str, payload: VariantIn) -> VariantModel:
        variant = self.get_variant(variant_id)
        variant.variant_name = payload.variant_name
        variant.variations = list(payload.variations)
        self.repo.commit()
        logger.info(f"Variant updated successfully with ID: {variant.id}")
        return variant

    def delete_variant(self, variant_id: str) -> None:
        variant = self.get_variant(variant_id)
        self.repo.delete(variant)
        self.repo.commit()
        logger.info(f"Variant deleted successfully with ID: {variant_id}")
