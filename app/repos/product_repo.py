from decimal import Decimal, InvalidOperation

from sqlalchemy import func, or_, select
from sqlalchemy.orm import selectinload

from app.data.models.category import CategoryModel
from app.data.models.product import ProductModel
from app.data.models.variant import VariantModel
from app.repos.base import BaseRepo


class ProductRepo(BaseRepo):
    def get_product(self, product_id: str) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def list_products(self) -> list[ProductModel]:
        stmt = (
            select(ProductModel)
            .options(selectinload(ProductModel.reviews))
            .order_by(ProductModel.created_at.desc())
        )
        return list(self.db.execute(stmt).scalars())

    def count(self) -> int:
        return self.db.execute(select(func.count(ProductModel.id))).scalar_one()

    def filter_products(
        self,
        min_price: Decimal | None = None,
        max_price: Decimal | None = None,
        category: str | None = None,
        min_stock: int | None = None,
    ) -> list[ProductModel]:
        stmt = select(ProductModel)
        if min_price is not None:
            stmt = stmt.where(ProductModel.current_price >= min_price)
        if max_price is not None:
            stmt = stmt.where(ProductModel.current_price <= max_price)
        if category:
            stmt = stmt.join(ProductModel.category).where(CategoryModel.name == category)
        if min_stock is not None:
            stmt = stmt.where(ProductModel.stock >= min_stock)
        stmt = stmt.order_by(ProductModel.current_price.asc(), ProductModel.name.asc())
        return list(self.db.execute(stmt).scalars())

    def search_products(self, query: str) -> list[ProductModel]:
        pattern = f"%{query}%"
        conditions = [
            ProductModel.name.ilike(pattern),
            ProductModel.description.ilike(pattern),
            CategoryModel.name.ilike(pattern),
        ]
        try:
            price = Decimal(query)
        except InvalidOperation:
            price = None
        if price is not None and price.is_finite():
            conditions.append(ProductModel.current_price == price)
            conditions.append(ProductModel.previous_price == price)

        stmt = (
            select(ProductModel)
            .join(ProductModel.category)
            .where(or_(*conditions))
            .order_by(ProductModel.name.asc())
        )
        return list(self.db.execute(stmt).scalars())

    def suggest_names(self, query: str, limit: int = 5) -> list[str]:
        prefix = f"{query[:3]}%"
        stmt = (
            select(ProductModel.name)
            .join(ProductModel.category)
            .where(or_(ProductModel.name.ilike(prefix), CategoryModel.name.ilike(prefix)))
            .order_by(ProductModel.name.asc())
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars())

    # variants

    def get_variant(self, variant_id: str) -> VariantModel | None:
        return self.db.get(VariantModel, variant_id)

    def list_variants(self) -> list[VariantModel]:
        return list(self.db.execute(select(VariantModel)).scalars())
