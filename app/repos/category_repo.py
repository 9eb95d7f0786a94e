from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from app.data.models.category import CategoryModel
from app.data.models.product import ProductModel
from app.repos.base import BaseRepo


class CategoryRepo(BaseRepo):
    def get_category(self, category_id: str, with_products: bool = False) -> CategoryModel | None:
        stmt = select(CategoryModel).where(CategoryModel.id == category_id)
        if with_products:
            stmt = stmt.options(selectinload(CategoryModel.products))
        return self.db.execute(stmt).scalar_one_or_none()

    def get_by_name(self, name: str) -> CategoryModel | None:
        return self.db.execute(
            select(CategoryModel).where(CategoryModel.name == name)
        ).scalar_one_or_none()

    def list_categories(self) -> list[CategoryModel]:
        return list(self.db.execute(select(CategoryModel).order_by(CategoryModel.name)).scalars())

    def count_products(self, category_id: str) -> int:
        return self.db.execute(
            select(func.count(ProductModel.id)).where(ProductModel.category_id == category_id)
        ).scalar_one()

    def products_in(self, category_id: str) -> list[ProductModel]:
        return list(
            self.db.execute(select(ProductModel).where(ProductModel.category_id == category_id)).scalars()
        )
