from sqlalchemy import select
from sqlalchemy.orm import selectinload

from app.data.models.cart import CartModel
from app.data.models.cart_item import CartItemModel
from app.repos.base import BaseRepo


class CartRepo(BaseRepo):
    def get_cart_by_user(self, user_id: str) -> CartModel | None:
        stmt = (
            select(CartModel)
            .where(CartModel.user_id == user_id)
            .options(selectinload(CartModel.items))
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def add_cart_item(self, item: CartItemModel) -> CartItemModel:
        return self.add(item)
