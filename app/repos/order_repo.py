# app/repos/order_repo.py
from decimal import Decimal

from sqlalchemy import delete, func, select
from sqlalchemy.orm import selectinload

from app.data.models.delivery import DeliveryModel
from app.data.models.order import OrderModel
from app.data.models.order_item import OrderItemModel
from app.data.models.payment import PaymentModel
from app.repos.base import BaseRepo


class OrderRepo(BaseRepo):
    def get_order(self, order_id: str) -> OrderModel | None:
        stmt = (
            select(OrderModel)
            .where(OrderModel.id == order_id)
            .options(selectinload(OrderModel.items))
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def list_orders(self, user_id: str | None = None) -> list[OrderModel]:
        stmt = select(OrderModel).options(selectinload(OrderModel.items)).order_by(OrderModel.created_at.desc())
        if user_id is not None:
            stmt = stmt.where(OrderModel.user_id == user_id)
        return list(self.db.execute(stmt).scalars())

    def list_by_status(self, status: str) -> list[OrderModel]:
        stmt = (
            select(OrderModel)
            .where(OrderModel.status == status)
            .options(selectinload(OrderModel.items))
            .order_by(OrderModel.created_at.desc())
        )
        return list(self.db.execute(stmt).scalars())

    def find_ids(self, order_ids: list[str], user_id: str | None = None) -> list[str]:
        stmt = select(OrderModel.id).where(OrderModel.id.in_(order_ids))
        if user_id is not None:
            stmt = stmt.where(OrderModel.user_id == user_id)
        return list(self.db.execute(stmt).scalars())

    def delete_items(self, order_ids: list[str]) -> int:
        result = self.db.execute(delete(OrderItemModel).where(OrderItemModel.order_id.in_(order_ids)))
        return result.rowcount

    def delete_orders(self, order_ids: list[str]) -> int:
        # bulk delete bypasses ORM cascades; payments/deliveries go first
        self.db.execute(delete(PaymentModel).where(PaymentModel.order_id.in_(order_ids)))
        self.db.execute(delete(DeliveryModel).where(DeliveryModel.order_id.in_(order_ids)))
        result = self.db.execute(delete(OrderModel).where(OrderModel.id.in_(order_ids)))
        return result.rowcount

    def count(self) -> int:
        return self.db.execute(select(func.count(OrderModel.id))).scalar_one()

    def total_sales(self) -> Decimal:
        total = self.db.execute(select(func.sum(OrderModel.total_amount))).scalar_one()
        return Decimal(total or 0)
