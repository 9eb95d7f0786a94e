from sqlalchemy import select

from app.data.models.order import OrderModel
from app.data.models.payment import PaymentModel
from app.repos.base import BaseRepo


class PaymentRepo(BaseRepo):
    def get_payment(self, payment_id: str) -> PaymentModel | None:
        return self.db.get(PaymentModel, payment_id)

    def get_by_idempotency_key(self, key: str) -> PaymentModel | None:
        return self.db.execute(
            select(PaymentModel).where(PaymentModel.idempotency_key == key)
        ).scalar_one_or_none()

    def get_by_provider_transaction_id(self, transaction_id: str) -> PaymentModel | None:
        return self.db.execute(
            select(PaymentModel).where(PaymentModel.provider_transaction_id == transaction_id)
        ).scalars().first()

    def list_payments(self, user_id: str | None = None) -> list[PaymentModel]:
        stmt = select(PaymentModel).order_by(PaymentModel.payment_date.desc())
        if user_id is not None:
            stmt = stmt.join(PaymentModel.order).where(OrderModel.user_id == user_id)
        return list(self.db.execute(stmt).scalars())
