from sqlalchemy import select

from app.data.models.delivery import DeliveryModel
from app.repos.base import BaseRepo


class DeliveryRepo(BaseRepo):
    def get_delivery(self, delivery_id: str) -> DeliveryModel | None:
        return self.db.get(DeliveryModel, delivery_id)

    def list_deliveries(self) -> list[DeliveryModel]:
        return list(self.db.execute(select(DeliveryModel).order_by(DeliveryModel.created_at.desc())).scalars())
