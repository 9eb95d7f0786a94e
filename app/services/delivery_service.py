from sqlalchemy.orm import Session

from app.data.models.delivery import DeliveryModel
from app.domain.errors import NotFoundError
from app.domain.schemas import CurrentUser, DeliveryIn
from app.repos.delivery_repo import DeliveryRepo
from app.repos.order_repo import OrderRepo
from app.utils.logging import get_logger

logger = get_logger(__name__)


class DeliveryService:
    def __init__(self, db: Session):
        self.repo = DeliveryRepo(db)
        self.orders = OrderRepo(db)

    def create_delivery(self, order_id: str, payload: DeliveryIn, actor: CurrentUser) -> DeliveryModel:
        logger.info(f"Creating delivery for order {order_id}")
        order = self.orders.get_order(order_id)
        if not order:
            raise NotFoundError("Order not found")
        if order.user_id != actor.id:
            raise PermissionError("Not allowed to create a delivery for this order")

        delivery = DeliveryModel(user_id=actor.id, order_id=order_id, status="pending", **payload.model_dump())
        self.repo.add(delivery)
        self.repo.commit()
        logger.info(f"Delivery created successfully with ID: {delivery.id}")
        return delivery

    def list_deliveries(self) -> list[DeliveryModel]:
        return self.repo.list_deliveries()

    def get_delivery(self, delivery_id: str) -> DeliveryModel:
        delivery = self.repo.get_delivery(delivery_id)
        if not delivery:
            raise NotFoundError("Delivery not found")
        return delivery

    def update_delivery(self, delivery_id: str, payload: DeliveryIn, actor: CurrentUser) -> DeliveryModel:
        delivery = self.get_delivery(delivery_id)
        if delivery.user_id != actor.id:
            raise PermissionError("Not allowed to update this delivery")

        for field, value in payload.model_dump().items():
            setattr(delivery, field, value)
        self.repo.commit()
        logger.info(f"Delivery updated successfully with ID: {delivery.id}")
        return delivery

    def update_status(self, delivery_id: str, status: str) -> DeliveryModel:
        delivery = self.get_delivery(delivery_id)
        logger.info(f"Delivery {delivery_id}: {delivery.status} -> {status}")
        delivery.status = status
        self.repo.commit()
        return delivery
