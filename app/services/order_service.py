from decimal import Decimal

from sqlalchemy.orm import Session

from app.data.models.order import OrderModel
from app.data.models.order_item import OrderItemModel
from app.domain.errors import NotFoundError
from app.domain.schemas import CurrentUser, ItemIn, OrderIn
from app.repos.order_repo import OrderRepo
from app.repos.product_repo import ProductRepo
from app.services.notification_service import NotificationService
from app.utils.logging import get_logger

logger = get_logger(__name__)


class OrderService:
    """
    Order lifecycle: create, read, replace, delete.

    The order total is taken from the client; the catalog price sum is only
    compared against it and a mismatch is logged.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = OrderRepo(db)
        self.products = ProductRepo(db)
        self.notification_service = NotificationService()

    def _catalog_total(self, items: list[ItemIn]) -> Decimal:
        """Looks up each product in order; the first unknown id stops the request."""
        total = Decimal("0.00")
        for item in items:
            product = self.products.get_product(item.product_id)
            if not product:
                logger.warning(f"Product with ID {item.product_id} not found")
                raise ValueError(f"Product with ID {item.product_id} not found")
            total += Decimal(product.current_price) * item.quantity
        return total

    def _check_total(self, order_total: Decimal, items: list[ItemIn]) -> None:
        catalog_total = self._catalog_total(items)
        if catalog_total != order_total:
            logger.warning(f"Order total {order_total} differs from catalog total {catalog_total}")

    def _get_visible(self, order_id: str, actor: CurrentUser) -> OrderModel:
        order = self.repo.get_order(order_id)
        if not order:
            logger.info(f"Order with ID {order_id} not found")
            raise NotFoundError("Order not found")
        if order.user_id != actor.id and not actor.is_admin:
            raise PermissionError("Not allowed to access this order")
        return order

    def create_order(self, payload: OrderIn, actor: CurrentUser) -> OrderModel:
        """
        Use Case: create an order with its items.

        1. Checks every referenced product exists
        2. Inserts order + item rows in one transaction
        3. Queues a notification (async)
        """
        logger.info(f"Starting order creation for user ID: {actor.id}")
        self._check_total(payload.total_amount, payload.order_items)

        try:
            order = OrderModel(
                user_id=actor.id,
                status=payload.status,
                total_amount=payload.total_amount,
            )
            self.repo.add(order)
            for item in payload.order_items:
                self.repo.add(OrderItemModel(order_id=order.id, product_id=item.product_id, quantity=item.quantity))
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Order created successfully with ID: {order.id}")
        self.notification_service.send_order_notification(actor.id, order.id, order.status)
        return self.repo.get_order(order.id)

    def list_orders(self, actor: CurrentUser) -> list[OrderModel]:
        logger.info(f"Fetching orders for user ID: {actor.id}")
        orders = self.repo.list_orders(None if actor.is_admin else actor.id)
        logger.info(f"Fetched {len(orders)} orders")
        return orders

    def get_order(self, order_id: str, actor: CurrentUser) -> OrderModel:
        logger.info(f"Fetching order with ID: {order_id}")
        return self._get_visible(order_id, actor)

    def update_order(self, order_id: str, payload: OrderIn, actor: CurrentUser) -> OrderModel:
        """Overwrites status, total and the whole item list. No transition guard."""
        logger.info(f"Updating order with ID: {order_id}")
        order = self._get_visible(order_id, actor)
        self._check_total(payload.total_amount, payload.order_items)

        try:
            order.items.clear()
            self.repo.db.flush()
            for item in payload.order_items:
                order.items.append(OrderItemModel(product_id=item.product_id, quantity=item.quantity))
            order.status = payload.status
            order.total_amount = payload.total_amount
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Order updated successfully with ID: {order.id}")
        return self.repo.get_order(order.id)

    def get_orders_by_status(self, status: str) -> list[OrderModel]:
        logger.info(f"Fetching orders with status: {status}")
        orders = self.repo.list_by_status(status)
        if not orders:
            raise NotFoundError(f"No orders found with status: {status}")
        logger.info(f"Fetched {len(orders)} orders with status: {status}")
        return orders

    def delete_order(self, order_id: str, actor: CurrentUser) -> None:
        logger.info(f"Deleting order with ID: {order_id}")
        order = self._get_visible(order_id, actor)
        try:
            self.repo.delete(order)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise
        logger.info(f"Order deleted successfully with ID: {order_id}")

    def delete_orders(self, order_ids: list[str], actor: CurrentUser) -> int:
        """Bulk delete. Non-admins only reach their own orders; other ids are ignored."""
        logger.info(f"Deleting {len(order_ids)} orders for user ID: {actor.id}")
        ids = self.repo.find_ids(order_ids, None if actor.is_admin else actor.id)
        if not ids:
            raise NotFoundError("No orders found with the provided IDs")

        try:
            self.repo.delete_items(ids)
            deleted = self.repo.delete_orders(ids)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Deleted {deleted} orders")
        return deleted
