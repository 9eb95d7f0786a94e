# every model imported here so SQLAlchemy registers it on Base.metadata

from app.data.models.user import UserModel
from app.data.models.category import CategoryModel
from app.data.models.product import ProductModel
from app.data.models.variant import VariantModel
from app.data.models.review import ReviewModel
from app.data.models.cart import CartModel
from app.data.models.cart_item import CartItemModel
from app.data.models.order import OrderModel
from app.data.models.order_item import OrderItemModel
from app.data.models.payment import PaymentModel
from app.data.models.delivery import DeliveryModel

__all__ = [
    "UserModel",
    "CategoryModel",
    "ProductModel",
    "VariantModel",
    "ReviewModel",
    "CartModel",
    "CartItemModel",
    "OrderModel",
    "OrderItemModel",
    "PaymentModel",
    "DeliveryModel",
]
