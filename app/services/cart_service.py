from sqlalchemy.orm import Session

from app.data.models.cart import CartModel
from app.data.models.cart_item import CartItemModel
from app.domain.errors import ConflictError, NotFoundError
from app.domain.schemas import ItemIn
from app.repos.cart_repo import CartRepo
from app.repos.product_repo import ProductRepo
from app.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Use cases for the per-user cart.

    Queries (get) only read. Commands (create, replace, delete, add, remove,
    increment, decrement) commit once and return the cart as re-read from the
    database.

    Quantity changes are read-modify-write without a version check, so two
    concurrent requests on the same line can lose an update.
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)

    # query

    def get_cart(self, user_id: str) -> CartModel:
        logger.info(f"Fetching cart for user ID: {user_id}")
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            raise NotFoundError("Cart not found")
        return cart

    # commands

    def _require_products(self, items: list[ItemIn]) -> None:
        for item in items:
            if not self.products.get_product(item.product_id):
                raise ValueError(f"Product with ID {item.product_id} not found")

    def create_cart(self, user_id: str, items: list[ItemIn]) -> CartModel:
        logger.info(f"Starting to create a new cart for user {user_id}")
        if self.repo.get_cart_by_user(user_id):
            logger.warning(f"Cart already exists for user {user_id}")
            raise ConflictError("User already has a cart")

        self._require_products(items)
        try:
            cart = CartModel(user_id=user_id)
            self.repo.add(cart)
            for item in items:
                self.repo.add_cart_item(
                    CartItemModel(cart_id=cart.id, product_id=item.product_id, quantity=item.quantity)
                )
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Cart created successfully with ID: {cart.id}")
        return self.get_cart(user_id)

    def replace_cart(self, user_id: str, items: list[ItemIn]) -> CartModel:
        """Swap the whole item list: delete-all then insert-all, one transaction."""
        logger.info(f"Updating cart for user ID: {user_id}")
        cart = self.get_cart(user_id)
        self._require_products(items)

        try:
            cart.items.clear()
            self.repo.db.flush()
            for item in items:
                cart.items.append(CartItemModel(product_id=item.product_id, quantity=item.quantity))
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Cart updated successfully with ID: {cart.id}")
        return self.get_cart(user_id)

    def delete_cart(self, user_id: str) -> None:
        logger.info(f"Deleting cart for user ID: {user_id}")
        cart = self.get_cart(user_id)
        try:
            self.repo.delete(cart)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise
        logger.info(f"Cart deleted successfully for user ID: {user_id}")

    def _find_item(self, cart: CartModel, product_id: str) -> CartItemModel | None:
        return next((i for i in cart.items if i.product_id == product_id), None)

    def add_product(self, user_id: str, product_id: str, quantity: int) -> CartModel:
        if quantity <= 0:
            raise ValueError("Quantity must be a positive integer")

        logger.info(f"Adding product {product_id} to cart for user ID: {user_id}")
        cart = self.get_cart(user_id)

        existing_item = self._find_item(cart, product_id)
        if existing_item:
            logger.info(
                f"Product {product_id} already in cart, quantity "
                f"{existing_item.quantity} -> {existing_item.quantity + quantity}"
            )
            existing_item.quantity += quantity
        else:
            if not self.products.get_product(product_id):
                raise ValueError(f"Product with ID {product_id} not found")
            self.repo.add_cart_item(CartItemModel(cart_id=cart.id, product_id=product_id, quantity=quantity))

        self.repo.commit()
        logger.info(f"Product {product_id} added to cart for user ID: {user_id}")
        return self.get_cart(user_id)

    def remove_product(self, user_id: str, product_id: str) -> CartModel:
        logger.info(f"Deleting product {product_id} from cart for user ID: {user_id}")
        cart = self.get_cart(user_id)

        existing_item = self._find_item(cart, product_id)
        if not existing_item:
            raise NotFoundError("Product not found in cart")

        self.repo.delete(existing_item)
        self.repo.commit()
        logger.info(f"Product {product_id} deleted from cart for user ID: {user_id}")
        return self.get_cart(user_id)

    def change_quantity(self, user_id: str, product_id: str, delta: int) -> CartModel:
        """+1 / -1 on one line; a line that reaches 0 is removed."""
        logger.info(f"Changing quantity by {delta} for product {product_id} in cart for user ID: {user_id}")
        cart = self.get_cart(user_id)

        existing_item = self._find_item(cart, product_id)
        if not existing_item:
            raise NotFoundError("Product not found in cart")

        new_quantity = existing_item.quantity + delta
        if new_quantity <= 0:
            self.repo.delete(existing_item)
        else:
            existing_item.quantity = new_quantity

        self.repo.commit()
        logger.info(f"Quantity of product {product_id} is now {max(new_quantity, 0)} for user ID: {user_id}")
        return self.get_cart(user_id)

    def increment(self, user_id: str, product_id: str) -> CartModel:
        return self.change_quantity(user_id, product_id, 1)

    def decrement(self, user_id: str, product_id: str) -> CartModel:
        return self.change_quantity(user_id, product_id, -1)
