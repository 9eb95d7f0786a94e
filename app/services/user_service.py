from sqlalchemy.orm import Session

from app.data.models.user import UserModel
from app.domain.errors import ConflictError, NotFoundError
from app.domain.schemas import CurrentUser, DashboardOut, UserCreate, UserUpdate
from app.repos.order_repo import OrderRepo
from app.repos.product_repo import ProductRepo
from app.repos.user_repo import UserRepo
from app.utils.logging import get_logger
from app.utils.security import hash_password

logger = get_logger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepo(db)

    def _get_visible(self, user_id: str, actor: CurrentUser) -> UserModel:
        if not actor.is_admin and actor.id != user_id:
            raise PermissionError("Not allowed to access this user")
        user = self.repo.get_user(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def create_user(self, payload: UserCreate) -> UserModel:
        if self.repo.get_by_email(payload.email):
            raise ConflictError("Email address in use.")

        user = UserModel(
            firstname=payload.firstname,
            lastname=payload.lastname,
            email=payload.email.lower(),
            password=hash_password(payload.password),
            phone_no=payload.phone_no,
            role=payload.role,
        )
        self.repo.add(user)
        self.repo.commit()
        logger.info(f"User created successfully with ID: {user.id}")
        return user

    def list_users(self) -> list[UserModel]:
        return self.repo.list_users()

    def get_user(self, user_id: str, actor: CurrentUser) -> UserModel:
        return self._get_visible(user_id, actor)

    def update_user(self, user_id: str, payload: UserUpdate, actor: CurrentUser) -> UserModel:
        user = self._get_visible(user_id, actor)

        if payload.role is not None and payload.role != user.role and not actor.is_admin:
            logger.warning(f"User {actor.id} tried to change role of {user_id} to {payload.role}")
            raise PermissionError("Only admins can change roles")

        user.firstname = payload.firstname
        user.lastname = payload.lastname
        user.phone_no = payload.phone_no
        user.avatar = payload.avatar
        if payload.role is not None:
            user.role = payload.role
        if payload.password:
            user.password = hash_password(payload.password)

        self.repo.commit()
        logger.info(f"User updated successfully with ID: {user.id}")
        return user

    def delete_user(self, user_id: str, actor: CurrentUser) -> None:
        user = self._get_visible(user_id, actor)
        try:
            self.repo.delete(user)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise
        logger.info(f"User deleted successfully with ID: {user_id}")

    def dashboard(self) -> DashboardOut:
        orders = OrderRepo(self.db)
        stats = DashboardOut(
            total_users=self.repo.count(),
            total_orders=orders.count(),
            total_products=ProductRepo(self.db).count(),
            total_sales=orders.total_sales(),
        )
        logger.info("Fetched admin dashboard statistics successfully")
        return stats
