from sqlalchemy import func, select

from app.data.models.user import UserModel
from app.repos.base import BaseRepo


class UserRepo(BaseRepo):
    def get_user(self, user_id: str) -> UserModel | None:
        return self.db.get(UserModel, user_id)

    def get_by_email(self, email: str) -> UserModel | None:
        return self.db.execute(
            select(UserModel).where(func.lower(UserModel.email) == email.lower())
        ).scalar_one_or_none()

    def list_users(self) -> list[UserModel]:
        return list(self.db.execute(select(UserModel).order_by(UserModel.created_at)).scalars())

    def count(self) -> int:
        return self.db.execute(select(func.count(UserModel.id))).scalar_one()
