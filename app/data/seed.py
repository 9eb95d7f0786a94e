# app/data/seed.py
from app.data import models  # noqa: F401
from app.data.database import Base, SessionLocal, engine
from app.data.models.user import UserModel
from app.repos.user_repo import UserRepo
from app.utils.logging import configure_logging, get_logger
from app.utils.security import hash_password
from app.utils.settings import ADMIN_EMAIL, ADMIN_PASSWORD

logger = get_logger(__name__)


def seed_admin(email: str = ADMIN_EMAIL, password: str = ADMIN_PASSWORD) -> UserModel | None:
    """Create the bootstrap admin account; a no-op when it already exists."""
    if not email or not password:
        logger.warning("ADMIN_EMAIL / ADMIN_PASSWORD not set, skipping admin seed")
        return None

    db = SessionLocal()
    try:
        repo = UserRepo(db)
        # not forcing: only seed if missing
        existing = repo.get_by_email(email)
        if existing:
            logger.info(f"Admin {email} already exists")
            return existing

        admin = UserModel(
            firstname="Admin",
            lastname="User",
            email=email.lower(),
            password=hash_password(password),
            role="admin",
        )
        repo.add(admin)
        repo.commit()
        logger.info(f"Admin user created with ID: {admin.id}")
        return admin
    finally:
        db.close()


if __name__ == "__main__":
    configure_logging()
    Base.metadata.create_all(bind=engine)
    seed_admin()
