import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship

from app.data.database import Base


class UserModel(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    firstname = Column(String, nullable=False)
    lastname = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True, index=True)
    password = Column(String, nullable=False)
    phone_no = Column(String, nullable=True)
    avatar = Column(String, nullable=True)
    role = Column(String(16), nullable=False, default="user")  # user, admin
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    cart = relationship("CartModel", back_populates="user", uselist=False, cascade="all, delete-orphan")
    orders = relationship("OrderModel", back_populates="user", cascade="all, delete-orphan")
    reviews = relationship("ReviewModel", back_populates="user", cascade="all, delete-orphan")
    deliveries = relationship("DeliveryModel", back_populates="user", cascade="all, delete-orphan")
