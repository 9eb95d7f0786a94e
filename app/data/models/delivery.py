import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, ForeignKey, String, DateTime
from sqlalchemy.orm import relationship

from app.data.database import Base


class DeliveryModel(Base):
    __tablename__ = "deliveries"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)

    address = Column(String, nullable=False)
    city = Column(String, nullable=False)
    postal_code = Column(String, nullable=False)
    country = Column(String, nullable=False)
    status = Column(String, nullable=False, default="pending")  # free-form, set by admin
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    user = relationship("UserModel", back_populates="deliveries")
    order = relationship("OrderModel", back_populates="deliveries")
