import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, ForeignKey, String, DateTime, Numeric, Text
from sqlalchemy.orm import relationship

from app.data.database import Base

TERMINAL_STATUSES = ("successful", "completed", "failed")


class PaymentModel(Base):
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)

    payment_method = Column(String(16), nullable=False)  # credit_card, mpesa
    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(16), nullable=False, default="pending")  # pending, successful, completed, failed
    # CheckoutRequestID for mpesa, PaymentIntent id for stripe
    provider_transaction_id = Column(String, nullable=True, index=True)
    failure_reason = Column(Text, nullable=True)
    idempotency_key = Column(String(255), nullable=False, unique=True)
    payment_date = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    order = relationship("OrderModel", back_populates="payments")

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
