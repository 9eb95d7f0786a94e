import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Integer, ForeignKey, DateTime, Numeric, Text, JSON
from sqlalchemy.orm import relationship

from app.data.database import Base


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=False, index=True)

    name = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    current_price = Column(Numeric(10, 2), nullable=False)
    previous_price = Column(Numeric(10, 2), nullable=True)
    stock = Column(Integer, nullable=False, default=0)
    images = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    category = relationship("CategoryModel", back_populates="products")
    # no cascade to order items: an ordered product cannot be deleted
    variants = relationship("VariantModel", back_populates="product", cascade="all, delete-orphan")
    reviews = relationship("ReviewModel", back_populates="product", cascade="all, delete-orphan")
    cart_items = relationship("CartItemModel", back_populates="product", cascade="all, delete-orphan")
