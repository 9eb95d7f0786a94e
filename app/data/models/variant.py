import uuid

from sqlalchemy import Column, String, ForeignKey, JSON
from sqlalchemy.orm import relationship

from app.data.database import Base


class VariantModel(Base):
    __tablename__ = "variants"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    product_id = Column(String(36), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)

    variant_name = Column(String, nullable=False)
    variations = Column(JSON, nullable=False, default=list)

    product = relationship("ProductModel", back_populates="variants")
