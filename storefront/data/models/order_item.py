from sqlalchemy import Column, Integer, ForeignKey, String, Numeric, JSON
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)

    product_title = Column(String(255), nullable=False)
    product_price = Column(Numeric(12, 2), nullable=False)
    product_image = Column(String(500), nullable=False, default="")

    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    size = Column(String(50), nullable=True)
    variants = Column(JSON, nullable=False, default=list)

    order = relationship("OrderModel", back_populates="items")
    product = relationship("ProductModel")
