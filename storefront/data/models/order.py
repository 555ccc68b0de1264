#storefront/data/models/order.py
from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric, Boolean, Text
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.utils.time import utc_now


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    order_number = Column(String(20), nullable=False, unique=True, index=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    #customer contact as it was when the order was placed
    customer_name = Column(String(100), nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(20), nullable=False, default="")
    customer_company = Column(String(200), nullable=True)
    customer_address = Column(Text, nullable=True)

    # pricing snapshot, never recomputed
    subtotal = Column(Numeric(12, 2), nullable=False)
    tax = Column(Numeric(12, 2), nullable=False, default=0)
    shipping_fee = Column(Numeric(12, 2), nullable=False, default=0)
    discount = Column(Numeric(12, 2), nullable=False, default=0)
    total = Column(Numeric(12, 2), nullable=False)

    payment_method = Column(String(20), nullable=False, default="cod")
    payment_status = Column(String(20), nullable=False, default="pending")  # pending, completed, failed, refunded
    transaction_id = Column(String(100), nullable=True)
    upi_transaction_id = Column(String(100), nullable=True)
    upi_id = Column(String(100), nullable=True)
    upi_provider = Column(String(50), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    status = Column(String(20), nullable=False, default="pending")

    shipping_method = Column(String(20), nullable=False, default="standard")
    shipping_address = Column(Text, nullable=True)
    tracking_number = Column(String(100), nullable=True)
    estimated_delivery = Column(DateTime(timezone=True), nullable=True)
    shipped_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)

    notes = Column(Text, nullable=True)
    admin_notes = Column(Text, nullable=True)

    # true while this order holds decremented stock
    stock_reserved = Column(Boolean, nullable=False, default=False)

    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    customer = relationship("UserModel")
    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.id",
    )
    status_history = relationship(
        "OrderStatusHistoryModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderStatusHistoryModel.id",
    )
