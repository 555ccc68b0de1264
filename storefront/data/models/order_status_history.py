from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Text
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.utils.time import utc_now


class OrderStatusHistoryModel(Base):
    """Append-only; rows are only ever inserted."""

    __tablename__ = "order_status_history"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), nullable=False)
    updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    note = Column(Text, nullable=True)

    order = relationship("OrderModel", back_populates="status_history")
