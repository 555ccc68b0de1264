from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, JSON, ForeignKey

from storefront.data.database import Base
from storefront.utils.time import utc_now


class NotificationModel(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True)
    type = Column(String(30), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    user = Column(String(200), nullable=False, default="System")
    priority = Column(String(10), nullable=False, default="medium")  # low, medium, high, critical
    data = Column(JSON, nullable=False, default=dict)

    related_model = Column(String(30), nullable=True)  # Order, User, Product
    related_id = Column(Integer, nullable=True, index=True)

    is_read = Column(Boolean, nullable=False, default=False, index=True)
    read_at = Column(DateTime(timezone=True), nullable=True)
    read_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)
