#storefront/data/models/quotation_request.py
from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric, Text
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.utils.time import utc_now


class QuotationRequestModel(Base):
    __tablename__ = "quotation_requests"

    id = Column(Integer, primary_key=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True)

    quantity = Column(Integer, nullable=False)
    specifications = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default="pending", index=True)  # pending, approved, quoted, rejected, expired
    admin_notes = Column(Text, nullable=True)
    responded_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    responded_at = Column(DateTime(timezone=True), nullable=True)

    #filled when the admin approves or quotes
    quoted_unit_price = Column(Numeric(12, 2), nullable=True)
    quoted_total_price = Column(Numeric(12, 2), nullable=True)
    valid_until = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    customer = relationship("UserModel", foreign_keys=[customer_id])
    product = relationship("ProductModel")
