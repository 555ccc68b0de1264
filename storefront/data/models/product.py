#storefront/data/models/product.py
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    DateTime,
    Text,
    Numeric,
    JSON,
    ForeignKey,
    CheckConstraint,
)
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.utils.settings import LOW_STOCK_THRESHOLD
from storefront.utils.time import utc_now


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    images = Column(JSON, nullable=False, default=list)

    price = Column(Numeric(12, 2), nullable=False)
    discount_price = Column(Numeric(12, 2), nullable=True)

    stock = Column(Integer, nullable=False, default=0)
    min_order_quantity = Column(Integer, nullable=False, default=1)

    features = Column(JSON, nullable=False, default=list)
    specifications = Column(JSON, nullable=False, default=list)
    warranty = Column(String(255), nullable=True)

    status = Column(String(20), nullable=False, default="active")  # active, inactive, draft
    featured = Column(Boolean, nullable=False, default=False)

    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    category = relationship("CategoryModel")

    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
    )

    @property
    def is_on_sale(self) -> bool:
        return bool(self.discount_price) and self.discount_price < self.price

    @property
    def discount_percentage(self) -> int:
        if not self.is_on_sale:
            return 0
        pct = (self.price - self.discount_price) / self.price * 100
        return int(Decimal(pct).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    @property
    def final_price(self) -> Decimal:
        return self.discount_price if self.discount_price else self.price

    @property
    def stock_status(self) -> str:
        if self.stock == 0:
            return "out_of_stock"
        if self.stock < LOW_STOCK_THRESHOLD:
            return "low_stock"
        return "in_stock"

    @property
    def primary_image(self) -> str:
        return self.images[0] if self.images else ""
