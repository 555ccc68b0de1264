# storefront/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

OrderStatus = Literal["pending", "confirmed", "processing", "shipped", "delivered", "cancelled", "returned"]
PaymentStatus = Literal["pending", "completed", "failed", "refunded"]
PaymentMethod = Literal["cod", "bank_transfer", "upi", "card", "net_banking", "wallet"]
ShippingMethod = Literal["standard", "express", "priority"]
ProductStatus = Literal["active", "inactive", "draft"]
StockStatus = Literal["in_stock", "low_stock", "out_of_stock"]


# =====================================================
# shared
# =====================================================
class PaginationOut(BaseModel):
    current: int
    pages: int
    total: int
    has_next: bool = False
    has_prev: bool = False


# =====================================================
# users
# =====================================================
class UserCreate(BaseModel):
    """Schema for registering a user."""

    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    company: Optional[str] = Field(None, max_length=200)
    customer_type: Literal["B2C", "B2B"] = "B2C"


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    company: Optional[str] = Field(None, max_length=200)


class UserRead(BaseModel):
    """Schema for a user (response)."""

    id: int
    username: str
    email: str
    name: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    role: str
    customer_type: str
    approval_status: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RoleUpdateIn(BaseModel):
    role: Literal["user", "admin"]


class RejectCustomerIn(BaseModel):
    reason: Optional[str] = None


class AddressIn(BaseModel):
    """Delivery address; custom_label is required for label 'Other'."""

    label: Literal["Home", "Office", "Other"] = "Home"
    custom_label: Optional[str] = Field(None, max_length=50)
    full_name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=1, max_length=20)
    street: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    zip_code: str = Field(..., min_length=1, max_length=20)
    landmark: Optional[str] = None
    is_default: bool = False

    @model_validator(mode="after")
    def _custom_label_for_other(self):
        if self.label == "Other" and not self.custom_label:
            raise ValueError("custom_label is required when label is 'Other'")
        return self


class AddressOut(BaseModel):
    id: int
    label: str
    custom_label: Optional[str] = None
    full_name: str
    phone: str
    street: str
    city: str
    state: str
    zip_code: str
    landmark: Optional[str] = None
    is_default: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# =====================================================
# catalog
# =====================================================
class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    image: Optional[str] = None
    is_active: bool = True


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    image: Optional[str] = None
    is_active: Optional[bool] = None


class CategoryOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    image: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CategoryListOut(BaseModel):
    categories: List[CategoryOut]
    pagination: PaginationOut


class CategoryBrief(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class SpecificationIn(BaseModel):
    key: str
    value: str


class ProductCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    category_id: int = Field(..., gt=0)
    images: List[str] = Field(default_factory=list)
    price: Decimal = Field(..., ge=0)
    discount_price: Optional[Decimal] = Field(None, ge=0)
    stock: int = Field(0, ge=0)
    min_order_quantity: int = Field(1, ge=1)
    features: List[str] = Field(default_factory=list)
    specifications: List[SpecificationIn] = Field(default_factory=list)
    warranty: Optional[str] = None
    status: ProductStatus = "active"
    featured: bool = False


class ProductUpdate(BaseModel):
    """Partial update; stock changes go through the inventory endpoint."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category_id: Optional[int] = Field(None, gt=0)
    images: Optional[List[str]] = None
    price: Optional[Decimal] = Field(None, ge=0)
    discount_price: Optional[Decimal] = Field(None, ge=0)
    min_order_quantity: Optional[int] = Field(None, ge=1)
    features: Optional[List[str]] = None
    specifications: Optional[List[SpecificationIn]] = None
    warranty: Optional[str] = None
    status: Optional[ProductStatus] = None
    featured: Optional[bool] = None


class ProductOut(BaseModel):
    id: int
    title: str
    description: str
    category_id: int
    category: Optional[CategoryBrief] = None
    images: List[str]
    price: Decimal
    discount_price: Optional[Decimal] = None
    stock: int
    min_order_quantity: int
    features: List[str]
    specifications: List[Dict[str, Any]]
    warranty: Optional[str] = None
    status: str
    featured: bool
    is_on_sale: bool
    discount_percentage: int
    final_price: Decimal
    stock_status: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProductListOut(BaseModel):
    products: List[ProductOut]
    pagination: PaginationOut


class ProductDeleteOut(BaseModel):
    id: int
    archived: bool
    message: str


class ProductBrief(BaseModel):
    id: int
    title: str
    image: str = ""
    price: Decimal
    discount_price: Optional[Decimal] = None
    final_price: Decimal
    stock: int
    category_id: int


class StockAdjustIn(BaseModel):
    delta: int
    reason: Optional[str] = None

    @model_validator(mode="after")
    def _non_zero(self):
        if self.delta == 0:
            raise ValueError("delta must not be 0")
        return self


# =====================================================
# cart
# =====================================================
class CartAddIn(BaseModel):
    """Schema for adding a product to the cart."""

    product_id: int = Field(..., gt=0)
    quantity: int = Field(1, ge=1)


class CartItemUpdateIn(BaseModel):
    quantity: int = Field(..., ge=1)


class CartItemOut(BaseModel):
    id: int
    product_id: int
    quantity: int
    price: Decimal
    line_total: Decimal
    product: Optional[ProductBrief] = None


class CartOut(BaseModel):
    """Schema for a cart (response)."""

    cart_id: int
    user_id: int
    items: List[CartItemOut]
    item_count: int
    subtotal: Decimal
    updated_at: Optional[datetime] = None


# =====================================================
# wishlist
# =====================================================
class WishlistItemOut(BaseModel):
    product_id: int
    added_at: datetime
    product: Optional[ProductBrief] = None


class WishlistOut(BaseModel):
    items: List[WishlistItemOut]
    total_items: int


# =====================================================
# orders
# =====================================================
class VariantIn(BaseModel):
    name: str
    value: str


class OrderItemIn(BaseModel):
    product_id: int = Field(..., gt=0)
    quantity: int = Field(..., ge=1)
    price: Optional[Decimal] = Field(None, ge=0, description="Explicit unit price override")
    size: Optional[str] = None
    variants: List[VariantIn] = Field(default_factory=list)


class CustomerInfoIn(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str = Field(..., min_length=1)
    company: Optional[str] = None
    address: Optional[str] = None


class ShippingIn(BaseModel):
    method: ShippingMethod = "standard"
    address: Optional[str] = None


class PaymentIn(BaseModel):
    method: PaymentMethod = "cod"


class PricingIn(BaseModel):
    """Pre-computed pricing block; must satisfy total = subtotal + tax + shipping - discount."""

    subtotal: Decimal = Field(..., ge=0)
    tax: Decimal = Field(Decimal("0"), ge=0)
    shipping: Decimal = Field(Decimal("0"), ge=0)
    discount: Decimal = Field(Decimal("0"), ge=0)
    total: Decimal = Field(..., ge=0)

    @model_validator(mode="after")
    def _consistent(self):
        if self.tax != 0:
            raise ValueError("tax must be 0 (GST is disabled)")
        if self.subtotal + self.tax + self.shipping - self.discount != self.total:
            raise ValueError("total must equal subtotal + tax + shipping - discount")
        return self


class OrderCreate(BaseModel):
    """Schema for creating an order."""

    items: List[OrderItemIn] = Field(..., min_length=1)
    customer_info: Optional[CustomerInfoIn] = None
    shipping: Optional[ShippingIn] = None
    payment: Optional[PaymentIn] = None
    notes: Optional[str] = None
    pricing: Optional[PricingIn] = None


class CustomerInfoOut(BaseModel):
    name: str
    email: str
    phone: str
    company: Optional[str] = None
    address: Optional[str] = None


class CustomerRef(BaseModel):
    id: int
    name: Optional[str] = None
    email: str


class ProductInfoOut(BaseModel):
    title: str
    price: Decimal
    image: str = ""


class ProductRef(BaseModel):
    id: int
    title: str
    images: List[str]


class OrderItemOut(BaseModel):
    id: int
    product_id: Optional[int] = None
    product_info: ProductInfoOut
    product: Optional[ProductRef] = None
    quantity: int
    price: Decimal
    size: Optional[str] = None
    variants: List[Dict[str, Any]] = Field(default_factory=list)


class PricingOut(BaseModel):
    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    discount: Decimal
    total: Decimal


class PaymentOut(BaseModel):
    method: str
    status: str
    transaction_id: Optional[str] = None
    upi_transaction_id: Optional[str] = None
    upi_id: Optional[str] = None
    upi_provider: Optional[str] = None
    paid_at: Optional[datetime] = None


class ShippingOut(BaseModel):
    method: str
    address: Optional[str] = None
    tracking_number: Optional[str] = None
    estimated_delivery: Optional[datetime] = None
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None


class StatusHistoryOut(BaseModel):
    status: str
    updated_at: datetime
    updated_by: Optional[int] = None
    note: Optional[str] = None


class OrderOut(BaseModel):
    """Schema for an order (response)."""

    id: int
    order_number: str
    customer_id: int
    customer: Optional[CustomerRef] = None
    customer_info: CustomerInfoOut
    items: List[OrderItemOut]
    pricing: PricingOut
    payment: PaymentOut
    status: str
    shipping: ShippingOut
    notes: Optional[str] = None
    admin_notes: Optional[str] = None
    stock_reserved: bool
    status_history: List[StatusHistoryOut]
    created_at: datetime
    updated_at: datetime


class OrderListOut(BaseModel):
    orders: List[OrderOut]
    pagination: PaginationOut


class OrderStatsOut(BaseModel):
    total_orders: int
    total_spent: Decimal
    pending_orders: int
    delivered_orders: int


class OrderTrackOut(BaseModel):
    order_number: str
    status: str
    shipping: ShippingOut
    status_history: List[StatusHistoryOut]
    created_at: datetime


class OrderBrief(BaseModel):
    id: int
    order_number: str
    status: str
    amount: Decimal


# =====================================================
# payments
# =====================================================
class PaymentWebhookIn(BaseModel):
    order_id: int = Field(..., gt=0)
    payment_id: str = Field(..., min_length=1)
    status: PaymentStatus
    signature: Optional[str] = None


class UpiGenerateIn(BaseModel):
    order_id: int = Field(..., gt=0)
    description: Optional[str] = Field(None, max_length=100)


class UpiVerifyIn(BaseModel):
    order_id: int = Field(..., gt=0)
    transaction_id: str = Field(..., min_length=1)
    upi_transaction_id: Optional[str] = None
    upi_id: Optional[str] = None


class UpiCollectIn(BaseModel):
    order_id: int = Field(..., gt=0)
    transaction_id: str = Field(..., min_length=1)
    upi_id: Optional[str] = None


class UpiStatusIn(BaseModel):
    order_id: int = Field(..., gt=0)
    transaction_id: str = Field(..., min_length=1)


class UpiPaymentRequestOut(BaseModel):
    transaction_id: str
    total_amount: Decimal
    merchant_amount: Decimal
    service_fee: Decimal
    upi_link: str
    qr_code: str
    merchant_upi: str
    merchant_name: str
    timestamp: datetime
    order_id: int
    description: str


class UpiCollectOut(BaseModel):
    qr_code: str
    upi_url: str
    merchant_upi: str
    amount: Decimal
    customer_upi_id: Optional[str] = None


class PaymentStatusOut(BaseModel):
    status: Literal["SUCCESS", "FAILED", "PENDING"]
    order: OrderBrief
    payment: PaymentOut


class PaymentVerifyOut(BaseModel):
    message: str
    already_verified: bool
    order: OrderBrief
    payment: PaymentOut


class WebhookAckOut(BaseModel):
    message: str
    order_id: int
    payment_status: str
    status: str


# =====================================================
# admin
# =====================================================
class OrderStatusUpdateIn(BaseModel):
    status: OrderStatus
    admin_notes: Optional[str] = None
    tracking_number: Optional[str] = None


class OrderLineSummary(BaseModel):
    product_id: Optional[int] = None
    title: str
    quantity: int
    price: Decimal
    total: Decimal
    size: Optional[str] = None
    variants: List[Dict[str, Any]] = Field(default_factory=list)


class AdminOrderSummary(BaseModel):
    item_count: int
    subtotal: Decimal
    total: Decimal
    payment_status: str
    status: str
    items: List[OrderLineSummary]


class AdminOrderDetailOut(BaseModel):
    order: OrderOut
    summary: AdminOrderSummary


class GrowthStat(BaseModel):
    current: Decimal
    growth: float


class DashboardStats(BaseModel):
    revenue: GrowthStat
    orders: GrowthStat
    products: int
    users: int


class DailySalesRow(BaseModel):
    date: str
    revenue: Decimal
    orders: int


class CategoryPerformanceRow(BaseModel):
    category_id: int
    name: str
    revenue: Decimal
    orders: int


class ProductPerformanceRow(BaseModel):
    product_id: int
    title: str
    total_quantity: int
    total_revenue: Decimal


class DashboardOut(BaseModel):
    stats: DashboardStats
    recent_orders: List[OrderOut]
    top_products: List[ProductPerformanceRow]
    daily_sales: List[DailySalesRow]
    category_performance: List[CategoryPerformanceRow]


class CustomerStats(BaseModel):
    total_orders: int
    total_spent: Decimal
    last_order_date: Optional[datetime] = None
    avg_order_value: Decimal


class CustomerWithStatsOut(UserRead):
    stats: CustomerStats


class CustomerListOut(BaseModel):
    customers: List[CustomerWithStatsOut]
    pagination: PaginationOut


# =====================================================
# quotations (B2B)
# =====================================================
QuotationStatus = Literal["pending", "approved", "quoted", "rejected", "expired"]


class QuotationCreate(BaseModel):
    """Schema for a B2B quotation request."""

    product_id: int = Field(..., gt=0)
    quantity: int = Field(..., ge=1)
    specifications: Optional[str] = Field(None, max_length=2000)
    notes: Optional[str] = Field(None, max_length=2000)


class QuotationRespondIn(BaseModel):
    status: QuotationStatus
    unit_price: Optional[Decimal] = Field(None, gt=0)
    validity_days: int = Field(7, ge=1, le=90)
    admin_notes: Optional[str] = None


class QuotedPriceOut(BaseModel):
    unit_price: Decimal
    total_price: Decimal
    valid_until: datetime


class QuotationOut(BaseModel):
    id: int
    customer: Optional[CustomerRef] = None
    product_id: Optional[int] = None
    product: Optional[ProductBrief] = None
    quantity: int
    specifications: Optional[str] = None
    notes: Optional[str] = None
    status: QuotationStatus
    admin_notes: Optional[str] = None
    quoted_price: Optional[QuotedPriceOut] = None
    responded_at: Optional[datetime] = None
    created_at: datetime


class QuotationDetailOut(QuotationOut):
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    company: Optional[str] = None
    product_name: Optional[str] = None


class QuotationListOut(BaseModel):
    quotations: List[QuotationOut]
    pagination: PaginationOut


# =====================================================
# notifications
# =====================================================
class NotificationOut(BaseModel):
    id: int
    type: str
    title: str
    message: str
    user: str
    priority: str
    data: Dict[str, Any]
    related_model: Optional[str] = None
    related_id: Optional[int] = None
    is_read: bool
    read_at: Optional[datetime] = None
    read_by: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationListOut(BaseModel):
    notifications: List[NotificationOut]
    unread_count: int
    pagination: PaginationOut


class NotificationStatsOut(BaseModel):
    total: int
    unread: int
    by_type: Dict[str, int]


class MarkAllReadOut(BaseModel):
    updated: int


# =====================================================
# settings
# =====================================================
class PublicSettingsOut(BaseModel):
    company_name: str
    company_email: str
    company_phone: str
    currency: str
    shipping_fees: Dict[str, Decimal]
    merchant_upi_id: str
    merchant_name: str
