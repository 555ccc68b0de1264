#import all models so they register on Base.metadata

from storefront.data.models.user import UserModel
from storefront.data.models.address import AddressModel
from storefront.data.models.category import CategoryModel
from storefront.data.models.product import ProductModel
from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.data.models.order_status_history import OrderStatusHistoryModel
from storefront.data.models.wishlist import WishlistModel, WishlistItemModel
from storefront.data.models.notification import NotificationModel
from storefront.data.models.quotation_request import QuotationRequestModel

__all__ = [
    "UserModel",
    "AddressModel",
    "CategoryModel",
    "ProductModel",
    "CartModel",
    "CartItemModel",
    "OrderModel",
    "OrderItemModel",
    "OrderStatusHistoryModel",
    "WishlistModel",
    "WishlistItemModel",
    "NotificationModel",
    "QuotationRequestModel",
]
