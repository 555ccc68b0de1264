# storefront/services/catalog_service.py
from sqlalchemy.orm import Session

from storefront.data.models.category import CategoryModel
from storefront.data.models.product import ProductModel
from storefront.domain.errors import NotFoundError, ValidationFailed, ConflictError
from storefront.domain.schemas import CategoryCreate, CategoryUpdate, ProductCreate, ProductUpdate
from storefront.repos.cart_repo import CartRepo
from storefront.repos.category_repo import CategoryRepo
from storefront.repos.product_repo import ProductRepo
from storefront.repos.wishlist_repo import WishlistRepo
from storefront.utils.logging import get_logger
from storefront.utils.pagination import pagination
from storefront.utils.settings import LOW_STOCK_THRESHOLD

logger = get_logger(__name__)


def _check_discount(price, discount_price):
    if discount_price is not None and discount_price >= price:
        raise ValidationFailed("Discount price must be less than regular price")


class CatalogService:
    """Categories and products; stock itself is owned by InventoryService."""

    def __init__(self, db: Session, settings=None):
        self.categories = CategoryRepo(db)
        self.products = ProductRepo(db)
        self.carts = CartRepo(db)
        self.wishlists = WishlistRepo(db)
        self.settings = settings

    # categories
    def list_categories(self, search=None, is_active=None, page: int = 1, limit: int = 50):
        items, total = self.categories.list_categories(search, is_active, page, limit)
        return {"categories": items, "pagination": pagination(page, limit, total)}

    def get_category(self, category_id: int) -> CategoryModel:
        category = self.categories.get_category(category_id)
        if not category:
            raise NotFoundError("Category not found")
        return category

    def create_category(self, data: CategoryCreate) -> CategoryModel:
        if self.categories.find_by_name(data.name):
            raise ConflictError("Category with this name already exists")
        category = self.categories.add_category(CategoryModel(**data.model_dump()))
        logger.info(f"Category {category.id} '{category.name}' created")
        return category

    def update_category(self, category_id: int, data: CategoryUpdate) -> CategoryModel:
        category = self.get_category(category_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("name") and self.categories.find_by_name(changes["name"], exclude_id=category_id):
            raise ConflictError("Category with this name already exists")
        for field, value in changes.items():
            setattr(category, field, value)
        self.categories.commit()
        logger.info(f"Category {category_id} updated: {sorted(changes)}")
        return category

    def delete_category(self, category_id: int) -> None:
        category = self.get_category(category_id)
        count = self.categories.count_products(category_id)
        if count:
            raise ValidationFailed(f"Cannot delete category with {count} products")
        self.categories.delete_category(category)
        logger.info(f"Category {category_id} deleted")

    # products
    def list_products(self, page: int = 1, limit: int = 12, **filters):
        threshold = self.settings.low_stock_threshold if self.settings else LOW_STOCK_THRESHOLD
        items, total = self.products.list_products(
            page=page, limit=limit, low_stock_threshold=threshold, **filters
        )
        return {"products": items, "pagination": pagination(page, limit, total)}

    def get_product(self, product_id: int) -> ProductModel:
        product = self.products.get_product(product_id)
        if not product:
            raise NotFoundError("Product not found")
        return product

    def create_product(self, data: ProductCreate) -> ProductModel:
        self.get_category(data.category_id)
        _check_discount(data.price, data.discount_price)

        values = data.model_dump()
        product = self.products.add_product(ProductModel(**values))
        logger.info(f"Product {product.id} '{product.title}' created with stock {product.stock}")
        return product

    def update_product(self, product_id: int, data: ProductUpdate) -> ProductModel:
        product = self.get_product(product_id)
        changes = data.model_dump(exclude_unset=True)

        if changes.get("category_id") is not None:
            self.get_category(changes["category_id"])

        price = changes.get("price", product.price)
        if price is None:
            raise ValidationFailed("Price is required")
        discount = changes["discount_price"] if "discount_price" in changes else product.discount_price
        _check_discount(price, discount)

        for field, value in changes.items():
            setattr(product, field, value)
        product.version = product.version + 1
        self.products.commit()
        logger.info(f"Product {product_id} updated: {sorted(changes)}")
        return product

    def delete_product(self, product_id: int) -> dict:
        """
        Products that appear on an order are archived instead of deleted,
        order lines keep their own snapshot either way.
        """
        product = self.get_product(product_id)

        if self.products.is_referenced_by_orders(product_id):
            product.status = "inactive"
            self.products.commit()
            logger.info(f"Product {product_id} is referenced by orders, archived")
            return {"id": product_id, "archived": True, "message": "Product archived"}

        try:
            removed_cart = self.carts.delete_items_for_product(product_id)
            removed_wish = self.wishlists.delete_items_for_product(product_id)
            self.products.delete_product(product)
            self.products.commit()
        except Exception:
            self.products.rollback()
            raise

        logger.info(
            f"Product {product_id} deleted, pruned {removed_cart} cart and {removed_wish} wishlist entries"
        )
        return {"id": product_id, "archived": False, "message": "Product deleted"}
