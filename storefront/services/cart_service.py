# storefront/services/cart_service.py
from decimal import Decimal
from typing import Dict, Any

from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.domain.errors import NotFoundError, ValidationFailed, InsufficientStock, ConcurrencyConflict
from storefront.domain.views import product_brief
from storefront.repos.cart_repo import CartRepo
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger
from storefront.utils.time import utc_now

logger = get_logger(__name__)


class CartService:
    """
    Simple cqrs for the cart domain
    commands (add, update, remove, clear) bump the cart version
    query (get) only reads, apart from pruning dead lines
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)

    def _get_or_create(self, user_id: int) -> CartModel:
        cart = self.repo.get_cart_by_user(user_id)
        if cart:
            return cart
        created = self.repo.create_cart(CartModel(user_id=user_id, version=1, updated_at=utc_now()))
        logger.info(f"Created cart {created.id} for user {user_id}")
        return created

    def _serialize(self, cart: CartModel) -> Dict[str, Any]:
        items = self.repo.get_cart_items(cart.id)
        lines = [
            {
                "id": i.id,
                "product_id": i.product_id,
                "quantity": i.quantity,
                "price": i.price,
                "line_total": i.price * i.quantity,
                "product": product_brief(i.product),
            }
            for i in items
        ]
        return {
            "cart_id": cart.id,
            "user_id": cart.user_id,
            "items": lines,
            "item_count": sum(i.quantity for i in items),
            "subtotal": sum((line["line_total"] for line in lines), Decimal("0.00")),
            "updated_at": cart.updated_at,
        }

    def _bump_version(self, cart: CartModel) -> None:
        # Optimistic locking
        # UPDATE carts SET version = 2 WHERE id = 1 AND version = 1
        old_version = cart.version
        rowcount = self.repo.update_cart_version(
            cart_id=cart.id,
            old_version=old_version,
            new_data={"version": old_version + 1, "updated_at": utc_now()},
        )
        if rowcount == 0:
            self.repo.rollback()
            raise ConcurrencyConflict("Cart was modified by another request, retry")

        #commit expires the cart, next read picks up the new version
        self.repo.commit()
        logger.info(f"Cart {cart.id} saved, new version: {old_version + 1}")

    #query
    def get_cart(self, user_id: int) -> Dict[str, Any]:
        cart = self._get_or_create(user_id)

        dead = [i for i in self.repo.get_cart_items(cart.id) if i.product is None]
        if dead:
            for item in dead:
                self.repo.delete_cart_item(item)
            self._bump_version(cart)
            logger.info(f"Pruned {len(dead)} lines with missing products from cart {cart.id}")

        return self._serialize(cart)

    #commands
    def add_item(self, user_id: int, product_id: int, quantity: int = 1) -> Dict[str, Any]:
        if quantity <= 0:
            raise ValidationFailed("Quantity must be greater than 0")

        product = self.products.get_product(product_id)
        if not product:
            raise NotFoundError("Product not found")
        if product.status != "active":
            raise ValidationFailed("Product is not available")

        cart = self._get_or_create(user_id)
        existing = self.repo.get_cart_item_by_product(cart.id, product_id)
        wanted = quantity + (existing.quantity if existing else 0)

        if wanted > product.stock:
            raise InsufficientStock(f"Insufficient stock. Available: {product.stock}")

        if existing:
            logger.info(
                f"Product {product_id} already in cart {cart.id}, quantity "
                f"{existing.quantity} -> {wanted}"
            )
            existing.quantity = wanted
            existing.price = product.final_price
        else:
            logger.info(f"Adding product {product_id} to cart {cart.id}")
            self.repo.add_cart_item(
                CartItemModel(
                    cart_id=cart.id,
                    product_id=product_id,
                    quantity=quantity,
                    price=product.final_price,
                )
            )

        self._bump_version(cart)
        return self._serialize(cart)

    def update_item(self, user_id: int, item_id: int, quantity: int) -> Dict[str, Any]:
        if quantity <= 0:
            raise ValidationFailed("Quantity must be greater than 0")

        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            raise NotFoundError("Cart not found")

        item = self.repo.get_cart_item(cart.id, item_id)
        if not item:
            raise NotFoundError("Item not found in cart")

        product = self.products.get_product(item.product_id)
        if not product:
            raise NotFoundError("Product not found")

        #stock only re-checked when growing the line
        if quantity > item.quantity and quantity > product.stock:
            raise InsufficientStock(f"Insufficient stock. Available: {product.stock}")

        logger.info(f"Cart {cart.id} line {item_id}: quantity {item.quantity} -> {quantity}")
        item.quantity = quantity
        item.price = product.final_price

        self._bump_version(cart)
        return self._serialize(cart)

    def remove_item(self, user_id: int, item_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            raise NotFoundError("Cart not found")

        item = self.repo.get_cart_item(cart.id, item_id)
        if not item:
            raise NotFoundError("Item not found in cart")

        logger.info(f"Removing line {item_id} (product {item.product_id}) from cart {cart.id}")
        self.repo.delete_cart_item(item)

        self._bump_version(cart)
        return self._serialize(cart)

    def clear(self, user_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            raise NotFoundError("Cart not found")

        removed = self.repo.clear_cart_items(cart.id)
        logger.info(f"Cleared {removed} lines from cart {cart.id}")

        self._bump_version(cart)
        return self._serialize(cart)
