from sqlalchemy.orm import Session

from storefront.data.models.wishlist import WishlistModel, WishlistItemModel
from storefront.domain.errors import NotFoundError, ValidationFailed
from storefront.domain.views import product_brief
from storefront.repos.product_repo import ProductRepo
from storefront.repos.wishlist_repo import WishlistRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class WishlistService:
    def __init__(self, db: Session):
        self.repo = WishlistRepo(db)
        self.products = ProductRepo(db)

    def _get_or_create(self, user_id: int) -> WishlistModel:
        wishlist = self.repo.get_by_user(user_id)
        if wishlist:
            return wishlist
        return self.repo.create(WishlistModel(user_id=user_id))

    def _serialize(self, wishlist: WishlistModel) -> dict:
        items = [
            {"product_id": i.product_id, "added_at": i.added_at, "product": product_brief(i.product)}
            for i in wishlist.items
            if i.product is not None
        ]
        return {"items": items, "total_items": len(items)}

    def get_wishlist(self, user_id: int) -> dict:
        return self._serialize(self._get_or_create(user_id))

    def add(self, user_id: int, product_id: int) -> dict:
        if not self.products.get_product(product_id):
            raise NotFoundError("Product not found")

        wishlist = self._get_or_create(user_id)
        if self.repo.get_item(wishlist.id, product_id):
            raise ValidationFailed("Product already in wishlist")

        self.repo.add_item(WishlistItemModel(wishlist_id=wishlist.id, product_id=product_id))
        logger.info(f"Product {product_id} added to wishlist of user {user_id}")
        return self._serialize(self.repo.get_by_user(user_id))

    def remove(self, user_id: int, product_id: int) -> dict:
        wishlist = self.repo.get_by_user(user_id)
        item = self.repo.get_item(wishlist.id, product_id) if wishlist else None
        if not item:
            raise NotFoundError("Product not in wishlist")

        self.repo.delete_item(item)
        logger.info(f"Product {product_id} removed from wishlist of user {user_id}")
        return self._serialize(self.repo.get_by_user(user_id))
