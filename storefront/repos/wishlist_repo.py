from sqlalchemy import select, delete
from sqlalchemy.orm import Session

from storefront.data.models.wishlist import WishlistModel, WishlistItemModel


class WishlistRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_user(self, user_id: int) -> WishlistModel | None:
        return self.db.execute(
            select(WishlistModel).where(WishlistModel.user_id == user_id)
        ).scalar_one_or_none()

    def create(self, wishlist: WishlistModel) -> WishlistModel:
        self.db.add(wishlist)
        self.db.commit()
        self.db.refresh(wishlist)
        return wishlist

    def get_item(self, wishlist_id: int, product_id: int) -> WishlistItemModel | None:
        return self.db.execute(
            select(WishlistItemModel).where(
                WishlistItemModel.wishlist_id == wishlist_id,
                WishlistItemModel.product_id == product_id,
            )
        ).scalar_one_or_none()

    def add_item(self, item: WishlistItemModel) -> WishlistItemModel:
        self.db.add(item)
        self.db.commit()
        return item

    def delete_item(self, item: WishlistItemModel) -> None:
        self.db.delete(item)
        self.db.commit()

    def delete_items_for_product(self, product_id: int) -> int:
        result = self.db.execute(
            delete(WishlistItemModel)
            .where(WishlistItemModel.product_id == product_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
