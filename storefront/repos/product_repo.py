# storefront/repos/product_repo.py
from decimal import Decimal

from sqlalchemy import select, update, func, or_, exists
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.product import ProductModel
from storefront.data.models.order_item import OrderItemModel
from storefront.utils.pagination import page_offset
from storefront.utils.settings import LOW_STOCK_THRESHOLD

_SORTABLE = {"created_at", "price", "title", "stock", "updated_at"}


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_products(self, product_ids) -> dict[int, ProductModel]:
        if not product_ids:
            return {}
        rows = self.db.execute(
            select(ProductModel).where(ProductModel.id.in_(set(product_ids)))
        ).scalars()
        return {p.id: p for p in rows}

    def list_products(
        self,
        category_id: int | None = None,
        search: str | None = None,
        min_price: Decimal | None = None,
        max_price: Decimal | None = None,
        status: str | None = None,
        stock_status: str | None = None,
        featured: bool | None = None,
        sort: str = "created_at",
        order: str = "desc",
        page: int = 1,
        limit: int = 10,
        low_stock_threshold: int = LOW_STOCK_THRESHOLD,
    ):
        query = select(ProductModel)
        if category_id:
            query = query.where(ProductModel.category_id == category_id)
        if search:
            like = f"%{search}%"
            query = query.where(or_(ProductModel.title.ilike(like), ProductModel.description.ilike(like)))
        if min_price is not None:
            query = query.where(ProductModel.price >= min_price)
        if max_price is not None:
            query = query.where(ProductModel.price <= max_price)
        if status:
            query = query.where(ProductModel.status == status)
        if featured is not None:
            query = query.where(ProductModel.featured == featured)
        if stock_status == "out_of_stock":
            query = query.where(ProductModel.stock == 0)
        elif stock_status == "low_stock":
            query = query.where(ProductModel.stock > 0, ProductModel.stock < low_stock_threshold)
        elif stock_status == "in_stock":
            query = query.where(ProductModel.stock >= low_stock_threshold)

        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar_one()

        column = getattr(ProductModel, sort if sort in _SORTABLE else "created_at")
        query = query.order_by(column.desc() if order == "desc" else column.asc(), ProductModel.id)
        items = self.db.execute(
            query.options(selectinload(ProductModel.category))
            .offset(page_offset(page, limit))
            .limit(limit)
        ).scalars().all()
        return list(items), total

    def add_product(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product

    def delete_product(self, product: ProductModel) -> None:
        self.db.delete(product)
        self.db.flush()

    def is_referenced_by_orders(self, product_id: int) -> bool:
        return self.db.execute(
            select(exists().where(OrderItemModel.product_id == product_id))
        ).scalar()

    # -----------------------------------------------------
    # stock: atomic conditional updates, caller owns the transaction
    # -----------------------------------------------------
    def decrement_stock(self, product_id: int, quantity: int) -> int:
        # UPDATE products SET stock = stock - :q WHERE id = :id AND stock >= :q
        result = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id, ProductModel.stock >= quantity)
            .values(stock=ProductModel.stock - quantity, version=ProductModel.version + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def increment_stock(self, product_id: int, quantity: int) -> int:
        result = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id)
            .values(stock=ProductModel.stock + quantity, version=ProductModel.version + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def reload(self, product_id: int) -> ProductModel | None:
        #core UPDATE bypasses the identity map, so refresh
        return self.db.get(ProductModel, product_id, populate_existing=True)

    def low_stock_products(self, threshold: int) -> list[ProductModel]:
        return list(
            self.db.execute(
                select(ProductModel)
                .where(ProductModel.stock <= threshold, ProductModel.status == "active")
                .order_by(ProductModel.stock, ProductModel.id)
            ).scalars()
        )

    def count_active(self) -> int:
        return self.db.execute(
            select(func.count(ProductModel.id)).where(ProductModel.status == "active")
        ).scalar_one()

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
