from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session

from storefront.data.models.category import CategoryModel
from storefront.data.models.product import ProductModel
from storefront.utils.pagination import page_offset


class CategoryRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_category(self, category_id: int) -> CategoryModel | None:
        return self.db.get(CategoryModel, category_id)

    def find_by_name(self, name: str, exclude_id: int | None = None) -> CategoryModel | None:
        #case-insensitive, like the unique check on the admin form
        query = select(CategoryModel).where(func.lower(CategoryModel.name) == name.strip().lower())
        if exclude_id is not None:
            query = query.where(CategoryModel.id != exclude_id)
        return self.db.execute(query).scalars().first()

    def list_categories(self, search: str | None, is_active: bool | None, page: int, limit: int):
        query = select(CategoryModel)
        if search:
            like = f"%{search}%"
            query = query.where(or_(CategoryModel.name.ilike(like), CategoryModel.description.ilike(like)))
        if is_active is not None:
            query = query.where(CategoryModel.is_active == is_active)

        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar_one()
        items = self.db.execute(
            query.order_by(CategoryModel.name).offset(page_offset(page, limit)).limit(limit)
        ).scalars().all()
        return list(items), total

    def count_products(self, category_id: int) -> int:
        return self.db.execute(
            select(func.count(ProductModel.id)).where(ProductModel.category_id == category_id)
        ).scalar_one()

    def add_category(self, category: CategoryModel) -> CategoryModel:
        self.db.add(category)
        self.db.commit()
        self.db.refresh(category)
        return category

    def delete_category(self, category: CategoryModel) -> None:
        self.db.delete(category)
        self.db.commit()

    def commit(self):
        self.db.commit()
