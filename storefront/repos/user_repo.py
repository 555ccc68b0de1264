from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session

from storefront.data.models.user import UserModel
from storefront.data.models.address import AddressModel
from storefront.utils.pagination import page_offset


class UserRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: int) -> UserModel | None:
        return self.db.get(UserModel, user_id)

    def get_by_email(self, email: str) -> UserModel | None:
        return self.db.execute(
            select(UserModel).where(func.lower(UserModel.email) == email.lower())
        ).scalar_one_or_none()

    def get_by_username(self, username: str) -> UserModel | None:
        return self.db.execute(
            select(UserModel).where(UserModel.username == username)
        ).scalar_one_or_none()

    def create_user(self, user: UserModel) -> UserModel:
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def list_customers(self, search: str | None, page: int, limit: int, sort: str, order: str):
        query = select(UserModel).where(UserModel.role == "user")
        if search:
            like = f"%{search}%"
            query = query.where(
                or_(
                    UserModel.name.ilike(like),
                    UserModel.email.ilike(like),
                    UserModel.username.ilike(like),
                    UserModel.company.ilike(like),
                )
            )

        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar_one()

        column = getattr(UserModel, sort, UserModel.created_at)
        query = query.order_by(column.desc() if order == "desc" else column.asc())
        users = self.db.execute(query.offset(page_offset(page, limit)).limit(limit)).scalars().all()
        return list(users), total

    def count_customers(self) -> int:
        return self.db.execute(
            select(func.count(UserModel.id)).where(UserModel.role == "user")
        ).scalar_one()

    # addresses
    def get_address(self, user_id: int, address_id: int) -> AddressModel | None:
        return self.db.execute(
            select(AddressModel).where(
                AddressModel.user_id == user_id,
                AddressModel.id == address_id,
            )
        ).scalar_one_or_none()

    def get_addresses(self, user_id: int) -> list[AddressModel]:
        return list(
            self.db.execute(
                select(AddressModel)
                .where(AddressModel.user_id == user_id)
                .order_by(AddressModel.id)
            ).scalars()
        )

    def add_address(self, address: AddressModel) -> AddressModel:
        self.db.add(address)
        self.db.flush()
        return address

    def delete_address(self, address: AddressModel) -> None:
        self.db.delete(address)
        self.db.flush()

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
