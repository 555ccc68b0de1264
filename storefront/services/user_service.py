from sqlalchemy.orm import Session

from storefront.data.models.address import AddressModel
from storefront.data.models.user import UserModel
from storefront.domain.errors import NotFoundError, ConflictError, UnauthorizedError
from storefront.domain.schemas import UserCreate, UserUpdate, AddressIn
from storefront.repos.user_repo import UserRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class UserService:
    def __init__(self, db: Session, notifier=None):
        self.repo = UserRepo(db)
        self.notifier = notifier

    def register(self, payload: UserCreate) -> UserModel:
        if self.repo.get_by_username(payload.username):
            raise ConflictError("Username already taken")
        if self.repo.get_by_email(payload.email):
            raise ConflictError("Email already registered")

        user = UserModel(
            username=payload.username,
            email=payload.email.lower(),
            name=payload.name,
            phone=payload.phone,
            company=payload.company,
            role="user",
            customer_type=payload.customer_type,
            approval_status="pending" if payload.customer_type == "B2B" else "approved",
        )
        created = self.repo.create_user(user)
        logger.info(f"Registered user {created.id} ({created.customer_type})")

        if created.customer_type == "B2B" and self.notifier is not None:
            self.notifier.b2b_registration(created)
        return created

    def get_user(self, user_id: int) -> UserModel:
        user = self.repo.get_user(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def authenticate(self, user_id: int) -> UserModel:
        user = self.repo.get_user(user_id)
        if not user:
            raise UnauthorizedError("Unknown user")
        return user

    def update_profile(self, user: UserModel, payload: UserUpdate) -> UserModel:
        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(user, field, value)
        self.repo.commit()
        return user

    # -----------------------------------------------------
    # addresses: at most one default per user
    # -----------------------------------------------------
    def list_addresses(self, user: UserModel) -> list[AddressModel]:
        return self.repo.get_addresses(user.id)

    def _get_address(self, user: UserModel, address_id: int) -> AddressModel:
        address = self.repo.get_address(user.id, address_id)
        if not address:
            raise NotFoundError("Address not found")
        return address

    def _make_default(self, user: UserModel, address: AddressModel) -> None:
        for other in self.repo.get_addresses(user.id):
            other.is_default = other.id == address.id
        address.is_default = True

    def add_address(self, user: UserModel, payload: AddressIn) -> list[AddressModel]:
        existing = self.repo.get_addresses(user.id)
        address = self.repo.add_address(AddressModel(user_id=user.id, **payload.model_dump()))

        #first address is always the default
        if payload.is_default or not existing:
            self._make_default(user, address)
        self.repo.commit()
        logger.info(f"Address {address.id} added for user {user.id}")
        return self.repo.get_addresses(user.id)

    def update_address(self, user: UserModel, address_id: int, payload: AddressIn) -> list[AddressModel]:
        address = self._get_address(user, address_id)
        was_default = address.is_default

        for field, value in payload.model_dump().items():
            setattr(address, field, value)

        if payload.is_default:
            self._make_default(user, address)
        elif was_default:
            #cannot un-default the only default without naming another
            address.is_default = True
        self.repo.commit()
        return self.repo.get_addresses(user.id)

    def set_default_address(self, user: UserModel, address_id: int) -> list[AddressModel]:
        address = self._get_address(user, address_id)
        self._make_default(user, address)
        self.repo.commit()
        return self.repo.get_addresses(user.id)

    def delete_address(self, user: UserModel, address_id: int) -> list[AddressModel]:
        address = self._get_address(user, address_id)
        was_default = address.is_default
        self.repo.delete_address(address)

        remaining = self.repo.get_addresses(user.id)
        if was_default and remaining:
            remaining[0].is_default = True
        self.repo.commit()
        logger.info(f"Address {address_id} deleted for user {user.id}")
        return self.repo.get_addresses(user.id)
