from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_user, get_notifier, http_error
from storefront.data.database import get_db
from storefront.data.models.user import UserModel
from storefront.domain.errors import StoreError
from storefront.domain.schemas import UserCreate, UserRead, UserUpdate, AddressIn, AddressOut
from storefront.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


def get_service(db: Session = Depends(get_db), notifier=Depends(get_notifier)) -> UserService:
    return UserService(db, notifier)


@router.post("", response_model=UserRead, status_code=201)
def register(payload: UserCreate, svc: UserService = Depends(get_service)):
    try:
        return svc.register(payload)
    except StoreError as e:
        raise http_error(e)


@router.get("/me", response_model=UserRead)
def get_me(user: UserModel = Depends(get_current_user)):
    return user


@router.put("/me", response_model=UserRead)
def update_me(
    payload: UserUpdate,
    user: UserModel = Depends(get_current_user),
    svc: UserService = Depends(get_service),
):
    try:
        return svc.update_profile(user, payload)
    except StoreError as e:
        raise http_error(e)


@router.get("/me/addresses", response_model=List[AddressOut])
def list_addresses(user: UserModel = Depends(get_current_user), svc: UserService = Depends(get_service)):
    return svc.list_addresses(user)


@router.post("/me/addresses", response_model=List[AddressOut], status_code=201)
def add_address(
    payload: AddressIn,
    user: UserModel = Depends(get_current_user),
    svc: UserService = Depends(get_service),
):
    try:
        return svc.add_address(user, payload)
    except StoreError as e:
        raise http_error(e)


@router.put("/me/addresses/{address_id}", response_model=List[AddressOut])
def update_address(
    address_id: int,
    payload: AddressIn,
    user: UserModel = Depends(get_current_user),
    svc: UserService = Depends(get_service),
):
    try:
        return svc.update_address(user, address_id, payload)
    except StoreError as e:
        raise http_error(e)


@router.put("/me/addresses/{address_id}/default", response_model=List[AddressOut])
def set_default_address(
    address_id: int,
    user: UserModel = Depends(get_current_user),
    svc: UserService = Depends(get_service),
):
    try:
        return svc.set_default_address(user, address_id)
    except StoreError as e:
        raise http_error(e)


@router.delete("/me/addresses/{address_id}", response_model=List[AddressOut])
def delete_address(
    address_id: int,
    user: UserModel = Depends(get_current_user),
    svc: UserService = Depends(get_service),
):
    try:
        return svc.delete_address(user, address_id)
    except StoreError as e:
        raise http_error(e)
