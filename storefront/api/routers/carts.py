#storefront/api/routers/carts.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_user, http_error
from storefront.data.database import get_db
from storefront.data.models.user import UserModel
from storefront.domain.errors import StoreError
from storefront.domain.schemas import CartAddIn, CartItemUpdateIn, CartOut
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(db: Session = Depends(get_db)) -> CartService:
    return CartService(db)


@router.get("", response_model=CartOut)
def get_cart(user: UserModel = Depends(get_current_user), svc: CartService = Depends(get_service)):
    try:
        return svc.get_cart(user.id)
    except StoreError as e:
        raise http_error(e)


@router.post("/items", response_model=CartOut)
def add_item(
    payload: CartAddIn,
    user: UserModel = Depends(get_current_user),
    svc: CartService = Depends(get_service),
):
    try:
        return svc.add_item(user.id, payload.product_id, payload.quantity)
    except StoreError as e:
        raise http_error(e)


@router.put("/items/{item_id}", response_model=CartOut)
def update_item(
    item_id: int,
    payload: CartItemUpdateIn,
    user: UserModel = Depends(get_current_user),
    svc: CartService = Depends(get_service),
):
    try:
        return svc.update_item(user.id, item_id, payload.quantity)
    except StoreError as e:
        raise http_error(e)


@router.delete("/items/{item_id}", response_model=CartOut)
def remove_item(
    item_id: int,
    user: UserModel = Depends(get_current_user),
    svc: CartService = Depends(get_service),
):
    try:
        return svc.remove_item(user.id, item_id)
    except StoreError as e:
        raise http_error(e)


@router.delete("", response_model=CartOut)
def clear_cart(user: UserModel = Depends(get_current_user), svc: CartService = Depends(get_service)):
    try:
        return svc.clear(user.id)
    except StoreError as e:
        raise http_error(e)
