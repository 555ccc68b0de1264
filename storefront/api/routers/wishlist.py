from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_user, http_error
from storefront.data.database import get_db
from storefront.data.models.user import UserModel
from storefront.domain.errors import StoreError
from storefront.domain.schemas import WishlistOut
from storefront.services.wishlist_service import WishlistService

router = APIRouter(prefix="/wishlist", tags=["wishlist"])


def get_service(db: Session = Depends(get_db)) -> WishlistService:
    return WishlistService(db)


@router.get("", response_model=WishlistOut)
def get_wishlist(user: UserModel = Depends(get_current_user), svc: WishlistService = Depends(get_service)):
    return svc.get_wishlist(user.id)


@router.post("/{product_id}", response_model=WishlistOut, status_code=201)
def add_to_wishlist(
    product_id: int,
    user: UserModel = Depends(get_current_user),
    svc: WishlistService = Depends(get_service),
):
    try:
        return svc.add(user.id, product_id)
    except StoreError as e:
        raise http_error(e)


@router.delete("/{product_id}", response_model=WishlistOut)
def remove_from_wishlist(
    product_id: int,
    user: UserModel = Depends(get_current_user),
    svc: WishlistService = Depends(get_service),
):
    try:
        return svc.remove(user.id, product_id)
    except StoreError as e:
        raise http_error(e)
