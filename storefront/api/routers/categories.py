from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from storefront.api.deps import require_admin, get_settings, http_error
from storefront.data.database import get_db
from storefront.domain.errors import StoreError
from storefront.domain.schemas import CategoryCreate, CategoryUpdate, CategoryOut, CategoryListOut
from storefront.services.catalog_service import CatalogService

router = APIRouter(prefix="/categories", tags=["categories"])


def get_service(db: Session = Depends(get_db), settings=Depends(get_settings)) -> CatalogService:
    return CatalogService(db, settings)


@router.get("", response_model=CategoryListOut)
def list_categories(
    search: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    svc: CatalogService = Depends(get_service),
):
    return svc.list_categories(search, is_active, page, limit)


@router.get("/{category_id}", response_model=CategoryOut)
def get_category(category_id: int, svc: CatalogService = Depends(get_service)):
    try:
        return svc.get_category(category_id)
    except StoreError as e:
        raise http_error(e)


@router.post("", response_model=CategoryOut, status_code=201, dependencies=[Depends(require_admin)])
def create_category(payload: CategoryCreate, svc: CatalogService = Depends(get_service)):
    try:
        return svc.create_category(payload)
    except StoreError as e:
        raise http_error(e)


@router.put("/{category_id}", response_model=CategoryOut, dependencies=[Depends(require_admin)])
def update_category(category_id: int, payload: CategoryUpdate, svc: CatalogService = Depends(get_service)):
    try:
        return svc.update_category(category_id, payload)
    except StoreError as e:
        raise http_error(e)


@router.delete("/{category_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_category(category_id: int, svc: CatalogService = Depends(get_service)):
    try:
        svc.delete_category(category_id)
    except StoreError as e:
        raise http_error(e)
    return Response(status_code=204)
