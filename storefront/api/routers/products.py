from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import require_admin, get_settings, get_notifier, http_error
from storefront.data.database import get_db
from storefront.domain.errors import StoreError
from storefront.domain.schemas import (
    ProductCreate,
    ProductUpdate,
    ProductOut,
    ProductListOut,
    ProductDeleteOut,
    StockAdjustIn,
)
from storefront.services.catalog_service import CatalogService
from storefront.services.inventory_service import InventoryService

router = APIRouter(prefix="/products", tags=["products"])


def get_service(db: Session = Depends(get_db), settings=Depends(get_settings)) -> CatalogService:
    return CatalogService(db, settings)


@router.get("", response_model=ProductListOut)
def list_products(
    category_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    status: Optional[str] = Query(None),
    stock_status: Optional[str] = Query(None),
    featured: Optional[bool] = Query(None),
    sort: str = Query("created_at"),
    order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    svc: CatalogService = Depends(get_service),
):
    return svc.list_products(
        page=page,
        limit=limit,
        category_id=category_id,
        search=search,
        min_price=min_price,
        max_price=max_price,
        status=status,
        stock_status=stock_status,
        featured=featured,
        sort=sort,
        order=order,
    )


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, svc: CatalogService = Depends(get_service)):
    try:
        return svc.get_product(product_id)
    except StoreError as e:
        raise http_error(e)


@router.post("", response_model=ProductOut, status_code=201, dependencies=[Depends(require_admin)])
def create_product(payload: ProductCreate, svc: CatalogService = Depends(get_service)):
    try:
        return svc.create_product(payload)
    except StoreError as e:
        raise http_error(e)


@router.put("/{product_id}", response_model=ProductOut, dependencies=[Depends(require_admin)])
def update_product(product_id: int, payload: ProductUpdate, svc: CatalogService = Depends(get_service)):
    try:
        return svc.update_product(product_id, payload)
    except StoreError as e:
        raise http_error(e)


@router.delete("/{product_id}", response_model=ProductDeleteOut, dependencies=[Depends(require_admin)])
def delete_product(product_id: int, svc: CatalogService = Depends(get_service)):
    try:
        return svc.delete_product(product_id)
    except StoreError as e:
        raise http_error(e)


@router.patch("/{product_id}/stock", response_model=ProductOut, dependencies=[Depends(require_admin)])
def adjust_stock(
    product_id: int,
    payload: StockAdjustIn,
    db: Session = Depends(get_db),
    settings=Depends(get_settings),
    notifier=Depends(get_notifier),
):
    try:
        return InventoryService(db, settings, notifier).adjust(product_id, payload.delta)
    except StoreError as e:
        raise http_error(e)
