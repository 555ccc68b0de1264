# storefront/api/__init__.py
from fastapi import FastAPI

from storefront.api.errors import register_error_handlers
from storefront.api.routers import (
    admin,
    carts,
    categories,
    health,
    notifications,
    orders,
    payments,
    products,
    quotations,
    users,
    wishlist,
)
from storefront.utils.settings import StoreSettings, load_settings


def create_app(settings: StoreSettings | None = None, lock_service=None) -> FastAPI:
    app = FastAPI(title="Storefront API", version="1.0.0")

    # loaded once, read by requests through Depends(get_settings)
    app.state.settings = settings or load_settings()
    app.state.lock_service = lock_service

    register_error_handlers(app)

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(categories.router)
    app.include_router(products.router)
    app.include_router(carts.router)
    app.include_router(wishlist.router)
    app.include_router(orders.router)
    app.include_router(quotations.router)
    app.include_router(payments.router)
    app.include_router(admin.router)
    app.include_router(notifications.router)
    return app
