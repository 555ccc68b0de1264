# storefront/data/seed.py
from decimal import Decimal

from storefront.data.database import SessionLocal
from storefront.data.models import CategoryModel, ProductModel, UserModel
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

_CATALOG = {
    "Industrial Valves": [
        ("Brass Ball Valve 1 inch", Decimal("850.00"), Decimal("799.00"), 120),
        ("Cast Iron Gate Valve 2 inch", Decimal("2450.00"), None, 40),
    ],
    "Pipe Fittings": [
        ("GI Elbow 90 deg 1/2 inch", Decimal("45.00"), None, 500),
        ("PVC Tee 1 inch", Decimal("30.00"), Decimal("25.00"), 8),
    ],
}


def seed():
    db = SessionLocal()
    try:
        # not forcing: only seed if empty
        if db.query(UserModel).first():
            return

        db.add(
            UserModel(
                username="admin",
                email="admin@ambikainternational.com",
                name="Store Admin",
                role="admin",
            )
        )
        for category_name, products in _CATALOG.items():
            category = CategoryModel(name=category_name)
            db.add(category)
            db.flush()
            for title, price, discount_price, stock in products:
                db.add(
                    ProductModel(
                        title=title,
                        category_id=category.id,
                        price=price,
                        discount_price=discount_price,
                        stock=stock,
                    )
                )
        db.commit()
        logger.info("Seeded admin user and demo catalog")
    finally:
        db.close()
