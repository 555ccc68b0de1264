# storefront/services/quotation_service.py
from datetime import timedelta

from sqlalchemy.orm import Session

from storefront.data.models.quotation_request import QuotationRequestModel
from storefront.data.models.user import UserModel
from storefront.domain.errors import ForbiddenError, NotFoundError, ValidationFailed
from storefront.domain.schemas import QuotationCreate, QuotationRespondIn
from storefront.domain.views import product_brief
from storefront.repos.product_repo import ProductRepo
from storefront.repos.quotation_repo import QuotationRepo
from storefront.services.pricing import money
from storefront.utils.logging import get_logger
from storefront.utils.pagination import pagination
from storefront.utils.time import utc_now

logger = get_logger(__name__)

#statuses that carry a price and a validity window
PRICED_STATUSES = ("approved", "quoted")


def quotation_view(q: QuotationRequestModel) -> dict:
    customer = q.customer
    quoted = None
    if q.quoted_unit_price is not None:
        quoted = {
            "unit_price": q.quoted_unit_price,
            "total_price": q.quoted_total_price,
            "valid_until": q.valid_until,
        }
    return {
        "id": q.id,
        "customer": (
            {"id": customer.id, "name": customer.name, "email": customer.email} if customer else None
        ),
        "product_id": q.product_id,
        "product": product_brief(q.product),
        "quantity": q.quantity,
        "specifications": q.specifications,
        "notes": q.notes,
        "status": q.status,
        "admin_notes": q.admin_notes,
        "quoted_price": quoted,
        "responded_at": q.responded_at,
        "created_at": q.created_at,
    }


class QuotationService:
    """
    B2B quoting: approved B2B customers ask for a price on a quantity of one product,
    an admin answers with a status and, for approved/quoted, a unit price valid for N days.
    """

    def __init__(self, db: Session, notifier=None):
        self.repo = QuotationRepo(db)
        self.products = ProductRepo(db)
        self.notifier = notifier

    def _get(self, quotation_id: int) -> QuotationRequestModel:
        quotation = self.repo.get(quotation_id)
        if not quotation:
            raise NotFoundError("Quotation request not found")
        return quotation

    # customer
    def request_quote(self, user: UserModel, data: QuotationCreate) -> dict:
        if user.customer_type != "B2B":
            raise ForbiddenError("Only B2B customers can request quotations")
        if user.approval_status != "approved":
            raise ForbiddenError("Your B2B account needs to be approved before requesting quotes")

        product = self.products.get_product(data.product_id)
        if not product or product.status != "active":
            raise NotFoundError("Product not found")

        try:
            quotation = self.repo.add(
                QuotationRequestModel(
                    customer_id=user.id,
                    product_id=product.id,
                    quantity=data.quantity,
                    specifications=data.specifications,
                    notes=data.notes,
                    status="pending",
                )
            )
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Quotation {quotation.id} requested by user {user.id} for product {product.id}")
        if self.notifier is not None:
            self.notifier.quote_request(quotation, user)
        return quotation_view(quotation)

    def my_quotations(self, user: UserModel) -> list[dict]:
        return [quotation_view(q) for q in self.repo.list_for_customer(user.id)]

    # admin
    def list_quotations(self, status: str | None = None, page: int = 1, limit: int = 10) -> dict:
        if status == "all":
            status = None
        items, total = self.repo.list_quotations(status, page, limit)
        return {
            "quotations": [quotation_view(q) for q in items],
            "pagination": pagination(page, limit, total),
        }

    def get_quotation(self, quotation_id: int) -> dict:
        quotation = self._get(quotation_id)
        customer, product = quotation.customer, quotation.product
        view = quotation_view(quotation)
        view.update(
            {
                "customer_name": customer.name if customer else None,
                "customer_email": customer.email if customer else None,
                "customer_phone": customer.phone if customer else None,
                "company": customer.company if customer else None,
                "product_name": product.title if product else None,
            }
        )
        return view

    def respond(self, quotation_id: int, data: QuotationRespondIn, admin: UserModel) -> dict:
        quotation = self._get(quotation_id)
        now = utc_now()

        unit = None
        if data.status in PRICED_STATUSES:
            #no explicit price falls back to the product's list price
            if data.unit_price is not None:
                unit = data.unit_price
            elif quotation.product is not None:
                unit = quotation.product.price
            else:
                raise ValidationFailed("unit_price is required, the product no longer exists")

        quotation.status = data.status
        quotation.admin_notes = data.admin_notes
        quotation.responded_by = admin.id
        quotation.responded_at = now
        if unit is not None:
            quotation.quoted_unit_price = money(unit)
            quotation.quoted_total_price = money(unit * quotation.quantity)
            quotation.valid_until = now + timedelta(days=data.validity_days)

        try:
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Quotation {quotation_id} set to {data.status} by admin {admin.id}")
        return quotation_view(quotation)

    def expire_stale(self, now=None) -> int:
        """Approved or quoted requests past their validity window become expired."""
        now = now or utc_now()
        try:
            expired = self.repo.expire_before(now)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise
        logger.info(f"Expired {expired} quotations past their validity")
        return expired
