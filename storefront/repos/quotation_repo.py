from datetime import datetime

from sqlalchemy import select, update, func
from sqlalchemy.orm import Session

from storefront.data.models.quotation_request import QuotationRequestModel
from storefront.utils.pagination import page_offset


class QuotationRepo:
    def __init__(self, db: Session):
        self.db = db

    def add(self, quotation: QuotationRequestModel) -> QuotationRequestModel:
        self.db.add(quotation)
        self.db.flush()
        return quotation

    def get(self, quotation_id: int) -> QuotationRequestModel | None:
        return self.db.get(QuotationRequestModel, quotation_id)

    def list_for_customer(self, customer_id: int) -> list[QuotationRequestModel]:
        return list(
            self.db.execute(
                select(QuotationRequestModel)
                .where(QuotationRequestModel.customer_id == customer_id)
                .order_by(QuotationRequestModel.created_at.desc(), QuotationRequestModel.id.desc())
            ).scalars()
        )

    def list_quotations(self, status: str | None, page: int, limit: int):
        query = select(QuotationRequestModel)
        if status:
            query = query.where(QuotationRequestModel.status == status)

        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar_one()
        items = self.db.execute(
            query.order_by(QuotationRequestModel.created_at.desc(), QuotationRequestModel.id.desc())
            .offset(page_offset(page, limit))
            .limit(limit)
        ).scalars().all()
        return list(items), total

    def expire_before(self, cutoff: datetime) -> int:
        # UPDATE quotation_requests SET status = 'expired' WHERE status IN (approved, quoted) AND valid_until < :cutoff
        result = self.db.execute(
            update(QuotationRequestModel)
            .where(
                QuotationRequestModel.status.in_(("approved", "quoted")),
                QuotationRequestModel.valid_until < cutoff,
            )
            .values(status="expired", updated_at=cutoff)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
