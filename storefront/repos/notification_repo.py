from datetime import datetime

from sqlalchemy import select, update, delete, func, and_
from sqlalchemy.orm import Session

from storefront.data.models.notification import NotificationModel
from storefront.utils.pagination import page_offset


class NotificationRepo:
    def __init__(self, db: Session):
        self.db = db

    def add(self, notification: NotificationModel) -> NotificationModel:
        self.db.add(notification)
        self.db.flush()
        return notification

    def get(self, notification_id: int) -> NotificationModel | None:
        return self.db.get(NotificationModel, notification_id)

    def list_notifications(
        self,
        type_: str | None,
        is_read: bool | None,
        priority: str | None,
        page: int,
        limit: int,
    ):
        query = select(NotificationModel)
        if type_:
            query = query.where(NotificationModel.type == type_)
        if is_read is not None:
            query = query.where(NotificationModel.is_read == is_read)
        if priority:
            query = query.where(NotificationModel.priority == priority)

        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar_one()
        items = self.db.execute(
            query.order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
            .offset(page_offset(page, limit))
            .limit(limit)
        ).scalars().all()
        return list(items), total

    def count_unread(self) -> int:
        return self.db.execute(
            select(func.count(NotificationModel.id)).where(NotificationModel.is_read.is_(False))
        ).scalar_one()

    def count_all(self) -> int:
        return self.db.execute(select(func.count(NotificationModel.id))).scalar_one()

    def count_by_type(self) -> dict[str, int]:
        rows = self.db.execute(
            select(NotificationModel.type, func.count(NotificationModel.id)).group_by(NotificationModel.type)
        ).all()
        return {t: c for t, c in rows}

    def mark_all_read(self, reader_id: int, read_at: datetime) -> int:
        result = self.db.execute(
            update(NotificationModel)
            .where(NotificationModel.is_read.is_(False))
            .values(is_read=True, read_at=read_at, read_by=reader_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def exists_since(self, type_: str, related_model: str, related_id: int, since: datetime) -> bool:
        return self.db.execute(
            select(NotificationModel.id)
            .where(
                and_(
                    NotificationModel.type == type_,
                    NotificationModel.related_model == related_model,
                    NotificationModel.related_id == related_id,
                    NotificationModel.created_at >= since,
                )
            )
            .limit(1)
        ).first() is not None

    def delete(self, notification: NotificationModel) -> None:
        self.db.delete(notification)
        self.db.flush()

    def delete_read_before(self, cutoff: datetime) -> int:
        result = self.db.execute(
            delete(NotificationModel)
            .where(NotificationModel.is_read.is_(True), NotificationModel.created_at < cutoff)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
