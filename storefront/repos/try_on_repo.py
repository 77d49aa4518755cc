# storefront/repos/try_on_repo.py
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.try_on import TryOnModel
from storefront.domain.enums import TryOnStatus


class TryOnRepo:
    def __init__(self, db: Session):
        self.db = db

    def create(self, record: TryOnModel) -> TryOnModel:
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return record

    def get(self, record_id: int) -> TryOnModel | None:
        return self.db.get(TryOnModel, record_id, populate_existing=True)

    def get_owned(self, record_id: int, user_id: int, record_type: str) -> TryOnModel | None:
        return self.db.execute(
            select(TryOnModel).where(
                TryOnModel.id == record_id,
                TryOnModel.user_id == user_id,
                TryOnModel.type == record_type,
            )
        ).scalar_one_or_none()

    def get_processing_for_user(self, user_id: int) -> TryOnModel | None:
        return self.db.execute(
            select(TryOnModel)
            .where(
                TryOnModel.user_id == user_id,
                TryOnModel.status == TryOnStatus.PROCESSING.value,
            )
            .order_by(TryOnModel.created_at.desc())
            .limit(1)
        ).scalar_one_or_none()

    def list_for_user(self, user_id: int, record_type: str) -> list[TryOnModel]:
        return list(
            self.db.execute(
                select(TryOnModel)
                .where(TryOnModel.user_id == user_id, TryOnModel.type == record_type)
                .options(selectinload(TryOnModel.product))
                .order_by(TryOnModel.created_at.desc(), TryOnModel.id.desc())
            ).scalars().all()
        )

    def update_if_processing(self, record_id: int, **values) -> int:
        """
        Status write guarded by PROCESSING, so a tick never overwrites a record
        that was deleted or already settled elsewhere.
        """
        result = self.db.execute(
            update(TryOnModel)
            .where(
                TryOnModel.id == record_id,
                TryOnModel.status == TryOnStatus.PROCESSING.value,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount

    def fail_stale(self, cutoff: datetime) -> int:
        result = self.db.execute(
            update(TryOnModel)
            .where(
                TryOnModel.status == TryOnStatus.PROCESSING.value,
                TryOnModel.created_at < cutoff,
            )
            .values(status=TryOnStatus.FAILED.value)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount

    def delete(self, record: TryOnModel):
        self.db.delete(record)
        self.db.commit()

    def commit(self):
        self.db.commit()
