# storefront/repos/address_repo.py
from sqlalchemy import select, update, delete, func
from sqlalchemy.orm import Session

from storefront.data.models.address import AddressModel


class AddressRepo:
    def __init__(self, db: Session):
        self.db = db

    def count_for_user(self, user_id: int) -> int:
        return self.db.scalar(
            select(func.count(AddressModel.id)).where(AddressModel.user_id == user_id)
        )

    def get_owned(self, address_id: int, user_id: int) -> AddressModel | None:
        return self.db.execute(
            select(AddressModel).where(
                AddressModel.id == address_id,
                AddressModel.user_id == user_id,
            )
        ).scalar_one_or_none()

    def list_for_user(self, user_id: int) -> list[AddressModel]:
        return list(
            self.db.execute(
                select(AddressModel)
                .where(AddressModel.user_id == user_id)
                .order_by(AddressModel.is_default.desc(), AddressModel.created_at.desc(), AddressModel.id.desc())
            ).scalars().all()
        )

    def clear_default(self, user_id: int):
        self.db.execute(
            update(AddressModel)
            .where(AddressModel.user_id == user_id)
            .values(is_default=False)
            .execution_options(synchronize_session="fetch")
        )

    def add(self, address: AddressModel) -> AddressModel:
        self.db.add(address)
        self.db.flush()
        return address

    def delete_owned(self, address_id: int, user_id: int) -> int:
        result = self.db.execute(
            delete(AddressModel).where(
                AddressModel.id == address_id,
                AddressModel.user_id == user_id,
            )
        )
        return result.rowcount

    def commit(self):
        self.db.commit()
