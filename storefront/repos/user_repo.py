# storefront/repos/user_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.data.models.user import UserModel


class UserRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: int) -> UserModel | None:
        return self.db.get(UserModel, user_id)

    def get_by_phone(self, phone_number: str) -> UserModel | None:
        return self.db.execute(
            select(UserModel).where(UserModel.phone_number == phone_number)
        ).scalar_one_or_none()

    def get_by_email(self, email: str) -> UserModel | None:
        return self.db.execute(
            select(UserModel).where(UserModel.email == email)
        ).scalar_one_or_none()

    def list_users(self, role: str | None = None) -> list[UserModel]:
        stmt = select(UserModel).order_by(UserModel.id)
        if role:
            stmt = stmt.where(UserModel.role == role)
        return list(self.db.execute(stmt).scalars().all())

    def create_user(self, user: UserModel) -> UserModel:
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def commit(self):
        self.db.commit()
