# storefront/services/user_service.py
from sqlalchemy.orm import Session

from storefront.data.models.user import UserModel
from storefront.domain.enums import UserRole
from storefront.domain.errors import Conflict, NotFound
from storefront.domain.schemas import UserCreate, StaffCreate
from storefront.repos.user_repo import UserRepo
from storefront.services.authz import require_role, ADMIN_ROLES
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def _ensure_unique(self, phone_number: str | None, email: str | None):
        if email and self.repo.get_by_email(email):
            raise Conflict("Email already registered")
        if phone_number and self.repo.get_by_phone(phone_number):
            raise Conflict("Phone number already registered")

    def register(self, payload: UserCreate) -> UserModel:
        self._ensure_unique(payload.phone_number, payload.email)

        user = UserModel(
            name=payload.name,
            phone_number=payload.phone_number,
            email=payload.email,
            role=UserRole.USER.value,
            is_verified=False,
        )
        created = self.repo.create_user(user)
        logger.info(f"Registered user {created.id}")
        return created

    def create_staff(self, caller: UserModel, payload: StaffCreate) -> UserModel:
        require_role(caller, *ADMIN_ROLES)
        self._ensure_unique(payload.phone_number, payload.email)

        user = UserModel(
            name=payload.name,
            phone_number=payload.phone_number,
            email=payload.email,
            role=payload.role.value,
            is_verified=True,
        )
        created = self.repo.create_user(user)
        logger.info(f"User {caller.id} created staff account {created.id} ({created.role})")
        return created

    def get_user(self, user_id: int) -> UserModel:
        user = self.repo.get_user(user_id)
        if not user:
            raise NotFound("User not found")
        return user

    def get_by_phone(self, phone_number: str) -> UserModel:
        user = self.repo.get_by_phone(phone_number)
        if not user:
            raise NotFound("User not found")
        return user

    def list_users(self, caller: UserModel, role: UserRole | None = None) -> list[UserModel]:
        require_role(caller, *ADMIN_ROLES)
        return self.repo.list_users(role.value if role else None)

    def mark_verified(self, user: UserModel) -> UserModel:
        user.is_verified = True
        self.repo.commit()
        return user
