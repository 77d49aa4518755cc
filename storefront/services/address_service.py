# storefront/services/address_service.py
from sqlalchemy.orm import Session

from storefront.data.models.address import AddressModel
from storefront.data.models.user import UserModel
from storefront.domain.errors import NotFound
from storefront.domain.schemas import AddressCreate
from storefront.repos.address_repo import AddressRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class AddressService:
    def __init__(self, db: Session):
        self.repo = AddressRepo(db)

    def create(self, user: UserModel, payload: AddressCreate) -> AddressModel:
        is_default = payload.is_default
        #first address is always the default one
        if self.repo.count_for_user(user.id) == 0:
            is_default = True

        if is_default:
            self.repo.clear_default(user.id)

        address = AddressModel(
            user_id=user.id,
            **payload.model_dump(exclude={"is_default"}),
            is_default=is_default,
        )
        self.repo.add(address)
        self.repo.commit()

        logger.info(f"Address {address.id} created for user {user.id}")
        return address

    def list_addresses(self, user: UserModel) -> list[AddressModel]:
        return self.repo.list_for_user(user.id)

    def get(self, address_id: int, user_id: int) -> AddressModel:
        address = self.repo.get_owned(address_id, user_id)
        if not address:
            raise NotFound("Address not found")
        return address

    def set_default(self, user: UserModel, address_id: int) -> AddressModel:
        address = self.get(address_id, user.id)

        self.repo.clear_default(user.id)
        address.is_default = True
        self.repo.commit()
        return address

    def delete(self, user: UserModel, address_id: int):
        if self.repo.delete_owned(address_id, user.id) == 0:
            raise NotFound("Address not found")
        self.repo.commit()
