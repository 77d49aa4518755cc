# storefront/api/routers/addresses.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_user
from storefront.data.database import get_db
from storefront.data.models.user import UserModel
from storefront.domain.schemas import AddressCreate, AddressOut, DeletedOut
from storefront.services.address_service import AddressService

router = APIRouter(prefix="/addresses", tags=["addresses"])


@router.post("/", response_model=AddressOut, status_code=201)
def create_address(
    payload: AddressCreate,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return AddressService(db).create(user, payload)


@router.get("/", response_model=List[AddressOut])
def list_addresses(user: UserModel = Depends(get_current_user), db: Session = Depends(get_db)):
    return AddressService(db).list_addresses(user)


@router.patch("/{address_id}/default", response_model=AddressOut)
def set_default(
    address_id: int,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return AddressService(db).set_default(user, address_id)


@router.delete("/{address_id}", response_model=DeletedOut)
def delete_address(
    address_id: int,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    AddressService(db).delete(user, address_id)
    return {"success": True}
