# storefront/api/routers/users.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_user
from storefront.data.database import get_db
from storefront.data.models.user import UserModel
from storefront.domain.enums import UserRole
from storefront.domain.schemas import (
    OtpSendIn,
    OtpSentOut,
    OtpVerifiedOut,
    OtpVerifyIn,
    StaffCreate,
    UserCreate,
    UserRead,
)
from storefront.services.otp_service import OtpService
from storefront.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


def get_otp_service() -> OtpService:
    return OtpService()


@router.post("/", response_model=UserRead, status_code=201)
def register(payload: UserCreate, db: Session = Depends(get_db)):
    return UserService(db).register(payload)


@router.get("/me", response_model=UserRead)
def me(user: UserModel = Depends(get_current_user)):
    return user


@router.post("/otp/send", response_model=OtpSentOut)
def send_otp(payload: OtpSendIn, otp: OtpService = Depends(get_otp_service)):
    return {"expires_at": otp.send_otp(payload.phone_number)}


@router.post("/otp/verify", response_model=OtpVerifiedOut)
def verify_otp(
    payload: OtpVerifyIn,
    db: Session = Depends(get_db),
    otp: OtpService = Depends(get_otp_service),
):
    if not otp.verify_otp(payload.phone_number, payload.code):
        return {"verified": False, "user": None}

    svc = UserService(db)
    user = svc.mark_verified(svc.get_by_phone(payload.phone_number))
    return {"verified": True, "user": user}


# ---- admin
@router.post("/staff", response_model=UserRead, status_code=201)
def create_staff(
    payload: StaffCreate,
    caller: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return UserService(db).create_staff(caller, payload)


@router.get("/", response_model=List[UserRead])
def list_users(
    role: Optional[UserRole] = Query(None),
    caller: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return UserService(db).list_users(caller, role)
