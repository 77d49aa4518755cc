# storefront/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_user
from storefront.data.database import get_db
from storefront.data.models.user import UserModel
from storefront.domain.schemas import (
    OrderCreate,
    OrderInitiateOut,
    OrderOut,
    OrderStatusOut,
    OrderStatusUpdate,
    TrackingOut,
)
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])
admin_router = APIRouter(prefix="/admin/orders", tags=["admin-orders"])


def get_service(db: Session = Depends(get_db)) -> OrderService:
    return OrderService(db)


@router.post("/initiate", response_model=OrderInitiateOut, status_code=201)
def initiate_order(
    payload: OrderCreate,
    user: UserModel = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    """
    Creates a PENDING order from the cart.
    ONLINE returns the PhonePe payment url, COD is placed right away.
    """
    return svc.initiate(user, payload.address_id, payload.payment_type)


@router.get("/status", response_model=OrderStatusOut)
def payment_status(
    order_id: int = Query(..., gt=0),
    user: UserModel = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    """Polled by the client after the PhonePe redirect."""
    return svc.verify_and_complete(order_id, user)


@router.get("/", response_model=List[OrderOut])
def list_orders(
    user: UserModel = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    return svc.list_for_user(user)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    user: UserModel = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    return svc.get_order(order_id, user)


@router.get("/{order_id}/tracking", response_model=TrackingOut)
def track_order(
    order_id: int,
    user: UserModel = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    return svc.tracking(order_id, user)


@admin_router.patch("/{order_id}/status", response_model=OrderOut)
def update_status(
    order_id: int,
    payload: OrderStatusUpdate,
    caller: UserModel = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    return svc.update_status(caller, order_id, payload.status, payload.description)
