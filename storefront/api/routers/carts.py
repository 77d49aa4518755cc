# storefront/api/routers/carts.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_user
from storefront.data.database import get_db
from storefront.data.models.user import UserModel
from storefront.domain.schemas import (
    CartAddIn,
    CartLineOut,
    CartQuantityIn,
    CartQuantityOut,
    CartSummaryOut,
    DeletedOut,
)
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("/", response_model=CartSummaryOut)
def get_cart(user: UserModel = Depends(get_current_user), db: Session = Depends(get_db)):
    return CartService(db).get_summary(user)


@router.post("/items", response_model=CartLineOut)
def add_item(
    payload: CartAddIn,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return CartService(db).add_or_increment(
        user=user,
        product_id=payload.product_id,
        quantity=payload.quantity,
        size=payload.size,
        color=payload.color,
    )


@router.patch("/items/{line_id}", response_model=CartQuantityOut)
def set_quantity(
    line_id: int,
    payload: CartQuantityIn,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return CartService(db).set_quantity(line_id, payload.quantity, user)


@router.delete("/items/{line_id}", response_model=DeletedOut)
def remove_item(
    line_id: int,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    CartService(db).remove_line(line_id, user)
    return {"success": True}


@router.delete("/", response_model=DeletedOut)
def clear_cart(user: UserModel = Depends(get_current_user), db: Session = Depends(get_db)):
    CartService(db).clear(user.id)
    return {"success": True}
