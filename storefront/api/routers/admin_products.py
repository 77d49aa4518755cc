# storefront/api/routers/admin_products.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_user
from storefront.data.database import get_db
from storefront.data.models.user import UserModel
from storefront.domain.schemas import (
    DeletedOut,
    ProductCreate,
    ProductOut,
    ProductUpdate,
    VariantIn,
    VariantOut,
    VariantUpdate,
)
from storefront.services.product_service import ProductService

router = APIRouter(prefix="/admin", tags=["admin-products"])


@router.post("/products", response_model=ProductOut, status_code=201)
def create_product(
    payload: ProductCreate,
    caller: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ProductService(db).create_product(caller, payload)


@router.patch("/products/{product_id}", response_model=ProductOut)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    caller: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ProductService(db).update_product(caller, product_id, payload)


@router.delete("/products/{product_id}", response_model=ProductOut)
def archive_product(
    product_id: int,
    caller: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ProductService(db).archive_product(caller, product_id)


@router.post("/products/{product_id}/variants", response_model=VariantOut, status_code=201)
def add_variant(
    product_id: int,
    payload: VariantIn,
    caller: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ProductService(db).add_variant(caller, product_id, payload)


@router.patch("/variants/{variant_id}", response_model=VariantOut)
def update_variant(
    variant_id: int,
    payload: VariantUpdate,
    caller: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ProductService(db).update_variant(caller, variant_id, payload)


@router.delete("/variants/{variant_id}", response_model=DeletedOut)
def remove_variant(
    variant_id: int,
    caller: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ProductService(db).remove_variant(caller, variant_id)
    return {"success": True}
