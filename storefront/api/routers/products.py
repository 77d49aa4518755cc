# storefront/api/routers/products.py
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.enums import Gender
from storefront.domain.schemas import ProductOut, ProductPage
from storefront.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["products"])


@router.get("/", response_model=ProductPage)
def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    gender: Optional[Gender] = None,
    category: Optional[str] = None,
    brand: Optional[str] = None,
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    sort: Optional[str] = Query(None, pattern="^(newest|price_asc|price_desc|id)$"),
    db: Session = Depends(get_db),
):
    return ProductService(db).list_products(
        page=page,
        limit=limit,
        gender=gender.value if gender else None,
        category=category,
        brand=brand,
        min_price=min_price,
        max_price=max_price,
        sort=sort,
    )


@router.get("/search", response_model=List[ProductOut])
def search(q: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    return ProductService(db).search(q)


@router.get("/trending", response_model=List[ProductOut])
def trending(db: Session = Depends(get_db)):
    return ProductService(db).trending()


@router.get("/categories", response_model=List[str])
def categories(db: Session = Depends(get_db)):
    return ProductService(db).categories()


@router.get("/brands", response_model=List[str])
def brands(db: Session = Depends(get_db)):
    return ProductService(db).brands()


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return ProductService(db).get_product(product_id)
