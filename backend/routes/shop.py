from typing import Optional, List
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from database import get_db
from services import catalog
from services.errors import StoreError
from schemas.product import ProductListPage, ProductOut, ProductDetailOut, CategoryOut

# Public catalog: no login required
router = APIRouter(
    prefix="/shop",
    tags=["Shop"]
)

# Active categories for the shop navigation
@router.get("/categories", response_model=List[CategoryOut])
def get_categories(
    db: Session = Depends(get_db),
):
    return catalog.list_categories(db)

@router.get("/products", response_model=ProductListPage)
def list_products_for_shop(
    # Search and filter parameters
    search: Optional[str] = Query(None, description="Search in name, description or SKU"),
    category_id: Optional[int] = Query(None, description="Filter by category"),
    page: int = Query(1, ge=1),
    db: Session = Depends(get_db),
):
    result = catalog.list_products(db, page=page, category_id=category_id, search=search)
    return {**result, "items": [ProductOut.model_validate(p) for p in result["items"]]}

@router.get("/products/{product_id}", response_model=ProductDetailOut)
def get_product_for_shop(
    product_id: int,
    db: Session = Depends(get_db),
):
    try:
        product, category = catalog.get_product(db, product_id)
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    data = ProductOut.model_validate(product).model_dump()
    return ProductDetailOut(**data, category_name=category.name)
