from typing import Optional, List
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_caller
from services.caller import Caller
from services import catalog
from schemas.product import ProductOut, ProductSummaryOut, ProductIdsRequest


router = APIRouter(
    prefix="/shop",
    tags=["Shop"]
)

# Retrieve unique product categories
@router.get("/categories", response_model=List[str])
def get_unique_categories(
    db: Session = Depends(get_db),
):
    return catalog.get_categories(db)

@router.get("/products", response_model=List[ProductOut])
def list_products_for_shop(
    # Search and filter parameters
    search: Optional[str] = Query(None, description="Search in name, description or category"),
    category: Optional[str] = Query(None, description="Exact category"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    return catalog.get_products(db, caller, category=category, search=search, limit=limit, offset=offset)

# Products referenced by a cart, for the summary panel
@router.post("/products/batch", response_model=List[ProductSummaryOut])
def get_products_by_ids(
    payload: ProductIdsRequest,
    db: Session = Depends(get_db),
):
    return catalog.get_products_by_ids(db, payload.product_ids)

@router.get("/products/{product_id}", response_model=ProductOut)
def get_product(
    product_id: str,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    product = catalog.get_product(db, caller, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
