from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from cakeland.core.rate_limiter import limiter
from cakeland.db.session import get_db
from cakeland.services.product_service import ProductService
from cakeland.utils.response import success

router = APIRouter()


@router.get("", response_model=dict)
@router.get("/", response_model=dict)
@limiter.limit("100/minute")
def get_products(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    db: Session = Depends(get_db)
):
    """Active products, newest first, with optional name search."""
    result = ProductService.list_products(db, search=search, page=page, limit=limit)
    return success(data=result, message="Products retrieved")


@router.get("/{product_id}", response_model=dict)
@limiter.limit("100/minute")
def get_product(request: Request, product_id: int, db: Session = Depends(get_db)):
    """Get a single active product"""
    product = ProductService.get_product(db, product_id)
    return success(data=product, message="Product retrieved")
