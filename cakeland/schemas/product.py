from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal


class ProductListResponse(BaseModel):
    id: int
    name: str
    slug: str
    image_url: Optional[str]
    price_per_litre: Decimal
    offer_price_per_litre: Optional[Decimal]
    stock_quantity: int
    in_stock: bool

    class Config:
        from_attributes = True


class ProductDetailResponse(ProductListResponse):
    description: Optional[str]
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class ProductPage(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int
    products: List[ProductListResponse]


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    image_url: Optional[str] = Field(None, max_length=500)
    price_per_litre: Decimal = Field(..., gt=0, decimal_places=2)
    offer_price_per_litre: Optional[Decimal] = Field(None, gt=0, decimal_places=2)
    stock_quantity: int = Field(default=0, ge=0)
    is_active: bool = True


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    image_url: Optional[str] = Field(None, max_length=500)
    price_per_litre: Optional[Decimal] = Field(None, gt=0, decimal_places=2)
    offer_price_per_litre: Optional[Decimal] = Field(None, gt=0, decimal_places=2)
    stock_quantity: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None
