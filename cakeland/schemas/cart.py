from pydantic import BaseModel, Field
from typing import List, Optional
from decimal import Decimal


class CartItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(default=1, ge=1, le=10)


class CartItemUpdate(BaseModel):
    quantity: int = Field(..., ge=1, le=10)


class CartItemResponse(BaseModel):
    id: int
    product_id: int
    product_name: str
    product_image: Optional[str]
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    stock_available: int


class CartResponse(BaseModel):
    items: List[CartItemResponse]
    subtotal: Decimal
    total_items: int
