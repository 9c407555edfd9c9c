from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal
import enum

from cakeland.models.coupon import DiscountType


class CouponForm(BaseModel):
    """Coupon fields exactly as an operator typed them.

    Everything is free text (numbers are accepted and coerced to strings);
    parsing, validation and normalization happen in the coupon editor.
    """

    model_config = ConfigDict(coerce_numbers_to_str=True)

    code: str = ""
    discount_type: str = DiscountType.PERCENTAGE.value
    discount_value: str = ""
    min_order_amount: Optional[str] = None
    max_discount_amount: Optional[str] = None
    valid_until: Optional[str] = None
    is_active: bool = True


class CouponDraft(BaseModel):
    """Validated, normalized coupon ready to be written."""

    code: str
    discount_type: DiscountType
    discount_value: Decimal
    min_order_amount: Optional[Decimal] = None
    max_discount_amount: Optional[Decimal] = None
    valid_until: Optional[datetime] = None
    is_active: bool = True


class CouponResponse(BaseModel):
    id: int
    code: str
    discount_type: DiscountType
    discount_value: Decimal
    min_order_amount: Optional[Decimal]
    max_discount_amount: Optional[Decimal]
    valid_until: Optional[datetime]
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class CouponRejection(str, enum.Enum):
    NOT_FOUND = "not_found"
    INACTIVE = "inactive"
    EXPIRED = "expired"
    BELOW_MINIMUM = "below_minimum"


class ApplyCouponRequest(BaseModel):
    coupon_code: str = Field(..., min_length=1, max_length=50)
    order_total: Decimal = Field(..., ge=0)


class CartCouponRequest(BaseModel):
    coupon_code: str = Field(..., min_length=1, max_length=50)


class ApplyCouponResponse(BaseModel):
    valid: bool
    reason: Optional[CouponRejection] = None
    discount_amount: Decimal
    final_total: Decimal
    message: str
    coupon_details: Optional[CouponResponse] = None
