"""
Coupon redemption eligibility.

``evaluate`` decides whether a coupon applies to an order subtotal at a given
instant and how much it takes off. It is a pure function over the coupon's
attributes: it never touches the database, so it accepts a ``Coupon`` row,
a ``CouponResponse`` or anything else exposing the same fields.

Checks run in a fixed order and the first failing one is reported:

1. inactive coupons never apply,
2. expiry is re-checked against ``now`` on every call (save-time validation
   of ``valid_until`` does not make a coupon valid forever),
3. the subtotal must reach ``min_order_amount`` when one is set.

The discount is ``subtotal * value / 100`` for percentage coupons and
``value`` for fixed coupons, clamped by ``max_discount_amount`` (for both
types), then rounded half-up to cents and kept at or below the subtotal.
The subtotal itself is never rounded before the checks above.
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_DOWN, Decimal
from typing import Optional

from cakeland.models.coupon import DiscountType
from cakeland.schemas.coupon import CouponRejection
from cakeland.utils.clock import utcnow
from cakeland.utils.money import CENT, D, ZERO, round_money


@dataclass(frozen=True)
class Eligibility:
    eligible: bool
    discount: Decimal = ZERO
    reason: Optional[CouponRejection] = None

    @classmethod
    def rejected(cls, reason: CouponRejection) -> "Eligibility":
        return cls(eligible=False, discount=ZERO, reason=reason)


def raw_discount(discount_type, discount_value, subtotal: Decimal) -> Decimal:
    value = D(discount_value)
    if DiscountType(discount_type) == DiscountType.PERCENTAGE:
        return subtotal * value / Decimal(100)
    # A fixed discount cannot push the order below zero.
    return min(value, subtotal)


def evaluate(coupon, subtotal, now: Optional[datetime] = None) -> Eligibility:
    # Comparisons use the subtotal as given; only the discount is rounded.
    subtotal = D(subtotal)
    if subtotal < 0:
        raise ValueError("subtotal must not be negative")
    now = now or utcnow()

    if not coupon.is_active:
        return Eligibility.rejected(CouponRejection.INACTIVE)

    if coupon.valid_until is not None and now > coupon.valid_until:
        return Eligibility.rejected(CouponRejection.EXPIRED)

    if coupon.min_order_amount is not None and subtotal < D(coupon.min_order_amount):
        return Eligibility.rejected(CouponRejection.BELOW_MINIMUM)

    discount = raw_discount(coupon.discount_type, coupon.discount_value, subtotal)
    if coupon.max_discount_amount is not None:
        discount = min(discount, D(coupon.max_discount_amount))

    discount = max(round_money(discount), ZERO)
    if discount > subtotal:
        discount = subtotal.quantize(CENT, rounding=ROUND_DOWN)
    return Eligibility(eligible=True, discount=discount)


REJECTION_MESSAGES = {
    CouponRejection.NOT_FOUND: "Invalid coupon code",
    CouponRejection.INACTIVE: "This coupon is no longer active",
    CouponRejection.EXPIRED: "Coupon has expired",
}


def rejection_message(reason: CouponRejection, coupon=None) -> str:
    if reason == CouponRejection.BELOW_MINIMUM and coupon is not None:
        return f"Minimum order value of ₹{round_money(coupon.min_order_amount)} required"
    return REJECTION_MESSAGES.get(reason, "Coupon cannot be applied")
