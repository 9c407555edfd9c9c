from datetime import datetime
from decimal import Decimal
from typing import List, Optional

import structlog
from sqlalchemy.orm import Session

from cakeland.core.cache import ADMIN_COUPONS_KEY, query_cache
from cakeland.core.exceptions import CouponNotFound
from cakeland.models.coupon import Coupon
from cakeland.schemas.coupon import ApplyCouponResponse, CouponRejection, CouponResponse
from cakeland.services.coupon_eligibility import evaluate, rejection_message
from cakeland.utils.money import D, ZERO, round_money

logger = structlog.get_logger()


def normalize_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


class CouponService:

    @staticmethod
    def list_coupons(db: Session) -> List[CouponResponse]:
        """All coupons, newest first. Served from the query cache until a coupon changes."""
        def load() -> List[CouponResponse]:
            coupons = db.query(Coupon).order_by(Coupon.created_at.desc(), Coupon.id.desc()).all()
            return [CouponResponse.model_validate(coupon) for coupon in coupons]

        return query_cache.get_or_load(ADMIN_COUPONS_KEY, load)

    @staticmethod
    def get_coupon(db: Session, coupon_id: int) -> CouponResponse:
        """Get a coupon by ID."""
        coupon = db.query(Coupon).filter(Coupon.id == coupon_id).first()
        if not coupon:
            raise CouponNotFound()
        return CouponResponse.model_validate(coupon)

    @staticmethod
    def find_by_code(db: Session, code: str) -> Optional[Coupon]:
        normalized = normalize_code(code)
        if not normalized:
            return None
        return db.query(Coupon).filter(Coupon.code == normalized).first()

    @staticmethod
    def check_code(
        db: Session,
        coupon_code: str,
        order_total: Decimal,
        now: Optional[datetime] = None,
    ) -> ApplyCouponResponse:
        """Look a code up and evaluate it against an order subtotal.

        Rejections come back as a response with ``valid=False`` and a
        ``reason``; nothing here raises for an ineligible coupon.
        """
        subtotal = D(order_total)
        coupon = CouponService.find_by_code(db, coupon_code)

        if not coupon:
            return ApplyCouponResponse(
                valid=False,
                reason=CouponRejection.NOT_FOUND,
                discount_amount=ZERO,
                final_total=round_money(subtotal),
                message=rejection_message(CouponRejection.NOT_FOUND),
            )

        result = evaluate(coupon, subtotal, now=now)
        if not result.eligible:
            logger.info(
                "coupon_rejected",
                code=coupon.code,
                reason=result.reason.value,
                subtotal=str(subtotal),
            )
            return ApplyCouponResponse(
                valid=False,
                reason=result.reason,
                discount_amount=ZERO,
                final_total=round_money(subtotal),
                message=rejection_message(result.reason, coupon),
            )

        return ApplyCouponResponse(
            valid=True,
            discount_amount=result.discount,
            final_total=round_money(subtotal - result.discount),
            message="Coupon applied successfully",
            coupon_details=CouponResponse.model_validate(coupon),
        )
