from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

import structlog
from sqlalchemy.exc import DataError, IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from cakeland.core.cache import COUPONS_CHANGED, mutation_events
from cakeland.core.config import settings
from cakeland.core.exceptions import (
    CouponNotFound,
    CouponPersistenceError,
    CouponValidationError,
    DeletionNotConfirmed,
)
from cakeland.models.coupon import Coupon, DiscountType
from cakeland.schemas.coupon import CouponDraft, CouponForm, CouponResponse
from cakeland.utils.clock import to_naive_utc, utcnow
from cakeland.utils.money import round_money

logger = structlog.get_logger()


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _parse_amount(raw: Optional[str]) -> Optional[Decimal]:
    """Locale-invariant decimal parse, unrounded. None for anything non-finite."""
    if raw is None:
        return None
    try:
        value = Decimal(raw.strip())
    except InvalidOperation:
        return None
    return value if value.is_finite() else None


def _optional_money(value: Optional[Decimal]) -> Optional[Decimal]:
    return None if value is None else round_money(value)


def _parse_optional_amount(raw: Optional[str], field: str, message: str) -> Optional[Decimal]:
    if _blank(raw):
        return None
    value = _parse_amount(raw)
    if value is None or value < 0:
        raise CouponValidationError(field, message)
    return value


def _parse_valid_until(raw: Optional[str]) -> Optional[datetime]:
    if _blank(raw):
        return None
    text = raw.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise CouponValidationError("valid_until", "Valid until must be a valid date and time")
    return to_naive_utc(parsed, assume_zone=settings.store_zone)


class CouponEditor:
    """Turns operator input into stored coupons.

    Validation happens entirely before the session is touched, so a rejected
    form never leaves a partial write behind.
    """

    @staticmethod
    def normalize(form: CouponForm, now: Optional[datetime] = None) -> CouponDraft:
        """Validate a raw form and return the normalized coupon.

        Checks run in order and the first failure is raised as
        ``CouponValidationError``.
        """
        now = now or utcnow()

        code = (form.code or "").strip().upper()
        if not code:
            raise CouponValidationError("code", "Coupon code is required")

        try:
            discount_type = DiscountType((form.discount_type or "").strip().lower())
        except ValueError:
            raise CouponValidationError("discount_type", "Discount type must be percentage or fixed")

        # Range checks see the value as typed; rounding to cents happens last.
        discount_value = _parse_amount(form.discount_value)
        if discount_value is None or discount_value <= 0 or round_money(discount_value) <= 0:
            raise CouponValidationError("discount_value", "Enter a valid discount value greater than 0")

        if discount_type == DiscountType.PERCENTAGE and discount_value > 100:
            raise CouponValidationError("discount_value", "Percentage discount cannot exceed 100")

        min_order_amount = _parse_optional_amount(
            form.min_order_amount,
            "min_order_amount",
            "Minimum order amount must be 0 or greater",
        )
        max_discount_amount = _parse_optional_amount(
            form.max_discount_amount,
            "max_discount_amount",
            "Max discount amount must be 0 or greater",
        )

        valid_until = _parse_valid_until(form.valid_until)
        if valid_until is not None and valid_until <= now:
            raise CouponValidationError("valid_until", "Valid until must be a future date and time")

        return CouponDraft(
            code=code,
            discount_type=discount_type,
            discount_value=round_money(discount_value),
            min_order_amount=_optional_money(min_order_amount),
            max_discount_amount=_optional_money(max_discount_amount),
            valid_until=valid_until,
            is_active=form.is_active,
        )

    @staticmethod
    def save(
        db: Session,
        form: CouponForm,
        coupon_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> CouponResponse:
        """Insert (no ``coupon_id``) or update a coupon from operator input."""
        draft = CouponEditor.normalize(form, now=now)
        mode = "update" if coupon_id is not None else "create"

        if coupon_id is None:
            coupon = Coupon()
            db.add(coupon)
        else:
            coupon = db.query(Coupon).filter(Coupon.id == coupon_id).first()
            if not coupon:
                raise CouponNotFound()

        for key, value in draft.model_dump().items():
            setattr(coupon, key, value)

        try:
            db.commit()
        except (IntegrityError, DataError) as exc:
            db.rollback()
            message = str(exc.orig) if exc.orig is not None else "Failed to save coupon"
            logger.warning("coupon_persistence_failed", mode=mode, code=draft.code, detail=message)
            raise CouponPersistenceError(message)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("coupon_persistence_failed", mode=mode, code=draft.code)
            raise
        db.refresh(coupon)

        logger.info("coupon_saved", mode=mode, coupon_id=coupon.id, code=coupon.code)
        mutation_events.publish(COUPONS_CHANGED, coupon_id=coupon.id)
        return CouponResponse.model_validate(coupon)

    @staticmethod
    def delete(db: Session, coupon_id: int, confirmed: bool = False) -> None:
        """Permanently remove a coupon. The caller must pass ``confirmed=True``."""
        if not confirmed:
            raise DeletionNotConfirmed("coupon")

        coupon = db.query(Coupon).filter(Coupon.id == coupon_id).first()
        if not coupon:
            raise CouponNotFound()

        db.delete(coupon)
        try:
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("coupon_delete_failed", coupon_id=coupon_id)
            raise

        logger.info("coupon_deleted", coupon_id=coupon_id)
        mutation_events.publish(COUPONS_CHANGED, coupon_id=coupon_id)
