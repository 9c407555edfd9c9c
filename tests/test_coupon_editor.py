from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from cakeland.core.cache import ADMIN_COUPONS_KEY, query_cache
from cakeland.core.exceptions import (
    CouponNotFound,
    CouponPersistenceError,
    CouponValidationError,
    DeletionNotConfirmed,
)
from cakeland.models.coupon import Coupon, DiscountType
from cakeland.schemas.coupon import CouponForm
from cakeland.services.coupon_editor import CouponEditor
from cakeland.services.coupon_service import CouponService

NOW = datetime(2026, 10, 19, 12, 0, 0)


def _form(**overrides) -> CouponForm:
    fields = {
        "code": "CAKE20",
        "discount_type": "percentage",
        "discount_value": "20",
    }
    fields.update(overrides)
    return CouponForm(**fields)


def _rejected_field(form: CouponForm) -> CouponValidationError:
    with pytest.raises(CouponValidationError) as exc_info:
        CouponEditor.normalize(form, now=NOW)
    return exc_info.value


# --------------------------------------------------
# VALIDATION
# --------------------------------------------------
def test_blank_code_is_rejected_first():
    error = _rejected_field(_form(code="   ", discount_value="abc", min_order_amount="-1"))

    assert error.field == "code"
    assert error.message == "Coupon code is required"
    assert error.status_code == 400


def test_unknown_discount_type_is_rejected():
    error = _rejected_field(_form(discount_type="bogo"))

    assert error.field == "discount_type"


@pytest.mark.parametrize("value", ["", "   ", "abc", "0", "-5", "0.001", "NaN", "Infinity", "1,5"])
def test_invalid_discount_value_is_rejected(value):
    error = _rejected_field(_form(discount_value=value))

    assert error.field == "discount_value"
    assert error.message == "Enter a valid discount value greater than 0"


def test_percentage_above_100_is_rejected():
    error = _rejected_field(_form(discount_value="100.01"))

    assert error.field == "discount_value"
    assert error.message == "Percentage discount cannot exceed 100"


def test_percentage_is_checked_before_rounding():
    error = _rejected_field(_form(discount_value="100.004"))

    assert error.field == "discount_value"
    assert error.message == "Percentage discount cannot exceed 100"


def test_percentage_of_exactly_100_is_accepted():
    draft = CouponEditor.normalize(_form(discount_value="100"), now=NOW)

    assert draft.discount_value == Decimal("100.00")


def test_fixed_discount_has_no_upper_bound():
    draft = CouponEditor.normalize(_form(discount_type="fixed", discount_value="5000"), now=NOW)

    assert draft.discount_type == DiscountType.FIXED
    assert draft.discount_value == Decimal("5000.00")


@pytest.mark.parametrize("value", ["-1", "-0.01", "-0.004", "abc"])
def test_invalid_minimum_order_amount_is_rejected(value):
    error = _rejected_field(_form(min_order_amount=value))

    assert error.field == "min_order_amount"


@pytest.mark.parametrize("value", ["-1", "-0.004", "abc"])
def test_invalid_max_discount_amount_is_rejected(value):
    error = _rejected_field(_form(max_discount_amount=value))

    assert error.field == "max_discount_amount"


def test_checks_run_in_order():
    assert _rejected_field(_form(discount_value="0", min_order_amount="-1")).field == "discount_value"
    assert _rejected_field(_form(min_order_amount="-1", max_discount_amount="-1")).field == "min_order_amount"
    assert (
        _rejected_field(_form(max_discount_amount="-1", valid_until="2020-01-01T00:00:00Z")).field
        == "max_discount_amount"
    )


def test_valid_until_in_the_past_is_rejected():
    yesterday = (NOW - timedelta(days=1)).isoformat() + "Z"

    error = _rejected_field(_form(valid_until=yesterday))

    assert error.field == "valid_until"
    assert error.message == "Valid until must be a future date and time"


def test_valid_until_equal_to_now_is_rejected():
    error = _rejected_field(_form(valid_until=NOW.isoformat() + "Z"))

    assert error.field == "valid_until"


def test_unparseable_valid_until_is_rejected():
    error = _rejected_field(_form(valid_until="next tuesday"))

    assert error.field == "valid_until"
    assert error.message == "Valid until must be a valid date and time"


# --------------------------------------------------
# NORMALIZATION
# --------------------------------------------------
def test_code_is_trimmed_and_uppercased():
    draft = CouponEditor.normalize(_form(code="  summer10 "), now=NOW)

    assert draft.code == "SUMMER10"


def test_amounts_are_rounded_half_up_to_cents():
    draft = CouponEditor.normalize(
        _form(
            discount_value="12.345",
            min_order_amount="499.995",
            max_discount_amount="100.004",
        ),
        now=NOW,
    )

    assert draft.discount_value == Decimal("12.35")
    assert draft.min_order_amount == Decimal("500.00")
    assert draft.max_discount_amount == Decimal("100.00")


def test_fixed_discount_above_100_is_rounded_after_checks():
    draft = CouponEditor.normalize(_form(discount_type="fixed", discount_value="100.004"), now=NOW)

    assert draft.discount_value == Decimal("100.00")


def test_blank_optional_fields_become_none():
    draft = CouponEditor.normalize(
        _form(min_order_amount="", max_discount_amount="  ", valid_until=""),
        now=NOW,
    )

    assert draft.min_order_amount is None
    assert draft.max_discount_amount is None
    assert draft.valid_until is None


def test_zero_minimum_and_cap_are_kept():
    draft = CouponEditor.normalize(_form(min_order_amount="0", max_discount_amount="0"), now=NOW)

    assert draft.min_order_amount == Decimal("0.00")
    assert draft.max_discount_amount == Decimal("0.00")


def test_naive_valid_until_is_read_in_store_timezone():
    # Asia/Kolkata is UTC+05:30
    draft = CouponEditor.normalize(_form(valid_until="2026-10-20T10:00"), now=NOW)

    assert draft.valid_until == datetime(2026, 10, 20, 4, 30)


def test_aware_valid_until_is_stored_as_naive_utc():
    draft = CouponEditor.normalize(_form(valid_until="2026-10-20T10:00:00+02:00"), now=NOW)

    assert draft.valid_until == datetime(2026, 10, 20, 8, 0)
    assert draft.valid_until.tzinfo is None


def test_numeric_form_values_are_accepted():
    draft = CouponEditor.normalize(CouponForm(code="num", discount_value=15, min_order_amount=250), now=NOW)

    assert draft.discount_value == Decimal("15.00")
    assert draft.min_order_amount == Decimal("250.00")


# --------------------------------------------------
# SAVE
# --------------------------------------------------
def test_save_inserts_normalized_coupon(db_session: Session):
    saved = CouponEditor.save(
        db_session,
        _form(code=" birthday ", discount_value="12.345", max_discount_amount="150"),
        now=NOW,
    )

    stored = db_session.query(Coupon).filter(Coupon.id == saved.id).one()
    assert stored.code == "BIRTHDAY"
    assert stored.discount_value == Decimal("12.35")
    assert stored.max_discount_amount == Decimal("150.00")
    assert stored.min_order_amount is None
    assert stored.is_active is True


def test_save_with_past_valid_until_writes_nothing(db_session: Session):
    yesterday = (NOW - timedelta(days=1)).isoformat() + "Z"

    with pytest.raises(CouponValidationError):
        CouponEditor.save(db_session, _form(valid_until=yesterday), now=NOW)

    assert db_session.query(Coupon).count() == 0


def test_save_updates_existing_coupon(db_session: Session):
    saved = CouponEditor.save(db_session, _form(), now=NOW)

    updated = CouponEditor.save(
        db_session,
        _form(code="cake25", discount_type="fixed", discount_value="25", is_active=False),
        coupon_id=saved.id,
        now=NOW,
    )

    assert updated.id == saved.id
    assert updated.code == "CAKE25"
    assert updated.discount_type == DiscountType.FIXED
    assert updated.is_active is False
    assert db_session.query(Coupon).count() == 1


def test_update_of_missing_coupon_raises_not_found(db_session: Session):
    with pytest.raises(CouponNotFound):
        CouponEditor.save(db_session, _form(), coupon_id=999, now=NOW)


def test_duplicate_code_surfaces_store_error(db_session: Session):
    CouponEditor.save(db_session, _form(code="cake20"), now=NOW)

    with pytest.raises(CouponPersistenceError) as exc_info:
        CouponEditor.save(db_session, _form(code="CAKE20", discount_value="5"), now=NOW)

    assert exc_info.value.status_code == 409
    assert "UNIQUE" in exc_info.value.message
    assert db_session.query(Coupon).count() == 1


# --------------------------------------------------
# DELETE
# --------------------------------------------------
def test_delete_requires_confirmation(db_session: Session):
    saved = CouponEditor.save(db_session, _form(), now=NOW)

    with pytest.raises(DeletionNotConfirmed):
        CouponEditor.delete(db_session, saved.id)

    assert db_session.query(Coupon).count() == 1


def test_confirmed_delete_removes_coupon(db_session: Session):
    saved = CouponEditor.save(db_session, _form(), now=NOW)

    CouponEditor.delete(db_session, saved.id, confirmed=True)

    assert db_session.query(Coupon).count() == 0


def test_delete_of_missing_coupon_raises_not_found(db_session: Session):
    with pytest.raises(CouponNotFound):
        CouponEditor.delete(db_session, 404, confirmed=True)


# --------------------------------------------------
# CACHE INVALIDATION
# --------------------------------------------------
def test_save_invalidates_cached_listing(db_session: Session):
    CouponEditor.save(db_session, _form(code="first"), now=NOW)
    assert [c.code for c in CouponService.list_coupons(db_session)] == ["FIRST"]
    assert ADMIN_COUPONS_KEY in query_cache

    CouponEditor.save(db_session, _form(code="second"), now=NOW)

    assert ADMIN_COUPONS_KEY not in query_cache
    assert [c.code for c in CouponService.list_coupons(db_session)] == ["SECOND", "FIRST"]


def test_failed_save_keeps_cached_listing(db_session: Session):
    CouponEditor.save(db_session, _form(code="first"), now=NOW)
    CouponService.list_coupons(db_session)

    with pytest.raises(CouponValidationError):
        CouponEditor.save(db_session, _form(code=""), now=NOW)

    assert ADMIN_COUPONS_KEY in query_cache


def test_delete_invalidates_cached_listing(db_session: Session):
    saved = CouponEditor.save(db_session, _form(), now=NOW)
    CouponService.list_coupons(db_session)

    CouponEditor.delete(db_session, saved.id, confirmed=True)

    assert ADMIN_COUPONS_KEY not in query_cache
    assert CouponService.list_coupons(db_session) == []
