from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cakeland.api.deps import get_current_user
from cakeland.db.session import get_db
from cakeland.models.user import User
from cakeland.schemas.coupon import ApplyCouponRequest
from cakeland.services.coupon_service import CouponService
from cakeland.utils.response import success

router = APIRouter()


@router.post("/validate", response_model=dict)
def validate_coupon(
    request: ApplyCouponRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Preview a coupon's discount for an order total (authenticated users)."""
    result = CouponService.check_code(db, request.coupon_code, request.order_total)
    return success(data=result, message="Coupon validated")
