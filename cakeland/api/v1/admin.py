from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from cakeland.api.deps import require_admin
from cakeland.db.session import get_db
from cakeland.models.user import User
from cakeland.schemas.coupon import CouponForm
from cakeland.schemas.product import ProductCreate, ProductUpdate
from cakeland.services.coupon_editor import CouponEditor
from cakeland.services.coupon_service import CouponService
from cakeland.services.product_service import ProductService
from cakeland.utils.response import success

router = APIRouter()


# --------------------------------------------------
# COUPONS
# --------------------------------------------------
@router.get("/coupons", response_model=dict)
def list_coupons(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """List all coupons, newest first (admin only)."""
    coupons = CouponService.list_coupons(db)
    return success(data=coupons, message="Coupons retrieved successfully")


@router.get("/coupons/{coupon_id}", response_model=dict)
def get_coupon(
    coupon_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Get a coupon by ID (admin only)."""
    coupon = CouponService.get_coupon(db, coupon_id)
    return success(data=coupon, message="Coupon retrieved successfully")


@router.post("/coupons", response_model=dict, status_code=status.HTTP_201_CREATED)
def create_coupon(
    form: CouponForm,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Create a coupon from the admin form (admin only)."""
    coupon = CouponEditor.save(db, form)
    return success(data=coupon, message="Coupon created")


@router.put("/coupons/{coupon_id}", response_model=dict)
def update_coupon(
    coupon_id: int,
    form: CouponForm,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Update a coupon from the admin form (admin only)."""
    coupon = CouponEditor.save(db, form, coupon_id=coupon_id)
    return success(data=coupon, message="Coupon updated")


@router.delete("/coupons/{coupon_id}", response_model=dict)
def delete_coupon(
    coupon_id: int,
    confirm: bool = Query(False, description="Must be true; deletion is permanent"),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Permanently delete a coupon (admin only, confirmation required)."""
    CouponEditor.delete(db, coupon_id, confirmed=confirm)
    return success(message="Coupon deleted")


# --------------------------------------------------
# PRODUCTS
# --------------------------------------------------
@router.post("/products", response_model=dict, status_code=status.HTTP_201_CREATED)
def create_product(
    product_data: ProductCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    product = ProductService.create_product(db, product_data)
    return success(data=product, message="Product created")


@router.put("/products/{product_id}", response_model=dict)
def update_product(
    product_id: int,
    product_data: ProductUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    product = ProductService.update_product(db, product_id, product_data)
    return success(data=product, message="Product updated")


@router.delete("/products/{product_id}", response_model=dict)
def deactivate_product(
    product_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Hide a product from the storefront. Cart and wishlist rows keep their history."""
    ProductService.deactivate_product(db, product_id)
    return success(message="Product deactivated")
