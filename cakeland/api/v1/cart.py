from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from cakeland.api.deps import get_current_user
from cakeland.db.session import get_db
from cakeland.models.user import User
from cakeland.schemas.cart import CartItemCreate, CartItemUpdate
from cakeland.schemas.coupon import CartCouponRequest
from cakeland.services.cart_service import CartService
from cakeland.utils.response import success

router = APIRouter()


@router.get("", response_model=dict)
@router.get("/", response_model=dict)
def get_cart(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get user's cart"""
    cart = CartService.get_cart(db, current_user.id)
    return success(data=cart, message="Cart retrieved")


@router.get("/count", response_model=dict)
def get_cart_count(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Number of distinct products in the cart"""
    return success(data={"count": CartService.count_items(db, current_user.id)}, message="Cart count")


@router.post("/items", response_model=dict, status_code=status.HTTP_201_CREATED)
def add_to_cart(
    cart_item: CartItemCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Add item to cart"""
    item = CartService.add_item(db, current_user.id, cart_item)
    return success(data={"cart_item_id": item.id, "quantity": item.quantity}, message="Item added to cart")


@router.put("/items/{item_id}", response_model=dict)
def update_cart_item(
    item_id: int,
    update_data: CartItemUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update cart item quantity"""
    item = CartService.update_quantity(db, current_user.id, item_id, update_data.quantity)
    return success(data={"cart_item_id": item.id, "quantity": item.quantity}, message="Cart item updated")


@router.delete("/items/{item_id}", response_model=dict)
def remove_from_cart(
    item_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Remove item from cart"""
    CartService.remove_item(db, current_user.id, item_id)
    return success(message="Item removed from cart")


@router.delete("", response_model=dict)
@router.delete("/", response_model=dict)
def clear_cart(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Clear entire cart"""
    CartService.clear(db, current_user.id)
    return success(message="Cart cleared")


@router.post("/apply-coupon", response_model=dict)
def apply_coupon(
    request: CartCouponRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Preview a coupon against the current cart subtotal"""
    result = CartService.preview_coupon(db, current_user.id, request.coupon_code)
    return success(data=result, message="Coupon validated")
