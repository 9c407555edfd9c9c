from sqlalchemy.orm import Session
from fastapi import HTTPException, status
import structlog

from cakeland.core.exceptions import InsufficientStock
from cakeland.models.cart import CartItem
from cakeland.schemas.cart import CartItemCreate, CartItemResponse, CartResponse
from cakeland.schemas.coupon import ApplyCouponResponse
from cakeland.services.coupon_service import CouponService
from cakeland.services.product_service import ProductService
from cakeland.utils.money import ZERO, round_money

logger = structlog.get_logger()


class CartService:

    @staticmethod
    def _get_item(db: Session, user_id: int, item_id: int) -> CartItem:
        cart_item = db.query(CartItem).filter(
            CartItem.id == item_id,
            CartItem.user_id == user_id
        ).first()
        if not cart_item:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Cart item not found"
            )
        return cart_item

    @staticmethod
    def get_cart(db: Session, user_id: int) -> CartResponse:
        """User's cart priced at current product prices."""
        cart_items = (
            db.query(CartItem)
            .filter(CartItem.user_id == user_id)
            .order_by(CartItem.created_at.asc(), CartItem.id.asc())
            .all()
        )

        items = []
        subtotal = ZERO
        for item in cart_items:
            product = item.product
            unit_price = round_money(product.unit_price)
            total_price = round_money(unit_price * item.quantity)
            subtotal += total_price
            items.append(CartItemResponse(
                id=item.id,
                product_id=product.id,
                product_name=product.name,
                product_image=product.image_url,
                quantity=item.quantity,
                unit_price=unit_price,
                total_price=total_price,
                stock_available=product.stock_quantity,
            ))

        return CartResponse(items=items, subtotal=round_money(subtotal), total_items=len(items))

    @staticmethod
    def count_items(db: Session, user_id: int) -> int:
        return db.query(CartItem).filter(CartItem.user_id == user_id).count()

    @staticmethod
    def add_item(db: Session, user_id: int, cart_item: CartItemCreate) -> CartItem:
        """Add a product, or bump its quantity when it is already in the cart."""
        product = ProductService.get_active_product(db, cart_item.product_id)

        existing_item = db.query(CartItem).filter(
            CartItem.user_id == user_id,
            CartItem.product_id == cart_item.product_id
        ).first()
        quantity = cart_item.quantity + (existing_item.quantity if existing_item else 0)

        if product.stock_quantity < quantity:
            raise InsufficientStock(product.stock_quantity)

        if existing_item:
            existing_item.quantity = quantity
            item = existing_item
        else:
            item = CartItem(user_id=user_id, product_id=product.id, quantity=quantity)
            db.add(item)

        db.commit()
        db.refresh(item)
        logger.info("cart_item_saved", user_id=user_id, product_id=product.id, quantity=quantity)
        return item

    @staticmethod
    def update_quantity(db: Session, user_id: int, item_id: int, quantity: int) -> CartItem:
        cart_item = CartService._get_item(db, user_id, item_id)
        if cart_item.product.stock_quantity < quantity:
            raise InsufficientStock(cart_item.product.stock_quantity)

        cart_item.quantity = quantity
        db.commit()
        db.refresh(cart_item)
        return cart_item

    @staticmethod
    def remove_item(db: Session, user_id: int, item_id: int) -> None:
        cart_item = CartService._get_item(db, user_id, item_id)
        db.delete(cart_item)
        db.commit()

    @staticmethod
    def clear(db: Session, user_id: int) -> None:
        db.query(CartItem).filter(CartItem.user_id == user_id).delete()
        db.commit()

    @staticmethod
    def preview_coupon(db: Session, user_id: int, coupon_code: str) -> ApplyCouponResponse:
        """Evaluate a coupon against the current cart subtotal. Nothing is stored."""
        cart = CartService.get_cart(db, user_id)
        return CouponService.check_code(db, coupon_code, cart.subtotal)
