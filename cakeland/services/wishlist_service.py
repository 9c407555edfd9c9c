from sqlalchemy.orm import Session
from sqlalchemy import and_
from fastapi import HTTPException, status

from cakeland.models.wishlist import Wishlist
from cakeland.models.product import Product
from cakeland.schemas.wishlist import WishlistCreate, WishlistResponse, WishlistListResponse
from cakeland.services.product_service import ProductService
from cakeland.utils.money import round_money


def _to_response(wishlist_item: Wishlist, product: Product) -> WishlistResponse:
    return WishlistResponse(
        id=wishlist_item.id,
        user_id=wishlist_item.user_id,
        product_id=wishlist_item.product_id,
        created_at=wishlist_item.created_at,
        product_name=product.name,
        product_slug=product.slug,
        product_price=round_money(product.unit_price),
        product_image=product.image_url,
    )


class WishlistService:

    @staticmethod
    def _find(db: Session, user_id: int, product_id: int):
        return db.query(Wishlist).filter(
            and_(Wishlist.user_id == user_id, Wishlist.product_id == product_id)
        ).first()

    @staticmethod
    def add_to_wishlist(db: Session, user_id: int, wishlist_data: WishlistCreate) -> WishlistResponse:
        """Add a product to user's wishlist. Enforces one product per user."""
        product = ProductService.get_active_product(db, wishlist_data.product_id)

        if WishlistService._find(db, user_id, product.id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Product is already in your wishlist"
            )

        wishlist_item = Wishlist(user_id=user_id, product_id=product.id)
        db.add(wishlist_item)
        db.commit()
        db.refresh(wishlist_item)

        return _to_response(wishlist_item, product)

    @staticmethod
    def remove_from_wishlist(db: Session, user_id: int, product_id: int):
        """Remove a product from user's wishlist."""
        wishlist_item = WishlistService._find(db, user_id, product_id)
        if not wishlist_item:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found in your wishlist"
            )

        db.delete(wishlist_item)
        db.commit()

    @staticmethod
    def toggle(db: Session, user_id: int, product_id: int) -> bool:
        """Flip a product's wishlist membership. Returns the new state."""
        wishlist_item = WishlistService._find(db, user_id, product_id)
        if wishlist_item:
            db.delete(wishlist_item)
            db.commit()
            return False

        WishlistService.add_to_wishlist(db, user_id, WishlistCreate(product_id=product_id))
        return True

    @staticmethod
    def get_user_wishlist(db: Session, user_id: int) -> WishlistListResponse:
        """Get all items in user's wishlist with product details."""
        rows = (
            db.query(Wishlist, Product)
            .join(Product, Wishlist.product_id == Product.id)
            .filter(Wishlist.user_id == user_id)
            .order_by(Wishlist.created_at.desc(), Wishlist.id.desc())
            .all()
        )

        items = [_to_response(wishlist_item, product) for wishlist_item, product in rows]
        return WishlistListResponse(wishlist_items=items, total=len(items))

    @staticmethod
    def check_in_wishlist(db: Session, user_id: int, product_id: int) -> bool:
        """Check if a product is in user's wishlist."""
        return WishlistService._find(db, user_id, product_id) is not None
