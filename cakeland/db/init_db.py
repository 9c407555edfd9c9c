from decimal import Decimal

from sqlalchemy.orm import Session
import logging
from slugify import slugify

from cakeland.models.user import User, UserRole
from cakeland.models.product import Product
from cakeland.core.config import settings
from cakeland.core.security import hash_password

logger = logging.getLogger(__name__)

SAMPLE_PRODUCTS = [
    {"name": "Black Forest Cake", "price_per_litre": "650.00", "offer_price_per_litre": "599.00", "stock_quantity": 12},
    {"name": "Red Velvet Cake", "price_per_litre": "750.00", "offer_price_per_litre": None, "stock_quantity": 8},
    {"name": "Butterscotch Pastry", "price_per_litre": "90.00", "offer_price_per_litre": None, "stock_quantity": 40},
    {"name": "Chocolate Truffle Cake", "price_per_litre": "800.00", "offer_price_per_litre": "720.00", "stock_quantity": 6},
]


def init_db(db: Session) -> None:
    """Seed the admin account and a starter menu"""

    admin = db.query(User).filter(User.email == settings.DEFAULT_ADMIN_EMAIL).first()
    if not admin:
        seed_password = (settings.DEFAULT_ADMIN_PASSWORD or "").strip()
        if not seed_password:
            message = (
                "Missing admin bootstrap credentials: set DEFAULT_ADMIN_PASSWORD "
                "or create an admin user manually before launch."
            )
            if settings.ENVIRONMENT == "production":
                logger.error("%s env=%s", message, settings.ENVIRONMENT)
                raise RuntimeError(message)
            logger.warning("%s env=%s", message, settings.ENVIRONMENT)
        else:
            admin = User(
                email=settings.DEFAULT_ADMIN_EMAIL,
                password_hash=hash_password(seed_password),
                full_name=f"{settings.STORE_NAME} Admin",
                role=UserRole.ADMIN,
                is_active=True,
            )
            db.add(admin)
            logger.info("admin_user_created email=%s", settings.DEFAULT_ADMIN_EMAIL)

    for product_data in SAMPLE_PRODUCTS:
        slug = slugify(product_data["name"])
        existing = db.query(Product).filter(Product.slug == slug).first()
        if existing:
            continue
        offer = product_data["offer_price_per_litre"]
        db.add(
            Product(
                name=product_data["name"],
                slug=slug,
                price_per_litre=Decimal(product_data["price_per_litre"]),
                offer_price_per_litre=Decimal(offer) if offer else None,
                stock_quantity=product_data["stock_quantity"],
                is_active=True,
            )
        )
        logger.info("product_created name=%s", product_data["name"])

    db.commit()
    logger.info("database_initialized")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    from cakeland.db.session import SessionLocal
    db = SessionLocal()
    try:
        init_db(db)
    finally:
        db.close()
