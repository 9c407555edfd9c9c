from typing import Optional

import structlog
from slugify import slugify
from sqlalchemy.orm import Session

from cakeland.core.cache import PRODUCTS_CHANGED, PRODUCTS_KEY, mutation_events, query_cache
from cakeland.core.exceptions import ProductNotFound
from cakeland.models.product import Product
from cakeland.schemas.product import (
    ProductCreate,
    ProductDetailResponse,
    ProductListResponse,
    ProductPage,
    ProductUpdate,
)

logger = structlog.get_logger()


def _list_item(product: Product) -> ProductListResponse:
    return ProductListResponse(
        id=product.id,
        name=product.name,
        slug=product.slug,
        image_url=product.image_url,
        price_per_litre=product.price_per_litre,
        offer_price_per_litre=product.offer_price_per_litre,
        stock_quantity=product.stock_quantity,
        in_stock=product.stock_quantity > 0,
    )


def _detail(product: Product) -> ProductDetailResponse:
    return ProductDetailResponse(
        **_list_item(product).model_dump(),
        description=product.description,
        is_active=product.is_active,
        created_at=product.created_at,
    )


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _unique_slug(db: Session, name: str, exclude_id: Optional[int] = None) -> str:
    base = slugify(name) or "product"
    slug = base
    suffix = 2
    while True:
        query = db.query(Product.id).filter(Product.slug == slug)
        if exclude_id is not None:
            query = query.filter(Product.id != exclude_id)
        if query.first() is None:
            return slug
        slug = f"{base}-{suffix}"
        suffix += 1


class ProductService:

    @staticmethod
    def list_products(db: Session, search: Optional[str] = None, page: int = 1, limit: int = 20) -> ProductPage:
        """Active products, newest first, optionally filtered by a name search."""
        term = (search or "").strip()
        key = PRODUCTS_KEY + (term.lower(), page, limit)

        def load() -> ProductPage:
            query = db.query(Product).filter(Product.is_active == True)
            if term:
                query = query.filter(Product.name.ilike(f"%{_escape_like(term)}%", escape="\\"))
            query = query.order_by(Product.created_at.desc(), Product.id.desc())

            total = query.count()
            products = query.offset((page - 1) * limit).limit(limit).all()
            return ProductPage(
                total=total,
                page=page,
                limit=limit,
                total_pages=(total + limit - 1) // limit,
                products=[_list_item(product) for product in products],
            )

        return query_cache.get_or_load(key, load)

    @staticmethod
    def get_active_product(db: Session, product_id: int) -> Product:
        product = db.query(Product).filter(Product.id == product_id, Product.is_active == True).first()
        if not product:
            raise ProductNotFound()
        return product

    @staticmethod
    def get_product(db: Session, product_id: int) -> ProductDetailResponse:
        return _detail(ProductService.get_active_product(db, product_id))

    @staticmethod
    def create_product(db: Session, product_data: ProductCreate) -> ProductDetailResponse:
        product = Product(slug=_unique_slug(db, product_data.name), **product_data.model_dump())
        db.add(product)
        db.commit()
        db.refresh(product)

        logger.info("product_created", product_id=product.id, slug=product.slug)
        mutation_events.publish(PRODUCTS_CHANGED, product_id=product.id)
        return _detail(product)

    @staticmethod
    def update_product(db: Session, product_id: int, product_data: ProductUpdate) -> ProductDetailResponse:
        product = db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise ProductNotFound()

        update_data = product_data.model_dump(exclude_unset=True)
        if "name" in update_data and update_data["name"] != product.name:
            product.slug = _unique_slug(db, update_data["name"], exclude_id=product.id)
        for key, value in update_data.items():
            setattr(product, key, value)

        db.commit()
        db.refresh(product)

        logger.info("product_updated", product_id=product.id, fields=sorted(update_data))
        mutation_events.publish(PRODUCTS_CHANGED, product_id=product.id)
        return _detail(product)

    @staticmethod
    def deactivate_product(db: Session, product_id: int) -> None:
        product = db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise ProductNotFound()

        product.is_active = False
        db.commit()

        logger.info("product_deactivated", product_id=product_id)
        mutation_events.publish(PRODUCTS_CHANGED, product_id=product_id)
