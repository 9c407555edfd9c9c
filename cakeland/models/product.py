from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, Text, Index
from sqlalchemy.orm import relationship
from cakeland.db.base_class import Base
from cakeland.utils.clock import utcnow


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)

    name = Column(String(200), nullable=False, index=True)
    slug = Column(String(250), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    image_url = Column(String(500), nullable=True)

    # Pricing
    price_per_litre = Column(Numeric(10, 2), nullable=False)
    offer_price_per_litre = Column(Numeric(10, 2), nullable=True)

    # Stock & Status
    stock_quantity = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    wishlist_items = relationship("Wishlist", back_populates="product", cascade="all, delete-orphan")

    @property
    def unit_price(self):
        """Price a customer pays per unit: the offer price when one is set."""
        if self.offer_price_per_litre is not None:
            return self.offer_price_per_litre
        return self.price_per_litre


Index('idx_product_active_created', Product.is_active, Product.created_at)
