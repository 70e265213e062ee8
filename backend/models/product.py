# backend/models/product.py
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, ForeignKey, CheckConstraint, func
from database import Base

# Model Product
# A single catalog item. Prices are kept as Numeric(10, 2),
# stock is guarded by a CHECK constraint so it can never go below zero.
# Deleting a product only deactivates it, historical order lines keep pointing at the row.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False, index=True)
    description = Column(String(1000))
    sku = Column(String(100), index=True)

    price = Column(Numeric(10, 2), CheckConstraint("price >= 0"), nullable=False)
    discounted_price = Column(Numeric(10, 2), CheckConstraint("discounted_price >= 0"), nullable=True)

    stock_quantity = Column(Integer, CheckConstraint("stock_quantity >= 0"), nullable=False, default=0)

    image_url = Column(String(200), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)

    # Discounted price wins when set
    @property
    def effective_price(self) -> Decimal:
        return effective_unit_price(self.price, self.discounted_price)


def effective_unit_price(price, discounted_price) -> Decimal:
    """Unit price charged for a product: the discounted price if present, else the list price."""
    chosen = discounted_price if discounted_price is not None else price
    return Decimal(str(chosen)).quantize(Decimal("0.01"))
