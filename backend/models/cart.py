# backend/models/cart.py
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, UniqueConstraint, CheckConstraint, func
from database import Base

# A single (product, quantity) line in a user's shopping cart.
# There is no cart header row, the cart is simply every line owned by the user.
class ShoppingCartItem(Base):
    __tablename__ = "shopping_cart_items"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=False) # Owner of the line
    product_id = Column(Integer, ForeignKey("products.id"), index=True, nullable=False)
    quantity = Column(Integer, CheckConstraint("quantity >= 1"), nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        # One row per product per user, re-adding increments quantity
        UniqueConstraint("user_id", "product_id", name="uq_cartitem_user_product"),
    )
