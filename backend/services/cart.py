# backend/services/cart.py
"""Per-user shopping cart.

A cart is the set of ``ShoppingCartItem`` rows owned by one user id. Quantities
are checked against current stock whenever they change, the authoritative check
happens again at checkout.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.cart import ShoppingCartItem
from models.product import Product
from services import catalog
from services.errors import (
    NotFoundError, InvalidArgumentError, InsufficientStockError, TransactionFailureError,
)

logger = logging.getLogger(__name__)


@dataclass
class CartLine:
    id: int
    product_id: int
    product_name: str
    unit_price: Decimal
    quantity: int
    image_url: Optional[str]
    stock_quantity: int

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


def get_cart_lines(db: Session, user_id: str) -> List[CartLine]:
    rows = (
        db.query(ShoppingCartItem, Product)
        .join(Product, Product.id == ShoppingCartItem.product_id)
        .filter(ShoppingCartItem.user_id == user_id)
        .order_by(ShoppingCartItem.id.asc())
        .all()
    )
    return [
        CartLine(
            id=item.id,
            product_id=product.id,
            product_name=product.name,
            unit_price=product.effective_price,
            quantity=item.quantity,
            image_url=product.image_url,
            stock_quantity=product.stock_quantity,
        )
        for item, product in rows
    ]


def cart_total(lines: List[CartLine]) -> Decimal:
    return sum((line.line_total for line in lines), Decimal("0.00"))


def cart_count(db: Session, user_id: Optional[str]) -> int:
    # Guests have an empty cart
    if not user_id:
        return 0
    count = (
        db.query(func.coalesce(func.sum(ShoppingCartItem.quantity), 0))
        .filter(ShoppingCartItem.user_id == user_id)
        .scalar()
    )
    return int(count or 0)


def _commit(db: Session, action: str):
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Cart %s failed: %s", action, e)
        raise TransactionFailureError() from e


def add_to_cart(db: Session, user_id: str, product_id: int, quantity: int = 1) -> int:
    """Add ``quantity`` units of a product, merging with an existing line.

    Returns:
        The user's total item count after the change.

    Raises:
        InvalidArgumentError: quantity is not positive
        NotFoundError: product missing, inactive, or in an inactive category
        InsufficientStockError: existing + requested quantity exceeds stock
    """
    if quantity is None or quantity <= 0:
        raise InvalidArgumentError("Quantity must be greater than 0")

    # Same visibility as the catalog: inactive products and products in inactive categories are not found
    product, _ = catalog.get_product(db, product_id)

    item = db.query(ShoppingCartItem).filter(
        ShoppingCartItem.user_id == user_id, ShoppingCartItem.product_id == product_id
    ).first()

    wanted = quantity + (item.quantity if item else 0)
    if product.stock_quantity < wanted:
        raise InsufficientStockError(product.name)

    if item:
        item.quantity = wanted
    else:
        db.add(ShoppingCartItem(user_id=user_id, product_id=product_id, quantity=quantity))

    _commit(db, "add")
    return cart_count(db, user_id)


def update_quantity(db: Session, user_id: str, cart_item_id: int, quantity: int) -> Decimal:
    """Overwrite a line's quantity and return the new line total at the effective price."""
    if quantity is None or quantity <= 0:
        raise InvalidArgumentError("Quantity must be greater than 0")

    row = (
        db.query(ShoppingCartItem, Product)
        .join(Product, Product.id == ShoppingCartItem.product_id)
        .filter(ShoppingCartItem.id == cart_item_id, ShoppingCartItem.user_id == user_id)
        .first()
    )
    if row is None:
        raise NotFoundError("Cart item not found")
    item, product = row

    if product.stock_quantity < quantity:
        raise InsufficientStockError(product.name)

    unit_price = product.effective_price
    item.quantity = quantity
    _commit(db, "update")
    return unit_price * quantity


def remove_from_cart(db: Session, user_id: str, cart_item_id: int) -> None:
    item = db.query(ShoppingCartItem).filter(
        ShoppingCartItem.id == cart_item_id, ShoppingCartItem.user_id == user_id
    ).first()
    if not item:
        raise NotFoundError("Cart item not found")

    db.delete(item)
    _commit(db, "remove")
