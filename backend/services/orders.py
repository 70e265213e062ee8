# backend/services/orders.py
"""Checkout and cancellation.

Both workflows run as one unit of work on the request's session: stock, order
rows and cart rows are either all written or all rolled back.
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from config import settings
from models.cart import ShoppingCartItem
from models.order import Order, OrderItem, OrderStatus
from models.product import Product
from models.users import User
from services.cart import CartLine, get_cart_lines, cart_total
from services.catalog import unavailable_product_ids
from services.errors import (
    StoreError, NotFoundError, InsufficientStockError, InvalidStateError,
    EmptyCartError, TransactionFailureError,
)
from services.paging import paginate

logger = logging.getLogger(__name__)


@dataclass
class ShippingDetails:
    address: str
    city: str = ""
    postal_code: str = ""
    phone_number: str = ""


@dataclass
class CheckoutPreview:
    lines: List[CartLine]
    total_amount: Decimal
    shipping: ShippingDetails = field(default_factory=lambda: ShippingDetails(address=""))


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _no_longer_available(product_name: str) -> InsufficientStockError:
    return InsufficientStockError(product_name, f"{product_name} is no longer available")


def _generate_order_number(now: datetime) -> str:
    return f"ORD{now:%Y%m%d%H%M%S}{uuid.uuid4().hex[:6].upper()}"


def prepare_checkout(db: Session, user: User) -> CheckoutPreview:
    """Advisory pass run before the checkout form is shown.

    Stock can still change before the order is submitted, ``place_order`` checks again.
    """
    lines = get_cart_lines(db, user.id)
    if not lines:
        raise EmptyCartError()

    hidden = unavailable_product_ids(db, {line.product_id for line in lines})
    for line in lines:
        if line.product_id in hidden:
            raise _no_longer_available(line.product_name)
        if line.stock_quantity < line.quantity:
            raise InsufficientStockError(line.product_name)

    return CheckoutPreview(
        lines=lines,
        total_amount=cart_total(lines),
        shipping=ShippingDetails(
            address=user.address or "",
            city=user.city or "",
            postal_code=user.postal_code or "",
        ),
    )


def _lock_products(db: Session, product_ids) -> Dict[int, Product]:
    # Row locks in id order (no-op on SQLite); populate_existing refreshes rows already in the session
    products = (
        db.query(Product)
        .filter(Product.id.in_(sorted(product_ids)))
        .order_by(Product.id)
        .with_for_update()
        .populate_existing()
        .all()
    )
    return {p.id: p for p in products}


def _decrement_stock(db: Session, product: Product, quantity: int) -> None:
    # Conditional decrement: no row is touched unless enough stock is left
    result = db.execute(
        update(Product)
        .where(Product.id == product.id, Product.stock_quantity >= quantity)
        .values(stock_quantity=Product.stock_quantity - quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise InsufficientStockError(product.name)


def _restock(db: Session, product_id: int, quantity: int) -> None:
    db.execute(
        update(Product)
        .where(Product.id == product_id)
        .values(stock_quantity=Product.stock_quantity + quantity)
        .execution_options(synchronize_session=False)
    )


def place_order(db: Session, user_id: str, shipping: ShippingDetails) -> Order:
    """Turn the user's cart into a Pending order.

    Raises:
        EmptyCartError: nothing in the cart
        InsufficientStockError: a line exceeds stock at submission time; nothing is written
        TransactionFailureError: database failure; everything is rolled back
    """
    try:
        lines = get_cart_lines(db, user_id)
        if not lines:
            raise EmptyCartError()

        products = _lock_products(db, {line.product_id for line in lines})

        # Authoritative availability and stock check, inside the same transaction as the writes
        hidden = unavailable_product_ids(db, {line.product_id for line in lines})
        for line in lines:
            product = products.get(line.product_id)
            if product is None or line.product_id in hidden:
                raise _no_longer_available(line.product_name)
            if product.stock_quantity < line.quantity:
                raise InsufficientStockError(product.name)

        now = _now()
        order_items = []
        total = Decimal("0.00")
        for line in lines:
            unit_price = products[line.product_id].effective_price
            line_total = unit_price * line.quantity
            total += line_total
            order_items.append(OrderItem(
                product_id=line.product_id,
                quantity=line.quantity,
                unit_price=unit_price,
                total_price=line_total,
            ))

        order = Order(
            order_number=_generate_order_number(now),
            user_id=user_id,
            status=OrderStatus.PENDING.value,
            total_amount=total,
            shipping_address=shipping.address or "",
            shipping_city=shipping.city or "",
            shipping_postal_code=shipping.postal_code or "",
            phone_number=shipping.phone_number or "",
            created_at=now,
            items=order_items,
        )
        db.add(order)
        db.flush()

        for line in lines:
            _decrement_stock(db, products[line.product_id], line.quantity)

        db.query(ShoppingCartItem).filter(
            ShoppingCartItem.user_id == user_id
        ).delete(synchronize_session=False)

        db.commit()
    except StoreError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Checkout failed for user %s: %s", user_id, e)
        raise TransactionFailureError() from e

    logger.info("Order %s placed by user %s, total %s", order.order_number, user_id, total)
    return order


def cancel_pending_order(db: Session, order: Order) -> Order:
    """Compensating transaction: put every ordered unit back on the shelf and mark the order Cancelled."""
    if order.status != OrderStatus.PENDING.value:
        raise InvalidStateError("Only pending orders can be cancelled")

    order_id = order.id
    try:
        # Status flip first; a concurrent cancel of the same order matches no row
        result = db.execute(
            update(Order)
            .where(Order.id == order_id, Order.status == OrderStatus.PENDING.value)
            .values(status=OrderStatus.CANCELLED.value, updated_at=_now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidStateError("Only pending orders can be cancelled")

        for item in order.items:
            _restock(db, item.product_id, item.quantity)

        db.commit()
    except StoreError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Cancelling order %s failed: %s", order_id, e)
        raise TransactionFailureError() from e

    db.refresh(order)
    logger.info("Order %s cancelled, stock restored", order.order_number)
    return order


def cancel_order(db: Session, user_id: str, order_id: int) -> Order:
    order = db.query(Order).filter(Order.id == order_id, Order.user_id == user_id).first()
    if not order:
        raise NotFoundError("Order not found")
    return cancel_pending_order(db, order)


def list_orders(db: Session, user_id: str, page: int = 1, page_size: Optional[int] = None) -> dict:
    query = (
        db.query(Order)
        .options(selectinload(Order.items))
        .filter(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    )
    return paginate(query, page, page_size or settings.ORDERS_PAGE_SIZE)


def get_order(db: Session, user_id: str, order_id: int) -> Order:
    order = (
        db.query(Order)
        .options(selectinload(Order.items))
        .filter(Order.id == order_id, Order.user_id == user_id)
        .first()
    )
    if not order:
        raise NotFoundError("Order not found")
    return order


def product_names(db: Session, orders: List[Order]) -> Dict[int, str]:
    # Resolve item product names by id in one query
    ids = {item.product_id for o in orders for item in o.items}
    if not ids:
        return {}
    return dict(db.query(Product.id, Product.name).filter(Product.id.in_(ids)).all())
