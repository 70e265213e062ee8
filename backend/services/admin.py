# backend/services/admin.py
"""Back-office operations: product and category maintenance, order handling, dashboard figures."""
import logging
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Optional, List

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from config import settings
from models.category import Category
from models.order import Order, OrderStatus
from models.product import Product
from models.users import User
from services.catalog import search_filter
from services.errors import (
    StoreError, NotFoundError, InvalidArgumentError, InvalidStateError, TransactionFailureError,
)
from services.orders import cancel_pending_order
from services.paging import paginate

logger = logging.getLogger(__name__)

# Orders in this status count towards revenue
REVENUE_STATUS = OrderStatus.DELIVERED
RECENT_ORDERS_LIMIT = 10

PRODUCT_FIELDS = (
    "name", "description", "sku", "price", "discounted_price",
    "stock_quantity", "image_url", "is_active", "category_id",
)
CATEGORY_FIELDS = ("name", "description", "image_url", "is_active")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _commit(db: Session, what: str):
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Saving %s failed: %s", what, e)
        raise TransactionFailureError() from e


# ---- DASHBOARD ----
def dashboard(db: Session) -> dict:
    revenue = (
        db.query(func.coalesce(func.sum(Order.total_amount), 0))
        .filter(Order.status == REVENUE_STATUS.value)
        .scalar()
    )
    recent = (
        db.query(Order, User.email)
        .join(User, User.id == Order.user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(RECENT_ORDERS_LIMIT)
        .all()
    )
    return {
        "total_products": db.query(Product).count(),
        "total_orders": db.query(Order).count(),
        "total_users": db.query(User).count(),
        "pending_orders": db.query(Order).filter(Order.status == OrderStatus.PENDING.value).count(),
        "total_revenue": Decimal(str(revenue or 0)).quantize(Decimal("0.01")),
        "recent_orders": recent,
    }


# ---- PRODUCTS ----
def check_product_values(db: Session, values: dict, current: Optional[Product] = None):
    if "category_id" in values and values["category_id"] is not None:
        if not db.query(Category.id).filter(Category.id == values["category_id"]).first():
            raise InvalidArgumentError("Category not found")

    if values.get("stock_quantity") is not None and values["stock_quantity"] < 0:
        raise InvalidArgumentError("Stock must be >= 0")

    price = values.get("price", current.price if current else None)
    discounted = values.get("discounted_price", current.discounted_price if current else None)
    if price is not None and Decimal(str(price)) < 0:
        raise InvalidArgumentError("Price must be >= 0")
    if discounted is not None:
        if Decimal(str(discounted)) < 0:
            raise InvalidArgumentError("Discounted price must be >= 0")
        if price is not None and Decimal(str(discounted)) > Decimal(str(price)):
            raise InvalidArgumentError("Discounted price cannot exceed the price")


def list_products(
    db: Session,
    page: int = 1,
    category_id: Optional[int] = None,
    search: Optional[str] = None,
    page_size: Optional[int] = None,
) -> dict:
    # Admins see inactive products too
    query = db.query(Product)
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if search and search.strip():
        query = query.filter(search_filter(search, Product.name, Product.sku))
    query = query.order_by(Product.name.asc(), Product.id.asc())
    return paginate(query, page, page_size or settings.ADMIN_PAGE_SIZE)


def get_product(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError("Product not found")
    return product


def create_product(db: Session, values: dict) -> Product:
    if values.get("category_id") is None:
        raise InvalidArgumentError("Category is required")
    check_product_values(db, values)

    product = Product(**{k: v for k, v in values.items() if k in PRODUCT_FIELDS})
    product.created_at = _now()
    db.add(product)
    _commit(db, "product")
    db.refresh(product)
    return product


def update_values(values: dict) -> dict:
    # Fields an update actually writes
    cleaned = {k: v for k, v in values.items() if k in PRODUCT_FIELDS and v is not None}
    if values.get("clear_discount"):
        cleaned["discounted_price"] = None
    return cleaned


def update_product(db: Session, product_id: int, values: dict) -> Product:
    """Apply the given fields; keys with None values are left untouched, except discounted_price
    which may be cleared explicitly by passing ``clear_discount=True``."""
    product = get_product(db, product_id)
    values = update_values(values)

    check_product_values(db, values, current=product)

    for key, value in values.items():
        setattr(product, key, value)
    product.updated_at = _now()
    _commit(db, "product")
    db.refresh(product)
    return product


def deactivate_product(db: Session, product_id: int) -> Product:
    # Soft delete, order history keeps referencing the row
    product = get_product(db, product_id)
    product.is_active = False
    product.updated_at = _now()
    _commit(db, "product")
    db.refresh(product)
    return product


# ---- CATEGORIES ----
def list_categories(db: Session) -> List[Category]:
    return db.query(Category).order_by(Category.name.asc()).all()


def create_category(db: Session, values: dict) -> Category:
    category = Category(**{k: v for k, v in values.items() if k in CATEGORY_FIELDS and v is not None})
    category.created_at = _now()
    db.add(category)
    _commit(db, "category")
    db.refresh(category)
    return category


def update_category(db: Session, category_id: int, values: dict) -> Category:
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise NotFoundError("Category not found")
    for key, value in values.items():
        if key in CATEGORY_FIELDS and value is not None:
            setattr(category, key, value)
    _commit(db, "category")
    db.refresh(category)
    return category


# ---- ORDERS ----
def list_orders(
    db: Session,
    page: int = 1,
    status: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page_size: Optional[int] = None,
) -> dict:
    query = db.query(Order).options(selectinload(Order.items))

    if status:
        query = query.filter(Order.status == status)
    if start_date:
        query = query.filter(Order.created_at >= datetime.combine(start_date, time.min))
    if end_date:
        # The whole end day is included
        query = query.filter(Order.created_at < datetime.combine(end_date + timedelta(days=1), time.min))

    query = query.order_by(Order.created_at.desc(), Order.id.desc())
    return paginate(query, page, page_size or settings.ADMIN_PAGE_SIZE)


def get_order(db: Session, order_id: int) -> Order:
    order = db.query(Order).options(selectinload(Order.items)).filter(Order.id == order_id).first()
    if not order:
        raise NotFoundError("Order not found")
    return order


def update_order_status(db: Session, order_id: int, new_status: str) -> Order:
    """Set an order's status to any value of the enumeration.

    No transition graph is enforced between Pending, Processing, Shipped and Delivered.
    Cancelled is terminal and only reachable from Pending, through the same
    compensating transaction a customer cancel uses, so stock stays in sync.
    """
    try:
        target = OrderStatus(new_status)
    except ValueError:
        raise InvalidArgumentError(f"Unknown order status: {new_status}")

    order = get_order(db, order_id)
    old_status = order.status

    if old_status == target.value:
        return order
    if old_status == OrderStatus.CANCELLED.value:
        raise InvalidStateError("Cancelled orders cannot change status")
    if target is OrderStatus.CANCELLED:
        return cancel_pending_order(db, order)

    try:
        # Conditional write; a cancel committed since the read matches no row
        result = db.execute(
            update(Order)
            .where(Order.id == order.id, Order.status == old_status)
            .values(status=target.value, updated_at=_now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidStateError("Order status changed in the meantime, reload and try again")
        db.commit()
    except StoreError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Updating status of order %s failed: %s", order_id, e)
        raise TransactionFailureError() from e

    db.refresh(order)
    logger.info("Order %s status %s -> %s", order.order_number, old_status, target.value)
    return order
