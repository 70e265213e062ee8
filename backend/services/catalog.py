# backend/services/catalog.py
"""Read-only catalog queries for shoppers. Only active products in active categories are visible."""
from typing import Iterable, Optional, List, Set, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from config import settings
from models.category import Category
from models.product import Product
from services.errors import NotFoundError
from services.paging import paginate


def _visible_products(db: Session):
    return (
        db.query(Product)
        .join(Category, Category.id == Product.category_id)
        .filter(Product.is_active == True, Category.is_active == True)  # noqa: E712
    )


def search_filter(search: str, *columns):
    # Case-insensitive substring match over any of the given columns; LIKE wildcards in the text are literal
    term = search.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    like = f"%{term}%"
    return or_(*[col.ilike(like, escape="\\") for col in columns])


def unavailable_product_ids(db: Session, product_ids: Iterable[int]) -> Set[int]:
    """Ids among ``product_ids`` a shopper can no longer buy: missing, inactive, or in an inactive category."""
    wanted = set(product_ids)
    if not wanted:
        return set()
    visible = _visible_products(db).with_entities(Product.id).filter(Product.id.in_(wanted)).all()
    return wanted - {pid for (pid,) in visible}


def list_products(
    db: Session,
    page: int = 1,
    category_id: Optional[int] = None,
    search: Optional[str] = None,
    page_size: Optional[int] = None,
) -> dict:
    query = _visible_products(db)

    if category_id is not None:
        query = query.filter(Product.category_id == category_id)

    if search and search.strip():
        query = query.filter(search_filter(search, Product.name, Product.description, Product.sku))

    # Name ascending, id breaks ties so paging stays stable
    query = query.order_by(Product.name.asc(), Product.id.asc())
    return paginate(query, page, page_size or settings.CATALOG_PAGE_SIZE)


def get_product(db: Session, product_id: int) -> Tuple[Product, Category]:
    row = (
        db.query(Product, Category)
        .join(Category, Category.id == Product.category_id)
        .filter(Product.id == product_id, Product.is_active == True, Category.is_active == True)  # noqa: E712
        .first()
    )
    if row is None:
        raise NotFoundError("Product not found")
    return row


def list_categories(db: Session) -> List[Category]:
    return (
        db.query(Category)
        .filter(Category.is_active == True)  # noqa: E712
        .order_by(Category.name.asc())
        .all()
    )
