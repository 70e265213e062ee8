# backend/routes/admin.py
from datetime import date
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, UploadFile, File, Form, status
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from utils.tokenJWT import require_admin
from utils.audit import write_log, client_ip
from utils.storage import save_image, ImageUploadError
from services import admin as admin_service
from services.orders import product_names
from services.errors import StoreError
from schemas.product import (
    AdminProductOut, AdminProductListPage, CategoryOut, CategoryCreate, CategoryUpdate,
)
from schemas.order import OrderResponse, OrdersPage, OrderStatusPatch
from routes.orders import order_to_out

router = APIRouter(prefix="/admin", tags=["Admin"])


def _http(err: StoreError) -> HTTPException:
    return HTTPException(status_code=err.status_code, detail=err.message)

def _money(value: Optional[float]) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value)).quantize(Decimal("0.01"))

def _store_upload(file: Optional[UploadFile]) -> Optional[str]:
    # Browsers send an empty part when no file was chosen
    if file is None or not file.filename:
        return None
    try:
        return save_image(file)
    except ImageUploadError as e:
        raise HTTPException(status_code=400, detail=str(e))


# =========================
# PRODUCTS
# =========================
@router.get("/products", response_model=AdminProductListPage)
def list_products(
    page: int = Query(1, ge=1),
    category_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None, description="Search in name or SKU"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    result = admin_service.list_products(db, page=page, category_id=category_id, search=search)
    return {**result, "items": [AdminProductOut.model_validate(p) for p in result["items"]]}


@router.get("/products/{product_id}", response_model=AdminProductOut)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        return admin_service.get_product(db, product_id)
    except StoreError as e:
        raise _http(e)


@router.post("/products", response_model=AdminProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
    file: Optional[UploadFile] = File(None),
    name: str = Form(...),
    price: float = Form(...),
    stock_quantity: int = Form(...),
    category_id: int = Form(...),
    discounted_price: Optional[float] = Form(None),
    description: Optional[str] = Form(None),
    sku: Optional[str] = Form(None),
    is_active: bool = Form(True),
):
    values = {
        "name": name, "price": _money(price), "discounted_price": _money(discounted_price),
        "stock_quantity": stock_quantity, "category_id": category_id,
        "description": description, "sku": sku, "is_active": is_active,
    }
    try:
        # Validate before touching the disk
        admin_service.check_product_values(db, values)
        values["image_url"] = _store_upload(file)
        product = admin_service.create_product(db, values)
    except StoreError as e:
        raise _http(e)

    write_log(
        db, user_id=current_user.id, action="PRODUCT_CREATE", resource="products",
        status="SUCCESS", ip=client_ip(request), meta={"id": product.id, "name": product.name},
    )
    return AdminProductOut.model_validate(product)


@router.put("/products/{product_id}", response_model=AdminProductOut)
def update_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
    # Multipart form so the image can be replaced in the same request
    file: Optional[UploadFile] = File(None),
    name: Optional[str] = Form(None),
    price: Optional[float] = Form(None),
    discounted_price: Optional[float] = Form(None),
    clear_discount: bool = Form(False),
    stock_quantity: Optional[int] = Form(None),
    category_id: Optional[int] = Form(None),
    description: Optional[str] = Form(None),
    sku: Optional[str] = Form(None),
    is_active: Optional[bool] = Form(None),
):
    values = {
        "name": name, "price": _money(price), "discounted_price": _money(discounted_price),
        "clear_discount": clear_discount, "stock_quantity": stock_quantity,
        "category_id": category_id, "description": description, "sku": sku, "is_active": is_active,
    }
    try:
        current = admin_service.get_product(db, product_id)
        # Validate before touching the disk
        admin_service.check_product_values(db, admin_service.update_values(values), current=current)
        values["image_url"] = _store_upload(file)
        product = admin_service.update_product(db, product_id, values)
    except StoreError as e:
        raise _http(e)

    write_log(
        db, user_id=current_user.id, action="PRODUCT_UPDATE", resource="products",
        status="SUCCESS", ip=client_ip(request), meta={"id": product.id},
    )
    return AdminProductOut.model_validate(product)


# Soft delete: the product is deactivated, never removed
@router.delete("/products/{product_id}")
def delete_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        product = admin_service.deactivate_product(db, product_id)
    except StoreError as e:
        raise _http(e)

    pid, pname = product.id, product.name
    write_log(db, user_id=current_user.id, action="PRODUCT_DELETE", resource="products",
              status="SUCCESS", ip=client_ip(request), meta={"id": pid})
    return {"detail": f"Product '{pname}' deactivated"}


# =========================
# CATEGORIES
# =========================
@router.get("/categories", response_model=List[CategoryOut])
def list_categories(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    return admin_service.list_categories(db)


@router.post("/categories", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        category = admin_service.create_category(db, payload.model_dump())
    except StoreError as e:
        raise _http(e)

    write_log(db, user_id=current_user.id, action="CATEGORY_CREATE", resource="categories",
              status="SUCCESS", ip=client_ip(request), meta={"id": category.id, "name": category.name})
    return CategoryOut.model_validate(category)


@router.put("/categories/{category_id}", response_model=CategoryOut)
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        category = admin_service.update_category(db, category_id, payload.model_dump(exclude_unset=True))
    except StoreError as e:
        raise _http(e)

    write_log(db, user_id=current_user.id, action="CATEGORY_UPDATE", resource="categories",
              status="SUCCESS", ip=client_ip(request), meta={"id": category.id})
    return CategoryOut.model_validate(category)


# =========================
# ORDERS
# =========================
@router.get("/orders", response_model=OrdersPage)
def list_orders(
    page: int = Query(1, ge=1),
    status_filter: Optional[str] = Query(None, alias="status"),
    start_date: Optional[date] = Query(None, description="Created on or after (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="Created on or before (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    result = admin_service.list_orders(db, page=page, status=status_filter, start_date=start_date, end_date=end_date)
    names = product_names(db, result["items"])
    return {**result, "items": [order_to_out(o, names) for o in result["items"]]}


@router.get("/orders/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        order = admin_service.get_order(db, order_id)
    except StoreError as e:
        raise _http(e)
    return order_to_out(order, product_names(db, [order]))


@router.post("/orders/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: int,
    payload: OrderStatusPatch,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        order = admin_service.update_order_status(db, order_id, payload.status)
    except StoreError as e:
        write_log(db, user_id=current_user.id, action="ORDER_STATUS_CHANGE", resource="orders", status="FAIL",
                  ip=client_ip(request), meta={"order_id": order_id, "new": payload.status, "reason": e.message})
        raise _http(e)

    write_log(db, user_id=current_user.id, action="ORDER_STATUS_CHANGE", resource="orders", status="SUCCESS",
              ip=client_ip(request), meta={"order_id": order.id, "new": order.status})
    return order_to_out(order, product_names(db, [order]))
