# backend/routes/orders.py
from typing import Dict, List
from fastapi import APIRouter, Depends, HTTPException, Request, Query, status
from sqlalchemy.orm import Session

from database import get_db
import logging
from utils.tokenJWT import get_current_user
from utils.audit import write_log, client_ip
from models.users import User
from models.order import Order
from services import orders as order_service
from services.errors import StoreError
from schemas.cart import CartItemOut
from schemas.order import (
    OrderResponse, OrdersPage, OrderItemOut, CheckoutPayload, CheckoutPreviewOut,
)

router = APIRouter(prefix="/orders", tags=["Orders"])
logger = logging.getLogger(__name__)

# Where the client should send the shopper back to after a failure
CART_VIEW = "/cart"

# Map Order model to OrderResponse schema
def order_to_out(order: Order, names: Dict[int, str]) -> OrderResponse:
    items: List[OrderItemOut] = []
    for it in order.items:
        items.append(OrderItemOut(
            product_id=it.product_id,
            product_name=names.get(it.product_id, "Removed product"),
            quantity=it.quantity,
            unit_price=float(it.unit_price),
            total_price=float(it.total_price),
        ))
    return OrderResponse(
        id=order.id,
        order_number=order.order_number,
        user_id=order.user_id,
        status=order.status,
        total_amount=float(order.total_amount),
        shipping_address=order.shipping_address,
        shipping_city=order.shipping_city,
        shipping_postal_code=order.shipping_postal_code,
        phone_number=order.phone_number,
        created_at=order.created_at,
        updated_at=order.updated_at,
        items=items,
    )

def _error(err: StoreError, redirect: str) -> HTTPException:
    return HTTPException(status_code=err.status_code, detail={"message": err.message, "redirect": redirect})


# Checkout form data: advisory stock check and pre-filled shipping address
@router.get("/checkout", response_model=CheckoutPreviewOut)
def checkout_preview(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    try:
        preview = order_service.prepare_checkout(db, current_user)
    except StoreError as e:
        raise _error(e, CART_VIEW)

    return CheckoutPreviewOut(
        items=[CartItemOut.from_line(line) for line in preview.lines],
        total_amount=float(preview.total_amount),
        shipping_address=preview.shipping.address,
        shipping_city=preview.shipping.city,
        shipping_postal_code=preview.shipping.postal_code,
    )


# Submit checkout: turn the cart into a Pending order
@router.post("/checkout", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def checkout(
    payload: CheckoutPayload,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    shipping = order_service.ShippingDetails(
        address=payload.shipping_address,
        city=payload.shipping_city or "",
        postal_code=payload.shipping_postal_code or "",
        phone_number=payload.phone_number or "",
    )
    try:
        order = order_service.place_order(db, current_user.id, shipping)
    except StoreError as e:
        write_log(
            db, user_id=current_user.id, action="ORDER_CHECKOUT", resource="orders", status="FAIL",
            ip=client_ip(request), meta={"reason": e.message},
        )
        raise _error(e, CART_VIEW)

    write_log(
        db, user_id=current_user.id, action="ORDER_CHECKOUT", resource="orders", status="SUCCESS",
        ip=client_ip(request),
        meta={"order_id": order.id, "order_number": order.order_number, "total": float(order.total_amount)},
    )
    return order_to_out(order, order_service.product_names(db, [order]))


# List the current user's orders, newest first
@router.get("", response_model=OrdersPage)
def list_my_orders(
    page: int = Query(1, ge=1),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = order_service.list_orders(db, current_user.id, page)
    names = order_service.product_names(db, result["items"])
    return {**result, "items": [order_to_out(o, names) for o in result["items"]]}


# Get details of one of the user's orders
@router.get("/{order_id}", response_model=OrderResponse)
def get_order_detail(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    try:
        order = order_service.get_order(db, current_user.id, order_id)
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return order_to_out(order, order_service.product_names(db, [order]))


# Cancel a Pending order and put its items back in stock
@router.post("/{order_id}/cancel", response_model=OrderResponse)
def cancel_order(
    order_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    try:
        order = order_service.cancel_order(db, current_user.id, order_id)
    except StoreError as e:
        write_log(
            db, user_id=current_user.id, action="ORDER_CANCEL", resource="orders", status="FAIL",
            ip=client_ip(request), meta={"order_id": order_id, "reason": e.message},
        )
        raise _error(e, f"/orders/{order_id}")

    write_log(
        db, user_id=current_user.id, action="ORDER_CANCEL", resource="orders", status="SUCCESS",
        ip=client_ip(request), meta={"order_id": order.id},
    )
    return order_to_out(order, order_service.product_names(db, [order]))
