# backend/routes/cart.py
from typing import Optional
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_user, get_optional_user
from utils.audit import write_log, client_ip
from models.users import User
from services import cart as cart_service
from services.errors import StoreError
from schemas.cart import (
    CartAddItem, CartUpdateItem, CartRemoveItem,
    CartOut, CartItemOut, CartActionResponse, CartCountOut,
)

router = APIRouter(prefix="/cart", tags=["Cart"])

# Failed mutations answer with the same {success, message} shape as successful ones
def _failure(request: Request, db: Session, user: User, action: str, err: StoreError, meta: dict) -> JSONResponse:
    write_log(
        db,
        user_id=user.id,
        action=action,
        resource="cart",
        status="FAIL",
        ip=client_ip(request),
        meta={**meta, "reason": err.message},
    )
    body = CartActionResponse(success=False, message=err.message)
    return JSONResponse(status_code=err.status_code, content=body.model_dump(exclude_none=True))

@router.get("", response_model=CartOut)
def get_cart(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    lines = cart_service.get_cart_lines(db, current_user.id)
    return CartOut(
        items=[CartItemOut.from_line(line) for line in lines],
        total=float(cart_service.cart_total(lines)),
    )

# Total quantity in the cart, 0 for anonymous visitors
@router.get("/count", response_model=CartCountOut)
def get_cart_count(
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user)
):
    return CartCountOut(count=cart_service.cart_count(db, current_user.id if current_user else None))

@router.post("/add", response_model=CartActionResponse, response_model_exclude_none=True)
def add_to_cart(
    payload: CartAddItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    meta = {"product_id": payload.product_id, "quantity": payload.quantity}
    try:
        count = cart_service.add_to_cart(db, current_user.id, payload.product_id, payload.quantity)
    except StoreError as e:
        return _failure(request, db, current_user, "CART_ADD", e, meta)

    write_log(
        db,
        user_id=current_user.id,
        action="CART_ADD",
        resource="cart",
        status="SUCCESS",
        ip=client_ip(request),
        meta={**meta, "cart_count": count},
    )
    return CartActionResponse(success=True, message="Added to cart", cart_count=count)

@router.post("/update", response_model=CartActionResponse, response_model_exclude_none=True)
def update_cart_item(
    payload: CartUpdateItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    meta = {"cart_item_id": payload.cart_item_id, "quantity": payload.quantity}
    try:
        item_total = cart_service.update_quantity(db, current_user.id, payload.cart_item_id, payload.quantity)
    except StoreError as e:
        return _failure(request, db, current_user, "CART_UPDATE", e, meta)

    write_log(
        db,
        user_id=current_user.id,
        action="CART_UPDATE",
        resource="cart",
        status="SUCCESS",
        ip=client_ip(request),
        meta=meta,
    )
    return CartActionResponse(success=True, message="Quantity updated", item_total=float(item_total))

@router.post("/remove", response_model=CartActionResponse, response_model_exclude_none=True)
def remove_cart_item(
    payload: CartRemoveItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    meta = {"cart_item_id": payload.cart_item_id}
    try:
        cart_service.remove_from_cart(db, current_user.id, payload.cart_item_id)
    except StoreError as e:
        return _failure(request, db, current_user, "CART_REMOVE", e, meta)

    count = cart_service.cart_count(db, current_user.id)
    write_log(
        db,
        user_id=current_user.id,
        action="CART_REMOVE",
        resource="cart",
        status="SUCCESS",
        ip=client_ip(request),
        meta=meta,
    )
    return CartActionResponse(success=True, message="Removed from cart", cart_count=count)
