from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from schemas.cart import CartItemOut


# Output schema for an individual order line
class OrderItemOut(BaseModel):
    product_id: int
    product_name: str
    quantity: int
    unit_price: float
    total_price: float


# Shipping details submitted with the checkout form
class CheckoutPayload(BaseModel):
    shipping_address: str = Field(min_length=1, max_length=200)
    shipping_city: Optional[str] = Field(None, max_length=100)
    shipping_postal_code: Optional[str] = Field(None, max_length=20)
    phone_number: Optional[str] = Field(None, max_length=20)


# Checkout form model: cart lines, total and pre-filled shipping address
class CheckoutPreviewOut(BaseModel):
    items: List[CartItemOut]
    total_amount: float
    shipping_address: str
    shipping_city: str
    shipping_postal_code: str


# Output schema representing the full order details
class OrderResponse(BaseModel):
    id: int
    order_number: str
    user_id: str
    status: str
    total_amount: float
    shipping_address: str
    shipping_city: str
    shipping_postal_code: str
    phone_number: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    items: List[OrderItemOut]


# Schema for paginated order lists
class OrdersPage(BaseModel):
    items: List[OrderResponse]
    total: int
    page: int
    page_size: int


# Schema for updating order status
class OrderStatusPatch(BaseModel):
    status: str
