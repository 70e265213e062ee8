from pydantic import BaseModel
from typing import List, Optional

# Request schema for adding a product to the cart.
# Quantity bounds are enforced by the cart service so failures come back as {success, message}.
class CartAddItem(BaseModel):
    product_id: int
    quantity: int = 1

# Request schema for changing a cart line quantity
class CartUpdateItem(BaseModel):
    cart_item_id: int
    quantity: int

# Request schema for removing a cart line
class CartRemoveItem(BaseModel):
    cart_item_id: int

# Response schema for a single cart line
class CartItemOut(BaseModel):
    id: int
    product_id: int
    product_name: str
    unit_price: float
    quantity: int
    image_url: Optional[str] = None
    stock_quantity: int
    line_total: float

    @classmethod
    def from_line(cls, line) -> "CartItemOut":
        return cls(
            id=line.id,
            product_id=line.product_id,
            product_name=line.product_name,
            unit_price=float(line.unit_price),
            quantity=line.quantity,
            image_url=line.image_url,
            stock_quantity=line.stock_quantity,
            line_total=float(line.line_total),
        )

# Response schema for the entire cart
class CartOut(BaseModel):
    items: List[CartItemOut]
    total: float

# Result of a cart mutation
class CartActionResponse(BaseModel):
    success: bool
    message: str
    cart_count: Optional[int] = None
    item_total: Optional[float] = None

class CartCountOut(BaseModel):
    count: int
