# backend/schemas/product.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ---- Categories ----
class CategoryOut(ORMBase):
    id: int
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    image_url: Optional[str] = Field(None, max_length=200)
    is_active: bool = True


class CategoryUpdate(BaseModel):
    """Schema for partial category updates - all fields optional."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    image_url: Optional[str] = Field(None, max_length=200)
    is_active: Optional[bool] = None


# ---- Products ----
class ProductOut(ORMBase):
    id: int
    name: str
    description: Optional[str] = None
    sku: Optional[str] = None
    price: float
    discounted_price: Optional[float] = None
    effective_price: float
    stock_quantity: int
    image_url: Optional[str] = None
    is_active: bool
    category_id: int


class ProductDetailOut(ProductOut):
    category_name: str


class AdminProductOut(ProductOut):
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Paginated response for product listings
class ProductListPage(ORMBase):
    items: List[ProductOut]
    total: int
    page: int
    page_size: int


class AdminProductListPage(ORMBase):
    items: List[AdminProductOut]
    total: int
    page: int
    page_size: int
