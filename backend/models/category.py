# backend/models/category.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime, func
from database import Base

# Product category shown in the shop navigation.
# Products point at a category through products.category_id.
class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    description = Column(String(500), nullable=True)
    image_url = Column(String(200), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
