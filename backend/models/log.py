# backend/models/log.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, func
from database import Base

# Audit trail entry: who did what to which storefront resource, and whether it worked
class Log(Base):
    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, index=True)

    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=True, index=True)
    action = Column(String(50), index=True)      # e.g. CART_ADD, ORDER_CHECKOUT
    resource = Column(String(50), index=True)    # cart, orders, products, ...
    status = Column(String(20), index=True)      # SUCCESS / FAIL
    ip = Column(String(64), nullable=True)

    # Action specific context (ids, quantities, reasons)
    meta = Column(JSON, nullable=True)
