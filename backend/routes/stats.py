# backend/routes/stats.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from datetime import datetime
from pydantic import BaseModel
from typing import List

from database import get_db
from utils.tokenJWT import require_admin
from models.users import User
from services import admin as admin_service

router = APIRouter(
    prefix="/admin",
    tags=["Stats"]
)

# === Pydantic Response Schemas ===

class RecentOrder(BaseModel):
    id: int
    order_number: str
    user_id: str
    user_email: str
    status: str
    total_amount: float
    created_at: datetime

class DashboardSummary(BaseModel):
    total_products: int
    total_orders: int
    total_users: int
    pending_orders: int
    # Sum of totals over Delivered orders
    total_revenue: float
    recent_orders: List[RecentOrder]


# === Endpoint: Dashboard Summary ===

@router.get("/dashboard", response_model=DashboardSummary)
def get_dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    data = admin_service.dashboard(db)

    recent = [
        RecentOrder(
            id=order.id,
            order_number=order.order_number,
            user_id=order.user_id,
            user_email=email,
            status=order.status,
            total_amount=float(order.total_amount),
            created_at=order.created_at,
        )
        for order, email in data["recent_orders"]
    ]

    return DashboardSummary(
        total_products=data["total_products"],
        total_orders=data["total_orders"],
        total_users=data["total_users"],
        pending_orders=data["pending_orders"],
        total_revenue=float(data["total_revenue"]),
        recent_orders=recent,
    )
