# backend/models/users.py
import uuid
from sqlalchemy import Column, String, DateTime, func
from database import Base

# Roles understood by the authorization layer
ROLE_CUSTOMER = "customer"
ROLE_ADMIN = "admin"

def _new_user_id() -> str:
    return uuid.uuid4().hex

# Represents a user account with authentication details, system role and default shipping address
class User(Base):
    __tablename__ = "users"

    # Opaque string key, never parsed by the services
    id = Column(String(36), primary_key=True, default=_new_user_id)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default=ROLE_CUSTOMER)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)

    # Default shipping details, used to pre-fill checkout
    address = Column(String(200), nullable=True)
    city = Column(String(100), nullable=True)
    postal_code = Column(String(20), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
