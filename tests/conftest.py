import os
import tempfile
from decimal import Decimal

# Settings are read at import time, point them at throwaway locations first
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("UPLOAD_DIR", os.path.join(tempfile.mkdtemp(prefix="storefront-test-"), "uploads"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from database import Base, get_db
from models.category import Category
from models.product import Product
from models.users import User, ROLE_ADMIN, ROLE_CUSTOMER
from utils.hashing import get_password_hash
from utils.tokenJWT import create_access_token

PASSWORD = "secret123"


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield session
    session.close()


@pytest.fixture()
def client(db):
    # Requests share the fixture session so seeded rows and assertions see the same state
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _user(db, email, role=ROLE_CUSTOMER, **extra):
    user = User(
        email=email,
        password_hash=get_password_hash(PASSWORD),
        role=role,
        first_name="Test",
        last_name="User",
        **extra,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture()
def customer(db):
    return _user(db, "jan@example.com", address="Main St 1", city="Gdansk", postal_code="80-001")


@pytest.fixture()
def other_customer(db):
    return _user(db, "anna@example.com")


@pytest.fixture()
def admin(db):
    return _user(db, "admin@example.com", role=ROLE_ADMIN)


def auth_headers(user):
    token = create_access_token({"sub": user.id, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def customer_headers(customer):
    return auth_headers(customer)


@pytest.fixture()
def other_headers(other_customer):
    return auth_headers(other_customer)


@pytest.fixture()
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture()
def category(db):
    category = Category(name="Electronics", description="Gadgets", is_active=True)
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


@pytest.fixture()
def make_product(db, category):
    def _make(name="Headphones", price="10.00", stock=5, discounted=None, active=True, category_id=None, sku=None):
        product = Product(
            name=name,
            description=f"{name} description",
            sku=sku,
            price=Decimal(price),
            discounted_price=Decimal(discounted) if discounted is not None else None,
            stock_quantity=stock,
            is_active=active,
            category_id=category_id or category.id,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product
    return _make


@pytest.fixture()
def product(make_product):
    return make_product()


@pytest.fixture()
def stock_of(db):
    # Fresh read of a product's stock, bypassing the identity map
    def _stock(product_id):
        db.expire_all()
        return db.get(Product, product_id).stock_quantity
    return _stock
