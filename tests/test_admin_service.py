"""Back-office service: product maintenance, order status handling and the dashboard."""
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from database import Base
from models.category import Category
from models.order import Order, OrderStatus
from models.product import Product
from models.users import User, ROLE_CUSTOMER
from services import admin as admin_service
from services import cart as cart_service
from services import orders as order_service
from services.errors import NotFoundError, InvalidArgumentError, InvalidStateError

SHIPPING = order_service.ShippingDetails(address="Main St 1")


def _place(db, user, product, quantity=1):
    cart_service.add_to_cart(db, user.id, product.id, quantity)
    return order_service.place_order(db, user.id, SHIPPING)


class TestProducts:
    def test_create(self, db, category):
        product = admin_service.create_product(db, {
            "name": "Speaker", "price": Decimal("99.99"), "stock_quantity": 7, "category_id": category.id,
        })
        assert product.id is not None
        assert product.is_active is True
        assert product.effective_price == Decimal("99.99")

    def test_create_requires_existing_category(self, db, category):
        with pytest.raises(InvalidArgumentError):
            admin_service.create_product(db, {"name": "X", "price": Decimal("1"), "stock_quantity": 1, "category_id": 999})
        with pytest.raises(InvalidArgumentError):
            admin_service.create_product(db, {"name": "X", "price": Decimal("1"), "stock_quantity": 1})

    @pytest.mark.parametrize("values", [
        {"stock_quantity": -1},
        {"price": Decimal("-1.00")},
        {"discounted_price": Decimal("12.00")},
    ])
    def test_update_rejects_invalid_values(self, db, product, values):
        with pytest.raises(InvalidArgumentError):
            admin_service.update_product(db, product.id, dict(values))

    def test_update_skips_missing_fields_and_can_clear_discount(self, db, make_product):
        product = make_product(price="10.00", discounted="8.00")

        updated = admin_service.update_product(db, product.id, {"name": None, "stock_quantity": 9})
        assert updated.name == "Headphones"
        assert updated.stock_quantity == 9
        assert updated.updated_at is not None

        cleared = admin_service.update_product(db, product.id, {"clear_discount": True})
        assert cleared.discounted_price is None
        assert cleared.effective_price == Decimal("10.00")

    def test_delete_deactivates(self, db, product):
        admin_service.deactivate_product(db, product.id)
        assert admin_service.get_product(db, product.id).is_active is False

    def test_list_includes_inactive_and_searches_sku(self, db, make_product):
        make_product("Mouse", sku="MS-1")
        make_product("Retired", active=False, sku="RT-1")

        assert admin_service.list_products(db)["total"] == 2
        assert [p.name for p in admin_service.list_products(db, search="rt-")["items"]] == ["Retired"]
        # Underscore is matched literally, not as a single-character wildcard
        assert admin_service.list_products(db, search="rt_")["total"] == 0

    def test_get_missing(self, db):
        with pytest.raises(NotFoundError):
            admin_service.get_product(db, 404)


class TestCategories:
    def test_create_and_deactivate(self, db):
        category = admin_service.create_category(db, {"name": "Garden", "description": None})
        assert category.is_active is True

        updated = admin_service.update_category(db, category.id, {"is_active": False})
        assert updated.is_active is False

    def test_update_missing(self, db):
        with pytest.raises(NotFoundError):
            admin_service.update_category(db, 1, {"name": "X"})


class TestOrderStatus:
    def test_free_movement_between_non_cancelled_states(self, db, stock_of, customer, product):
        order = _place(db, customer, product, 2)

        shipped = admin_service.update_order_status(db, order.id, "Shipped")
        assert shipped.status == OrderStatus.SHIPPED.value
        assert shipped.updated_at is not None

        back = admin_service.update_order_status(db, order.id, "Processing")
        assert back.status == OrderStatus.PROCESSING.value
        assert stock_of(product.id) == 3

    def test_unknown_status(self, db, customer, product):
        order = _place(db, customer, product)
        with pytest.raises(InvalidArgumentError):
            admin_service.update_order_status(db, order.id, "Lost")

    def test_cancel_from_pending_restocks(self, db, stock_of, customer, product):
        order = _place(db, customer, product, 2)

        cancelled = admin_service.update_order_status(db, order.id, "Cancelled")

        assert cancelled.status == OrderStatus.CANCELLED.value
        assert stock_of(product.id) == 5

    def test_cancel_from_shipped_is_refused(self, db, customer, product):
        order = _place(db, customer, product)
        admin_service.update_order_status(db, order.id, "Shipped")

        with pytest.raises(InvalidStateError):
            admin_service.update_order_status(db, order.id, "Cancelled")

    def test_cancelled_is_terminal(self, db, customer, product):
        order = _place(db, customer, product)
        admin_service.update_order_status(db, order.id, "Cancelled")

        with pytest.raises(InvalidStateError):
            admin_service.update_order_status(db, order.id, "Processing")

    def test_missing_order(self, db):
        with pytest.raises(NotFoundError):
            admin_service.update_order_status(db, 42, "Shipped")

    def test_customer_cancel_between_read_and_write_wins(self, tmp_path, monkeypatch):
        engine = create_engine(f"sqlite:///{tmp_path / 'store.db'}", connect_args={"check_same_thread": False})
        Base.metadata.create_all(bind=engine)
        Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)
        customer_db, admin_db = Session(), Session()
        try:
            category = Category(name="Electronics", is_active=True)
            user = User(email="jan@example.com", password_hash="x", role=ROLE_CUSTOMER)
            customer_db.add_all([category, user])
            customer_db.commit()
            product = Product(name="Headphones", price=Decimal("10.00"), stock_quantity=10, category_id=category.id)
            customer_db.add(product)
            customer_db.commit()
            order = _place(customer_db, user, product, 4)
            user_id, order_id, product_id = user.id, order.id, product.id

            real_get_order = admin_service.get_order

            def get_then_cancel(db, oid):
                found = real_get_order(db, oid)
                # The customer cancels after the admin session has read Pending
                order_service.cancel_order(customer_db, user_id, order_id)
                return found

            monkeypatch.setattr(admin_service, "get_order", get_then_cancel)

            with pytest.raises(InvalidStateError):
                admin_service.update_order_status(admin_db, order_id, "Processing")

            admin_db.expire_all()
            assert admin_db.get(Order, order_id).status == OrderStatus.CANCELLED.value
            assert admin_db.get(Product, product_id).stock_quantity == 10
        finally:
            customer_db.close()
            admin_db.close()
            engine.dispose()


class TestOrderListing:
    def test_filters_by_status_and_inclusive_date_range(self, db, customer, make_product):
        product = make_product(stock=10)
        old = _place(db, customer, product)
        recent = _place(db, customer, product)
        old.created_at = datetime(2024, 1, 10, 15, 30, tzinfo=timezone.utc)
        recent.created_at = datetime(2024, 2, 1, 9, 0, tzinfo=timezone.utc)
        db.commit()
        admin_service.update_order_status(db, recent.id, "Delivered")

        by_status = admin_service.list_orders(db, status="Delivered")
        assert [o.id for o in by_status["items"]] == [recent.id]

        # End date covers the whole day
        january = admin_service.list_orders(db, start_date=date(2024, 1, 1), end_date=date(2024, 1, 10))
        assert [o.id for o in january["items"]] == [old.id]

        newest_first = admin_service.list_orders(db)
        assert [o.id for o in newest_first["items"]] == [recent.id, old.id]


class TestDashboard:
    def test_figures(self, db, customer, other_customer, admin, make_product):
        product = make_product(price="10.00", stock=20)
        delivered = _place(db, customer, product, 3)
        _place(db, other_customer, product, 1)
        cancelled = _place(db, customer, product, 2)
        admin_service.update_order_status(db, delivered.id, "Delivered")
        admin_service.update_order_status(db, cancelled.id, "Cancelled")

        data = admin_service.dashboard(db)

        assert data["total_products"] == 1
        assert data["total_orders"] == 3
        assert data["total_users"] == 3
        assert data["pending_orders"] == 1
        assert data["total_revenue"] == Decimal("30.00")
        assert len(data["recent_orders"]) == 3
        order, email = data["recent_orders"][0]
        assert isinstance(order, Order)
        assert email in {"jan@example.com", "anna@example.com"}

    def test_recent_orders_are_capped(self, db, customer, make_product):
        product = make_product(stock=50)
        for _ in range(admin_service.RECENT_ORDERS_LIMIT + 2):
            _place(db, customer, product)

        assert len(admin_service.dashboard(db)["recent_orders"]) == admin_service.RECENT_ORDERS_LIMIT
