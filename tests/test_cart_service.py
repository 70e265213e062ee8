"""Cart service: stock-checked adds, quantity updates and removal."""
from decimal import Decimal

import pytest

from models.cart import ShoppingCartItem
from models.category import Category
from services import cart as cart_service
from services.errors import NotFoundError, InvalidArgumentError, InsufficientStockError


class TestAddToCart:
    def test_add_creates_line_and_returns_count(self, db, customer, product):
        count = cart_service.add_to_cart(db, customer.id, product.id, 2)

        assert count == 2
        lines = cart_service.get_cart_lines(db, customer.id)
        assert len(lines) == 1
        assert lines[0].quantity == 2
        assert lines[0].product_name == "Headphones"

    def test_re_adding_updates_existing_row(self, db, customer, product):
        cart_service.add_to_cart(db, customer.id, product.id, 1)
        count = cart_service.add_to_cart(db, customer.id, product.id, 2)

        assert count == 3
        rows = db.query(ShoppingCartItem).filter(ShoppingCartItem.user_id == customer.id).all()
        assert len(rows) == 1
        assert rows[0].quantity == 3

    def test_count_sums_quantities_across_products(self, db, customer, make_product):
        a = make_product("Mouse")
        b = make_product("Keyboard")
        cart_service.add_to_cart(db, customer.id, a.id, 2)
        assert cart_service.add_to_cart(db, customer.id, b.id, 3) == 5

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_non_positive_quantity_is_rejected(self, db, customer, product, quantity):
        with pytest.raises(InvalidArgumentError):
            cart_service.add_to_cart(db, customer.id, product.id, quantity)
        assert cart_service.cart_count(db, customer.id) == 0

    def test_missing_product(self, db, customer):
        with pytest.raises(NotFoundError):
            cart_service.add_to_cart(db, customer.id, 999, 1)

    def test_inactive_product(self, db, customer, make_product):
        hidden = make_product("Old model", active=False)
        with pytest.raises(NotFoundError):
            cart_service.add_to_cart(db, customer.id, hidden.id, 1)

    def test_product_in_inactive_category(self, db, customer, make_product):
        archive = Category(name="Archive", is_active=False)
        db.add(archive)
        db.commit()
        archived = make_product("Archived", category_id=archive.id)

        with pytest.raises(NotFoundError):
            cart_service.add_to_cart(db, customer.id, archived.id, 1)
        assert cart_service.cart_count(db, customer.id) == 0

    def test_existing_plus_requested_over_stock(self, db, customer, make_product):
        product = make_product(stock=3)
        cart_service.add_to_cart(db, customer.id, product.id, 2)

        with pytest.raises(InsufficientStockError) as exc:
            cart_service.add_to_cart(db, customer.id, product.id, 2)

        assert exc.value.product_name == "Headphones"
        assert "Headphones" in exc.value.message
        assert cart_service.cart_count(db, customer.id) == 2

    def test_carts_are_per_user(self, db, customer, other_customer, product):
        cart_service.add_to_cart(db, customer.id, product.id, 1)
        assert cart_service.cart_count(db, other_customer.id) == 0


class TestUpdateQuantity:
    def test_returns_line_total_at_effective_price(self, db, customer, make_product):
        product = make_product(price="10.00", discounted="8.00", stock=10)
        cart_service.add_to_cart(db, customer.id, product.id, 1)
        line = cart_service.get_cart_lines(db, customer.id)[0]

        total = cart_service.update_quantity(db, customer.id, line.id, 3)

        assert total == Decimal("24.00")
        assert cart_service.get_cart_lines(db, customer.id)[0].quantity == 3

    def test_over_stock(self, db, customer, make_product):
        product = make_product(stock=2)
        cart_service.add_to_cart(db, customer.id, product.id, 1)
        line = cart_service.get_cart_lines(db, customer.id)[0]

        with pytest.raises(InsufficientStockError):
            cart_service.update_quantity(db, customer.id, line.id, 3)
        assert cart_service.get_cart_lines(db, customer.id)[0].quantity == 1

    def test_zero_quantity(self, db, customer, product):
        cart_service.add_to_cart(db, customer.id, product.id, 1)
        line = cart_service.get_cart_lines(db, customer.id)[0]

        with pytest.raises(InvalidArgumentError):
            cart_service.update_quantity(db, customer.id, line.id, 0)

    def test_other_users_line_is_not_found(self, db, customer, other_customer, product):
        cart_service.add_to_cart(db, customer.id, product.id, 1)
        line = cart_service.get_cart_lines(db, customer.id)[0]

        with pytest.raises(NotFoundError):
            cart_service.update_quantity(db, other_customer.id, line.id, 2)


class TestRemoveAndTotals:
    def test_remove(self, db, customer, product):
        cart_service.add_to_cart(db, customer.id, product.id, 1)
        line = cart_service.get_cart_lines(db, customer.id)[0]

        cart_service.remove_from_cart(db, customer.id, line.id)
        assert cart_service.get_cart_lines(db, customer.id) == []

    def test_remove_unknown_line(self, db, customer):
        with pytest.raises(NotFoundError):
            cart_service.remove_from_cart(db, customer.id, 12345)

    def test_cart_total_uses_discounted_price(self, db, customer, make_product):
        a = make_product("Mouse", price="10.00", discounted="8.00")
        b = make_product("Cable", price="2.50")
        cart_service.add_to_cart(db, customer.id, a.id, 2)
        cart_service.add_to_cart(db, customer.id, b.id, 2)

        lines = cart_service.get_cart_lines(db, customer.id)
        assert cart_service.cart_total(lines) == Decimal("21.00")

    def test_guest_count_is_zero(self, db):
        assert cart_service.cart_count(db, None) == 0
