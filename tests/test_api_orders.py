"""Integration tests for checkout, order history and cancellation via TestClient."""
from models.log import Log
from models.order import Order

CHECKOUT = {
    "shipping_address": "Main St 1",
    "shipping_city": "Gdansk",
    "shipping_postal_code": "80-001",
    "phone_number": "555-100-200",
}


def _add(client, headers, product_id, quantity=1):
    response = client.post("/cart/add", json={"product_id": product_id, "quantity": quantity}, headers=headers)
    assert response.status_code == 200
    return response


def _checkout(client, headers, payload=None):
    return client.post("/orders/checkout", json=payload or CHECKOUT, headers=headers)


class TestCheckoutPreview:
    def test_preview_prefills_address(self, client, customer_headers, product):
        _add(client, customer_headers, product.id, 2)

        body = client.get("/orders/checkout", headers=customer_headers).json()

        assert body["total_amount"] == 20.0
        assert body["shipping_address"] == "Main St 1"
        assert body["shipping_postal_code"] == "80-001"
        assert len(body["items"]) == 1

    def test_empty_cart_sends_back_to_cart(self, client, customer_headers):
        response = client.get("/orders/checkout", headers=customer_headers)

        assert response.status_code == 400
        assert response.json()["detail"] == {"message": "Cart is empty", "redirect": "/cart"}


class TestCheckout:
    def test_checkout_creates_pending_order(self, client, customer_headers, make_product, stock_of, db):
        product = make_product(price="10.00", discounted="8.00", stock=5)
        _add(client, customer_headers, product.id, 2)

        response = _checkout(client, customer_headers)

        assert response.status_code == 201
        order = response.json()
        assert order["status"] == "Pending"
        assert order["total_amount"] == 16.0
        assert order["items"] == [{
            "product_id": product.id, "product_name": "Headphones",
            "quantity": 2, "unit_price": 8.0, "total_price": 16.0,
        }]
        assert stock_of(product.id) == 3
        assert client.get("/cart/count", headers=customer_headers).json() == {"count": 0}
        assert db.query(Log).filter(Log.action == "ORDER_CHECKOUT", Log.status == "SUCCESS").count() == 1

    def test_stock_changed_since_add(self, client, customer_headers, product, stock_of, db):
        _add(client, customer_headers, product.id, 3)
        product.stock_quantity = 2
        db.commit()

        response = _checkout(client, customer_headers)

        assert response.status_code == 409
        assert response.json()["detail"] == {"message": "Insufficient stock for Headphones", "redirect": "/cart"}
        assert db.query(Order).count() == 0
        assert stock_of(product.id) == 2
        assert client.get("/cart/count", headers=customer_headers).json() == {"count": 3}

    def test_empty_cart(self, client, customer_headers):
        assert _checkout(client, customer_headers).status_code == 400

    def test_address_is_required(self, client, customer_headers, product):
        _add(client, customer_headers, product.id)
        assert _checkout(client, customer_headers, {"shipping_address": ""}).status_code == 422

    def test_guest_cannot_checkout(self, client):
        assert _checkout(client, {}).status_code == 401


class TestOrderHistory:
    def test_list_and_detail_are_scoped_to_owner(self, client, customer_headers, other_headers, product):
        _add(client, customer_headers, product.id)
        order_id = _checkout(client, customer_headers).json()["id"]

        mine = client.get("/orders", headers=customer_headers).json()
        assert mine["total"] == 1
        assert mine["items"][0]["id"] == order_id

        assert client.get(f"/orders/{order_id}", headers=customer_headers).status_code == 200
        assert client.get(f"/orders/{order_id}", headers=other_headers).status_code == 404
        assert client.get("/orders", headers=other_headers).json()["total"] == 0


class TestCancel:
    def test_cancel_restores_stock_and_second_cancel_fails(self, client, customer_headers, make_product, stock_of):
        product = make_product(stock=10)
        _add(client, customer_headers, product.id, 4)
        order_id = _checkout(client, customer_headers).json()["id"]
        assert stock_of(product.id) == 6

        first = client.post(f"/orders/{order_id}/cancel", headers=customer_headers)
        assert first.status_code == 200
        assert first.json()["status"] == "Cancelled"
        assert stock_of(product.id) == 10

        second = client.post(f"/orders/{order_id}/cancel", headers=customer_headers)
        assert second.status_code == 409
        assert second.json()["detail"]["redirect"] == f"/orders/{order_id}"
        assert stock_of(product.id) == 10

    def test_cannot_cancel_someone_elses_order(self, client, customer_headers, other_headers, product):
        _add(client, customer_headers, product.id)
        order_id = _checkout(client, customer_headers).json()["id"]

        response = client.post(f"/orders/{order_id}/cancel", headers=other_headers)
        assert response.status_code == 404
