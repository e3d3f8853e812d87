import pytest

from zealous.models import Order, OrderItem


@pytest.fixture
def checkout(client, headers, make_product, sign, address):
    """Build and send a verify request for two units of a 10%-off product."""
    product_id = make_product(name="Ashwagandha Capsules", price=100, discount=10, sku="ZH-ASH-60")

    def _checkout(order_id="order_1", payment_id="pay_1", signature=None, **overrides):
        body = {
            "razorpay_order_id": order_id,
            "razorpay_payment_id": payment_id,
            "razorpay_signature": signature or sign(order_id, payment_id),
            "amount": 180,
            "cart": [{"_id": product_id, "quantity": 2}],
            "address": address,
        }
        body.update(overrides)
        return client.post("/api/payments/verify", json=body, headers=headers)

    _checkout.product_id = product_id
    return _checkout


def test_verified_payment_places_order(checkout, carrier, gateway, rows):
    resp = checkout()
    assert resp.status_code == 200
    result = resp.json()["result"]
    assert result["orderId"] == 5001
    assert result["paymentMethod"] == "Upi"
    assert result["date"]

    [order] = rows(Order)
    assert order.order_id == 5001
    assert order.payment_status == "Completed"
    assert order.payment_id == "pay_1"
    assert order.payment_order_id == "order_1"
    assert order.payment_method == "Upi"
    assert order.city_town == "Pune"
    assert order.order_status == "Pending"

    [line] = rows(OrderItem)
    assert line.product_id == checkout.product_id
    assert line.quantity == 2
    assert line.total_amount == pytest.approx(180.0)
    assert line.sku == "ZH-ASH-60"
    assert gateway.fetched == ["pay_1"]


def test_carrier_payload_uses_stored_prices(checkout, carrier):
    checkout(amount=1)
    [payload] = carrier.created
    assert payload["order_id"] == "order_1"
    assert payload["sub_total"] == 180.0
    assert payload["payment_method"] == "Prepaid"
    assert payload["billing_customer_name"] == "Asha"
    assert payload["billing_last_name"] == "Rao"
    assert payload["billing_pincode"] == "411001"
    assert payload["order_items"] == [
        {"name": "Ashwagandha Capsules", "sku": "ZH-ASH-60", "units": 2, "selling_price": 90.0}
    ]


def test_bad_signature_rejected_before_side_effects(checkout, carrier, gateway, count):
    resp = checkout(signature="0" * 64)
    assert resp.status_code == 400
    assert resp.json()["result"] == "Payment verification failed!"
    assert carrier.created == []
    assert gateway.fetched == []
    assert count(Order) == 0


def test_signature_from_wrong_secret_rejected(checkout, sign, count):
    resp = checkout(signature=sign("order_1", "pay_1", secret="not-the-secret"))
    assert resp.status_code == 400
    assert count(Order) == 0


@pytest.mark.parametrize("field", ["razorpay_order_id", "razorpay_payment_id", "razorpay_signature",
                                   "amount", "cart", "address"])
def test_missing_field_is_invalid_payment_data(checkout, carrier, count, field):
    resp = checkout(**{field: None})
    assert resp.status_code == 400
    assert resp.json()["result"] == "Invalid payment data"
    assert carrier.created == []
    assert count(Order) == 0


def test_empty_cart_is_invalid(checkout, count):
    resp = checkout(cart=[])
    assert resp.status_code == 400
    assert resp.json()["result"] == "Invalid payment data"
    assert count(Order) == 0


def test_unknown_product_persists_nothing(checkout, carrier, count):
    resp = checkout(cart=[{"_id": checkout.product_id, "quantity": 1}, {"_id": 9999, "quantity": 1}])
    assert resp.status_code == 404
    assert carrier.created == []
    assert count(Order) == 0
    assert count(OrderItem) == 0


def test_cart_line_without_quantity(checkout, count):
    resp = checkout(cart=[{"_id": checkout.product_id}])
    assert resp.status_code == 400
    assert count(Order) == 0


def test_carrier_failure_is_500_and_no_order(checkout, carrier, count):
    carrier.fail_create = True
    resp = checkout()
    assert resp.status_code == 500
    assert resp.json() == {"status": "error", "statusCode": 500, "result": "Something went wrong."}
    assert count(Order) == 0


def test_duplicate_payment_id_conflicts(checkout, carrier, count):
    assert checkout().status_code == 200
    resp = checkout()
    assert resp.status_code == 409
    assert count(Order) == 1
    assert len(carrier.created) == 1


def test_shipping_contact_falls_back_to_profile(client, headers, checkout, carrier, address):
    client.put("/api/users", headers=headers, json={
        "fullName": "Profile Name", "dob": "1990-01-01", "phone": "9000000000",
        "gender": "female", "email": "asha@example.com", "img": "https://img.example.com/a.png",
    })
    address.pop("fullName")
    address.pop("phone")
    resp = checkout(address=address)
    assert resp.status_code == 200
    payload = carrier.created[0]
    assert payload["billing_customer_name"] == "Profile"
    assert payload["billing_phone"] == "9000000000"


def test_incomplete_address_rejected(checkout, address, count):
    address.pop("pinCode")
    resp = checkout(address=address)
    assert resp.status_code == 400
    assert count(Order) == 0


def test_verify_requires_auth(client):
    resp = client.post("/api/payments/verify", json={})
    assert resp.status_code == 401


def test_create_gateway_order_in_paise(client):
    resp = client.post("/api/payments/order", json={"amount": 499.5})
    assert resp.status_code == 200
    order = resp.json()["result"]
    assert order["amount"] == 49950
    assert order["currency"] == "INR"
    assert len(order["receipt"]) == 20

    resp = client.post("/api/payments/order", json={})
    assert resp.status_code == 400
    assert resp.json()["result"] == "Amount is required."
