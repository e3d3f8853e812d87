import pytest

from zealous.database import async_session_maker
from zealous.models import Coupon


@pytest.fixture
def coupons(run):
    async def _insert():
        async with async_session_maker() as db:
            db.add_all([
                Coupon(code="WELCOME10", discount_percentage=10, max_discount_amount=100, min_order_amount=500),
                Coupon(code="FLAT5", discount_percentage=5, max_discount_amount=0, min_order_amount=0),
                Coupon(code="BIG25", discount_percentage=25, max_discount_amount=300, min_order_amount=2000),
            ])
            await db.commit()
    run(_insert)


def test_validate_normalizes_code(client, coupons):
    resp = client.post("/api/validateCoupon", json={"code": "  welcome10 ", "cartTotal": 800})
    assert resp.status_code == 200
    result = resp.json()["result"]
    assert result["code"] == "WELCOME10"
    assert result["discountPercentage"] == 10
    assert result["maxDiscountAmount"] == 100
    assert result["minOrderAmount"] == 500
    assert {"_id", "createdAt", "updatedAt"} <= set(result)


def test_validate_below_minimum(client, coupons):
    resp = client.post("/api/validateCoupon", json={"code": "WELCOME10", "cartTotal": 499})
    assert resp.status_code == 400
    assert resp.json()["result"] == "Minimum order amount for this coupon is ₹500"


def test_validate_without_cart_total_skips_minimum(client, coupons):
    assert client.post("/api/validateCoupon", json={"code": "BIG25"}).status_code == 200


def test_max_discount_falls_back_to_percentage(client, coupons):
    result = client.post("/api/validateCoupon", json={"code": "flat5"}).json()["result"]
    assert result["maxDiscountAmount"] == 5
    assert result["minOrderAmount"] == 0


def test_validate_errors(client, coupons):
    resp = client.post("/api/validateCoupon", json={})
    assert resp.status_code == 400
    assert resp.json()["result"] == "Coupon code is required"

    resp = client.post("/api/validateCoupon", json={"code": "NOPE"})
    assert resp.status_code == 404
    assert resp.json()["result"] == "Invalid coupon code"


def test_list_sorted_by_discount(client, coupons):
    body = client.get("/api/coupons").json()
    assert body["count"] == 3
    assert [c["code"] for c in body["result"]] == ["BIG25", "WELCOME10", "FLAT5"]


def test_create_coupon(client, headers):
    body = {"code": " summer15 ", "discountPercentage": 15, "maxDiscountAmount": 150, "minOrderAmount": 999}
    assert client.post("/api/coupons", json=body).status_code == 401

    resp = client.post("/api/coupons", json=body, headers=headers)
    assert resp.status_code == 201
    assert resp.json()["result"]["code"] == "SUMMER15"

    assert client.post("/api/coupons", json=body, headers=headers).status_code == 409
    assert client.post("/api/coupons", json={"code": "X", "discountPercentage": 150}, headers=headers).status_code == 400


def test_minimum_message_prints_exact_amount(client, run):
    async def _insert():
        async with async_session_maker() as db:
            db.add_all([
                Coupon(code="BULK", discount_percentage=5, max_discount_amount=0, min_order_amount=1500000),
                Coupon(code="ODD", discount_percentage=5, max_discount_amount=0, min_order_amount=123456.75),
            ])
            await db.commit()
    run(_insert)

    resp = client.post("/api/validateCoupon", json={"code": "BULK", "cartTotal": 100})
    assert resp.json()["result"] == "Minimum order amount for this coupon is ₹1500000"
    resp = client.post("/api/validateCoupon", json={"code": "ODD", "cartTotal": 100})
    assert resp.json()["result"] == "Minimum order amount for this coupon is ₹123456.75"


@pytest.mark.parametrize("cart_total", ["100", "lots", None, True])
def test_non_numeric_cart_total_skips_minimum(client, coupons, cart_total):
    resp = client.post("/api/validateCoupon", json={"code": "WELCOME10", "cartTotal": cart_total})
    assert resp.status_code == 200
