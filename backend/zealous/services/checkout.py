"""
Order placement after a gateway payment.

One pass, nothing persisted until the carrier has accepted the shipment:

1. validate the request body
2. check the gateway signature
3. fetch the payment from the gateway (for the method actually used)
4. rebuild line items from stored product prices
5. register the shipment with the carrier
6. insert the Order with its lines

A carrier failure after a captured payment leaves no local Order; there is no
compensating refund.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..envelope import ApiError
from ..models import Order, OrderItem, PaymentStatus, Product, User
from ..schemas import CheckoutLine, ShippingAddress, VerifyPaymentRequest
from .razorpay_gateway import RazorpayGateway
from .shiprocket import ShiprocketClient

logger = logging.getLogger(__name__)

REQUIRED_SHIPPING_FIELDS = ("full_name", "phone", "email", "street_address_house_no", "city_town", "state", "pin_code")


@dataclass
class Line:
    product: Product
    quantity: int
    total_amount: float

    @property
    def unit_price(self) -> float:
        return round(self.total_amount / self.quantity, 2)


def line_total(price: float, discount: float, quantity: int) -> float:
    """``price * quantity`` less a whole-number percentage discount, unrounded."""
    return price * quantity * (1 - discount / 100)


def normalize_payment_method(method: Optional[str]) -> str:
    method = str(method or "")
    return method[:1].upper() + method[1:]


def resolve_shipping(address: ShippingAddress, user: User) -> Dict[str, Optional[str]]:
    """Shipping fields from the request, falling back to the user's profile for contact details."""
    shipping = address.model_dump()
    shipping["full_name"] = shipping["full_name"] or user.full_name
    shipping["phone"] = shipping["phone"] or user.phone
    shipping["email"] = shipping["email"] or user.email
    return shipping


def validate_request(body: VerifyPaymentRequest, user: User) -> Dict[str, Optional[str]]:
    if not (
        body.razorpay_order_id
        and body.razorpay_payment_id
        and body.razorpay_signature
        and body.amount
        and body.cart
        and body.address
    ):
        raise ApiError(400, "Invalid payment data")

    shipping = resolve_shipping(body.address, user)
    missing = [field for field in REQUIRED_SHIPPING_FIELDS if not shipping.get(field)]
    if missing:
        raise ApiError(400, "Incomplete shipping address.")
    return shipping


async def rebuild_lines(db: AsyncSession, cart: List[CheckoutLine]) -> List[Line]:
    for entry in cart:
        if entry.product_id is None or not entry.quantity or entry.quantity < 1:
            raise ApiError(400, "Each cart item requires _id and quantity.")

    ids = {entry.product_id for entry in cart}
    result = await db.execute(select(Product).where(Product.id.in_(ids)))
    products = {product.id: product for product in result.scalars().all()}

    lines = []
    for entry in cart:
        product = products.get(entry.product_id)
        if product is None:
            raise ApiError(404, f"Product {entry.product_id} not found.")
        lines.append(Line(
            product=product,
            quantity=entry.quantity,
            total_amount=line_total(product.price, product.discount or 0, entry.quantity),
        ))
    return lines


def subtotal(lines: List[Line]) -> float:
    return round(sum(line.total_amount for line in lines), 2)


def build_shipment(payment_order_id: str, lines: List[Line], shipping: dict, placed_at: datetime) -> dict:
    first_name, _, last_name = (shipping["full_name"] or "").strip().partition(" ")
    return {
        "order_id": payment_order_id,
        "order_date": placed_at.strftime("%Y-%m-%d %H:%M"),
        "pickup_location": settings.SHIPROCKET_PICKUP_LOCATION,
        "billing_customer_name": first_name,
        "billing_last_name": last_name,
        "billing_address": shipping["street_address_house_no"],
        "billing_address_2": shipping.get("street_address2") or shipping.get("landmark") or "",
        "billing_city": shipping["city_town"],
        "billing_pincode": shipping["pin_code"],
        "billing_state": shipping["state"],
        "billing_country": "India",
        "billing_email": shipping["email"],
        "billing_phone": shipping["phone"],
        "shipping_is_billing": True,
        "order_items": [
            {
                "name": line.product.name,
                "sku": line.product.sku,
                "units": line.quantity,
                "selling_price": line.unit_price,
            }
            for line in lines
        ],
        "payment_method": "Prepaid",
        "sub_total": subtotal(lines),
        "length": max(line.product.length for line in lines),
        "breadth": max(line.product.breadth for line in lines),
        "height": round(sum(line.product.height * line.quantity for line in lines), 2),
        "weight": round(sum(line.product.weight * line.quantity for line in lines), 3),
    }


async def place_order(
    db: AsyncSession,
    user: User,
    body: VerifyPaymentRequest,
    gateway: RazorpayGateway,
    carrier: ShiprocketClient,
) -> Order:
    shipping = validate_request(body, user)

    verified = await run_in_threadpool(
        gateway.verify_signature, body.razorpay_order_id, body.razorpay_payment_id, body.razorpay_signature
    )
    if not verified:
        logger.warning("Signature mismatch for payment %s (user %s)", body.razorpay_payment_id, user.id)
        raise ApiError(400, "Payment verification failed!")

    existing = await db.execute(select(Order.id).where(Order.payment_id == body.razorpay_payment_id))
    if existing.scalar_one_or_none() is not None:
        raise ApiError(409, "Order already placed for this payment.")

    payment = await run_in_threadpool(gateway.fetch_payment, body.razorpay_payment_id)
    payment_method = normalize_payment_method(payment.get("method"))

    lines = await rebuild_lines(db, body.cart)

    placed_at = datetime.utcnow()
    shipment = await run_in_threadpool(
        carrier.create_order, build_shipment(body.razorpay_order_id, lines, shipping, placed_at)
    )

    order = Order(
        customer_id=user.id,
        full_name=shipping["full_name"],
        phone=shipping["phone"],
        email=shipping["email"],
        landmark=shipping.get("landmark"),
        street_address_house_no=shipping["street_address_house_no"],
        street_address2=shipping.get("street_address2"),
        address_type=shipping.get("address_type"),
        city_town=shipping["city_town"],
        state=shipping["state"],
        pin_code=shipping["pin_code"],
        order_id=int(shipment["order_id"]),
        payment_status=PaymentStatus.COMPLETED.value,
        payment_method=payment_method,
        payment_id=body.razorpay_payment_id,
        payment_order_id=body.razorpay_order_id,
        payment_amount=body.amount,
        payment_date=placed_at,
        created_at=placed_at,
    )
    db.add(order)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise ApiError(409, "Order already placed for this payment.")

    for line in lines:
        db.add(OrderItem(
            order_id=order.id,
            product_id=line.product.id,
            name=line.product.name,
            sku=line.product.sku,
            quantity=line.quantity,
            total_amount=line.total_amount,
        ))

    await db.commit()
    logger.info("Order %s placed for user %s (carrier order %s)", order.id, user.id, order.order_id)
    return order
