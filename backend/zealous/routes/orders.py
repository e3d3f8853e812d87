import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..database import get_db
from ..envelope import ApiError, UpstreamError, success
from ..models import Order, OrderItem, OrderStatus
from ..schemas import OrderOut
from ..security import AccessContext, verify_access_token
from ..services.shiprocket import ShiprocketClient, get_carrier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["orders"])

UNAVAILABLE = "Unavailable"


async def carrier_status(carrier: ShiprocketClient, order: Order) -> dict:
    """Live status of one order at the carrier; a failed lookup only affects this order."""
    try:
        data = await run_in_threadpool(carrier.get_order, order.order_id)
    except UpstreamError as exc:
        logger.warning("Status lookup failed for carrier order %s: %s", order.order_id, exc.detail)
        return {"orderStatus": UNAVAILABLE}

    detail = data.get("data") if isinstance(data, dict) else None
    if not isinstance(detail, dict):
        logger.warning("Unexpected status payload for carrier order %s", order.order_id)
        return {"orderStatus": UNAVAILABLE}

    shipments = detail.get("shipments") or {}
    if isinstance(shipments, list):
        shipments = shipments[0] if shipments else {}
    if not isinstance(shipments, dict):
        shipments = {}
    return {
        "orderStatus": shipments.get("status") or "Unknown",
        "paymentStatus": detail.get("payment_status"),
        "paymentMethod": detail.get("payment_method"),
    }


def order_summary(order: Order, status: dict) -> dict:
    return {
        "_id": order.id,
        "customerId": order.customer_id,
        "orderId": order.order_id,
        "orderStatus": status["orderStatus"],
        "paymentStatus": status.get("paymentStatus") or order.payment_status,
        "paymentMethod": status.get("paymentMethod") or order.payment_method,
        "orderDate": order.created_at,
        "products": [
            {
                "_id": line.product_id,
                "imgUrl": line.product.product_img if line.product else None,
                "name": line.product.name if line.product else line.name,
                "price": line.product.price if line.product else None,
                "about": line.product.about if line.product else None,
                "quantity": line.quantity,
                "totalAmount": line.total_amount,
            }
            for line in order.products
        ],
    }


@router.get("")
async def get_orders(
    ctx: AccessContext = Depends(verify_access_token),
    db: AsyncSession = Depends(get_db),
    carrier: ShiprocketClient = Depends(get_carrier),
):
    """The caller's orders, newest first, with live carrier status"""
    result = await db.execute(
        select(Order)
        .options(selectinload(Order.products).selectinload(OrderItem.product))
        .where(Order.customer_id == ctx.user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    )
    orders = list(result.scalars().all())

    statuses = await asyncio.gather(*(carrier_status(carrier, order) for order in orders))
    return success(200, [order_summary(order, status) for order, status in zip(orders, statuses)])


@router.get("/{order_id}")
async def get_order(
    order_id: int,
    ctx: AccessContext = Depends(verify_access_token),
    db: AsyncSession = Depends(get_db),
):
    """One of the caller's orders with its line items"""
    result = await db.execute(
        select(Order)
        .options(selectinload(Order.products))
        .where(Order.id == order_id, Order.customer_id == ctx.user_id)
    )
    order = result.scalar_one_or_none()
    if order is None:
        raise ApiError(404, "Order not found")
    return success(200, OrderOut.model_validate(order).dump())


@router.put("")
async def cancel_order(
    id: Optional[int] = None,
    ctx: AccessContext = Depends(verify_access_token),
    db: AsyncSession = Depends(get_db),
    carrier: ShiprocketClient = Depends(get_carrier),
):
    """Cancel an order at the carrier and mark it Canceled"""
    order = None
    if id:
        result = await db.execute(select(Order).where(Order.id == id, Order.customer_id == ctx.user_id))
        order = result.scalar_one_or_none()
    if order is None:
        raise ApiError(400, "No such order found")
    if not order.order_id:
        raise ApiError(400, "Order ID not found")
    if order.order_status == OrderStatus.CANCELED.value:
        raise ApiError(400, "Order is already canceled.")

    response = await run_in_threadpool(carrier.cancel_orders, [order.order_id])

    order.order_status = OrderStatus.CANCELED.value
    await db.commit()

    logger.info("Order %s canceled by user %s", order.id, ctx.user_id)
    return success(200, response.get("message") or "Order canceled.")
