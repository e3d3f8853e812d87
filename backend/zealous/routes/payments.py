from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..envelope import ApiError, success
from ..schemas import PaymentOrderRequest, VerifyPaymentRequest
from ..security import AccessContext, verify_access_token
from ..services.checkout import place_order
from ..services.razorpay_gateway import RazorpayGateway, get_gateway
from ..services.shiprocket import ShiprocketClient, get_carrier

router = APIRouter(prefix="/api/payments", tags=["payments"])


@router.post("/order")
async def create_payment_order(data: PaymentOrderRequest, gateway: RazorpayGateway = Depends(get_gateway)):
    """Open a gateway order for the checkout total (in rupees)"""
    if not data.amount:
        raise ApiError(400, "Amount is required.")
    order = await run_in_threadpool(gateway.create_order, data.amount)
    return success(200, order)


@router.post("/verify")
async def verify_payment(
    body: VerifyPaymentRequest,
    ctx: AccessContext = Depends(verify_access_token),
    db: AsyncSession = Depends(get_db),
    gateway: RazorpayGateway = Depends(get_gateway),
    carrier: ShiprocketClient = Depends(get_carrier),
):
    """Verify a completed payment and place the order"""
    order = await place_order(db, ctx.user, body, gateway, carrier)
    return success(200, {
        "orderId": order.order_id,
        "date": order.created_at,
        "paymentMethod": order.payment_method,
    })
