from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..envelope import ApiError, success
from ..models import Coupon
from ..schemas import CouponCreate, CouponOut, CouponValidateRequest
from ..security import AccessContext, verify_access_token

router = APIRouter(prefix="/api", tags=["coupons"])


def normalize_code(code) -> str:
    return str(code).strip().upper()


def format_amount(amount: float) -> str:
    """Print a number the way the storefront shows prices: 1500000, 123456.75"""
    amount = float(amount)
    return str(int(amount)) if amount.is_integer() else repr(amount)


@router.get("/coupons")
async def get_coupons(db: AsyncSession = Depends(get_db)):
    """Get all coupons, highest discount first"""
    result = await db.execute(select(Coupon).order_by(Coupon.discount_percentage.desc()))
    coupons = [CouponOut.model_validate(c).dump() for c in result.scalars().all()]
    return success(200, coupons, count=len(coupons))


@router.post("/coupons")
async def create_coupon(
    data: CouponCreate,
    ctx: AccessContext = Depends(verify_access_token),
    db: AsyncSession = Depends(get_db),
):
    """Create a coupon"""
    if not data.code or data.discount_percentage is None:
        raise ApiError(400, "Code and discountPercentage are required.")
    if not 0 < data.discount_percentage <= 100:
        raise ApiError(400, "discountPercentage must be between 0 and 100.")

    code = normalize_code(data.code)
    result = await db.execute(select(Coupon.id).where(Coupon.code == code))
    if result.scalar_one_or_none() is not None:
        raise ApiError(409, "Coupon code already exists.")

    coupon = Coupon(
        code=code,
        discount_percentage=data.discount_percentage,
        max_discount_amount=data.max_discount_amount or 0,
        min_order_amount=data.min_order_amount or 0,
    )
    db.add(coupon)
    await db.commit()
    await db.refresh(coupon)
    return success(201, CouponOut.model_validate(coupon).dump())


@router.post("/validateCoupon")
async def validate_coupon(data: CouponValidateRequest, db: AsyncSession = Depends(get_db)):
    """
    Check a coupon code against an optional cart total.

    Advisory only: the discount is applied client-side and is not enforced at
    payment verification.
    """
    if not data.code:
        raise ApiError(400, "Coupon code is required")

    result = await db.execute(select(Coupon).where(Coupon.code == normalize_code(data.code)))
    coupon = result.scalar_one_or_none()
    if not coupon:
        raise ApiError(404, "Invalid coupon code")

    min_order = coupon.min_order_amount or 0
    cart_total = data.cart_total
    is_number = isinstance(cart_total, (int, float)) and not isinstance(cart_total, bool)
    if is_number and cart_total < min_order:
        raise ApiError(400, f"Minimum order amount for this coupon is ₹{format_amount(min_order)}")

    discount_percentage = coupon.discount_percentage or 0
    return success(200, {
        "_id": coupon.id,
        "code": coupon.code,
        "discountPercentage": discount_percentage,
        "maxDiscountAmount": coupon.max_discount_amount or discount_percentage,
        "minOrderAmount": min_order,
        "createdAt": coupon.created_at,
        "updatedAt": coupon.updated_at,
    })
