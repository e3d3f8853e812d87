from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..database import get_db
from ..envelope import ApiError, success
from ..models import Product, Review
from ..schemas import ReviewCreate
from ..security import AccessContext, verify_access_token

router = APIRouter(prefix="/api/products/review", tags=["reviews"])

EMPTY_REVIEW = {"_id": "", "rating": 0, "comment": "", "user": {"_id": "", "fullName": ""}}


async def update_product_rating(db: AsyncSession, product_id: int) -> None:
    """Recompute a product's average rating and review count from its reviews."""
    result = await db.execute(
        select(func.avg(Review.rating), func.count(Review.id)).where(Review.product_id == product_id)
    )
    average, count = result.one()
    product = await db.get(Product, product_id)
    if product is not None:
        product.average_rating = float(average or 0)
        product.num_reviews = count


def _valid_rating(rating) -> bool:
    return isinstance(rating, int) and not isinstance(rating, bool) and 1 <= rating <= 5


@router.post("")
async def add_review(
    data: ReviewCreate,
    ctx: AccessContext = Depends(verify_access_token),
    db: AsyncSession = Depends(get_db),
):
    """Review a product (one review per user and product)"""
    if not data.product_id or not data.rating or not data.comment:
        raise ApiError(400, "Product ID and rating are required.")
    if not _valid_rating(data.rating):
        raise ApiError(400, "Rating must be an integer between 1 and 5.")
    if await db.get(Product, data.product_id) is None:
        raise ApiError(404, "Product not found.")

    existing = await db.execute(
        select(Review.id).where(Review.user_id == ctx.user_id, Review.product_id == data.product_id)
    )
    if existing.scalar_one_or_none() is not None:
        raise ApiError(400, "You have already reviewed this product.")

    db.add(Review(user_id=ctx.user_id, product_id=data.product_id, rating=data.rating, comment=data.comment))
    await db.flush()
    await update_product_rating(db, data.product_id)
    await db.commit()

    return success(201, "Review added successfully")


@router.get("")
async def get_review_summary(id: Optional[int] = None, db: AsyncSession = Depends(get_db)):
    """One random review plus the rating distribution for a product"""
    if not id:
        raise ApiError(400, "Product ID is required")

    result = await db.execute(
        select(Review)
        .options(selectinload(Review.user))
        .where(Review.product_id == id)
        .order_by(func.random())
        .limit(1)
    )
    review = result.scalar_one_or_none()

    result = await db.execute(
        select(Review.rating, func.count(Review.id)).where(Review.product_id == id).group_by(Review.rating)
    )
    counts = dict(result.all())
    total = sum(counts.values())

    distribution = []
    for rating in (5, 4, 3, 2, 1):
        count = counts.get(rating, 0)
        distribution.append({
            "rating": rating,
            "count": count,
            "percent": 0 if total == 0 else round(count / total * 100),
        })

    random_review = EMPTY_REVIEW
    if review is not None:
        random_review = {
            "_id": review.id,
            "rating": review.rating,
            "comment": review.comment,
            "createdAt": review.created_at,
            "user": {"_id": review.user.id, "fullName": review.user.full_name},
        }

    return success(200, {"randomReview": random_review, "totalReviews": total, "distribution": distribution})


@router.delete("")
async def delete_review(
    reviewId: Optional[int] = None,
    ctx: AccessContext = Depends(verify_access_token),
    db: AsyncSession = Depends(get_db),
):
    """Delete one of the caller's reviews"""
    if not reviewId:
        raise ApiError(400, "Review ID is required.")

    review = await db.get(Review, reviewId)
    if review is None:
        raise ApiError(404, "Review not found.")
    if review.user_id != ctx.user_id:
        raise ApiError(403, "You can only delete your own reviews.")

    product_id = review.product_id
    await db.delete(review)
    await db.flush()
    await update_product_rating(db, product_id)
    await db.commit()

    return success(200, "Review deleted successfully.")
