from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..database import get_db
from ..envelope import ApiError, success
from ..models import Product, Wishlist, WishlistItem
from ..schemas import ProductRef, WishlistMerge
from ..security import AccessContext, verify_access_token

router = APIRouter(prefix="/api/wishlist", tags=["wishlist"])


async def load_wishlist(db: AsyncSession, customer_id: int) -> Optional[Wishlist]:
    result = await db.execute(
        select(Wishlist)
        .options(selectinload(Wishlist.products).selectinload(WishlistItem.product))
        .where(Wishlist.customer_id == customer_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


def wishlist_lines(wishlist: Wishlist) -> List[dict]:
    return [
        {
            "_id": line.product.id,
            "name": line.product.name,
            "img": line.product.product_img,
            "price": line.product.price,
            "discount": line.product.discount,
        }
        for line in wishlist.products
    ]


@router.post("")
async def add_to_wishlist(
    data: ProductRef,
    ctx: AccessContext = Depends(verify_access_token),
    db: AsyncSession = Depends(get_db),
):
    """Add a product to the wishlist (no duplicates)"""
    if not data.product_id:
        raise ApiError(400, "Product ID is required.")
    if await db.get(Product, data.product_id) is None:
        raise ApiError(404, "Product not found.")

    wishlist = await load_wishlist(db, ctx.user_id)
    if wishlist is None:
        wishlist = Wishlist(customer_id=ctx.user_id, products=[])
        db.add(wishlist)

    if not any(line.product_id == data.product_id for line in wishlist.products):
        wishlist.products.append(WishlistItem(product_id=data.product_id))
    await db.commit()

    wishlist = await load_wishlist(db, ctx.user_id)
    return success(201, wishlist_lines(wishlist))


@router.put("")
async def remove_from_wishlist(
    data: ProductRef,
    ctx: AccessContext = Depends(verify_access_token),
    db: AsyncSession = Depends(get_db),
):
    """Remove a product from the wishlist"""
    if not data.product_id:
        raise ApiError(400, "Product ID is required.")

    wishlist = await load_wishlist(db, ctx.user_id)
    if wishlist is None:
        raise ApiError(404, "Wishlist not found.")

    line = next((line for line in wishlist.products if line.product_id == data.product_id), None)
    if line is None:
        raise ApiError(404, "Product not found in wishlist.")

    wishlist.products.remove(line)
    await db.commit()

    wishlist = await load_wishlist(db, ctx.user_id)
    return success(200, wishlist_lines(wishlist))


@router.get("")
async def get_wishlist(ctx: AccessContext = Depends(verify_access_token), db: AsyncSession = Depends(get_db)):
    """Get the caller's wishlist"""
    wishlist = await load_wishlist(db, ctx.user_id)
    if wishlist is None:
        raise ApiError(404, "Wishlist not found.")
    return success(200, wishlist_lines(wishlist))


@router.post("/mergeGuestWishlist")
async def merge_guest_wishlist(
    data: WishlistMerge,
    ctx: AccessContext = Depends(verify_access_token),
    db: AsyncSession = Depends(get_db),
):
    """Merge product ids collected while logged out"""
    if data.products is None:
        raise ApiError(400, "Products are required.")

    incoming = []
    for ref in data.products:
        if ref.product_id and ref.product_id not in incoming:
            incoming.append(ref.product_id)

    result = await db.execute(select(Product.id).where(Product.id.in_(incoming)))
    known = set(result.scalars().all())
    for product_id in incoming:
        if product_id not in known:
            raise ApiError(404, f"Product {product_id} not found.")

    wishlist = await load_wishlist(db, ctx.user_id)
    if wishlist is None:
        wishlist = Wishlist(customer_id=ctx.user_id, products=[])
        db.add(wishlist)

    present = {line.product_id for line in wishlist.products}
    new_ids = [product_id for product_id in incoming if product_id not in present]
    if not new_ids:
        await db.commit()
        return success(200, "Nothing to merge.")

    for product_id in new_ids:
        wishlist.products.append(WishlistItem(product_id=product_id))
    await db.commit()

    return success(200, "Wishlist merged successfully")
