from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..database import get_db
from ..envelope import ApiError, success
from ..models import Cart, CartItem, Product
from ..schemas import CartLineIn, CartMerge, ProductRef
from ..security import AccessContext, verify_access_token

router = APIRouter(prefix="/api/cart", tags=["cart"])


async def load_cart(db: AsyncSession, customer_id: int) -> Optional[Cart]:
    result = await db.execute(
        select(Cart)
        .options(selectinload(Cart.products).selectinload(CartItem.product))
        .where(Cart.customer_id == customer_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


def cart_lines(cart: Cart) -> List[dict]:
    return [
        {
            "_id": line.product.id,
            "name": line.product.name,
            "img": line.product.product_img,
            "price": line.product.price,
            "about": line.product.about,
            "discount": line.product.discount,
            "items": line.items,
            "quantity": line.quantity,
        }
        for line in cart.products
    ]


def add_line(cart: Cart, product_id: int, quantity, items: int) -> None:
    """Bump an existing line by ``items`` and overwrite its label, or append a new line."""
    label = str(quantity)
    for line in cart.products:
        if line.product_id == product_id:
            line.items += items
            line.quantity = label
            return
    cart.products.append(CartItem(product_id=product_id, items=items, quantity=label))


async def _existing_product_ids(db: AsyncSession, ids) -> set:
    result = await db.execute(select(Product.id).where(Product.id.in_(set(ids))))
    return set(result.scalars().all())


async def _cart_for_update(db: AsyncSession, customer_id: int) -> Cart:
    cart = await load_cart(db, customer_id)
    if cart is None:
        cart = Cart(customer_id=customer_id, products=[])
        db.add(cart)
    return cart


@router.post("")
async def add_to_cart(
    line: CartLineIn,
    ctx: AccessContext = Depends(verify_access_token),
    db: AsyncSession = Depends(get_db),
):
    """Add a product to the cart"""
    if not line.product_id or not line.quantity:
        raise ApiError(400, "All fields are required.")
    if await db.get(Product, line.product_id) is None:
        raise ApiError(404, "Product not found.")

    cart = await _cart_for_update(db, ctx.user_id)
    add_line(cart, line.product_id, line.quantity, line.items)
    await db.commit()

    cart = await load_cart(db, ctx.user_id)
    return success(201, cart_lines(cart))


@router.get("")
async def get_cart(ctx: AccessContext = Depends(verify_access_token), db: AsyncSession = Depends(get_db)):
    """Get the caller's cart"""
    cart = await load_cart(db, ctx.user_id)
    if cart is None:
        raise ApiError(404, "Cart not found.")
    return success(200, cart_lines(cart))


@router.post("/items")
async def merge_cart(
    data: CartMerge,
    ctx: AccessContext = Depends(verify_access_token),
    db: AsyncSession = Depends(get_db),
):
    """Merge a guest cart into the caller's cart"""
    if data.products is None:
        raise ApiError(400, "Products are required")
    if any(not line.product_id or not line.quantity for line in data.products):
        raise ApiError(400, "Each product requires productId and quantity.")

    known = await _existing_product_ids(db, [line.product_id for line in data.products])
    for line in data.products:
        if line.product_id not in known:
            raise ApiError(404, f"Product {line.product_id} not found.")

    cart = await _cart_for_update(db, ctx.user_id)
    for line in data.products:
        add_line(cart, line.product_id, line.quantity, line.items)
    await db.commit()

    return success(200, "Cart merged successfully.")


@router.put("/items")
async def remove_one_unit(
    data: ProductRef,
    ctx: AccessContext = Depends(verify_access_token),
    db: AsyncSession = Depends(get_db),
):
    """Remove one unit of a product; the line goes away at zero"""
    if not data.product_id:
        raise ApiError(400, "Product ID is required.")

    cart = await load_cart(db, ctx.user_id)
    if cart is None:
        raise ApiError(404, "Cart not found.")

    line = next((line for line in cart.products if line.product_id == data.product_id), None)
    if line is None:
        raise ApiError(404, "Product not found in cart.")

    line.items -= 1
    if line.items <= 0:
        cart.products.remove(line)
    await db.commit()

    cart = await load_cart(db, ctx.user_id)
    return success(200, cart_lines(cart))


@router.delete("/items")
async def remove_line(
    productId: Optional[int] = None,
    ctx: AccessContext = Depends(verify_access_token),
    db: AsyncSession = Depends(get_db),
):
    """Remove a product from the cart regardless of its count"""
    if not productId:
        raise ApiError(400, "Product ID is required.")

    cart = await load_cart(db, ctx.user_id)
    if cart is None:
        raise ApiError(404, "Cart not found.")

    line = next((line for line in cart.products if line.product_id == productId), None)
    if line is None:
        raise ApiError(404, "Product not found in cart.")

    cart.products.remove(line)
    await db.commit()
    return success(200, "Product removed from cart.")
