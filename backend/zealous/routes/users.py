import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..database import get_db
from ..envelope import ApiError, success
from ..models import Address, Blog, BlogComment, Order, Review, User
from ..schemas import AddressIn, AddressOut, UserProfile, UserUpdate
from ..security import AccessContext, verify_access_token
from .reviews import update_product_rating

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])

REQUIRED_ADDRESS_FIELDS = (
    "full_name",
    "phone",
    "street_address_house_no",
    "address_type",
    "city_town",
    "state",
    "pin_code",
)


async def load_addresses(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(
        select(User)
        .options(selectinload(User.addresses))
        .where(User.id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


def address_list(user: User):
    return [AddressOut.model_validate(address).dump() for address in user.addresses]


@router.get("")
async def get_profile(ctx: AccessContext = Depends(verify_access_token)):
    """Get the caller's profile"""
    return success(200, UserProfile.model_validate(ctx.user).dump())


@router.put("")
async def update_profile(
    data: UserUpdate,
    ctx: AccessContext = Depends(verify_access_token),
    db: AsyncSession = Depends(get_db),
):
    """Update the caller's profile"""
    if not all([data.full_name, data.dob, data.phone, data.gender, data.email, data.img]):
        raise ApiError(400, "All fields are required.")

    email = data.email.strip().lower()
    if email != ctx.user.email:
        taken = await db.execute(select(User.id).where(User.email == email, User.id != ctx.user_id))
        if taken.scalar_one_or_none() is not None:
            raise ApiError(409, "Email is already in use.")

    user = ctx.user
    user.full_name = data.full_name
    user.dob = data.dob
    user.phone = data.phone
    user.gender = data.gender
    user.email = email
    user.img_url = data.img
    await db.commit()

    return success(200, "Profile updated successfully")


@router.delete("")
async def delete_account(ctx: AccessContext = Depends(verify_access_token), db: AsyncSession = Depends(get_db)):
    """Delete the caller's account with its addresses, cart, wishlist and reviews; orders stay, detached"""
    result = await db.execute(select(Review.product_id).where(Review.user_id == ctx.user_id))
    reviewed = set(result.scalars().all())

    await db.execute(delete(BlogComment).where(BlogComment.user_id == ctx.user_id))
    await db.execute(update(Blog).where(Blog.author_id == ctx.user_id).values(author_id=None))
    await db.execute(update(Order).where(Order.customer_id == ctx.user_id).values(customer_id=None))
    await db.delete(ctx.user)
    await db.flush()

    for product_id in reviewed:
        await update_product_rating(db, product_id)
    await db.commit()

    logger.info("Deleted user %s", ctx.user_id)
    return success(200, "User deleted successfully.")


# ==================== ADDRESSES ====================

@router.get("/addresses")
async def get_addresses(ctx: AccessContext = Depends(verify_access_token), db: AsyncSession = Depends(get_db)):
    """Get the caller's address book"""
    user = await load_addresses(db, ctx.user_id)
    return success(200, address_list(user))


@router.put("/addresses")
async def save_address(
    data: AddressIn,
    ctx: AccessContext = Depends(verify_access_token),
    db: AsyncSession = Depends(get_db),
):
    """Add an address, or update one when ``_id`` is given"""
    fields = data.model_dump(exclude={"id"}, exclude_unset=True)
    if any(not fields.get(name) for name in REQUIRED_ADDRESS_FIELDS):
        raise ApiError(400, "Please provide required fields.")

    user = await load_addresses(db, ctx.user_id)

    if not user.addresses:
        fields["is_default"] = True
        user.addresses.append(Address(**fields))
        message = "Address added successfully"
    elif data.id:
        address = next((a for a in user.addresses if a.id == data.id), None)
        if address is None:
            raise ApiError(404, "Address not found")
        if fields.get("is_default"):
            for other in user.addresses:
                other.is_default = False
        for name, value in fields.items():
            setattr(address, name, value)
        message = "Address updated successfully"
    else:
        if fields.get("is_default"):
            for other in user.addresses:
                other.is_default = False
        user.addresses.append(Address(**fields))
        message = "Address added successfully"

    await db.commit()
    user = await load_addresses(db, ctx.user_id)
    return success(200, {"message": message, "addresses": address_list(user)})


@router.delete("/addresses")
async def delete_address(
    addressId: Optional[int] = None,
    ctx: AccessContext = Depends(verify_access_token),
    db: AsyncSession = Depends(get_db),
):
    """Remove an address; the first remaining one becomes default if needed"""
    if not addressId:
        raise ApiError(400, "Address ID is required")

    user = await load_addresses(db, ctx.user_id)
    address = next((a for a in user.addresses if a.id == addressId), None)
    if address is None:
        raise ApiError(404, "Address not found")

    was_default = address.is_default
    user.addresses.remove(address)
    if was_default and user.addresses:
        user.addresses[0].is_default = True

    await db.commit()
    user = await load_addresses(db, ctx.user_id)
    return success(200, {"message": "Address removed successfully", "addresses": address_list(user)})
