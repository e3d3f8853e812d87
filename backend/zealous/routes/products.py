import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..database import get_db
from ..envelope import ApiError, success
from ..models import (
    Benefit,
    CartItem,
    Category,
    Faq,
    HealthCondition,
    OrderItem,
    Product,
    ProductType,
    Review,
    WishlistItem,
)
from ..schemas import FaqOut, ProductCreate, ProductOut, ProductUpdate
from ..security import AccessContext, verify_access_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["products"])

PRODUCT_LOADS = (
    selectinload(Product.product_types),
    selectinload(Product.benefits),
    selectinload(Product.health_conditions),
    selectinload(Product.faqs),
)

SEARCH_LIMIT = 10


def product_out(product: Product, **extra) -> dict:
    data = ProductOut.model_validate(product).dump()
    data.update(extra)
    return data


def facet_filter(stmt, category: Optional[int], product_types: Optional[List[int]], benefits: Optional[List[int]]):
    """Narrow a product query by category id and any-of product type / benefit ids."""
    if category:
        stmt = stmt.where(Product.category_id == category)
    if product_types:
        stmt = stmt.where(Product.product_types.any(ProductType.id.in_(product_types)))
    if benefits:
        stmt = stmt.where(Product.benefits.any(Benefit.id.in_(benefits)))
    return stmt


async def get_product(db: AsyncSession, product_id: int) -> Optional[Product]:
    result = await db.execute(
        select(Product).options(*PRODUCT_LOADS).where(Product.id == product_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


@router.post("")
async def create_product(
    data: ProductCreate,
    ctx: AccessContext = Depends(verify_access_token),
    db: AsyncSession = Depends(get_db),
):
    """Create a product, resolving its category and facets by name"""
    if not all([
        data.category_name,
        data.product_type,
        data.benefits,
        data.name,
        data.about,
        data.price,
        data.sku,
        data.product_img,
    ]):
        raise ApiError(400, "All fields are required.")

    result = await db.execute(select(Category).where(Category.name == data.category_name))
    category = result.scalars().first()
    if not category:
        raise ApiError(404, "No such category found.")

    result = await db.execute(select(ProductType).where(ProductType.name.in_(data.product_type)))
    product_types = list(result.scalars().all())
    if not product_types:
        raise ApiError(404, "No such product types found.")

    result = await db.execute(select(Benefit).where(Benefit.name.in_(data.benefits)))
    benefits = list(result.scalars().all())
    if not benefits:
        raise ApiError(404, "No such benefits found.")

    health_conditions = []
    if data.health_conditions:
        result = await db.execute(select(HealthCondition).where(HealthCondition.name.in_(data.health_conditions)))
        health_conditions = list(result.scalars().all())

    fields = data.model_dump(
        exclude={"category_name", "product_type", "benefits", "health_conditions"}, exclude_none=True
    )
    product = Product(
        category_id=category.id,
        product_types=product_types,
        benefits=benefits,
        health_conditions=health_conditions,
        **fields,
    )
    db.add(product)
    await db.commit()

    product = await get_product(db, product.id)
    logger.info("Created product %s (%s)", product.id, product.name)
    return success(201, product_out(product))


@router.get("")
async def get_products(
    type: Optional[str] = None,
    id: Optional[int] = None,
    category: Optional[int] = None,
    productTypes: Optional[List[int]] = Query(None),
    benefits: Optional[List[int]] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """List products (type=all, with optional filters) or fetch one (type=productId)"""
    if type == "all":
        stmt = facet_filter(select(Product).options(*PRODUCT_LOADS), category, productTypes, benefits)
        result = await db.execute(stmt.order_by(Product.id))
        return success(200, [product_out(p) for p in result.scalars().all()])

    if type == "productId":
        if not id:
            raise ApiError(400, "Invalid Product Id.")
        product = await get_product(db, id)
        if product is None:
            raise ApiError(404, "Product not found.")
        return success(200, product_out(product))

    raise ApiError(404, "Type is required.")


@router.put("")
async def update_product(
    data: ProductUpdate,
    id: Optional[int] = None,
    ctx: AccessContext = Depends(verify_access_token),
    db: AsyncSession = Depends(get_db),
):
    """Update a product's scalar fields"""
    if not id:
        raise ApiError(400, "Product Id is required.")

    product = await db.get(Product, id)
    if product is None:
        raise ApiError(404, "Product not found")

    fields = data.model_dump(exclude_unset=True)
    columns = Product.__table__.columns
    cleared = [name for name, value in fields.items() if value is None and not columns[name].nullable]
    if cleared:
        raise ApiError(400, f"Fields cannot be empty: {', '.join(cleared)}")

    for name, value in fields.items():
        setattr(product, name, value)
    await db.commit()

    return success(200, "Product updated successfully")


@router.delete("")
async def delete_product(
    id: Optional[int] = None,
    ctx: AccessContext = Depends(verify_access_token),
    db: AsyncSession = Depends(get_db),
):
    """Delete a product and every cart, wishlist and review line that points at it"""
    if not id:
        raise ApiError(400, "Product ID is required.")

    product = await get_product(db, id)
    if product is None:
        raise ApiError(404, "Product not found.")

    await db.execute(delete(CartItem).where(CartItem.product_id == id))
    await db.execute(delete(WishlistItem).where(WishlistItem.product_id == id))
    await db.execute(delete(Review).where(Review.product_id == id))
    # Orders keep their copied name and SKU
    await db.execute(update(OrderItem).where(OrderItem.product_id == id).values(product_id=None))
    await db.delete(product)
    await db.commit()

    logger.info("Deleted product %s", id)
    return success(200, "Product deleted successfully.")


@router.get("/search")
async def search_products(keyword: Optional[str] = None, db: AsyncSession = Depends(get_db)):
    """Free-text product search over names, descriptions and facet names"""
    if not keyword or not keyword.strip():
        return success(200, [])

    pattern = f"%{keyword.strip()}%"
    stmt = (
        select(Product)
        .options(selectinload(Product.category))
        .where(or_(
            Product.name.ilike(pattern),
            Product.about.ilike(pattern),
            Product.description.ilike(pattern),
            Product.applied_for.ilike(pattern),
            Product.suitable_for.ilike(pattern),
            Product.category.has(Category.name.ilike(pattern)),
            Product.benefits.any(Benefit.name.ilike(pattern)),
            Product.health_conditions.any(HealthCondition.name.ilike(pattern)),
        ))
        .order_by(Product.id)
        .limit(SEARCH_LIMIT)
    )
    result = await db.execute(stmt)

    return success(200, [
        {
            "_id": p.id,
            "name": p.name,
            "productImg": p.product_img,
            "price": p.price,
            "discount": p.discount,
            "about": p.about,
            "category": {"_id": p.category.id, "name": p.category.name},
        }
        for p in result.scalars().all()
    ])


@router.get("/similarProducts")
async def similar_products(
    productId: Optional[int] = None,
    limit: Optional[int] = None,
    category: Optional[int] = None,
    productTypes: Optional[List[int]] = Query(None),
    benefits: Optional[List[int]] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """
    Products related to ``productId``, most relevant first.

    Relevance is 3 for the same category, plus 2 for any shared product type,
    plus 1 for any shared benefit. Without a product id this falls back to the
    plain facet filter.
    """
    limit = limit or 10

    if not productId:
        stmt = facet_filter(select(Product).options(*PRODUCT_LOADS), category, productTypes, benefits)
        result = await db.execute(stmt.order_by(Product.id).limit(limit))
        return success(200, [product_out(p) for p in result.scalars().all()])

    base = await get_product(db, productId)
    if base is None:
        raise ApiError(404, "Product not found.")

    type_ids = {t.id for t in base.product_types}
    benefit_ids = {b.id for b in base.benefits}

    conditions = [Product.category_id == base.category_id]
    if type_ids:
        conditions.append(Product.product_types.any(ProductType.id.in_(type_ids)))
    if benefit_ids:
        conditions.append(Product.benefits.any(Benefit.id.in_(benefit_ids)))

    result = await db.execute(
        select(Product).options(*PRODUCT_LOADS).where(Product.id != base.id, or_(*conditions)).order_by(Product.id)
    )

    scored = []
    for product in result.scalars().all():
        relevance = 0
        if product.category_id == base.category_id:
            relevance += 3
        if type_ids & {t.id for t in product.product_types}:
            relevance += 2
        if benefit_ids & {b.id for b in product.benefits}:
            relevance += 1
        scored.append((relevance, product))

    scored.sort(key=lambda pair: pair[0], reverse=True)
    return success(200, [product_out(p, relevance=r) for r, p in scored[:limit]])


@router.get("/healthConditions")
async def products_for_health_condition(
    healthCondition: Optional[str] = None,
    limit: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
):
    """Products tagged with a health condition, given by id or name"""
    if not healthCondition:
        raise ApiError(404, "Health Condition is required.")

    if healthCondition.isdigit():
        match = HealthCondition.id == int(healthCondition)
    else:
        match = HealthCondition.name.ilike(healthCondition)

    stmt = select(Product).options(*PRODUCT_LOADS).where(Product.health_conditions.any(match)).order_by(Product.id)
    if limit:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)

    return success(200, [product_out(p) for p in result.scalars().all()])


@router.get("/faq")
async def get_faqs(productId: Optional[int] = None, db: AsyncSession = Depends(get_db)):
    """FAQs for one product"""
    if not productId:
        raise ApiError(400, "Product ID is required.")

    result = await db.execute(select(Faq).where(Faq.product_id == productId).order_by(Faq.id))
    return success(200, [FaqOut.model_validate(f).dump() for f in result.scalars().all()])
