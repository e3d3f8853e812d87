from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..envelope import success
from ..models import Benefit, Category, HealthCondition, Product, ProductType, User
from ..schemas import CategoryOut, DescribedFacetOut, FacetOut

router = APIRouter(prefix="/api", tags=["catalog"])

YEARS_IN_BUSINESS = 8


async def _all(db: AsyncSession, model, schema, limit=None):
    stmt = select(model).order_by(model.id)
    if limit:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return [schema.model_validate(row).dump() for row in result.scalars().all()]


@router.get("/categories")
async def get_categories(db: AsyncSession = Depends(get_db)):
    return success(200, await _all(db, Category, CategoryOut))


@router.get("/benefits")
async def get_benefits(db: AsyncSession = Depends(get_db)):
    return success(200, await _all(db, Benefit, DescribedFacetOut))


@router.get("/productTypes")
async def get_product_types(db: AsyncSession = Depends(get_db)):
    return success(200, await _all(db, ProductType, FacetOut))


@router.get("/healthConditions")
async def get_health_conditions(db: AsyncSession = Depends(get_db)):
    """First five health conditions, for the home page"""
    return success(200, await _all(db, HealthCondition, FacetOut, limit=5))


@router.get("/filters")
async def get_filters(db: AsyncSession = Depends(get_db)):
    """Every facet the product list can be filtered by"""
    return success(200, {
        "categories": await _all(db, Category, CategoryOut),
        "benefits": await _all(db, Benefit, DescribedFacetOut),
        "productTypes": await _all(db, ProductType, FacetOut),
    })


@router.get("/home")
async def get_home_stats(db: AsyncSession = Depends(get_db)):
    """Counters shown on the home page"""
    users = await db.scalar(select(func.count(User.id)))
    products = await db.scalar(select(func.count(Product.id)))
    return success(200, {"users": users, "products": products, "years": YEARS_IN_BUSINESS})
