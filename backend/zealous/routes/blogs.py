from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..database import get_db
from ..envelope import ApiError, success
from ..models import Blog, BlogCategory, BlogComment
from ..schemas import BlogCreate, BlogOut, CommentCreate
from ..security import AccessContext, verify_access_token

router = APIRouter(prefix="/api/blogs", tags=["blogs"])

BLOG_LOADS = (
    selectinload(Blog.category),
    selectinload(Blog.author),
    selectinload(Blog.comments).selectinload(BlogComment.user),
)


async def get_blog(db: AsyncSession, blog_id: int):
    result = await db.execute(
        select(Blog).options(*BLOG_LOADS).where(Blog.id == blog_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


@router.post("")
async def create_blog(
    data: BlogCreate,
    ctx: AccessContext = Depends(verify_access_token),
    db: AsyncSession = Depends(get_db),
):
    """Publish a blog post under an existing blog category"""
    if not data.category or not data.title or data.content is None:
        raise ApiError(400, "All fields are required.")

    result = await db.execute(select(BlogCategory).where(BlogCategory.name == data.category))
    category = result.scalars().first()
    if not category:
        raise ApiError(404, "No such blog category found.")

    blog = Blog(
        category_id=category.id,
        author_id=ctx.user_id,
        title=data.title,
        content=[section.model_dump() for section in data.content],
        image_url=data.image_url,
    )
    db.add(blog)
    await db.commit()

    blog = await get_blog(db, blog.id)
    return success(201, BlogOut.model_validate(blog).dump())


@router.get("")
async def get_blogs(db: AsyncSession = Depends(get_db)):
    """All blog posts, newest first"""
    result = await db.execute(select(Blog).options(*BLOG_LOADS).order_by(Blog.posted_on.desc(), Blog.id.desc()))
    return success(200, [BlogOut.model_validate(blog).dump() for blog in result.scalars().all()])


@router.get("/{blog_id}")
async def get_blog_by_id(blog_id: int, db: AsyncSession = Depends(get_db)):
    blog = await get_blog(db, blog_id)
    if blog is None:
        raise ApiError(404, "Blog not found.")
    return success(200, BlogOut.model_validate(blog).dump())


@router.post("/{blog_id}/comment")
async def add_comment(
    blog_id: int,
    data: CommentCreate,
    ctx: AccessContext = Depends(verify_access_token),
    db: AsyncSession = Depends(get_db),
):
    """Comment on a blog post"""
    if not data.text or not data.text.strip():
        raise ApiError(400, "Comment text is required.")
    if await db.get(Blog, blog_id) is None:
        raise ApiError(404, "Blog not found.")

    db.add(BlogComment(blog_id=blog_id, user_id=ctx.user_id, text=data.text.strip()))
    await db.commit()

    return success(200, "Comment added successfully.")
