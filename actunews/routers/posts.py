from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from actunews.database import get_db
from actunews.dependencies import PaginationParams, get_lifecycle
from actunews.errors import NotFoundError
from actunews.lifecycle import EntityLifecycle
from actunews.schemas import (
    CommentCreate,
    CommentResponse,
    PaginatedResponse,
    PostCreate,
    PostDetail,
    PostUpdate,
)
from actunews.services import comment_service, post_service

router = APIRouter(prefix="/api/v1/posts", tags=["posts"])

@router.get("", response_model=PaginatedResponse)
async def list_posts(
    pagination: PaginationParams = Depends(),
    category: int | None = Query(None, description="Only posts in this category id."),
    category_alias: str | None = Query(
        None, alias="category.alias", description="Only posts in the category with this alias."
    ),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.get_posts(
        db,
        pagination.page,
        pagination.page_size,
        pagination.sort_by,
        pagination.sort_order,
        category_id=category,
        category_alias=category_alias,
    )

@router.get("/{post_id}", response_model=PostDetail)
async def get_post(post_id: int, db: AsyncSession = Depends(get_db)):
    post = await post_service.get_post(db, post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return post

@router.post("", status_code=201, response_model=PostDetail)
async def create_post(
    data: PostCreate,
    db: AsyncSession = Depends(get_db),
    lifecycle: EntityLifecycle = Depends(get_lifecycle),
):
    try:
        return await post_service.create_post(db, data, lifecycle)
    except NotFoundError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

@router.put("/{post_id}", response_model=PostDetail)
async def update_post(post_id: int, data: PostUpdate, db: AsyncSession = Depends(get_db)):
    try:
        post = await post_service.update_post(db, post_id, data)
    except NotFoundError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return post

@router.delete("/{post_id}", status_code=204)
async def delete_post(post_id: int, db: AsyncSession = Depends(get_db)):
    deleted = await post_service.delete_post(db, post_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Post not found")

@router.post("/{post_id}/comments", status_code=201, response_model=CommentResponse)
async def add_comment(
    post_id: int,
    data: CommentCreate,
    db: AsyncSession = Depends(get_db),
    lifecycle: EntityLifecycle = Depends(get_lifecycle),
):
    try:
        comment = await comment_service.add_comment(db, post_id, data, lifecycle)
    except NotFoundError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    if not comment:
        raise HTTPException(status_code=404, detail="Post not found")
    return comment
