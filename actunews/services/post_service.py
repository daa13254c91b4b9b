"""
Post service — business logic for the Post aggregate.

Design notes
------------
- New posts are created through the entity lifecycle pipeline, which
  derives ``alias`` from ``title`` before the INSERT.  Updates do not touch
  ``alias``: a published URL keeps working after the headline is edited.
- Listings and detail views go through the Redis cache-aside layer; cache
  keys encode page, size, sort and filters.
- Relationships are ``lazy="noload"`` on the models, so every read states
  its eager loads explicitly (``joinedload`` for many-to-one,
  ``selectinload`` for collections).
"""
import math

from sqlalchemy import asc, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from actunews.cache import cache
from actunews.config import settings
from actunews.errors import NotFoundError
from actunews.lifecycle import EntityLifecycle
from actunews.models import Category, Post, Tag, User
from actunews.schemas import PaginatedResponse, PostCreate, PostUpdate

# Columns that are safe to sort by; guards against arbitrary attribute access.
_SORTABLE_COLUMNS: frozenset[str] = frozenset({"updated_at", "created_at", "title"})


def _resolve_sort_column(sort_by: str):
    if sort_by in _SORTABLE_COLUMNS:
        return getattr(Post, sort_by)
    return Post.updated_at


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _iso(value) -> str | None:
    return value.isoformat() if value else None


def _serialize_user(user: User | None) -> dict | None:
    if user is None:
        return None
    return {
        "id": user.id,
        "email": user.email,
        "firstname": user.firstname,
        "lastname": user.lastname,
        "roles": list(user.roles or []),
        "created_at": _iso(user.created_at),
    }


def _serialize_category(category: Category | None) -> dict | None:
    if category is None:
        return None
    return {"id": category.id, "name": category.name, "alias": category.alias}


def _post_to_dict(post: Post) -> dict:
    """List view: everything but the body and comments."""
    return {
        "id": post.id,
        "title": post.title,
        "alias": post.alias,
        "image": post.image,
        "created_at": _iso(post.created_at),
        "updated_at": _iso(post.updated_at),
        "user_id": post.user_id,
        "category_id": post.category_id,
        "user": _serialize_user(post.user),
        "category": _serialize_category(post.category),
        "tags": [{"id": t.id, "name": t.name} for t in post.tags],
    }


def _post_detail_to_dict(post: Post) -> dict:
    data = _post_to_dict(post)
    data["content"] = post.content
    data["comments"] = [
        {
            "id": c.id,
            "content": c.content,
            "post_id": c.post_id,
            "user_id": c.user_id,
            "created_at": _iso(c.created_at),
        }
        for c in post.comments
    ]
    return data


# ---------------------------------------------------------------------------
# Loading helpers
# ---------------------------------------------------------------------------

async def _load_post(db: AsyncSession, post_id: int) -> Post | None:
    """
    Fetch *post_id* with every relationship the detail view needs.

    ``populate_existing`` refreshes an instance already in the identity
    map (e.g. one just created), whose noload collections would otherwise
    stay as they were at construction time.
    """
    q = (
        select(Post)
        .where(Post.id == post_id)
        .options(
            joinedload(Post.user),
            joinedload(Post.category),
            selectinload(Post.tags),
            selectinload(Post.comments),
        )
        .execution_options(populate_existing=True)
    )
    result = await db.execute(q)
    return result.unique().scalar_one_or_none()


async def _ensure_exists(db: AsyncSession, model, entity_id: int) -> None:
    if await db.get(model, entity_id) is None:
        raise NotFoundError(model.__name__, entity_id)


async def _resolve_tags(db: AsyncSession, tag_names: list[str]) -> list[Tag]:
    """Return a Tag per name, creating missing ones inside the caller's transaction."""
    tags: list[Tag] = []
    for name in dict.fromkeys(tag_names):
        result = await db.execute(select(Tag).where(Tag.name == name))
        tag = result.scalar_one_or_none()
        if not tag:
            tag = Tag(name=name)
            db.add(tag)
            await db.flush()
        tags.append(tag)
    return tags


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def get_posts(
    db: AsyncSession,
    page: int = 1,
    page_size: int = settings.DEFAULT_PAGE_SIZE,
    sort_by: str = "updated_at",
    sort_order: str = "desc",
    category_id: int | None = None,
    category_alias: str | None = None,
) -> PaginatedResponse:
    """
    Return one page of posts, optionally restricted to a category given
    by id (``category``) or by alias (``category.alias``).
    """
    # Filters are tagged so an empty alias or category 0 never shares the
    # unfiltered listing's key.
    cache_key = (
        f"posts:list:{page}:{page_size}:{sort_by}:{sort_order}"
        f":cid={'-' if category_id is None else category_id}"
        f":calias={'-' if category_alias is None else repr(category_alias)}"
    )
    cached = await cache.get(cache_key)
    if cached is not None:
        return PaginatedResponse(**cached)

    filters = []
    if category_id is not None:
        filters.append(Post.category_id == category_id)
    if category_alias is not None:
        filters.append(
            Post.category_id.in_(select(Category.id).where(Category.alias == category_alias))
        )

    count_q = select(func.count()).select_from(Post).where(*filters)
    total: int = (await db.execute(count_q)).scalar_one()

    sort_col = _resolve_sort_column(sort_by)
    order = desc if sort_order == "desc" else asc
    posts_q = (
        select(Post)
        .where(*filters)
        .options(joinedload(Post.user), joinedload(Post.category), selectinload(Post.tags))
        .order_by(order(sort_col), order(Post.id))
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    result = await db.execute(posts_q)
    posts = result.unique().scalars().all()

    response = PaginatedResponse(
        items=[_post_to_dict(p) for p in posts],
        total=total,
        page=page,
        page_size=page_size,
        pages=math.ceil(total / page_size) if total > 0 else 0,
    )
    await cache.set(cache_key, response.model_dump(), ttl=settings.CACHE_TTL_LIST)
    return response


async def get_post(db: AsyncSession, post_id: int) -> dict | None:
    """Return the detail dict (body and comments included), or None."""
    cache_key = f"posts:detail:{post_id}"
    cached = await cache.get(cache_key)
    if cached is not None:
        return cached

    post = await _load_post(db, post_id)
    if post is None:
        return None

    data = _post_detail_to_dict(post)
    await cache.set(cache_key, data, ttl=settings.CACHE_TTL_DETAIL)
    return data


async def create_post(db: AsyncSession, data: PostCreate, lifecycle: EntityLifecycle) -> dict:
    """
    Create a post and return its detail dict.

    Raises ``NotFoundError`` when the author or category does not exist.
    ``alias`` is filled in by the lifecycle pipeline.
    """
    await _ensure_exists(db, User, data.user_id)
    await _ensure_exists(db, Category, data.category_id)

    post = Post(
        title=data.title,
        content=data.content,
        image=data.image,
        user_id=data.user_id,
        category_id=data.category_id,
    )
    if data.tags:
        post.tags.extend(await _resolve_tags(db, data.tags))

    await lifecycle.create(db, post)
    await cache.invalidate_posts()

    created = await _load_post(db, post.id)
    return _post_detail_to_dict(created)


async def update_post(db: AsyncSession, post_id: int, data: PostUpdate) -> dict | None:
    """
    Apply the fields present in *data* and return the updated detail dict,
    or None when the post does not exist.  ``alias`` is left unchanged.
    """
    post = await _load_post(db, post_id)
    if post is None:
        return None

    update_data = data.model_dump(exclude_unset=True, exclude_none=True)
    tag_names: list[str] | None = update_data.pop("tags", None)

    if "category_id" in update_data and update_data["category_id"] != post.category_id:
        await _ensure_exists(db, Category, update_data["category_id"])

    for field, value in update_data.items():
        setattr(post, field, value)

    if tag_names is not None:
        post.tags.clear()
        post.tags.extend(await _resolve_tags(db, tag_names))

    await db.flush()
    await cache.invalidate_posts(post_id)

    post = await _load_post(db, post_id)
    return _post_detail_to_dict(post)


async def delete_post(db: AsyncSession, post_id: int) -> bool:
    """Delete a post together with its comments.  Returns False if it does not exist."""
    result = await db.execute(
        select(Post)
        .where(Post.id == post_id)
        .options(selectinload(Post.comments), selectinload(Post.tags))
    )
    post = result.scalar_one_or_none()
    if post is None:
        return False

    await db.delete(post)
    await db.flush()
    await cache.invalidate_posts(post_id)
    return True
