"""
Category service.

A category's ``alias`` is derived from its name once, when the category is
created, and backs the ``category.alias`` filter on the post listing.
Renaming a category keeps the alias so existing filter URLs stay valid.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from actunews.cache import cache
from actunews.lifecycle import EntityLifecycle
from actunews.models import Category
from actunews.schemas import CategoryCreate, CategoryUpdate


def _category_to_dict(category: Category) -> dict:
    return {"id": category.id, "name": category.name, "alias": category.alias}


async def get_categories(db: AsyncSession) -> list[dict]:
    result = await db.execute(select(Category).order_by(Category.name))
    return [_category_to_dict(c) for c in result.scalars().all()]


async def get_category(db: AsyncSession, category_id: int) -> dict | None:
    category = await db.get(Category, category_id)
    return _category_to_dict(category) if category else None


async def create_category(
    db: AsyncSession, data: CategoryCreate, lifecycle: EntityLifecycle
) -> dict:
    category = Category(name=data.name)
    await lifecycle.create(db, category)
    return _category_to_dict(category)


async def update_category(
    db: AsyncSession, category_id: int, data: CategoryUpdate
) -> dict | None:
    category = await db.get(Category, category_id)
    if category is None:
        return None

    for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(category, field, value)

    await db.flush()
    await cache.invalidate_category()
    return _category_to_dict(category)
