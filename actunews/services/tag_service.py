from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from actunews.lifecycle import EntityLifecycle
from actunews.models import Tag
from actunews.schemas import TagCreate


async def get_tags(db: AsyncSession) -> list[dict]:
    result = await db.execute(select(Tag).order_by(Tag.name))
    return [{"id": t.id, "name": t.name} for t in result.scalars().all()]


async def create_tag(db: AsyncSession, data: TagCreate, lifecycle: EntityLifecycle) -> dict:
    """Create a tag; a duplicate name surfaces as ``IntegrityError``."""
    tag = Tag(name=data.name)
    await lifecycle.create(db, tag)
    return {"id": tag.id, "name": tag.name}
