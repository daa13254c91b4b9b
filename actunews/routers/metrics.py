from fastapi import APIRouter, Depends
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from actunews.cache import cache
from actunews.database import get_db
from actunews.dependencies import get_outbox
from actunews.models import Category, Comment, Post, User
from actunews.outbox import MailOutbox
from actunews.schemas import MetricsResponse

router = APIRouter(prefix="/api/v1/metrics", tags=["metrics"])

async def _count(db: AsyncSession, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()

@router.get("", response_model=MetricsResponse)
async def get_metrics(
    db: AsyncSession = Depends(get_db),
    mail_outbox: MailOutbox = Depends(get_outbox),
):
    total_posts = await _count(db, Post)
    total_comments = await _count(db, Comment)

    return MetricsResponse(
        total_posts=total_posts,
        total_comments=total_comments,
        total_users=await _count(db, User),
        total_categories=await _count(db, Category),
        avg_comments_per_post=round(total_comments / total_posts, 2) if total_posts else 0.0,
        cache_info=cache.stats,
        mail_info=mail_outbox.stats,
    )
