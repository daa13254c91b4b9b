"""
Comment service — comments are created against an existing post and
removed only together with it (orphan removal on ``Post.comments``).
"""
from sqlalchemy.ext.asyncio import AsyncSession

from actunews.cache import cache
from actunews.errors import NotFoundError
from actunews.lifecycle import EntityLifecycle
from actunews.models import Comment, Post, User
from actunews.schemas import CommentCreate


async def add_comment(
    db: AsyncSession,
    post_id: int,
    data: CommentCreate,
    lifecycle: EntityLifecycle,
) -> dict | None:
    """
    Attach a new comment to *post_id* and return it serialised.

    Returns None when the post does not exist; raises ``NotFoundError``
    when ``user_id`` names an unknown user.
    """
    if await db.get(Post, post_id) is None:
        return None
    if data.user_id is not None and await db.get(User, data.user_id) is None:
        raise NotFoundError("User", data.user_id)

    comment = Comment(content=data.content, post_id=post_id, user_id=data.user_id)
    await lifecycle.create(db, comment)

    await cache.invalidate_posts(post_id)

    return {
        "id": comment.id,
        "content": comment.content,
        "post_id": comment.post_id,
        "user_id": comment.user_id,
        "created_at": comment.created_at.isoformat() if comment.created_at else None,
    }
