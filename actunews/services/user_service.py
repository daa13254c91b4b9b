"""
User service — listing, detail and registration for the User aggregate.

Registration hands the new User to the lifecycle pipeline: the password
is hashed before the INSERT and the welcome mail is queued after the
COMMIT.  No serialiser in this module ever emits ``password``.
"""
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from sqlalchemy.ext.asyncio import AsyncSession

from actunews.lifecycle import EntityLifecycle
from actunews.models import User
from actunews.schemas import UserCreate


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _user_to_dict(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "firstname": user.firstname,
        "lastname": user.lastname,
        "roles": list(user.roles or []),
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


def _post_summary_to_dict(post) -> dict:
    """Lightweight post entry embedded in the user detail view."""
    return {
        "id": post.id,
        "title": post.title,
        "alias": post.alias,
        "category_id": post.category_id,
        "updated_at": post.updated_at.isoformat() if post.updated_at else None,
    }


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def get_users(db: AsyncSession) -> list[dict]:
    result = await db.execute(select(User).order_by(User.id.desc()))
    return [_user_to_dict(u) for u in result.scalars().all()]


async def get_user(db: AsyncSession, user_id: int) -> dict | None:
    """Return the user with a summary of their posts, or None."""
    q = (
        select(User)
        .where(User.id == user_id)
        .options(selectinload(User.posts))
        .execution_options(populate_existing=True)
    )
    result = await db.execute(q)
    user = result.scalar_one_or_none()
    if user is None:
        return None

    data = _user_to_dict(user)
    data["posts"] = [_post_summary_to_dict(p) for p in user.posts]
    return data


async def create_user(db: AsyncSession, data: UserCreate, lifecycle: EntityLifecycle) -> dict:
    """
    Register a user.

    ``HashingError`` (rejected password) and ``IntegrityError`` (duplicate
    email) propagate to the router; in both cases nothing is stored and no
    mail is sent.
    """
    user = User(
        email=data.email,
        firstname=data.firstname,
        lastname=data.lastname,
        password=data.password,
    )
    await lifecycle.create(db, user)
    return _user_to_dict(user)
