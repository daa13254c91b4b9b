from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from actunews.database import get_db
from actunews.dependencies import get_lifecycle
from actunews.errors import HashingError
from actunews.lifecycle import EntityLifecycle
from actunews.schemas import UserCreate, UserResponse
from actunews.services import user_service

router = APIRouter(prefix="/api/v1/users", tags=["users"])

@router.get("", response_model=list[UserResponse])
async def list_users(db: AsyncSession = Depends(get_db)):
    return await user_service.get_users(db)

@router.get("/{user_id}")
async def get_user(user_id: int, db: AsyncSession = Depends(get_db)):
    user = await user_service.get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user

@router.post("", status_code=201, response_model=UserResponse)
async def create_user(
    data: UserCreate,
    db: AsyncSession = Depends(get_db),
    lifecycle: EntityLifecycle = Depends(get_lifecycle),
):
    try:
        return await user_service.create_user(db, data, lifecycle)
    except HashingError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except IntegrityError:
        raise HTTPException(status_code=409, detail="A user with this email already exists")
