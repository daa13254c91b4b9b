from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from actunews.database import get_db
from actunews.dependencies import get_lifecycle
from actunews.lifecycle import EntityLifecycle
from actunews.schemas import TagCreate, TagResponse
from actunews.services import tag_service

router = APIRouter(prefix="/api/v1/tags", tags=["tags"])

@router.get("", response_model=list[TagResponse])
async def list_tags(db: AsyncSession = Depends(get_db)):
    return await tag_service.get_tags(db)

@router.post("", status_code=201, response_model=TagResponse)
async def create_tag(
    data: TagCreate,
    db: AsyncSession = Depends(get_db),
    lifecycle: EntityLifecycle = Depends(get_lifecycle),
):
    try:
        return await tag_service.create_tag(db, data, lifecycle)
    except IntegrityError:
        raise HTTPException(status_code=409, detail="A tag with this name already exists")
