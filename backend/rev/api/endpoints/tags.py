# backend/rev/api/endpoints/tags.py
from fastapi import APIRouter, Depends, HTTPException, status, Response
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Any, Optional
import uuid

from rev import crud, models, schemas
from rev.db.session import get_db
from rev.api import deps

router = APIRouter()


async def _get_owned_tag(db: AsyncSession, tag_id: uuid.UUID, user: models.User) -> models.Tag:
    tag = await crud.tag.get_tag(db, tag_id=tag_id, user_id=user.id)
    if not tag:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tag not found")
    return tag


@router.get("/", response_model=List[schemas.Tag])
async def read_tags(
    *,
    db: AsyncSession = Depends(get_db),
    search: Optional[str] = None,
    with_usage: bool = False,
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    """
    List tags. ``with_usage`` adds how many projects, clients, tasks and files carry each tag.
    """
    tags = await crud.tag.get_tags(db, user_id=current_user.id, search=search)
    if not with_usage:
        return tags
    result = []
    for tag in tags:
        tag_out = schemas.Tag.model_validate(tag)
        tag_out.usage = schemas.TagUsage(**await crud.tag.get_tag_usage(db, tag_id=tag.id))
        result.append(tag_out)
    return result


@router.post("/", response_model=schemas.Tag, status_code=status.HTTP_201_CREATED)
async def create_new_tag(
    *,
    db: AsyncSession = Depends(get_db),
    tag_in: schemas.TagCreate,
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    try:
        return await crud.tag.create_tag(db, tag_in=tag_in, user_id=current_user.id)
    except crud.tag.TagNameConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.get("/{tag_id}", response_model=schemas.Tag)
async def read_tag(
    tag_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    tag = await _get_owned_tag(db, tag_id, current_user)
    tag_out = schemas.Tag.model_validate(tag)
    tag_out.usage = schemas.TagUsage(**await crud.tag.get_tag_usage(db, tag_id=tag.id))
    return tag_out


@router.put("/{tag_id}", response_model=schemas.Tag)
async def update_existing_tag(
    tag_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    tag_in: schemas.TagUpdate,
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    db_tag = await _get_owned_tag(db, tag_id, current_user)
    try:
        return await crud.tag.update_tag(db, db_obj=db_tag, obj_in=tag_in)
    except crud.tag.TagNameConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.delete("/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_existing_tag(
    tag_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user)
):
    db_tag = await _get_owned_tag(db, tag_id, current_user)
    await crud.tag.delete_tag(db, db_obj=db_tag)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
