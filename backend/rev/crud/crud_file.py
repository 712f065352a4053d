from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import List, Optional
import uuid

from rev.models.file import File as FileModel
from rev.schemas.file import FileCategoryEnum, FileUpdate
from rev.crud.crud_tag import get_tags_by_ids


def category_for_mime_type(mime_type: Optional[str]) -> FileCategoryEnum:
    mime_type = (mime_type or "").lower()
    if mime_type.startswith("image/"):
        return FileCategoryEnum.IMAGE
    if mime_type.startswith("video/"):
        return FileCategoryEnum.VIDEO
    if mime_type.startswith("audio/"):
        return FileCategoryEnum.AUDIO
    if mime_type in ("application/zip", "application/x-rar-compressed", "application/x-7z-compressed",
                     "application/gzip", "application/x-tar"):
        return FileCategoryEnum.ARCHIVE
    return FileCategoryEnum.DOCUMENT


async def get_file(db: AsyncSession, *, file_id: uuid.UUID, user_id: uuid.UUID) -> Optional[FileModel]:
    result = await db.execute(
        select(FileModel).filter(FileModel.id == file_id, FileModel.user_id == user_id)
    )
    return result.scalars().first()


async def get_files(
    db: AsyncSession,
    *,
    user_id: uuid.UUID,
    category: Optional[FileCategoryEnum] = None,
    project_id: Optional[uuid.UUID] = None,
    client_id: Optional[uuid.UUID] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[FileModel]:
    query = select(FileModel).filter(FileModel.user_id == user_id)
    if category: query = query.filter(FileModel.category == category)
    if project_id: query = query.filter(FileModel.project_id == project_id)
    if client_id: query = query.filter(FileModel.client_id == client_id)
    query = query.order_by(FileModel.created_at.desc()).offset(skip).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


async def create_file(db: AsyncSession, *, user_id: uuid.UUID, **fields) -> FileModel:
    db_obj = FileModel(**fields, user_id=user_id)
    db_obj.tags = []
    db.add(db_obj)
    await db.commit()
    await db.refresh(db_obj)
    return db_obj


async def update_file(db: AsyncSession, *, db_obj: FileModel, obj_in: FileUpdate) -> FileModel:
    update_data = obj_in.model_dump(exclude_unset=True, exclude={"tag_ids"})
    if "category" in update_data and update_data["category"] is None:
        del update_data["category"]
    for field, value in update_data.items():
        setattr(db_obj, field, value)
    if obj_in.tag_ids is not None:
        db_obj.tags = await get_tags_by_ids(db, tag_ids=obj_in.tag_ids, user_id=db_obj.user_id)
    db.add(db_obj)
    await db.commit()
    await db.refresh(db_obj)
    return db_obj


async def delete_file(db: AsyncSession, *, db_obj: FileModel) -> FileModel:
    await db.delete(db_obj)
    await db.commit()
    return db_obj
