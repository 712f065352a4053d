from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import func
from typing import List, Optional, Sequence
import uuid

from rev.models.tag import Tag as TagModel, project_tags, client_tags, task_tags, file_tags
from rev.schemas.tag import TagCreate, TagUpdate


class TagNameConflictError(ValueError):
    """Raised when a user already owns a tag with the requested name."""


async def get_tag(db: AsyncSession, *, tag_id: uuid.UUID, user_id: uuid.UUID) -> Optional[TagModel]:
    result = await db.execute(
        select(TagModel).filter(TagModel.id == tag_id, TagModel.user_id == user_id)
    )
    return result.scalars().first()


async def get_tag_by_name(db: AsyncSession, *, name: str, user_id: uuid.UUID) -> Optional[TagModel]:
    result = await db.execute(
        select(TagModel).filter(TagModel.name == name, TagModel.user_id == user_id)
    )
    return result.scalars().first()


async def get_tags(
    db: AsyncSession, *, user_id: uuid.UUID, search: Optional[str] = None
) -> List[TagModel]:
    query = select(TagModel).filter(TagModel.user_id == user_id).order_by(TagModel.name)
    if search:
        query = query.filter(TagModel.name.ilike(f"%{search}%"))
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_tags_by_ids(
    db: AsyncSession, *, tag_ids: Sequence[uuid.UUID], user_id: uuid.UUID
) -> List[TagModel]:
    """
    Resolve tag ids to the user's tags. Ids that are unknown or belong to
    another user are silently dropped.
    """
    if not tag_ids:
        return []
    result = await db.execute(
        select(TagModel).filter(TagModel.id.in_(list(tag_ids)), TagModel.user_id == user_id)
    )
    return list(result.scalars().all())


async def get_tag_usage(db: AsyncSession, *, tag_id: uuid.UUID) -> dict:
    usage = {}
    for label, table in (
        ("projects", project_tags),
        ("clients", client_tags),
        ("tasks", task_tags),
        ("files", file_tags),
    ):
        result = await db.execute(
            select(func.count()).select_from(table).filter(table.c.tag_id == tag_id)
        )
        usage[label] = result.scalar_one()
    return usage


async def create_tag(db: AsyncSession, *, tag_in: TagCreate, user_id: uuid.UUID) -> TagModel:
    if await get_tag_by_name(db, name=tag_in.name, user_id=user_id):
        raise TagNameConflictError(f"A tag named '{tag_in.name}' already exists.")
    db_obj = TagModel(**tag_in.model_dump(), user_id=user_id)
    db.add(db_obj)
    await db.commit()
    await db.refresh(db_obj)
    return db_obj


async def update_tag(db: AsyncSession, *, db_obj: TagModel, obj_in: TagUpdate) -> TagModel:
    update_data = obj_in.model_dump(exclude_unset=True)
    new_name = update_data.get("name")
    if new_name and new_name != db_obj.name:
        existing = await get_tag_by_name(db, name=new_name, user_id=db_obj.user_id)
        if existing and existing.id != db_obj.id:
            raise TagNameConflictError(f"A tag named '{new_name}' already exists.")

    for field, value in update_data.items():
        if value is None and field in ("name", "color"):
            continue
        setattr(db_obj, field, value)

    db.add(db_obj)
    await db.commit()
    await db.refresh(db_obj)
    return db_obj


async def delete_tag(db: AsyncSession, *, db_obj: TagModel) -> None:
    # Link rows go with the tag
    for table in (project_tags, client_tags, task_tags, file_tags):
        await db.execute(table.delete().where(table.c.tag_id == db_obj.id))
    await db.delete(db_obj)
    await db.commit()
