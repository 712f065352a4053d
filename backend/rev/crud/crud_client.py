from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import func, or_
from typing import List, Optional
import uuid

from rev.models.client import Client as ClientModel # Alias
from rev.schemas.client import ClientCreate, ClientUpdate
from rev.crud.crud_tag import get_tags_by_ids


async def get_client(db: AsyncSession, *, client_id: uuid.UUID, user_id: uuid.UUID) -> Optional[ClientModel]:
    """
    Get a single client by its ID, scoped to its owner.
    """
    result = await db.execute(
        select(ClientModel).filter(ClientModel.id == client_id, ClientModel.user_id == user_id)
    )
    return result.scalars().first()


async def get_client_by_name(db: AsyncSession, *, name: str, user_id: uuid.UUID) -> Optional[ClientModel]:
    """
    Case-insensitive exact match on the client name.
    """
    result = await db.execute(
        select(ClientModel)
        .filter(func.lower(ClientModel.name) == name.strip().lower())
        .filter(ClientModel.user_id == user_id)
    )
    return result.scalars().first()


async def get_clients(
    db: AsyncSession, *, user_id: uuid.UUID, search: Optional[str] = None, skip: int = 0, limit: int = 100
) -> List[ClientModel]:
    query = select(ClientModel).filter(ClientModel.user_id == user_id)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                ClientModel.name.ilike(pattern),
                ClientModel.email.ilike(pattern),
                ClientModel.company.ilike(pattern),
            )
        )
    query = query.order_by(ClientModel.name).offset(skip).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


async def create_client(db: AsyncSession, *, client_in: ClientCreate, user_id: uuid.UUID) -> ClientModel:
    db_obj_data = client_in.model_dump(exclude={"tag_ids"})
    db_obj = ClientModel(**db_obj_data, user_id=user_id)
    db_obj.tags = await get_tags_by_ids(db, tag_ids=client_in.tag_ids, user_id=user_id)

    db.add(db_obj)
    await db.commit()
    await db.refresh(db_obj)
    return db_obj


async def update_client(db: AsyncSession, *, db_obj: ClientModel, obj_in: ClientUpdate) -> ClientModel:
    update_data = obj_in.model_dump(exclude_unset=True, exclude={"tag_ids"})
    if update_data.get("name") is None:
        update_data.pop("name", None)

    for field, value in update_data.items():
        setattr(db_obj, field, value)
    if obj_in.tag_ids is not None:
        db_obj.tags = await get_tags_by_ids(db, tag_ids=obj_in.tag_ids, user_id=db_obj.user_id)

    db.add(db_obj)
    await db.commit()
    await db.refresh(db_obj)
    return db_obj


async def delete_client(db: AsyncSession, *, db_obj: ClientModel) -> ClientModel:
    await db.delete(db_obj)
    await db.commit()
    return db_obj
