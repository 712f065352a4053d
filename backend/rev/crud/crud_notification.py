from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import func, update
from datetime import datetime, timezone
from typing import List, Optional
import uuid

from rev.models.notification import Notification as NotificationModel
from rev.schemas.notification import NotificationCreate


async def get_notification(
    db: AsyncSession, *, notification_id: uuid.UUID, user_id: uuid.UUID
) -> Optional[NotificationModel]:
    result = await db.execute(
        select(NotificationModel).filter(
            NotificationModel.id == notification_id, NotificationModel.user_id == user_id
        )
    )
    return result.scalars().first()


async def get_notifications(
    db: AsyncSession, *, user_id: uuid.UUID, unread_only: bool = False, limit: int = 50
) -> List[NotificationModel]:
    query = select(NotificationModel).filter(NotificationModel.user_id == user_id)
    if unread_only:
        query = query.filter(NotificationModel.is_read.is_(False))
    query = query.order_by(NotificationModel.created_at.desc()).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


async def count_unread(db: AsyncSession, *, user_id: uuid.UUID) -> int:
    result = await db.execute(
        select(func.count(NotificationModel.id)).filter(
            NotificationModel.user_id == user_id, NotificationModel.is_read.is_(False)
        )
    )
    return result.scalar_one()


async def create_notification(
    db: AsyncSession, *, notification_in: NotificationCreate, user_id: uuid.UUID
) -> NotificationModel:
    db_obj = NotificationModel(**notification_in.model_dump(), user_id=user_id)
    db.add(db_obj)
    await db.commit()
    await db.refresh(db_obj)
    return db_obj


async def mark_email_sent(db: AsyncSession, *, db_obj: NotificationModel) -> NotificationModel:
    db_obj.email_sent = True
    db_obj.email_sent_at = datetime.now(timezone.utc)
    db.add(db_obj)
    await db.commit()
    await db.refresh(db_obj)
    return db_obj


async def mark_read(db: AsyncSession, *, db_obj: NotificationModel) -> NotificationModel:
    db_obj.is_read = True
    db.add(db_obj)
    await db.commit()
    await db.refresh(db_obj)
    return db_obj


async def mark_all_read(db: AsyncSession, *, user_id: uuid.UUID) -> int:
    result = await db.execute(
        update(NotificationModel)
        .where(NotificationModel.user_id == user_id, NotificationModel.is_read.is_(False))
        .values(is_read=True)
    )
    await db.commit()
    return result.rowcount or 0


async def delete_notification(db: AsyncSession, *, db_obj: NotificationModel) -> None:
    await db.delete(db_obj)
    await db.commit()
