# backend/rev/api/endpoints/notifications.py
from fastapi import APIRouter, Depends, HTTPException, status, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any
import uuid

from rev import crud, models, schemas
from rev.db.session import get_db
from rev.api import deps
from rev.services.notifications import create_and_email

router = APIRouter()


async def _get_owned_notification(db: AsyncSession, notification_id: uuid.UUID, user: models.User) -> models.Notification:
    notification = await crud.notification.get_notification(db, notification_id=notification_id, user_id=user.id)
    if not notification:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return notification


@router.get("/", response_model=schemas.NotificationList)
async def read_notifications(
    *,
    db: AsyncSession = Depends(get_db),
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    notifications = await crud.notification.get_notifications(
        db, user_id=current_user.id, unread_only=unread_only, limit=limit
    )
    unread_count = await crud.notification.count_unread(db, user_id=current_user.id)
    return {"notifications": notifications, "unread_count": unread_count}


@router.post("/", response_model=schemas.Notification, status_code=status.HTTP_201_CREATED)
async def create_new_notification(
    *,
    db: AsyncSession = Depends(get_db),
    notification_in: schemas.NotificationCreate,
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    """
    Store a notification and email a copy when the user opted in.
    """
    return await create_and_email(db, notification_in=notification_in, user=current_user)


@router.put("/read-all", response_model=schemas.MarkAllReadResult)
async def mark_all_notifications_read(
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    updated = await crud.notification.mark_all_read(db, user_id=current_user.id)
    return {"updated": updated}


@router.put("/{notification_id}/read", response_model=schemas.Notification)
async def mark_notification_read(
    notification_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    notification = await _get_owned_notification(db, notification_id, current_user)
    return await crud.notification.mark_read(db, db_obj=notification)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_existing_notification(
    notification_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user)
):
    notification = await _get_owned_notification(db, notification_id, current_user)
    await crud.notification.delete_notification(db, db_obj=notification)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
