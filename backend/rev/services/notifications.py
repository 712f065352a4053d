"""
Notification rows plus their best-effort email copy.

The row is always committed first; the email is attempted only when the
user keeps email notifications on and has SMTP configured. Email failures
never reach the caller.
"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from rev import crud
from rev.core.config import settings
from rev.models.notification import Notification
from rev.models.user import User
from rev.schemas.notification import NotificationCreate, NotificationTypeEnum
from rev.services import email as email_service
from rev.services.exceptions import ServiceError
from rev.services.pdf import render_template

logger = logging.getLogger(__name__)


async def notify(
    db: AsyncSession,
    *,
    user: User,
    type: NotificationTypeEnum,
    title: str,
    message: str,
    related_type: Optional[str] = None,
    related_id: Optional[Any] = None,
    action_url: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> Notification:
    notification_in = NotificationCreate(
        title=title,
        message=message,
        type=type,
        related_type=related_type,
        related_id=str(related_id) if related_id is not None else None,
        action_url=action_url,
        details=details,
    )
    return await create_and_email(db, notification_in=notification_in, user=user)


async def create_and_email(
    db: AsyncSession, *, notification_in: NotificationCreate, user: User
) -> Notification:
    notification = await crud.notification.create_notification(
        db, notification_in=notification_in, user_id=user.id
    )
    if not (user.email_notifications and user.smtp_configured):
        return notification

    try:
        html_body = render_template("notification_email.html", {
            "user": user,
            "notification": notification,
            "action_url": f"{settings.SERVER_HOST}{notification.action_url}" if notification.action_url else None,
        })
        await email_service.send_email(
            user,
            to=user.email,
            subject=notification.title,
            html_body=html_body,
            text_body=notification.message,
        )
    except ServiceError as e:
        logger.warning(f"Notification {notification.id} email not sent: {e}")
        return notification
    except Exception:
        logger.exception(f"Unexpected error emailing notification {notification.id}")
        return notification

    return await crud.notification.mark_email_sent(db, db_obj=notification)
