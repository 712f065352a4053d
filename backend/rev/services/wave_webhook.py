"""
Inbound Wave webhook events.

Signatures are checked against every stored per-user secret; the secret
that matches identifies the account. Event processing happens after the
HTTP response in its own database session and is never retried.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rev import crud
from rev.core.security import verify_webhook_signature
from rev.models.user import User
from rev.schemas.invoice import InvoiceStatusEnum
from rev.schemas.notification import NotificationTypeEnum
from rev.services.notifications import notify
from rev.services.pdf import format_money

logger = logging.getLogger(__name__)


def parse_wave_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Unparseable Wave timestamp: {value}")
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


async def find_user_for_signature(db: AsyncSession, header: Optional[str], raw_body: bytes) -> Optional[User]:
    if not header:
        return None
    for user in await crud.user.get_users_with_webhook_secret(db):
        if verify_webhook_signature(user.wave_webhook_secret, header, raw_body):
            return user
    return None


def _describe_amount(data: Dict[str, Any]) -> str:
    currency = data.get("currency") or "XOF"
    return format_money(data.get("amount") or 0, currency)


async def _checkout_completed(db: AsyncSession, user: User, event: Dict[str, Any]) -> None:
    data = event.get("data") or {}
    checkout_id = data.get("id")
    invoice = await crud.invoice.find_invoice_for_checkout(
        db, user_id=user.id, checkout_id=checkout_id, client_reference=data.get("client_reference")
    )
    if invoice is None:
        await notify(
            db, user=user,
            type=NotificationTypeEnum.WAVE_CHECKOUT_COMPLETED,
            title="Paiement Wave reçu",
            message=f"Un paiement de {_describe_amount(data)} a été reçu via Wave.",
            related_type="wave_checkout",
            related_id=checkout_id,
            details={"event_id": event.get("id"), "checkout": data},
        )
        return

    if invoice.status == InvoiceStatusEnum.PAID:
        logger.info(f"Invoice {invoice.invoice_number} already paid, checkout {checkout_id} ignored")
        return

    invoice = await crud.invoice.mark_invoice_paid(
        db,
        db_invoice=invoice,
        paid_date=parse_wave_timestamp(data.get("when_completed")),
        wave_checkout_id=checkout_id,
    )
    await notify(
        db, user=user,
        type=NotificationTypeEnum.INVOICE_PAID,
        title="Facture payée",
        message=f"La facture {invoice.invoice_number} a été payée via Wave ({_describe_amount(data)}).",
        related_type="invoice",
        related_id=invoice.id,
        action_url=f"/invoices/{invoice.id}",
        details={"event_id": event.get("id"), "checkout_id": checkout_id},
    )


async def _checkout_failed(db: AsyncSession, user: User, event: Dict[str, Any]) -> None:
    data = event.get("data") or {}
    error = (data.get("last_payment_error") or {}).get("message")
    await notify(
        db, user=user,
        type=NotificationTypeEnum.WAVE_CHECKOUT_FAILED,
        title="Échec du paiement Wave",
        message=error or f"Le paiement de {_describe_amount(data)} via Wave a échoué.",
        related_type="wave_checkout",
        related_id=data.get("id"),
        details={"event_id": event.get("id"), "checkout": data},
    )


async def _payment_received(db: AsyncSession, user: User, event: Dict[str, Any]) -> None:
    data = event.get("data") or {}
    sender = data.get("sender_name") or data.get("sender_mobile") or data.get("counterparty_name")
    message = f"Vous avez reçu {_describe_amount(data)} via Wave"
    message = f"{message} de {sender}." if sender else f"{message}."
    await notify(
        db, user=user,
        type=NotificationTypeEnum.WAVE_PAYMENT_RECEIVED,
        title="Paiement Wave reçu",
        message=message,
        related_type="wave_transaction",
        related_id=data.get("id"),
        details={"event_id": event.get("id"), "event_type": event.get("type"), "payment": data},
    )


async def _payment_failed(db: AsyncSession, user: User, event: Dict[str, Any]) -> None:
    data = event.get("data") or {}
    await notify(
        db, user=user,
        type=NotificationTypeEnum.WAVE_PAYMENT_FAILED,
        title="Échec du paiement Wave",
        message=f"Le paiement B2B de {_describe_amount(data)} a échoué.",
        related_type="wave_transaction",
        related_id=data.get("id"),
        details={"event_id": event.get("id"), "payment": data},
    )


EVENT_HANDLERS = {
    "checkout.session.completed": _checkout_completed,
    "checkout.session.payment_failed": _checkout_failed,
    "merchant.payment_received": _payment_received,
    "b2b.payment_received": _payment_received,
    "b2b.payment_failed": _payment_failed,
}


async def process_wave_event(
    session_factory: async_sessionmaker, user_id: uuid.UUID, event: Dict[str, Any]
) -> None:
    """Run the handler for one verified event. Errors are logged, never raised."""
    event_type = event.get("type")
    handler = EVENT_HANDLERS.get(event_type)
    if handler is None:
        logger.info(f"Ignoring unhandled Wave event type '{event_type}' (id={event.get('id')})")
        return

    try:
        async with session_factory() as db:
            user = await crud.user.get_user(db, user_id)
            if user is None:
                logger.warning(f"Wave event {event.get('id')} for unknown user {user_id}")
                return
            await handler(db, user, event)
            logger.info(f"Processed Wave event {event_type} (id={event.get('id')}) for user {user_id}")
    except Exception:
        logger.exception(f"Error processing Wave event {event_type} (id={event.get('id')})")
