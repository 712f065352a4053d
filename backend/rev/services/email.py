"""Outgoing email through each user's own SMTP account."""
import asyncio
import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

from rev.core.config import settings
from rev.models.user import User
from rev.services.exceptions import EmailNotConfiguredError, EmailDeliveryError

logger = logging.getLogger(__name__)


def build_message(
    user: User,
    *,
    to: str,
    subject: str,
    html_body: str,
    text_body: Optional[str] = None,
    attachment: Optional[bytes] = None,
    attachment_name: Optional[str] = None,
) -> EmailMessage:
    message = EmailMessage()
    sender = user.smtp_from or user.smtp_user
    display_name = user.company_name or user.full_name
    message["From"] = f"{display_name} <{sender}>" if display_name else sender
    message["To"] = to
    message["Subject"] = subject
    message.set_content(text_body or "Please open this message in an HTML capable mail client.")
    message.add_alternative(html_body, subtype="html")
    if attachment is not None:
        message.add_attachment(
            attachment, maintype="application", subtype="pdf", filename=attachment_name or "document.pdf"
        )
    return message


def _deliver(user: User, message: EmailMessage) -> None:
    host, port = user.smtp_host, int(user.smtp_port)
    if port == 465:
        server = smtplib.SMTP_SSL(host, port, timeout=settings.SMTP_TIMEOUT)
    else:
        server = smtplib.SMTP(host, port, timeout=settings.SMTP_TIMEOUT)
    with server:
        if port != 465:
            server.starttls()
        server.login(user.smtp_user, user.smtp_password)
        server.send_message(message)


async def send_email(
    user: User,
    *,
    to: str,
    subject: str,
    html_body: str,
    text_body: Optional[str] = None,
    attachment: Optional[bytes] = None,
    attachment_name: Optional[str] = None,
) -> None:
    """
    Sends one message with the user's SMTP settings. Raises
    EmailNotConfiguredError when SMTP is incomplete and EmailDeliveryError
    when the server refuses the message.
    """
    if not user.smtp_configured:
        raise EmailNotConfiguredError("SMTP is not configured for this account.")
    message = build_message(
        user, to=to, subject=subject, html_body=html_body, text_body=text_body,
        attachment=attachment, attachment_name=attachment_name,
    )
    loop = asyncio.get_running_loop()
    try:
        await loop.run_in_executor(None, _deliver, user, message)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Email to {to} via {user.smtp_host} failed: {e}")
        raise EmailDeliveryError(str(e)) from e
    logger.info(f"Email '{subject}' sent to {to}")
