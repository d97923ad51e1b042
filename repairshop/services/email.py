"""Outbound email: transport resolution, delivery, and the EmailLog audit trail.

Transport configuration is resolved on every send, persisted ShopSettings
first, then the environment (Resend API key, then SMTP variables). Every
attempt, successful or not, appends exactly one EmailLog row.
"""

from __future__ import annotations

import asyncio
import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr, make_msgid

from sqlalchemy.ext.asyncio import AsyncSession

from repairshop.config import get_settings
from repairshop.db import crud
from repairshop.models.enums import EmailStatus, EmailType

logger = logging.getLogger(__name__)

_SMTP_TIMEOUT = 10


class EmailConfigurationError(RuntimeError):
    """Neither persisted settings nor the environment describe a mail transport."""


class EmailDeliveryError(RuntimeError):
    pass


@dataclass
class TransportConfig:
    provider: str  # smtp | resend
    from_name: str
    from_email: str
    host: str = ""
    port: int = 0
    user: str = ""
    password: str = ""
    api_key: str = ""

    @property
    def implicit_tls(self) -> bool:
        return self.port == 465


async def resolve_email_config(db: AsyncSession) -> TransportConfig:
    shop = await crud.get_shop_settings(db)
    env = get_settings().email

    if shop and shop.smtp_host and shop.smtp_port and shop.smtp_user and shop.smtp_password:
        return TransportConfig(
            provider="smtp",
            host=shop.smtp_host,
            port=shop.smtp_port,
            user=shop.smtp_user,
            password=shop.smtp_password,
            from_name=shop.smtp_from_name or shop.company_name or env.smtp_from_name,
            from_email=shop.smtp_from_email or shop.smtp_user,
        )

    from_name = (shop.smtp_from_name if shop else "") or env.smtp_from_name
    from_email = (shop.smtp_from_email if shop else "") or env.smtp_from_email

    if env.resend_api_key:
        return TransportConfig(
            provider="resend",
            api_key=env.resend_api_key,
            from_name=from_name,
            from_email=from_email or "noreply@example.com",
        )

    if env.smtp_host and env.smtp_port and env.smtp_user and env.smtp_pass:
        return TransportConfig(
            provider="smtp",
            host=env.smtp_host,
            port=env.smtp_port,
            user=env.smtp_user,
            password=env.smtp_pass,
            from_name=from_name,
            from_email=from_email or env.smtp_user,
        )

    raise EmailConfigurationError("Email configuration not found in settings or environment variables")


def _send_smtp(config: TransportConfig, to: str, subject: str, html: str, text: str) -> str:
    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = formataddr((config.from_name, config.from_email))
    message["To"] = to
    message_id = make_msgid()
    message["Message-ID"] = message_id
    message.set_content(text or "")
    message.add_alternative(html, subtype="html")

    context = ssl.create_default_context()
    if config.implicit_tls:
        with smtplib.SMTP_SSL(config.host, config.port, timeout=_SMTP_TIMEOUT, context=context) as smtp:
            smtp.login(config.user, config.password)
            smtp.send_message(message)
    else:
        with smtplib.SMTP(config.host, config.port, timeout=_SMTP_TIMEOUT) as smtp:
            smtp.ehlo()
            smtp.starttls(context=context)
            smtp.ehlo()
            smtp.login(config.user, config.password)
            smtp.send_message(message)
    return message_id


def _send_resend(config: TransportConfig, to: str, subject: str, html: str, text: str) -> str:
    import resend
    resend.api_key = config.api_key

    payload = {
        "from": formataddr((config.from_name, config.from_email)),
        "to": [to],
        "subject": subject,
        "html": html,
    }
    if text:
        payload["text"] = text
    response = resend.Emails.send(payload)
    message_id = response.get("id") if isinstance(response, dict) else getattr(response, "id", None)
    if not message_id:
        raise EmailDeliveryError(f"Resend returned no message id for {to}")
    return message_id


def _deliver(config: TransportConfig, to: str, subject: str, html: str, text: str) -> str:
    if config.provider == "resend":
        return _send_resend(config, to, subject, html, text)
    return _send_smtp(config, to, subject, html, text)


async def send_email(
    db: AsyncSession,
    *,
    to: str,
    subject: str,
    html: str,
    text: str | None = None,
    email_type: str,
    related_id: str | None = None,
    sent_by_id: str | None = None,
) -> dict:
    """Send one email and log it.

    On failure a FAILED row is written and the original exception is re-raised
    unchanged: EmailConfigurationError, the transport's own error, or
    EmailDeliveryError when Resend returns no message id.
    """
    try:
        config = await resolve_email_config(db)
        message_id = await asyncio.to_thread(_deliver, config, to, subject, html, text or "")
    except Exception as exc:
        logger.warning("Failed to send %s email to %s: %s", email_type, to, exc)
        await crud.create_email_log(
            db,
            recipient=to,
            subject=subject,
            body=html,
            status=EmailStatus.FAILED.value,
            error_msg=str(exc) or exc.__class__.__name__,
            email_type=email_type,
            related_id=related_id,
            sent_by_id=sent_by_id,
        )
        raise

    await crud.create_email_log(
        db,
        recipient=to,
        subject=subject,
        body=html,
        status=EmailStatus.SENT.value,
        email_type=email_type,
        related_id=related_id,
        sent_by_id=sent_by_id,
    )
    return {"success": True, "message_id": message_id}


async def send_test_email(db: AsyncSession, to: str, sent_by_id: str | None = None) -> dict:
    """Send a configuration test message; reports the outcome instead of raising."""
    from repairshop.services.notifications import render_email

    shop = await crud.get_shop_settings(db)
    company_name = shop.company_name if shop else "E-Repair Shop"
    try:
        config = await resolve_email_config(db)
    except EmailConfigurationError as exc:
        return {"success": False, "message": f"Failed to send test email: {exc}"}

    html, text = render_email("test_email", company_name=company_name, config=config)
    try:
        await send_email(
            db,
            to=to,
            subject=f"{company_name} - Test Email",
            html=html,
            text=text,
            email_type=EmailType.TEST.value,
            sent_by_id=sent_by_id,
        )
    except Exception as exc:
        return {"success": False, "message": f"Failed to send test email: {exc}"}
    return {"success": True, "message": "Test email sent successfully! Check your inbox."}
