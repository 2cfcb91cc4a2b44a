# app/core/email_client.py
from __future__ import annotations

"""
Outgoing mail for order notifications.

Settings used: SMTP_HOST, SMTP_PORT, SMTP_USERNAME, SMTP_PASSWORD,
SMTP_FROM_EMAIL, SMTP_FROM_NAME, SMTP_USE_TLS (STARTTLS, usually 587),
SMTP_USE_SSL (implicit TLS, usually 465), SMTP_TIMEOUT_SECONDS.

Only the Celery notification task calls send_email(); request handlers
never talk to SMTP directly.
"""

import smtplib
from dataclasses import dataclass
from email.message import EmailMessage

from app.core.config import get_settings


@dataclass(frozen=True)
class Attachment:
    filename: str
    content: bytes
    mime_type: str = "application/pdf"


def _connect() -> smtplib.SMTP:
    settings = get_settings()
    if not settings.SMTP_HOST:
        raise RuntimeError("SMTP_HOST is not configured")

    timeout = settings.SMTP_TIMEOUT_SECONDS
    if settings.SMTP_USE_SSL:
        return smtplib.SMTP_SSL(settings.SMTP_HOST, settings.SMTP_PORT, timeout=timeout)

    server = smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=timeout)
    if settings.SMTP_USE_TLS:
        server.starttls()
    return server


def build_message(
    to_email: str,
    subject: str,
    text_body: str,
    html_body: str | None = None,
    attachments: list[Attachment] | None = None,
) -> EmailMessage:
    """
    Plain-text message with an optional HTML alternative and attachments.
    """
    settings = get_settings()
    sender = settings.SMTP_FROM_EMAIL or settings.SMTP_USERNAME

    msg = EmailMessage()
    msg["From"] = f"{settings.SMTP_FROM_NAME} <{sender}>" if sender else settings.SMTP_FROM_NAME
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(text_body)
    if html_body:
        msg.add_alternative(html_body, subtype="html")

    for att in attachments or []:
        maintype, _, subtype = att.mime_type.partition("/")
        msg.add_attachment(
            att.content,
            maintype=maintype,
            subtype=subtype or "octet-stream",
            filename=att.filename,
        )
    return msg


def send_email(
    to_email: str,
    subject: str,
    text_body: str,
    html_body: str | None = None,
    attachments: list[Attachment] | None = None,
) -> None:
    """
    Send one message. Raises RuntimeError when SMTP is not configured and
    lets smtplib/socket errors propagate; the caller decides what to swallow.
    """
    settings = get_settings()
    if not (settings.SMTP_HOST and settings.SMTP_USERNAME and settings.SMTP_PASSWORD):
        raise RuntimeError("SMTP_HOST, SMTP_USERNAME and SMTP_PASSWORD must be set")

    msg = build_message(to_email, subject, text_body, html_body, attachments)

    server = _connect()
    try:
        server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        server.send_message(msg)
    finally:
        try:
            server.quit()
        except (smtplib.SMTPException, OSError):
            pass
