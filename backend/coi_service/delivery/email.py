"""
Certificate email — one message per rendered certificate.

Sent from EMAIL_SENDER to the policy owner, bcc support (and EMAIL_BCC3
when set), with the PDF attached.  The HTML body comes from the
config's email template; a built-in body is used when it is missing.
"""

from __future__ import annotations

import asyncio
import smtplib
from email.message import EmailMessage

from coi_service.core.config import settings
from coi_service.core.constants import ATTACHMENT_FILENAME, EMAIL_SUBJECT
from coi_service.core.logging import get_logger
from coi_service.pipeline.errors import DeliveryError

logger = get_logger(__name__)

FALLBACK_BODY = """
<h1>Good day.</h1>
<p>Please find attached a Certificate of Insurance that was requested by your company.</p>
<p>Thanks again for choosing Foxquilt!</p>
<p style="color: #46b2bb">- The Foxquilt Team</p>
"""


def load_email_body(path: str | None) -> str:
    if not path:
        return FALLBACK_BODY
    try:
        with open(path, encoding="utf-8") as fh:
            return fh.read()
    except OSError:
        logger.warning("Email template unreadable, using fallback body", path=path)
        return FALLBACK_BODY


def build_message(pdf_bytes: bytes, recipient: str, body_html: str) -> EmailMessage:
    message = EmailMessage()
    message["From"] = settings.EMAIL_SENDER
    message["To"] = recipient
    message["Bcc"] = ", ".join(b for b in (settings.SUPPORT_EMAIL, settings.EMAIL_BCC3) if b)
    message["Subject"] = EMAIL_SUBJECT
    message.set_content("Please find attached your Certificate of Insurance.")
    message.add_alternative(body_html, subtype="html")
    message.add_attachment(
        pdf_bytes,
        maintype="application",
        subtype="pdf",
        filename=ATTACHMENT_FILENAME,
    )
    return message


def _send_sync(message: EmailMessage) -> None:
    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as smtp:
        if settings.SMTP_USE_TLS:
            smtp.starttls()
        if settings.SMTP_USERNAME:
            smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        # send_message reads Bcc for the envelope and strips the header
        smtp.send_message(message)


class EmailSender:
    """SMTP delivery; `send` runs the blocking client in a worker thread."""

    async def send(
        self,
        *,
        pdf_bytes: bytes,
        recipient: str,
        email_template_path: str | None,
        geography: str,
    ) -> None:
        """
        Raises:
            DeliveryError: SMTP connection or send failure.
        """
        message = build_message(pdf_bytes, recipient, load_email_body(email_template_path))
        try:
            await asyncio.to_thread(_send_sync, message)
        except (smtplib.SMTPException, OSError) as exc:
            raise DeliveryError(f"Certificate email failed: {exc}") from exc

        logger.info(
            "Certificate email sent",
            recipient=recipient,
            bcc=message["Bcc"],
            geography=geography,
            stage=settings.STAGE,
            attachment_bytes=len(pdf_bytes),
        )
