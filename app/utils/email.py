"""Email delivery utility — SMTP via aiosmtplib.

SMTP settings come from the SMTP_* environment variables in config.py.
When SMTP is not configured the message is logged and dropped.
"""

from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape

import aiosmtplib
from loguru import logger

from app.config import settings


async def send_email(
    to: str,
    subject: str,
    html: str,
    text: str | None = None,
    reply_to: str | None = None,
) -> bool:
    """Send an email.

    Args:
        to: Recipient address
        subject: Subject line
        html: HTML body
        text: Plain text body (optional alternative part)
        reply_to: Reply-To address (e.g. contact form sender)

    Returns:
        bool: True when the message was handed to the SMTP server
    """
    if not settings.smtp_configured:
        logger.info("SMTP not configured; skipping email to {to}: {subject}", to=to, subject=subject)
        return False

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{settings.SMTP_FROM_NAME} <{settings.SMTP_FROM_EMAIL}>"
    msg["To"] = to
    if reply_to:
        msg["Reply-To"] = reply_to

    if text:
        msg.attach(MIMEText(text, "plain", "utf-8"))
    msg.attach(MIMEText(html, "html", "utf-8"))

    await aiosmtplib.send(
        msg,
        hostname=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        username=settings.SMTP_USER,
        password=settings.SMTP_PASSWORD,
        start_tls=True,
    )
    return True


def render_contact_email(
    recipient_name: str,
    sender_name: str,
    sender_email: str,
    subject: str,
    message: str,
) -> tuple[str, str]:
    """Build the (html, text) bodies of a contact form message."""
    text = (
        f"Dear {recipient_name},\n\n"
        f"You have received a message through the association website.\n\n"
        f"From: {sender_name} <{sender_email}>\n"
        f"Subject: {subject}\n\n{message}\n"
    )
    html = (
        f"<p>Dear {escape(recipient_name)},</p>"
        f"<p>You have received a message through the association website.</p>"
        f"<p><strong>From:</strong> {escape(sender_name)} &lt;{escape(sender_email)}&gt;<br>"
        f"<strong>Subject:</strong> {escape(subject)}</p>"
        f"<p>{escape(message).replace(chr(10), '<br>')}</p>"
    )
    return html, text


def render_notification_email(player_name: str, title: str, body: str) -> tuple[str, str]:
    """Build the (html, text) bodies of a tournament notification."""
    text = f"Dear {player_name},\n\n{body}\n\n— {settings.SMTP_FROM_NAME}\n"
    html = (
        f"<p>Dear {escape(player_name)},</p>"
        f"<h3>{escape(title)}</h3>"
        f"<p>{escape(body)}</p>"
        f"<p>{escape(settings.SMTP_FROM_NAME)}</p>"
    )
    return html, text
