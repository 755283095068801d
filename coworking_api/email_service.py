"""
Unified Email Service using Resend (fallback) or Custom SMTP
Provides email functionality using MJML templates for responsive design
"""

import logging
import smtplib
import ssl
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import (
    ADMIN_NOTIFICATION_EMAIL,
    EMAIL_FROM_ADDRESS,
    RESEND_API_KEY,
    SMTP_HOST,
    SMTP_PASSWORD,
    SMTP_PORT,
    SMTP_USE_TLS,
    SMTP_USERNAME,
)
from .email_templates import (
    admin_new_booking_template,
    booking_cancelled_template,
    booking_confirmed_template,
    booking_received_template,
    booking_reminder_template,
    contact_reply_template,
)

logger = logging.getLogger(__name__)

# Initialize Resend as fallback
resend.api_key = RESEND_API_KEY


class EmailError(Exception):
    """Raised when no transport could deliver a message"""


def send_via_smtp(
    to: list[str],
    subject: str,
    html_content: str,
    from_address: str,
    reply_to: Optional[str] = None,
) -> dict:
    """Send email via the configured SMTP server"""
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = from_address
    msg["To"] = ", ".join(to)
    if reply_to:
        msg["Reply-To"] = reply_to
    msg.attach(MIMEText(html_content, "html"))

    context = ssl.create_default_context()
    if SMTP_PORT == 465:
        server = smtplib.SMTP_SSL(SMTP_HOST, SMTP_PORT, context=context, timeout=30)
    else:
        server = smtplib.SMTP(SMTP_HOST, SMTP_PORT, timeout=30)
        if SMTP_USE_TLS:
            server.starttls(context=context)

    try:
        if SMTP_USERNAME:
            server.login(SMTP_USERNAME, SMTP_PASSWORD or "")
        server.sendmail(from_address.split("<")[-1].rstrip(">"), to, msg.as_string())
    finally:
        server.quit()

    logger.info(f"✅ SMTP email sent successfully via {SMTP_HOST}")
    return {"id": f"smtp-{datetime.utcnow().timestamp()}", "success": True}


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise EmailError(f"Failed to compile MJML template: {str(e)}") from e

    # mjml returns an object exposing .html/.errors (dict-like in some releases)
    if isinstance(result, dict):
        html, errors = result.get("html", ""), result.get("errors")
    else:
        html, errors = getattr(result, "html", str(result)), getattr(result, "errors", None)
    if errors:
        logger.warning(f"MJML compilation warnings: {errors}")
    return html


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
    reply_to: Optional[str] = None,
) -> dict:
    """
    Send an email using custom SMTP (if configured) or Resend (fallback)

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address
        reply_to: Optional Reply-To address

    Returns:
        Send response dict

    Raises:
        EmailError: when neither transport delivered the message
    """
    html_content = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else to
    sender = from_address or EMAIL_FROM_ADDRESS

    if SMTP_HOST:
        try:
            logger.info(f"📧 Sending email via SMTP: {SMTP_HOST}")
            return send_via_smtp(recipients, subject, html_content, sender, reply_to)
        except Exception as e:
            logger.warning(f"⚠️ SMTP failed, falling back to Resend: {e}")

    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing and no SMTP_HOST")
        raise EmailError("Email service not configured")

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        email_data = {"from": sender, "to": recipients, "subject": subject, "html": html_content}
        if reply_to:
            email_data["reply_to"] = reply_to
        response = resend.Emails.send(email_data)
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise EmailError(f"Failed to send email: {str(e)}") from e


# ============================================
# Booking emails
# ============================================


def _booking_args(booking) -> dict:
    return {
        "space_name": booking.space.name if booking.space else booking.space_type,
        "date": booking.date,
        "start_time": booking.start_time,
        "end_time": booking.end_time,
        "people": booking.number_of_people,
        "total": booking.total_price,
    }


def _booking_recipient(booking) -> tuple[Optional[str], str]:
    email = booking.contact_email or (booking.user.email if booking.user else None)
    name = booking.contact_name or (booking.user.full_name if booking.user else None) or "client"
    return email, name


async def send_booking_received_email(booking) -> Optional[dict]:
    """Acknowledge a new booking to the customer and notify the admin inbox"""
    email, name = _booking_recipient(booking)
    response = None
    if email:
        response = await send_email(
            to=email,
            subject="Votre demande de réservation - CoworKing Café",
            mjml_content=booking_received_template(name, **_booking_args(booking)),
        )
    if ADMIN_NOTIFICATION_EMAIL:
        await send_email(
            to=ADMIN_NOTIFICATION_EMAIL,
            subject=f"Nouvelle réservation - {booking.date}",
            mjml_content=admin_new_booking_template(name, email or "-", **_booking_args(booking)),
            reply_to=email,
        )
    return response


async def send_booking_confirmation_email(booking) -> Optional[dict]:
    email, name = _booking_recipient(booking)
    if not email:
        logger.info(f"ℹ️ Booking {booking.id} has no contact email, skipping confirmation")
        return None
    return await send_email(
        to=email,
        subject="Réservation confirmée - CoworKing Café",
        mjml_content=booking_confirmed_template(name, **_booking_args(booking)),
    )


async def send_booking_cancellation_email(
    booking, charge_percentage: int, cancellation_fee: float, refund_amount: float
) -> Optional[dict]:
    email, name = _booking_recipient(booking)
    if not email:
        return None
    return await send_email(
        to=email,
        subject="Annulation de votre réservation - CoworKing Café",
        mjml_content=booking_cancelled_template(
            name,
            booking.space.name if booking.space else booking.space_type,
            booking.date,
            charge_percentage,
            cancellation_fee,
            refund_amount,
            booking.cancel_reason,
        ),
    )


async def send_booking_reminder_email(booking) -> Optional[dict]:
    email, name = _booking_recipient(booking)
    if not email:
        return None
    return await send_email(
        to=email,
        subject="Rappel : votre réservation demain - CoworKing Café",
        mjml_content=booking_reminder_template(name, **_booking_args(booking)),
    )


# ============================================
# Contact emails
# ============================================


async def send_contact_reply_email(to: str, name: str, original_subject: str, reply: str) -> dict:
    return await send_email(
        to=to,
        subject=f"Re: {original_subject}",
        mjml_content=contact_reply_template(name, original_subject, reply),
        reply_to=ADMIN_NOTIFICATION_EMAIL,
    )
