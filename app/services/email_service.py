import logging
from datetime import datetime, timezone
import smtplib
from email.message import EmailMessage
from sqlalchemy.orm import Session
import uuid
import requests

from app.core.config import settings
from app.models.email_log import EmailLog
from app.models.booking import Booking
from app.models.room import Room
from app.models.user import User

logger = logging.getLogger(__name__)


def email_configured() -> bool:
    return bool(settings.SENDGRID_API_KEY or settings.SMTP_HOST)


def queue_email(db: Session, to_email: str, subject: str, body: str, related_booking_id: str = "") -> str:
    """Record the email and attempt an immediate send.

    Delivery problems are logged and stored on the EmailLog row; they never propagate to the caller.
    """
    eid = str(uuid.uuid4())
    log = EmailLog(
        id=eid,
        to_email=to_email,
        subject=subject,
        body=body,
        status="queued",
        related_booking_id=related_booking_id,
    )
    db.add(log)

    if not email_configured():
        logger.info("Email not configured (SMTP_HOST/SENDGRID_API_KEY not set) - skipping email to %s", to_email)
        log.status = "skipped"
        db.commit()
        return eid

    try:
        send_email(to_email, subject, body)
        log.status = "sent"
        log.sent_at = datetime.now(timezone.utc)
        logger.info("Email %r sent to %s", subject, to_email)
    except Exception:
        logger.exception("Failed to send email %r to %s", subject, to_email)
        log.status = "failed"
    db.commit()
    return eid


def send_email(to_email: str, subject: str, body: str):
    """Send email via SendGrid if configured, otherwise SMTP (MailHog recommended for local)."""

    if settings.SENDGRID_API_KEY:
        _send_via_sendgrid(to_email, subject, body)
        return

    msg = EmailMessage()
    msg["From"] = settings.MAIL_FROM
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(body)

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as smtp:
        if settings.SMTP_USERNAME:
            smtp.starttls()
            smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        smtp.send_message(msg)


def _send_via_sendgrid(to_email: str, subject: str, body: str):
    from_email = settings.SENDGRID_FROM_EMAIL or settings.MAIL_FROM
    payload = {
        "personalizations": [{"to": [{"email": to_email}]}],
        "from": {"email": from_email, "name": "Grand Horizon Hotel"},
        "subject": subject,
        "content": [{"type": "text/plain", "value": body}],
    }
    r = requests.post(
        "https://api.sendgrid.com/v3/mail/send",
        json=payload,
        headers={"Authorization": f"Bearer {settings.SENDGRID_API_KEY}"},
        timeout=20,
    )
    if r.status_code >= 400:
        raise RuntimeError(f"SendGrid error {r.status_code}: {r.text}")


def _long_date(d) -> str:
    return f"{d.strftime('%A, %B')} {d.day}, {d.year}"


def send_booking_confirmation(db: Session, user: User, booking: Booking, room: Room) -> str:
    subject = "Booking Confirmation - Grand Horizon Hotel"
    lines = [
        f"Hello {user.first_name},",
        "",
        "Thank you for choosing Grand Horizon Hotel. Your booking is confirmed.",
        "",
        f"Booking ID:   {booking.id}",
        f"Room:         {room.name} ({room.category})",
        f"Room Number:  {room.room_number}",
        f"Check-in:     {_long_date(booking.check_in_date)}",
        f"Check-out:    {_long_date(booking.check_out_date)}",
        f"Guests:       {booking.guest_count}",
        f"Total:        ${booking.total_price}",
    ]
    if booking.discount_amount and booking.discount_amount > 0:
        lines.append(f"Discount:     -${booking.discount_amount} ({booking.promo_code})")
        lines.append(f"Amount paid:  ${booking.final_price}")
    if booking.special_requests:
        lines += ["", f"Special requests: {booking.special_requests}"]
    lines += [
        "",
        "Check-in time: 3:00 PM. Check-out time: 11:00 AM.",
        "Please bring a valid ID for check-in.",
        "",
        "We look forward to welcoming you!",
        "The Grand Horizon Team",
    ]
    return queue_email(db, user.email, subject, "\n".join(lines), related_booking_id=booking.id)
