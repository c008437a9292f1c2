from datetime import datetime, timezone
import logging
import smtplib
from email.message import EmailMessage
from sqlalchemy.orm import Session
import uuid
import requests

from app.core.config import settings
from app.models.email_log import EmailLog

logger = logging.getLogger(__name__)

BRAND = settings.APP_NAME

TEMPLATE_KINDS = (
    "booking-received",
    "booking-approved",
    "booking-rejected",
    "booking-fully-paid",
    "booking-completed",
    "booking-cancelled",
    "refund-approved",
    "refund-declined",
    "refund-confirmed",
)


def queue_email(db: Session, to_email: str, subject: str, body: str, related_ref: str = "", template_kind: str = "") -> str:
    """Queue and attempt immediate send. Body is stored so the worker can retry on failure."""
    eid = str(uuid.uuid4())
    db.add(
        EmailLog(
            id=eid,
            to_email=to_email,
            subject=subject,
            body=body,
            template_kind=template_kind,
            status="queued",
            related_ref=related_ref,
        )
    )
    db.commit()

    log = db.get(EmailLog, eid)
    try:
        send_email(to_email, subject, body)
        log.status = "sent"
        log.sent_at = datetime.now(timezone.utc)
    except Exception:
        logger.exception("Email %s to %s failed; left for retry", template_kind or subject, to_email)
        log.status = "failed"
        # Worker will retry via process_email_queue
    db.commit()
    return eid


def send_email(to_email: str, subject: str, body: str):
    """Send email via SendGrid if configured, otherwise SMTP (MailHog recommended for local)."""

    if settings.SENDGRID_API_KEY:
        _send_via_sendgrid(to_email, subject, body)
        return

    msg = EmailMessage()
    msg["From"] = settings.SMTP_FROM
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(body)

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as smtp:
        if settings.SMTP_USERNAME:
            smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        smtp.send_message(msg)


def _send_via_sendgrid(to_email: str, subject: str, body: str):
    from_email = settings.SENDGRID_FROM_EMAIL or settings.SMTP_FROM
    payload = {
        "personalizations": [{"to": [{"email": to_email}]}],
        "from": {"email": from_email, "name": BRAND},
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


def _booking_link() -> str:
    return f"{settings.CLIENT_BASE_URL.rstrip('/')}/my-bookings" if settings.CLIENT_BASE_URL else ""


def render_template(kind: str, entity, note: str | None = None) -> tuple[str, str, str]:
    """Return (to_email, subject, body) for a booking or refund-request email."""
    if kind not in TEMPLATE_KINDS:
        raise ValueError(f"unknown email template {kind!r}")

    if kind.startswith("refund-"):
        ref = entity.booking_ref
        to = entity.submitter_email
        greeting = f"Dear {entity.submitter_name},"
        amount = f"PHP {entity.calculated_refund_amount:,.2f}"
        lines = {
            "refund-approved": (
                f"Refund Approved: {ref}",
                f"Your refund request for booking {ref} has been approved. "
                f"Refund amount under our {entity.refund_policy} refund policy: {amount}.",
            ),
            "refund-declined": (
                f"Refund Request Update: {ref}",
                f"Your refund request for booking {ref} has been declined. See the note below for details.",
            ),
            "refund-confirmed": (
                f"Refund Sent: {ref}",
                f"Your refund of {amount} for booking {ref} has been processed and sent.",
            ),
        }
    else:
        ref = entity.booking_ref
        to = entity.email
        greeting = f"Dear {entity.first_name} {entity.last_name},"
        lines = {
            "booking-received": (
                f"Booking Received: {ref}",
                "We have received your booking request and it is currently under review. "
                "You will receive another email once your booking is confirmed.",
            ),
            "booking-approved": (
                f"Booking Approved: {ref}",
                "Great news! Your booking has been approved and confirmed. We look forward to serving you."
                + (f"\nRemaining balance is due by {entity.payment_due_date:%Y-%m-%d %H:%M} UTC." if entity.payment_due_date else ""),
            ),
            "booking-rejected": (
                f"Booking Status Update: {ref}",
                "Unfortunately we are unable to accommodate your booking at this time.",
            ),
            "booking-fully-paid": (
                f"Payment Received: {ref}",
                f"We have received your full payment of PHP {entity.total_price:,.2f}. Your booking is fully paid.",
            ),
            "booking-completed": (
                f"Thank You: {ref}",
                "Your booking is complete. Thank you for travelling with us!",
            ),
            "booking-cancelled": (
                f"Booking Cancelled: {ref}",
                f"Your booking {ref} for {entity.item_name} has been cancelled.",
            ),
        }

    subject, text = lines[kind]
    parts = [greeting, "", text]
    if note:
        parts += ["", f"A note from our team: {note}"]
    link = _booking_link()
    if link:
        parts += ["", f"View your bookings: {link}"]
    parts += ["", f"Thank you for choosing {BRAND}!"]
    return to, subject, "\n".join(parts)


class QueuedEmailSender:
    """EmailPort backed by the email_logs queue."""

    def __init__(self, db: Session):
        self.db = db

    def send(self, template_kind: str, entity, note: str | None = None) -> str:
        to, subject, body = render_template(template_kind, entity, note)
        return queue_email(self.db, to, subject, body, related_ref=entity.booking_ref, template_kind=template_kind)


def process_pending_emails(db: Session, limit: int = 50) -> dict:
    """Process up to `limit` queued or failed emails; retry send and update status. Returns counts."""
    pending = (
        db.query(EmailLog)
        .filter(EmailLog.status.in_(["queued", "failed"]), EmailLog.body.isnot(None), EmailLog.body != "")
        .order_by(EmailLog.created_at.asc())
        .limit(limit)
        .all()
    )
    sent, failed = 0, 0
    for log in pending:
        try:
            send_email(log.to_email, log.subject, log.body)
            log.status = "sent"
            log.sent_at = datetime.now(timezone.utc)
            sent += 1
        except Exception:
            logger.warning("Retry of email %s to %s failed", log.id, log.to_email, exc_info=True)
            log.status = "failed"
            failed += 1
    if pending:
        db.commit()
    return {"processed": len(pending), "sent": sent, "failed": failed}
