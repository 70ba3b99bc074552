"""
E-mail notifications for booking events.

Sent from the event consumer, never on the request path. smtplib blocks, so
every send runs in a worker thread with a bounded timeout. A failed send is
logged and reported as False; it never touches the booking.
"""

import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from ..config import Settings

logger = logging.getLogger(__name__)

SMTP_TIMEOUT = 10

STATUS_LABELS = {
    "pending": "pending",
    "confirmed": "confirmed",
    "cancelled": "cancelled",
}


class EmailNotifier:

    def __init__(self, settings: Settings):
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.username = settings.smtp_username
        self.password = settings.smtp_password
        self.use_tls = settings.smtp_use_tls
        self.sender = settings.mail_from
        self.site_name = settings.site_name

    @property
    def enabled(self) -> bool:
        return bool(self.host)

    # ── Messages ─────────────────────────────────────────────────────────

    async def send_customer_confirmation(self, booking: dict, consultant: dict) -> bool:
        subject = f"{self.site_name}: booking received"
        body = (
            f"Hello {booking['customer_name']},\n\n"
            f"we have received your booking with {consultant.get('display_name') or 'our team'} "
            f"on {booking['booking_date']} at {booking['booking_time']}.\n"
            f"You will get another e-mail once it is confirmed.\n\n"
            f"{self.site_name}"
        )
        return await self.send(booking["customer_email"], subject, body)

    async def send_consultant_notification(self, booking: dict, consultant: dict) -> bool:
        if not consultant.get("email"):
            logger.info(f"Consultant of booking {booking.get('id')} has no e-mail, skipping")
            return False

        subject = f"New booking: {booking['booking_date']} {booking['booking_time']}"
        body = (
            f"New booking request.\n\n"
            f"Customer: {booking['customer_name']} <{booking['customer_email']}>\n"
            f"Date: {booking['booking_date']}\n"
            f"Time: {booking['booking_time']}\n"
            f"Status: {booking['status']}\n"
        )
        return await self.send(consultant["email"], subject, body)

    async def send_status_change(self, booking: dict, old_status: str | None) -> bool:
        label = STATUS_LABELS.get(booking["status"], booking["status"])
        subject = f"{self.site_name}: your booking is {label}"
        body = (
            f"Hello {booking['customer_name']},\n\n"
            f"your booking on {booking['booking_date']} at {booking['booking_time']} "
            f"is now {label}"
            + (f" (was {STATUS_LABELS.get(old_status, old_status)})" if old_status else "")
            + f".\n\n{self.site_name}"
        )
        return await self.send(booking["customer_email"], subject, body)

    # ── Transport ────────────────────────────────────────────────────────

    async def send(self, to_email: str, subject: str, body: str) -> bool:
        if not self.enabled:
            logger.info("E-mail notifications are disabled (CS_SMTP_HOST is empty)")
            return False
        return await asyncio.to_thread(self._send_sync, to_email, subject, body)

    def _send_sync(self, to_email: str, subject: str, body: str) -> bool:
        msg = MIMEMultipart()
        msg["From"] = self.sender
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.attach(MIMEText(body, "plain", "utf-8"))

        try:
            with smtplib.SMTP(self.host, self.port, timeout=SMTP_TIMEOUT) as server:
                if self.use_tls:
                    server.starttls()
                if self.username:
                    server.login(self.username, self.password)
                server.sendmail(self.sender, [to_email], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send e-mail '{subject}': {e}")
            return False

        logger.info(f"E-mail sent: '{subject}'")
        return True
