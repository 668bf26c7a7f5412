# notifications.py
import asyncio
import logging
import smtplib
from email.mime.text import MIMEText

from config import MailSettings, settings

logger = logging.getLogger(__name__)


class NotificationSkipped(Exception):
    """Raised when there is nobody to notify or mail is not configured"""
    pass


class Notifier:
    """Transactional email over SMTP.

    Sending is blocking, so it runs in a worker thread. Callers in the order
    and contact flows treat every send as best-effort.
    """

    def __init__(self, config: MailSettings):
        self.config = config

    @property
    def sender(self) -> str:
        return f"{self.config.sender_name} <{self.config.user}>"

    def _send_sync(self, to_email: str, subject: str, html: str):
        msg = MIMEText(html, "html")
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = to_email

        with smtplib.SMTP(self.config.smtp_host, self.config.smtp_port, timeout=10) as server:
            server.starttls()
            server.login(self.config.user, self.config.password)
            server.sendmail(self.config.user, [to_email], msg.as_string())

    async def send(self, to_email: str, subject: str, html: str):
        if not to_email:
            raise NotificationSkipped("no recipient")
        if not self.config.enabled:
            raise NotificationSkipped("mail is not configured")
        await asyncio.to_thread(self._send_sync, to_email, subject, html)
        logger.info(f"📧 Sent '{subject}' to {to_email}")

    async def send_order_confirmation(self, order: dict):
        html = (
            "<div><h1>Order Confirmed</h1>"
            f"<p>Order ID: {order['id']}</p>"
            f"<p>Tracking number: {order['tracking_number']}</p>"
            f"<p>Status: {order['status']}</p>"
            f"<p>Total: {order['final_price']}</p></div>"
        )
        subject = f"Order Confirmed - {self.config.sender_name} | Order #{order['id']}"
        await self.send(order.get("customer_email"), subject, html)

    async def send_contact_receipt(self, contact: dict):
        html = f"<p>Dear {contact['name']}, we received your message. Thank you.</p>"
        await self.send(contact["email"], f"We received your message - {self.config.sender_name}", html)

    async def send_contact_alert(self, contact: dict):
        html = (
            f"<p>Name: {contact['name']}</p>"
            f"<p>Email: {contact['email']}</p>"
            f"<p>Message: {contact['message']}</p>"
        )
        await self.send(self.config.admin_email, f"New Contact Form - {contact['subject']}", html)


notifier = Notifier(settings.mail)


def get_notifier() -> Notifier:
    return notifier
