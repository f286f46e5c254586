import asyncio
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional, Protocol

import httpx

from core.exceptions import NotificationError
from settings.config import Settings
from utils.logger import get_logger

logger = get_logger("Email_Service")


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    body: str


class EmailSender(Protocol):
    async def send(self, message: EmailMessage) -> None:
        """Deliver the message or raise NotificationError."""
        ...


class ConsoleEmailSender:
    """Development sender: records the message instead of delivering it."""

    def __init__(self):
        self.sent: list[EmailMessage] = []

    async def send(self, message: EmailMessage) -> None:
        self.sent.append(message)
        # body may carry credentials, never log it
        logger.info("Email (dev mode)", extra={"email": message.to, "subject": message.subject})


class SmtpEmailSender:
    def __init__(self, host: str, port: int, user: Optional[str], password: Optional[str], from_email: str):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.from_email = from_email

    def _send_sync(self, message: EmailMessage) -> None:
        msg = MIMEMultipart()
        msg["From"] = self.from_email
        msg["To"] = message.to
        msg["Subject"] = message.subject
        msg.attach(MIMEText(message.body, "plain"))

        server = smtplib.SMTP(self.host, self.port, timeout=30)
        try:
            server.starttls()
            if self.user:
                server.login(self.user, self.password)
            server.sendmail(self.from_email, message.to, msg.as_string())
        finally:
            server.quit()

    async def send(self, message: EmailMessage) -> None:
        try:
            await asyncio.to_thread(self._send_sync, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email", exc_info=e)
            raise NotificationError(f"Could not send email to {message.to}") from e
        logger.info("Email sent", extra={"email": message.to, "subject": message.subject})


class HttpEmailSender:
    """Posts the message to an external notification service."""

    def __init__(self, base_url: str, timeout: float = 10.0, http_client: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = http_client

    async def send(self, message: EmailMessage) -> None:
        payload = {"to": message.to, "subject": message.subject, "body": message.body}
        url = f"{self.base_url}/notifications/email"
        try:
            if self._client is not None:
                response = await self._client.post(url, json=payload, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(url, json=payload)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error("Notification service unreachable", exc_info=e)
            raise NotificationError("Notification service is unreachable") from e
        if response.is_error:
            logger.error(f"Notification service returned {response.status_code}", extra={"email": message.to})
            raise NotificationError(f"Notification service returned {response.status_code}")
        logger.info("Email dispatched", extra={"email": message.to, "subject": message.subject})


def build_email_sender(settings: Settings) -> EmailSender:
    backend = settings.NOTIFIER_BACKEND.lower()
    if backend == "console":
        return ConsoleEmailSender()
    if backend == "smtp":
        if not settings.SMTP_HOST:
            raise ValueError("SMTP_HOST is required for the smtp notifier")
        return SmtpEmailSender(settings.SMTP_HOST, settings.SMTP_PORT, settings.SMTP_USER,
                               settings.SMTP_PASSWORD, settings.FROM_EMAIL)
    if backend == "http":
        if not settings.NOTIFICATION_API_URL:
            raise ValueError("NOTIFICATION_API_URL is required for the http notifier")
        return HttpEmailSender(settings.NOTIFICATION_API_URL, settings.NOTIFICATION_TIMEOUT_SECONDS)
    raise ValueError(f"Unknown NOTIFIER_BACKEND: {settings.NOTIFIER_BACKEND}")
