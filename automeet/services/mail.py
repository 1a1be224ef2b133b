"""
Mail transports for participant notifications.

Two interchangeable transports: the SendGrid v3 API (when an API key is
configured) and plain SMTP. The choice is made once at startup by
build_transport and injected into the notification dispatcher.
"""

import asyncio
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage
from email.utils import formataddr

import httpx

from automeet.config import Settings, settings
from automeet.core.exceptions import NotificationFailure
from automeet.core.logging import get_logger

log = get_logger(__name__)

SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"


class NotificationTransport(ABC):
    """Sends a single HTML email."""

    name: str = "transport"

    @abstractmethod
    async def send(self, to: str, subject: str, html: str) -> None:
        """
        Deliver one message.

        Raises:
            NotificationFailure: If the provider rejects or cannot be reached
        """

    async def close(self) -> None:
        """Release any held resources."""


class SendGridTransport(NotificationTransport):
    """SendGrid v3 mail/send API."""

    name = "sendgrid"

    def __init__(
        self,
        api_key: str,
        from_email: str,
        from_name: str = "AutoMeet",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.from_email = from_email
        self.from_name = from_name
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def send(self, to: str, subject: str, html: str) -> None:
        payload = {
            "personalizations": [{"to": [{"email": to}]}],
            "from": {"email": self.from_email, "name": self.from_name},
            "subject": subject,
            "content": [{"type": "text/html", "value": html}],
        }
        try:
            response = await self._client.post(
                SENDGRID_URL,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NotificationFailure(
                f"SendGrid error {e.response.status_code}: {e.response.text}"
            ) from e
        except httpx.RequestError as e:
            raise NotificationFailure(f"Failed to reach SendGrid: {e}") from e

    async def close(self) -> None:
        await self._client.aclose()


class SMTPTransport(NotificationTransport):
    """SMTP with STARTTLS, or implicit TLS when ``secure`` is set."""

    name = "smtp"

    def __init__(
        self,
        host: str,
        port: int,
        user: str = "",
        password: str = "",
        from_email: str = "",
        from_name: str = "AutoMeet",
        secure: bool = False,
        timeout: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.from_email = from_email or user
        self.from_name = from_name
        self.secure = secure
        self.timeout = timeout

    def _build_message(self, to: str, subject: str, html: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = formataddr((self.from_name, self.from_email))
        message["To"] = to
        message["Subject"] = subject
        message.set_content(html, subtype="html")
        return message

    def _send_blocking(self, message: EmailMessage) -> None:
        smtp_class = smtplib.SMTP_SSL if self.secure else smtplib.SMTP
        with smtp_class(self.host, self.port, timeout=self.timeout) as server:
            if not self.secure:
                server.ehlo()
                if server.has_extn("starttls"):
                    server.starttls()
                    server.ehlo()
            if self.user:
                server.login(self.user, self.password)
            server.send_message(message)

    async def send(self, to: str, subject: str, html: str) -> None:
        message = self._build_message(to, subject, html)
        try:
            await asyncio.to_thread(self._send_blocking, message)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationFailure(f"SMTP send failed: {e}") from e


def build_transport(config: Settings | None = None) -> NotificationTransport:
    """Pick the process-wide transport: SendGrid if keyed, else SMTP."""
    config = config or settings
    if config.use_sendgrid:
        log.info("mail_transport_selected", transport=SendGridTransport.name)
        return SendGridTransport(
            api_key=config.sendgrid_api_key,
            from_email=config.from_email,
            from_name=config.mail_from_name,
            timeout=config.mail_timeout_seconds,
        )

    log.info("mail_transport_selected", transport=SMTPTransport.name, host=config.smtp_host)
    return SMTPTransport(
        host=config.smtp_host,
        port=config.smtp_port,
        user=config.smtp_user,
        password=config.smtp_pass,
        from_email=config.from_email,
        from_name=config.mail_from_name,
        secure=config.smtp_secure,
        timeout=config.mail_timeout_seconds,
    )
