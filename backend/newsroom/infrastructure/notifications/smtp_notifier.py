"""SMTP adapter for the Notifier port.

smtplib is blocking, so every send runs in a worker thread.
"""

import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from newsroom.application.interfaces import Notifier
from newsroom.domain.exceptions import DependencyFailureError

logger = logging.getLogger(__name__)


class SMTPNotifier(Notifier):
    """Sends HTML email through a single SMTP relay."""

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        timeout: float = 30.0,
    ):
        self._host = host
        self._port = port
        self._sender = sender
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._timeout = timeout

    async def send(self, recipient: str, subject: str, body_html: str) -> None:
        message = self._build_message(recipient, subject, body_html)
        try:
            await asyncio.to_thread(self._deliver, recipient, message)
        except (smtplib.SMTPException, OSError) as exc:
            raise DependencyFailureError("notifier", f"Could not send to {recipient}: {exc}") from exc
        logger.debug("Sent '%s' to %s", subject, recipient)

    def _build_message(self, recipient: str, subject: str, body_html: str) -> MIMEMultipart:
        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = self._sender
        message["To"] = recipient
        message.attach(MIMEText(body_html, "html", "utf-8"))
        return message

    def _deliver(self, recipient: str, message: MIMEMultipart) -> None:
        with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as smtp:
            if self._use_tls:
                smtp.starttls()
            if self._username:
                smtp.login(self._username, self._password)
            smtp.sendmail(self._sender, [recipient], message.as_string())
