import logging
from email.mime.text import MIMEText

import aiosmtplib

from core.config import settings

log = logging.getLogger("notifications.email")


class EmailClient:
    """
    Plain-text email over SMTP (aiosmtplib).
    Without SMTP_HOST the message is logged and not sent (local / dev setups).
    """

    def __init__(self) -> None:
        self.host = settings.SMTP_HOST
        self.port = settings.SMTP_PORT
        self.username = settings.SMTP_USER or None
        self.password = settings.SMTP_PASSWORD or None
        self.sender = settings.SMTP_FROM
        self.start_tls = settings.SMTP_START_TLS
        self.timeout = settings.NOTIFY_TIMEOUT_SECONDS

    @property
    def configured(self) -> bool:
        return bool(self.host)

    async def send(self, to: str, subject: str, body: str) -> bool:
        if not self.configured:
            log.info("SMTP_HOST not set; email to %s not sent (subject=%r)", to, subject)
            return False

        msg = MIMEText(body)
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = to

        await aiosmtplib.send(
            msg,
            hostname=self.host,
            port=self.port,
            username=self.username,
            password=self.password,
            start_tls=self.start_tls,
            timeout=self.timeout,
        )
        return True
