from __future__ import annotations

import logging
from email.message import EmailMessage
from email.utils import formataddr

import aiosmtplib

logger = logging.getLogger(__name__)


def is_valid_address(address: str) -> bool:
    local, sep, domain = address.strip().rpartition("@")
    return bool(sep and local and "." in domain and " " not in address.strip())


class SmtpMailTransport:
    """Implements application.ports.mail.MailTransport on aiosmtplib.

    ``send`` never raises; a False result is what the retry path keys on.
    """

    def __init__(
        self,
        *,
        host: str,
        port: int,
        sender: str,
        sender_name: str | None = None,
        username: str | None = None,
        password: str | None = None,
        start_tls: bool = False,
        timeout: float = 30.0,
    ) -> None:
        self._host = host
        self._port = port
        self._sender = sender
        self._sender_name = sender_name
        self._username = username
        self._password = password
        self._start_tls = start_tls
        self._timeout = timeout

    async def send(self, address: str, subject: str, body: str) -> bool:
        if not is_valid_address(address):
            logger.warning("Refusing to send to invalid address %r", address)
            return False

        message = EmailMessage()
        message["From"] = (
            formataddr((self._sender_name, self._sender)) if self._sender_name else self._sender
        )
        message["To"] = address.strip()
        message["Subject"] = subject
        message.set_content(body)

        try:
            await aiosmtplib.send(
                message,
                hostname=self._host,
                port=self._port,
                username=self._username,
                password=self._password,
                start_tls=self._start_tls,
                timeout=self._timeout,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.warning("SMTP delivery to %s failed: %s", address, e)
            return False
        return True
