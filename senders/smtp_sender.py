import ssl
import smtplib
import logging
import asyncio
from typing import List, Sequence, Tuple

from errors import TransportError
from models.mailer_config import SMTPCredentials
from .base_sender import BaseSender

logger = logging.getLogger("mail_relay")

LOCAL_HOSTS = ("localhost", "127.0.0.1", "::1")


def split_address(addr: str) -> Tuple[str, int]:
    """'host:port' -> (host, port). Raises TransportError when malformed."""
    host, sep, port = addr.rpartition(":")
    if not sep or not host or not port.isdecimal():
        raise TransportError(f"Invalid relay address: {addr!r}")
    try:
        number = int(port)
    except ValueError:
        raise TransportError(f"Invalid relay address: {addr!r}")
    if not 0 < number < 65536:
        raise TransportError(f"Invalid relay port in {addr!r}")
    return host, number


class SMTPSender(BaseSender):
    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout

    async def send(
        self,
        addr: str,
        credentials: SMTPCredentials,
        sender_email: str,
        recipients: Sequence[str],
        message: bytes,
    ) -> None:
        # Wrap synchronous SMTP in a thread to keep the service responsive
        await asyncio.to_thread(
            self._send_sync,
            addr,
            credentials,
            sender_email,
            list(recipients),
            message,
        )

    def _send_sync(
        self,
        addr: str,
        credentials: SMTPCredentials,
        sender_email: str,
        recipients: List[str],
        message: bytes,
    ) -> None:
        host, port = split_address(addr)
        if credentials.host != host:
            raise TransportError(f"Credentials are bound to {credentials.host!r}, refusing to use them for {host!r}")
        try:
            # A fresh session per call; the context manager always QUITs/closes
            with smtplib.SMTP(host, port, timeout=self.timeout) as server:
                server.ehlo()
                if server.has_extn("starttls"):
                    server.starttls(context=ssl.create_default_context())
                    server.ehlo()
                elif host not in LOCAL_HOSTS:
                    raise TransportError(f"SMTP relay {addr} offers no STARTTLS, refusing to send credentials in cleartext")
                self._authenticate(server, credentials)
                self._submit(server, sender_email, recipients, message)
        except smtplib.SMTPException as e:
            raise TransportError(f"SMTP relay {addr} rejected the message: {e}") from e
        except OSError as e:
            raise TransportError(f"SMTP relay {addr} unreachable: {e}") from e

        logger.debug(f"Relay {addr} accepted message for {len(recipients)} recipient(s)")

    @staticmethod
    def _authenticate(server: smtplib.SMTP, credentials: SMTPCredentials):
        # AUTH PLAIN only; login() would prefer CRAM-MD5 when offered
        if not server.has_extn("auth"):
            raise smtplib.SMTPNotSupportedError("SMTP AUTH extension not supported by server.")
        server.user, server.password = credentials.username, credentials.password
        server.auth("PLAIN", server.auth_plain)

    @staticmethod
    def _submit(server: smtplib.SMTP, sender_email: str, recipients: List[str], message: bytes):
        # Any refused recipient aborts before DATA, so nothing is delivered partially
        code, resp = server.mail(sender_email)
        if code != 250:
            raise smtplib.SMTPSenderRefused(code, resp, sender_email)
        for recipient in recipients:
            code, resp = server.rcpt(recipient)
            if code not in (250, 251):
                raise smtplib.SMTPRecipientsRefused({recipient: (code, resp)})
        server.data(message)
