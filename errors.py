from typing import List, Optional


class MailRelayError(Exception):
    """Base class for every error raised by the relay service."""


class ConfigError(MailRelayError):
    pass


class DecodeError(MailRelayError):
    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(MailRelayError):
    def __init__(self, address: str):
        super().__init__(f"Recipient email address '{address}' is not valid")
        self.address = address


class TransportError(MailRelayError):
    """A single SMTP session failed (connection, auth, or a refused envelope)."""

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class DeliveryError(MailRelayError):
    """Every delivery attempt failed. Terminal: nothing retries past this."""

    def __init__(self, attempts: int, last_error: Optional[Exception], history: Optional[List] = None):
        super().__init__(f"Delivery failed after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error
        self.history = history or []
