from abc import ABC, abstractmethod
from typing import Sequence

from models.mailer_config import SMTPCredentials


class BaseSender(ABC):
    @abstractmethod
    async def send(self,
             addr: str,
             credentials: SMTPCredentials,
             sender_email: str,
             recipients: Sequence[str],
             message: bytes) -> None:
        """One submission to the relay at `addr`. Raises TransportError on any failure."""
        pass
