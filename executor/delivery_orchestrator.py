import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from errors import DeliveryError, TransportError, ValidationError
from models.delivery_attempt import AttemptOutcome, DeliveryAttempt
from models.email_request import EmailRequest
from models.mailer_config import MailerConfig
from senders.base_sender import BaseSender
from utils.address_validator import is_valid_email
from utils.message_formatter import format_message
from utils.retry import DEFAULT_RETRY_POLICY, DeliveryState, RetryPolicy

logger = logging.getLogger("mail_relay")


class DeliveryOrchestrator:
    """
    Validates, formats and relays one EmailRequest.

    Delivery runs the bounded state machine described by RetryPolicy:
    every transport failure either moves to BACKOFF (then the next attempt)
    or, on the last attempt, to EXHAUSTED, which raises DeliveryError.
    """

    def __init__(
        self,
        sender: BaseSender,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.sender = sender
        self.retry_policy = retry_policy
        self.sleep = sleep

    async def deliver(self, request: EmailRequest, config: MailerConfig) -> List[DeliveryAttempt]:
        """
        Returns the attempt history on success.
        Raises ValidationError before any transport call if a recipient is invalid,
        DeliveryError once every attempt has failed.
        """
        for recipient in request.recipients:
            if not is_valid_email(recipient):
                logger.warning(f"Rejected invalid recipient: {recipient!r}")
                raise ValidationError(recipient)

        # Formatted once, reused verbatim on every attempt
        message = format_message(request.recipients, request.subject, request.message)

        history: List[DeliveryAttempt] = []
        last_error: Optional[Exception] = None
        attempt = 1
        state = DeliveryState.ATTEMPTING

        while state is DeliveryState.ATTEMPTING:
            try:
                await self.sender.send(
                    config.relay_address,
                    config.credentials,
                    config.sender_email,
                    request.recipients,
                    message,
                )
            except TransportError as e:
                last_error = e
                state = self.retry_policy.next_state(attempt, succeeded=False)
            else:
                state = self.retry_policy.next_state(attempt, succeeded=True)

            if state is DeliveryState.SUCCESS:
                history.append(DeliveryAttempt(ordinal=attempt, outcome=AttemptOutcome.SUCCESS))
                logger.info(f"Email relayed to {len(request.recipients)} recipient(s) on attempt {attempt}")
                return history

            if state is DeliveryState.EXHAUSTED:
                history.append(
                    DeliveryAttempt(ordinal=attempt, outcome=AttemptOutcome.FAILURE, error=str(last_error))
                )
                logger.error(f"Attempt {attempt} failed, giving up after {attempt} attempts. Last error: {last_error}")
                raise DeliveryError(attempts=attempt, last_error=last_error, history=history)

            # BACKOFF
            delay = self.retry_policy.backoff_after(attempt)
            history.append(
                DeliveryAttempt(
                    ordinal=attempt,
                    outcome=AttemptOutcome.FAILURE,
                    error=str(last_error),
                    backoff_seconds=delay,
                )
            )
            logger.warning(f"Attempt {attempt} failed, retrying in {delay:g}s... ({last_error})")
            await self.sleep(delay)
            attempt += 1
            state = DeliveryState.ATTEMPTING
