from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from pydantic import ValidationError as PayloadValidationError
from typing import Optional
import os
import sys
import json
import asyncio
import logging

from config import load_mailer_config
from errors import ConfigError, DecodeError, DeliveryError, ValidationError
from executor.delivery_orchestrator import DeliveryOrchestrator
from models.email_request import EmailRequest
from models.mailer_config import MailerConfig
from senders.base_sender import BaseSender
from senders.smtp_sender import SMTPSender

logger = logging.getLogger("mail_relay")

LISTEN_PORT = 8080
SEND_EMAIL_PATH = "/send-email"
SUCCESS_MESSAGE = "Email has been sent successfully!"
METHOD_NOT_ALLOWED_MESSAGE = "Only POST Method is allowed."
DELIVERY_FAILED_MESSAGE = "Failed to send an email after multiple attempts."


def configure_logging():
    """Console logging always, plus a log file when LOG_FILE is set."""
    handlers = [logging.StreamHandler()]
    log_file = os.getenv("LOG_FILE")
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
        handlers=handlers
    )


def decode_email_request(raw: bytes) -> EmailRequest:
    try:
        payload = json.loads(raw)
    except ValueError as e:
        raise DecodeError(str(e))
    try:
        return EmailRequest.model_validate(payload)
    except PayloadValidationError as e:
        raise DecodeError(str(e))


def get_orchestrator(request: Request) -> DeliveryOrchestrator:
    return request.app.state.orchestrator


def get_config(request: Request) -> MailerConfig:
    return request.app.state.config


router = APIRouter()


@router.get("/health")
async def health_check():
    return {"status": "ok"}


@router.post(SEND_EMAIL_PATH, response_class=PlainTextResponse)
async def send_email(
    request: Request,
    orchestrator: DeliveryOrchestrator = Depends(get_orchestrator),
    config: MailerConfig = Depends(get_config),
):
    try:
        email_request = decode_email_request(await request.body())
    except DecodeError as e:
        logger.warning(f"Could not decode request body: {e.detail}")
        return PlainTextResponse(e.detail, status_code=400)

    logger.info(f"Received send request for {len(email_request.recipients)} recipient(s)")

    try:
        # Shielded: a client disconnect must not interrupt a delivery in progress
        await asyncio.shield(orchestrator.deliver(email_request, config))
    except ValidationError as e:
        return PlainTextResponse(str(e), status_code=400)
    except DeliveryError:
        # The orchestrator has already logged the last relay error
        return PlainTextResponse(DELIVERY_FAILED_MESSAGE, status_code=500)

    return PlainTextResponse(SUCCESS_MESSAGE, status_code=200)


async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException):
    # Every verb the router rejects on /send-email gets the same plain-text 405
    if exc.status_code == 405 and request.url.path == SEND_EMAIL_PATH:
        return PlainTextResponse(METHOD_NOT_ALLOWED_MESSAGE, status_code=405, headers={"Allow": "POST"})
    return await http_exception_handler(request, exc)


def create_app(
    config: MailerConfig,
    sender: Optional[BaseSender] = None,
    orchestrator: Optional[DeliveryOrchestrator] = None,
) -> FastAPI:
    """The config is fixed for the app's lifetime; handlers read it from app.state."""
    app = FastAPI(title="Mail Relay Service")
    app.state.config = config
    if orchestrator is None:
        orchestrator = DeliveryOrchestrator(sender or SMTPSender(timeout=config.smtp_timeout))
    app.state.orchestrator = orchestrator
    app.include_router(router)
    app.add_exception_handler(StarletteHTTPException, method_not_allowed_handler)
    return app


def main():
    configure_logging()
    try:
        config = load_mailer_config()
    except ConfigError as e:
        logger.critical(f"Invalid configuration: {e}")
        sys.exit(1)

    import uvicorn
    logger.info(f"Server starting on Port {LISTEN_PORT}...")
    uvicorn.run(create_app(config), host="0.0.0.0", port=LISTEN_PORT)


if __name__ == "__main__":
    main()
