"""
config.py
─────────
Builds the process-wide MailerConfig from environment variables, once, at
startup. A `.env` file in the working directory is honoured.

Required:  SENDER_EMAIL, EMAIL_PASSWORD, SMTP_SERVER, SMTP_PORT
Optional:  SMTP_TIMEOUT (seconds, default 30)
"""

import os
import logging
from typing import Mapping, Optional

from dotenv import load_dotenv

from errors import ConfigError
from models.mailer_config import MailerConfig
from utils.address_validator import is_valid_email

logger = logging.getLogger("mail_relay")

REQUIRED_VARS = {
    "SENDER_EMAIL": "sender_email",
    "EMAIL_PASSWORD": "password",
    "SMTP_SERVER": "smtp_server",
    "SMTP_PORT": "smtp_port",
}


def load_mailer_config(environ: Optional[Mapping[str, str]] = None) -> MailerConfig:
    """Raises ConfigError when a variable is missing or the sender address is invalid."""
    if environ is None:
        load_dotenv()
        environ = os.environ

    # The password is used exactly as given; only the non-secret values are trimmed
    values = {
        field: (environ.get(var) or "") if field == "password" else (environ.get(var) or "").strip()
        for var, field in REQUIRED_VARS.items()
    }
    missing = [var for var, field in REQUIRED_VARS.items() if not values[field]]
    if missing:
        raise ConfigError(f"One or more environment variables are not set: {', '.join(missing)}")

    if not is_valid_email(values["sender_email"]):
        raise ConfigError("Sender email address is not valid.")

    if not values["smtp_port"].isdecimal() or not 0 < int(values["smtp_port"]) < 65536:
        raise ConfigError(f"SMTP_PORT must be a port number, got {values['smtp_port']!r}")

    raw_timeout = (environ.get("SMTP_TIMEOUT") or "30").strip()
    try:
        timeout = float(raw_timeout)
    except ValueError:
        raise ConfigError(f"SMTP_TIMEOUT must be a number of seconds, got {raw_timeout!r}")
    if timeout <= 0:
        raise ConfigError(f"SMTP_TIMEOUT must be positive, got {raw_timeout!r}")

    config = MailerConfig(smtp_timeout=timeout, **values)
    logger.info(f"Loaded mail relay config: sender={config.sender_email} relay={config.relay_address}")
    return config
