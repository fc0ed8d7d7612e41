"""
utils/address_validator.py
──────────────────────────
Syntax check for email addresses, used on every recipient before any SMTP
session is opened and on the configured sender at startup.

Accepted shape:  local-part @ label. [label.]* tld
  local-part : runs of [A-Za-z0-9_+-], single dots allowed between runs
  label      : [A-Za-z0-9_+-]+
  tld        : two or more letters
Matching is case-insensitive.
"""

import re
import logging

logger = logging.getLogger("mail_relay")

# ── Regex ──────────────────────────────────────────────────────────────────────
_EMAIL_REGEX = re.compile(
    r'[A-Z0-9_+\-]+(?:\.[A-Z0-9_+\-]+)*@(?:[A-Z0-9_+\-]+\.)+[A-Z]{2,}',
    re.IGNORECASE,
)


def is_valid_email(address) -> bool:
    """Returns True if `address` is a string with the accepted email shape."""
    if not isinstance(address, str):
        return False
    try:
        return _EMAIL_REGEX.fullmatch(address) is not None
    except (re.error, TypeError, ValueError) as e:
        logger.warning(f"Address match failed for {address!r}: {e}")
        return False
