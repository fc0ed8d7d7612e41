from typing import Sequence


def format_message(recipients: Sequence[str], subject: str, body: str) -> bytes:
    """
    Builds the DATA payload handed to the relay:
    To header, Subject header, blank line, body, each line ending in CRLF.
    Recipients are expected to be validated already.
    """
    to_header = ",".join(recipients)
    return f"To: {to_header}\r\nSubject: {subject}\r\n\r\n{body}\r\n".encode("utf-8")
