"""
Input validation for link creation.

- URLs must be absolute http/https with a host (no javascript:, ftp:, relative paths).
- Custom short codes must be Base62 only and at most 32 characters, so they stay
  URL-safe and case-sensitive like generated codes.
"""

import re
from urllib.parse import urlparse

from linktrack.errors import InvalidCodeError, InvalidUrlError

MAX_CODE_LENGTH = 32
_CODE_PATTERN = re.compile(r"^[0-9a-zA-Z]+$")


def validate_url(url: str) -> None:
    """
    Raises:
        InvalidUrlError: If the URL is empty, relative, or not http(s).
    """
    if not url or not isinstance(url, str):
        raise InvalidUrlError()
    try:
        parsed = urlparse(url.strip())
    except ValueError as exc:
        raise InvalidUrlError() from exc
    if parsed.scheme not in {"http", "https"} or not parsed.hostname:
        raise InvalidUrlError()


def validate_code(code: str) -> None:
    if not _CODE_PATTERN.match(code or ""):
        raise InvalidCodeError("Short code must contain only 0-9a-zA-Z")
    if len(code) > MAX_CODE_LENGTH:
        raise InvalidCodeError("Short code too long")
