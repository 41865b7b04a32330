"""
Error taxonomy for LinkTrack.

Every condition here is recoverable and caller-visible. Validation errors
subclass ValueError and lookup errors subclass LookupError so callers that
only know the builtin hierarchy still catch them.
"""

__all__ = [
    "LinkTrackError",
    "InvalidUrlError",
    "InvalidCodeError",
    "DuplicateCodeError",
    "LinkNotFoundError",
    "LinkInactiveError",
    "CapacityError",
    "InvalidRequestError",
]


class LinkTrackError(Exception):
    """Base class for all LinkTrack errors."""

    default_message = "LinkTrack error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.default_message)


class InvalidUrlError(LinkTrackError, ValueError):
    """Destination URL is not an absolute http(s) URL."""

    default_message = "Invalid URL format"


class InvalidCodeError(LinkTrackError, ValueError):
    """Custom short code contains disallowed characters or is too long."""

    default_message = "Invalid short code"


class DuplicateCodeError(LinkTrackError, ValueError):
    """Custom short code is already used by another link."""

    default_message = "Custom code already exists"


class LinkNotFoundError(LinkTrackError, LookupError):
    default_message = "Link not found"


class LinkInactiveError(LinkTrackError):
    default_message = "Link is inactive"


class CapacityError(LinkTrackError, RuntimeError):
    """Short-code generation exhausted its attempts without a free code."""

    default_message = "Could not allocate a unique short code"


class InvalidRequestError(LinkTrackError, ValueError):
    """A required request field is missing or empty."""

    default_message = "Invalid request"
