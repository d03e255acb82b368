"""
Error kinds raised by the room and cipher layers.

Everything here derives from EmeraldError so the HTTP boundary can turn
any of them into a ``{"success": false, "error": ...}`` body.
"""


class EmeraldError(Exception):
    """Base class for every failure the service reports to a client."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(EmeraldError):
    """A room (or its message log) is absent from the store."""


class InvalidCredentials(EmeraldError):
    """Password hash did not match on join or delete."""


class PrimitiveFailure(EmeraldError):
    """The crypto or randomness backend is unusable. Never retried."""


class CaptchaRejected(EmeraldError):
    """The CAPTCHA provider refused the token."""


class BadRequest(EmeraldError):
    """A request body is missing a field or carries the wrong type."""
