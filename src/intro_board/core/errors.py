"""Error taxonomy shared by the moderation core and the API layer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ValidationErrorKind(str, Enum):
    """Reasons a submission can fail admission."""

    AGE_TOO_LOW = "age_too_low"
    MISSING_FIELD = "missing_field"
    INTRO_INVALID = "intro_invalid"
    BANNED_CONTENT = "banned_content"
    CONSENT_REQUIRED = "consent_required"


@dataclass(frozen=True)
class ValidationError:
    """Typed admission failure returned by the content validator.

    This is a value, not an exception: rule violations are an expected
    outcome of validation.
    """

    kind: ValidationErrorKind
    message: str
    field: str | None = None


class BoardError(Exception):
    """Base class for errors raised by the board services."""

    message = "Something went wrong, please try again later"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.message
        super().__init__(self.message)


class SubmissionRejected(BoardError):
    """Raised when `submit` receives a candidate that fails admission."""

    def __init__(self, error: ValidationError) -> None:
        self.error = error
        super().__init__(error.message)


class SubmissionThrottled(BoardError):
    """Raised when a client submits again before its cooldown expires."""

    def __init__(self, retry_after: int) -> None:
        self.retry_after = retry_after
        super().__init__(
            f"You are posting too often, please try again in {retry_after} seconds",
        )


class StoreUnavailable(BoardError):
    """The post store could not complete the request."""

    message = "The board is unavailable right now, please try again later"
    permission_denied = False


class PermissionDenied(StoreUnavailable):
    """The post store's access rules rejected the request."""

    message = "The board rejected this request"
    permission_denied = True


class TransientStoreError(StoreUnavailable):
    """A store call timed out; the caller may retry."""

    message = "The board took too long to respond, please try again"


class Unauthorized(BoardError):
    """The caller is not an allow-listed moderator."""

    message = "Not authorized"


class AuthenticationFailed(BoardError):
    """Credentials were rejected by the identity provider."""

    message = "Login failed, check your email and password"


class NotFound(BoardError):
    """The target post does not exist (or is not visible to the caller)."""

    message = "Post not found"
