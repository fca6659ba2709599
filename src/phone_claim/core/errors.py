"""Error taxonomy shared by the OTP and claim services.

Every error carries the HTTP status it maps to and a message that is safe to
return to clients. `InternalError` never exposes its detail; the detail is
only logged server-side.
"""

from __future__ import annotations


class PhoneClaimError(RuntimeError):
    """Base exception for all domain failures."""

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConflictError(PhoneClaimError):
    """Raised when a uniqueness constraint loses a race or a state is incompatible."""

    status_code = 409


class RateLimitedError(PhoneClaimError):
    """Raised while the OTP cooldown window has not elapsed."""

    status_code = 400


class NotFoundError(PhoneClaimError):
    """Raised when the requested record does not exist."""

    status_code = 404


class ExpiredError(PhoneClaimError):
    """Raised when a passcode is older than its validity window."""

    status_code = 400


class InvalidError(PhoneClaimError):
    """Raised when a submission is well-formed but rejected."""

    status_code = 400


class UnauthorizedError(PhoneClaimError):
    """Raised when a claim authorization token is missing or invalid."""

    status_code = 401


class ForbiddenError(PhoneClaimError):
    """Raised when an operator-only action is attempted without the operator key."""

    status_code = 403


class InternalError(PhoneClaimError):
    """Raised on storage or delivery failure."""

    status_code = 500
    client_message = "Internal server error"

    def __init__(self, detail: str) -> None:
        super().__init__(self.client_message)
        self.detail = detail

    def __str__(self) -> str:
        return self.detail
