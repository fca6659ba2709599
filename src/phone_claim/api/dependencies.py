"""Shared API dependencies."""

from typing import Annotated

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from phone_claim.core.errors import ForbiddenError, UnauthorizedError
from phone_claim.core.security import ClaimGrant, decode_claim_token
from phone_claim.core.settings import settings
from phone_claim.db.session import get_db
from phone_claim.db.time import Clock, utcnow
from phone_claim.services.sms import SmsChannel, get_sms_channel

# Missing credentials are reported as our own 401 rather than FastAPI's default.
bearer_scheme = HTTPBearer(auto_error=False)

SessionDep = Annotated[Session, Depends(get_db)]


def get_sms_channel_dep() -> SmsChannel:
    return get_sms_channel()


def get_clock_dep() -> Clock:
    return utcnow


def get_claim_grant(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> ClaimGrant:
    """Decode the claim authorization token issued by OTP verification.

    Raises:
        UnauthorizedError: If the token is missing, malformed or expired.
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Claim authorization required")
    return decode_claim_token(credentials.credentials)


def require_operator(
    x_operator_key: Annotated[str | None, Header()] = None,
) -> None:
    """Allow the request only when it carries the configured operator key."""
    if not settings.operator_api_key or x_operator_key != settings.operator_api_key:
        raise ForbiddenError("Operator key required")


SmsChannelDep = Annotated[SmsChannel, Depends(get_sms_channel_dep)]
ClockDep = Annotated[Clock, Depends(get_clock_dep)]
ClaimGrantDep = Annotated[ClaimGrant, Depends(get_claim_grant)]
