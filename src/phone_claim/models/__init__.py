"""SQLAlchemy models for the phone claim service."""

from .chain import BalanceSnapshot, ClaimLimit, TransferRecord
from .claim import ClaimAuthorization, ClaimRecord, ClaimSignature, ClaimState
from .otp import OtpRecord
from .registration import RegistrationRecord

__all__ = [
    "BalanceSnapshot", "ClaimLimit", "TransferRecord",
    "ClaimAuthorization", "ClaimRecord", "ClaimSignature", "ClaimState",
    "OtpRecord",
    "RegistrationRecord",
]
