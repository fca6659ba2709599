"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .claim import ClaimResponse, ClaimSubmission, ClaimSubmissionResponse
from .otp import OtpRequest, OtpRequestResponse, OtpVerifyRequest, OtpVerifyResponse

__all__ = [
    "ClaimResponse", "ClaimSubmission", "ClaimSubmissionResponse",
    "OtpRequest", "OtpRequestResponse", "OtpVerifyRequest", "OtpVerifyResponse",
]
