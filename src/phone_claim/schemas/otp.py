"""OTP request and verification schemas."""

from pydantic import BaseModel, Field

from phone_claim.utils.phone import E164_PATTERN, NICKNAME_PATTERN


class OtpRequest(BaseModel):
    """Request for a new passcode."""

    phone_number: str = Field(..., pattern=E164_PATTERN, description="E.164 phone number")
    nickname: str = Field(..., pattern=NICKNAME_PATTERN, description="1-20 ASCII letters")


class OtpRequestResponse(BaseModel):
    ok: bool = True


class OtpVerifyRequest(BaseModel):
    """Submission of a received passcode."""

    phone_number: str = Field(..., pattern=E164_PATTERN, description="E.164 phone number")
    code: str = Field(..., min_length=1, max_length=16, description="Passcode exactly as received")


class OtpVerifyResponse(BaseModel):
    """Successful verification, carrying a single-use claim authorization."""

    ok: bool = True
    claim_token: str = Field(..., description="JWT authorizing one claim submission")
    token_type: str = Field("bearer", description="Token type (always 'bearer')")
    expires_in: int = Field(..., description="Token lifetime in seconds")
