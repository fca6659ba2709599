"""Claim submission schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

ADDRESS_PATTERN = r"^0x[0-9a-fA-F]{40}$"
AMOUNT_PATTERN = r"^[0-9]{1,78}$"


class ClaimSubmission(BaseModel):
    """A signer's signature over a claim."""

    address: str = Field(..., pattern=ADDRESS_PATTERN, description="Recipient address")
    nonce: int = Field(..., ge=0, description="Claim nonce, unique per address")
    amount: str = Field(..., pattern=AMOUNT_PATTERN, description="Amount in base units")
    signer: str = Field(
        ..., pattern=r"^[0-9a-fA-F]{64}$", description="Hex-encoded Ed25519 public key"
    )
    signature: str = Field(
        ..., pattern=r"^[0-9a-fA-F]{128}$", description="Hex-encoded Ed25519 signature"
    )

    @field_validator("address", "signer", "signature")
    @classmethod
    def _lowercase_hex(cls, value: str) -> str:
        return value.lower()


class ClaimResponse(BaseModel):
    """Public view of a claim record."""

    id: str
    address: str
    nonce: int
    amount: str
    signatures: list[str]
    required_signatures: int
    state: str

    model_config = ConfigDict(from_attributes=True)


class ClaimSubmissionResponse(BaseModel):
    outcome: Literal["accepted", "appended"]
    claim: ClaimResponse
