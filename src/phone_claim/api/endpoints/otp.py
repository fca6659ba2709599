"""Passcode request and verification endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from phone_claim.api.dependencies import ClockDep, SessionDep, SmsChannelDep
from phone_claim.schemas.otp import (
    OtpRequest,
    OtpRequestResponse,
    OtpVerifyRequest,
    OtpVerifyResponse,
)
from phone_claim.services.otp import OtpService

router = APIRouter(tags=["otp"])


@router.post(
    "/get_otp",
    summary="Send a one-time passcode to a phone number",
    status_code=status.HTTP_200_OK,
    response_model=OtpRequestResponse,
)
async def get_otp(
    payload: OtpRequest,
    db: SessionDep,
    sms_channel: SmsChannelDep,
    clock: ClockDep,
) -> OtpRequestResponse:
    """Register the number if needed and deliver a fresh passcode."""
    service = OtpService(db, sms_channel, clock)
    await service.request_otp(payload.phone_number, payload.nickname)
    return OtpRequestResponse(ok=True)


@router.post(
    "/verify_otp",
    summary="Redeem a one-time passcode",
    status_code=status.HTTP_200_OK,
    response_model=OtpVerifyResponse,
)
async def verify_otp(
    payload: OtpVerifyRequest,
    db: SessionDep,
    sms_channel: SmsChannelDep,
    clock: ClockDep,
) -> OtpVerifyResponse:
    """Mark the passcode used and hand back a single-use claim authorization."""
    service = OtpService(db, sms_channel, clock)
    verification = service.verify_otp(payload.phone_number, payload.code)
    return OtpVerifyResponse(
        claim_token=verification.claim_token,
        expires_in=verification.expires_in,
    )
