"""Claim submission endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path, Response, status

from phone_claim.api.dependencies import ClaimGrantDep, SessionDep, require_operator
from phone_claim.schemas.claim import (
    ADDRESS_PATTERN,
    ClaimResponse,
    ClaimSubmission,
    ClaimSubmissionResponse,
)
from phone_claim.services.claims import ClaimService, SubmitOutcome

router = APIRouter(prefix="/claims", tags=["claims"])


@router.post(
    "",
    summary="Submit a signature for a claim",
    response_model=ClaimSubmissionResponse,
    responses={status.HTTP_201_CREATED: {"description": "Claim created"}},
)
async def submit_claim(
    payload: ClaimSubmission,
    grant: ClaimGrantDep,
    db: SessionDep,
    response: Response,
) -> ClaimSubmissionResponse:
    """Create the claim on first submission, append the signature otherwise."""
    result = ClaimService(db).submit_claim(
        grant,
        address=payload.address,
        nonce=payload.nonce,
        amount=payload.amount,
        signer=payload.signer,
        signature=payload.signature,
    )
    if result.outcome is SubmitOutcome.ACCEPTED:
        response.status_code = status.HTTP_201_CREATED
    return ClaimSubmissionResponse(
        outcome=result.outcome.value,
        claim=ClaimResponse.model_validate(result.claim),
    )


@router.get(
    "/{address}/{nonce}",
    summary="Look up a claim",
    response_model=ClaimResponse,
)
async def get_claim(
    db: SessionDep,
    address: str = Path(..., pattern=ADDRESS_PATTERN),
    nonce: int = Path(..., ge=0),
) -> ClaimResponse:
    claim = ClaimService(db).get_claim(address.lower(), nonce)
    return ClaimResponse.model_validate(claim)


@router.post(
    "/{claim_id}/finalize",
    summary="Mark a ready claim as submitted",
    response_model=ClaimResponse,
    dependencies=[Depends(require_operator)],
)
async def finalize_claim(claim_id: str, db: SessionDep) -> ClaimResponse:
    """Close a claim to further signatures once it has been submitted downstream."""
    claim = ClaimService(db).finalize_claim(claim_id)
    return ClaimResponse.model_validate(claim)
