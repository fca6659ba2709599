"""Claim records keyed by (address, nonce) and their accumulating signatures.

The first submission for a pair creates the record; later submissions append
a signature to it. Creation is "insert, and on a uniqueness conflict fall back
to append", so two simultaneous first submissions both succeed: one as
accepted, the other as appended.

Each claim moves through `collecting -> ready -> finalized`. It becomes ready
once it holds `required_signatures` distinct signers, and finalized when the
downstream submitter records the on-chain claim.
"""

from __future__ import annotations

import enum
import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import func, insert, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from phone_claim.core.errors import (
    ConflictError,
    InternalError,
    InvalidError,
    NotFoundError,
    PhoneClaimError,
)
from phone_claim.core.security import ClaimGrant, claim_message, verify_signature
from phone_claim.core.settings import settings
from phone_claim.models import ClaimAuthorization, ClaimRecord, ClaimSignature, ClaimState
from phone_claim.utils.phone import phone_last4

logger = logging.getLogger(__name__)


class SubmitOutcome(str, enum.Enum):
    ACCEPTED = "accepted"
    APPENDED = "appended"


@dataclass(frozen=True)
class ClaimSubmissionResult:
    outcome: SubmitOutcome
    claim: ClaimRecord


class ClaimService:
    """Create claims, accumulate signatures and track quorum."""

    def __init__(self, db: Session, required_signatures: int | None = None) -> None:
        self.db = db
        if required_signatures is None:
            required_signatures = settings.claim_signature_threshold
        if required_signatures < 1:
            raise ValueError("required_signatures must be at least 1")
        self.required_signatures = required_signatures

    def _find_claim(self, address: str, nonce: int) -> ClaimRecord | None:
        return (
            self.db.query(ClaimRecord)
            .filter(ClaimRecord.address == address, ClaimRecord.nonce == nonce)
            .first()
        )

    def get_claim(self, address: str, nonce: int) -> ClaimRecord:
        """Return the claim for (address, nonce) or raise `NotFoundError`."""
        claim = self._find_claim(address, nonce)
        if claim is None:
            raise NotFoundError("Claim not found")
        return claim

    def _consume_grant(self, grant: ClaimGrant, address: str, nonce: int) -> None:
        try:
            with self.db.begin_nested():
                self.db.execute(
                    insert(ClaimAuthorization).values(
                        token_id=grant.token_id,
                        phone_number=grant.phone_number,
                        address=address,
                        nonce=nonce,
                    )
                )
        except IntegrityError as err:
            raise InvalidError("Claim authorization already used") from err

    def _create_claim(self, address: str, nonce: int, amount: str) -> ClaimRecord | None:
        """Insert a new claim; return None if another submission created it first."""
        claim_id = str(uuid.uuid4())
        try:
            with self.db.begin_nested():
                self.db.execute(
                    insert(ClaimRecord).values(
                        id=claim_id,
                        address=address,
                        nonce=nonce,
                        amount=amount,
                        required_signatures=self.required_signatures,
                        state=ClaimState.COLLECTING.value,
                    )
                )
        except IntegrityError:
            logger.info("Claim %s/%d created concurrently; appending instead", address, nonce)
            return None
        return self.db.get(ClaimRecord, claim_id)

    @staticmethod
    def _check_appendable(claim: ClaimRecord, amount: str, signer: str) -> None:
        if claim.state == ClaimState.FINALIZED.value:
            raise InvalidError("Claim is already finalized")
        if claim.amount != amount:
            raise InvalidError("Claim amount mismatch")
        if signer in claim.signers:
            raise InvalidError("Duplicate signer")

    def _append_signature(self, claim_id: str, signer: str, signature: str) -> None:
        try:
            with self.db.begin_nested():
                self.db.execute(
                    insert(ClaimSignature).values(
                        claim_id=claim_id,
                        signer=signer,
                        signature=signature,
                    )
                )
        except IntegrityError as err:
            raise InvalidError("Duplicate signer") from err

    def _promote_if_ready(self, claim: ClaimRecord) -> None:
        count = (
            self.db.query(func.count(ClaimSignature.id))
            .filter(ClaimSignature.claim_id == claim.id)
            .scalar()
        )
        if count < claim.required_signatures:
            return
        result = self.db.execute(
            update(ClaimRecord)
            .where(
                ClaimRecord.id == claim.id,
                ClaimRecord.state == ClaimState.COLLECTING.value,
            )
            .values(state=ClaimState.READY.value)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            logger.info("Claim %s reached %d signatures and is ready", claim.id, count)

    def submit_claim(
        self,
        grant: ClaimGrant,
        address: str,
        nonce: int,
        amount: str,
        signer: str,
        signature: str,
    ) -> ClaimSubmissionResult:
        """Record `signer`'s signature on the claim for (address, nonce).

        The grant is consumed in the same transaction as the claim write, so a
        rejected submission leaves it unspent.

        Raises:
            InvalidError: Bad signature, reused grant, duplicate signer,
                amount mismatch or finalized claim.
            InternalError: Storage failure.
        """
        if not verify_signature(signer, claim_message(address, nonce, amount), signature):
            raise InvalidError("Invalid claim signature")

        try:
            self._consume_grant(grant, address, nonce)

            outcome = SubmitOutcome.APPENDED
            claim = self._find_claim(address, nonce)
            if claim is None:
                claim = self._create_claim(address, nonce, amount)
                if claim is None:
                    claim = self._find_claim(address, nonce)
                    if claim is None:
                        raise InternalError(
                            f"claim {address}/{nonce} missing after uniqueness conflict"
                        )
                else:
                    outcome = SubmitOutcome.ACCEPTED

            if outcome is SubmitOutcome.APPENDED:
                self._check_appendable(claim, amount, signer)
            self._append_signature(claim.id, signer, signature)
            self._promote_if_ready(claim)
            self.db.commit()
        except PhoneClaimError:
            self.db.rollback()
            raise
        except SQLAlchemyError as err:
            self.db.rollback()
            logger.error("Failed to store claim %s/%d", address, nonce, exc_info=True)
            raise InternalError(f"claim write failed: {err}") from err

        logger.info(
            "Claim %s/%d %s signature from %s (authorized by %s)",
            address,
            nonce,
            outcome.value,
            signer[:16],
            phone_last4(grant.phone_number),
        )
        return ClaimSubmissionResult(outcome=outcome, claim=self.get_claim(address, nonce))

    def finalize_claim(self, claim_id: str) -> ClaimRecord:
        """Mark a ready claim as submitted downstream.

        Raises:
            NotFoundError: Unknown claim id.
            ConflictError: The claim is not in the ready state.
        """
        claim = self.db.get(ClaimRecord, claim_id)
        if claim is None:
            raise NotFoundError("Claim not found")

        result = self.db.execute(
            update(ClaimRecord)
            .where(
                ClaimRecord.id == claim_id,
                ClaimRecord.state == ClaimState.READY.value,
            )
            .values(state=ClaimState.FINALIZED.value)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            claim = self.db.get(ClaimRecord, claim_id)
            if claim is not None and claim.state == ClaimState.FINALIZED.value:
                raise ConflictError("Claim is already finalized")
            raise ConflictError("Claim is not ready")
        self.db.commit()
        logger.info("Claim %s finalized", claim_id)

        finalized = self.db.get(ClaimRecord, claim_id)
        if finalized is None:
            raise InternalError(f"claim {claim_id} disappeared after finalization")
        return finalized
