"""Claim records, their signatures and consumed authorizations."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    DateTime,
    ForeignKey,
    Integer,
    SmallInteger,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from phone_claim.db.session import Base
from phone_claim.db.time import utcnow


class ClaimState(str, enum.Enum):
    """Quorum progress of a claim."""

    COLLECTING = "collecting"  # fewer signatures than required
    READY = "ready"            # threshold reached, awaiting submission
    FINALIZED = "finalized"    # submitted downstream, closed to new signatures


class ClaimRecord(Base):
    """A claim for `amount` to `address`, unique per (address, nonce)."""

    __tablename__ = "claims"
    __table_args__ = (UniqueConstraint("address", "nonce", name="uq_claims_address_nonce"),)

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    amount: Mapped[str] = mapped_column(Text, nullable=False)
    nonce: Mapped[int] = mapped_column(BigInteger, nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    required_signatures: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=1)
    state: Mapped[str] = mapped_column(
        Text, nullable=False, default=ClaimState.COLLECTING.value
    )

    signature_rows: Mapped[list[ClaimSignature]] = relationship(
        "ClaimSignature",
        back_populates="claim",
        cascade="all, delete-orphan",
        order_by="ClaimSignature.id",
    )

    @property
    def signatures(self) -> list[str]:
        """Return the signatures in the order they were accepted."""
        return [row.signature for row in self.signature_rows]

    @property
    def signers(self) -> list[str]:
        return [row.signer for row in self.signature_rows]


class ClaimSignature(Base):
    """One signer's signature on a claim.

    The composite unique constraint rejects a second signature from the same
    signer, including under concurrent submission.
    """

    __tablename__ = "claim_signature"
    __table_args__ = (UniqueConstraint("claim_id", "signer", name="uq_claim_signature_signer"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    claim_id: Mapped[str] = mapped_column(
        Text, ForeignKey("claims.id", ondelete="CASCADE"), nullable=False, index=True
    )
    signer: Mapped[str] = mapped_column(Text, nullable=False)
    signature: Mapped[str] = mapped_column(Text, nullable=False)

    claim: Mapped[ClaimRecord] = relationship("ClaimRecord", back_populates="signature_rows")


class ClaimAuthorization(Base):
    """A consumed claim authorization token.

    Existence of the row means the token has been spent.
    """

    __tablename__ = "claim_authorization"

    token_id: Mapped[str] = mapped_column(Text, primary_key=True)
    phone_number: Mapped[str] = mapped_column(Text, nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    nonce: Mapped[int] = mapped_column(BigInteger, nullable=False)
    consumed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
