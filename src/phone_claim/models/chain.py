"""Tables populated by the external chain indexer.

The service maps them so migrations own the full schema, but never writes to
them.
"""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from phone_claim.db.session import Base


class TransferRecord(Base):
    """A USDC transfer observed on chain."""

    __tablename__ = "transfer_usdc"

    transfer_id: Mapped[str] = mapped_column(Text, primary_key=True)
    network: Mapped[str | None] = mapped_column(Text)
    block_hash: Mapped[str | None] = mapped_column(Text)
    block_number: Mapped[int | None] = mapped_column(BigInteger)
    block_timestamp: Mapped[datetime | None] = mapped_column(DateTime(timezone=False))
    transaction_hash: Mapped[str | None] = mapped_column(Text)
    from_address: Mapped[str | None] = mapped_column(Text)
    to_address: Mapped[str | None] = mapped_column(Text)
    amount: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False))
    cursor: Mapped[int | None] = mapped_column("_cursor", BigInteger)


class BalanceSnapshot(Base):
    """A USDC balance of an address at a block."""

    __tablename__ = "balance_usdc"

    # The indexer table has no natural key; the surrogate id exists for the ORM only.
    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    network: Mapped[str | None] = mapped_column(Text)
    block_number: Mapped[int | None] = mapped_column(BigInteger)
    block_timestamp: Mapped[datetime | None] = mapped_column(DateTime(timezone=False))
    address: Mapped[str | None] = mapped_column(Text)
    balance: Mapped[str | None] = mapped_column(Text)
    cursor: Mapped[int | None] = mapped_column("_cursor", BigInteger)


class ClaimLimit(Base):
    """Per-address claim limit snapshot used as an external rate input."""

    __tablename__ = "mock_limit"

    address: Mapped[str] = mapped_column(Text, primary_key=True)
    limit: Mapped[str | None] = mapped_column(Text)
    block_timestamp: Mapped[datetime | None] = mapped_column(DateTime(timezone=False))
