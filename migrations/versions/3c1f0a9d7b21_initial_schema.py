"""initial schema

Revision ID: 3c1f0a9d7b21
Revises:
Create Date: 2026-10-12 09:14:03.511204

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3c1f0a9d7b21"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create registration, OTP, claim and indexer tables."""
    op.create_table(
        "registration",
        sa.Column("phone_number", sa.Text(), nullable=False),
        sa.Column("nickname", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("contract_address", sa.Text(), nullable=False, server_default=""),
        sa.Column("is_confirmed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint("phone_number"),
    )
    op.create_table(
        "otp",
        sa.Column("phone_number", sa.Text(), nullable=False),
        sa.Column("code", sa.Text(), nullable=False),
        sa.Column("used", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("phone_number"),
    )
    op.create_table(
        "claims",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("amount", sa.Text(), nullable=False),
        sa.Column("nonce", sa.BigInteger(), nullable=False),
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column("required_signatures", sa.SmallInteger(), nullable=False),
        sa.Column("state", sa.Text(), nullable=False, server_default="collecting"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("address", "nonce", name="uq_claims_address_nonce"),
    )
    op.create_table(
        "claim_signature",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("claim_id", sa.Text(), nullable=False),
        sa.Column("signer", sa.Text(), nullable=False),
        sa.Column("signature", sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(["claim_id"], ["claims.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("claim_id", "signer", name="uq_claim_signature_signer"),
    )
    op.create_index("ix_claim_signature_claim_id", "claim_signature", ["claim_id"])
    op.create_table(
        "claim_authorization",
        sa.Column("token_id", sa.Text(), nullable=False),
        sa.Column("phone_number", sa.Text(), nullable=False),
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column("nonce", sa.BigInteger(), nullable=False),
        sa.Column("consumed_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("token_id"),
    )

    # Populated by the chain indexer.
    op.create_table(
        "transfer_usdc",
        sa.Column("transfer_id", sa.Text(), nullable=False),
        sa.Column("network", sa.Text()),
        sa.Column("block_hash", sa.Text()),
        sa.Column("block_number", sa.BigInteger()),
        sa.Column("block_timestamp", sa.DateTime(timezone=False)),
        sa.Column("transaction_hash", sa.Text()),
        sa.Column("from_address", sa.Text()),
        sa.Column("to_address", sa.Text()),
        sa.Column("amount", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=False)),
        sa.Column("_cursor", sa.BigInteger()),
        sa.PrimaryKeyConstraint("transfer_id"),
    )
    op.create_table(
        "balance_usdc",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("network", sa.Text()),
        sa.Column("block_number", sa.BigInteger()),
        sa.Column("block_timestamp", sa.DateTime(timezone=False)),
        sa.Column("address", sa.Text()),
        sa.Column("balance", sa.Text()),
        sa.Column("_cursor", sa.BigInteger()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "mock_limit",
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column("limit", sa.Text()),
        sa.Column("block_timestamp", sa.DateTime(timezone=False)),
        sa.PrimaryKeyConstraint("address"),
    )


def downgrade() -> None:
    """Drop every table created by this revision."""
    op.drop_table("mock_limit")
    op.drop_table("balance_usdc")
    op.drop_table("transfer_usdc")
    op.drop_table("claim_authorization")
    op.drop_index("ix_claim_signature_claim_id", table_name="claim_signature")
    op.drop_table("claim_signature")
    op.drop_table("claims")
    op.drop_table("otp")
    op.drop_table("registration")
