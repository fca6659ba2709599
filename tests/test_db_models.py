"""Unit tests for the ORM models defined in phone_claim.models.

These tests verify basic mapping correctness: table names, keys and the
uniqueness constraints the services rely on for race resolution.
"""

import pytest
from sqlalchemy import insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import attributes

from phone_claim import models
from tests.conftest import ADDRESS


def test_table_names():
    """Model classes expose expected __tablename__ values."""
    assert models.RegistrationRecord.__tablename__ == "registration"
    assert models.OtpRecord.__tablename__ == "otp"
    assert models.ClaimRecord.__tablename__ == "claims"
    assert models.ClaimSignature.__tablename__ == "claim_signature"
    assert models.ClaimAuthorization.__tablename__ == "claim_authorization"
    assert models.TransferRecord.__tablename__ == "transfer_usdc"
    assert models.BalanceSnapshot.__tablename__ == "balance_usdc"
    assert models.ClaimLimit.__tablename__ == "mock_limit"


def test_phone_number_keys_registration_and_otp():
    for model in (models.RegistrationRecord, models.OtpRecord):
        pk_names = {c.name for c in model.__table__.primary_key}
        assert pk_names == {"phone_number"}


def test_indexer_cursor_column_name():
    """The indexer's `_cursor` column is exposed as `cursor`."""
    assert "_cursor" in models.TransferRecord.__table__.c
    assert hasattr(models.TransferRecord, "cursor")


def test_claim_signatures_relationship_is_instrumented():
    assert isinstance(models.ClaimRecord.signature_rows, attributes.InstrumentedAttribute)


def test_claim_address_nonce_is_unique(db_session):
    row = {
        "address": ADDRESS,
        "nonce": 1,
        "amount": "1",
        "required_signatures": 2,
        "state": models.ClaimState.COLLECTING.value,
    }
    db_session.execute(insert(models.ClaimRecord).values(id="first", **row))
    db_session.commit()

    with pytest.raises(IntegrityError):
        db_session.execute(insert(models.ClaimRecord).values(id="second", **row))
    db_session.rollback()


def test_signer_is_unique_per_claim(db_session):
    db_session.execute(
        insert(models.ClaimRecord).values(
            id="c1",
            address=ADDRESS,
            nonce=1,
            amount="1",
            required_signatures=2,
            state=models.ClaimState.COLLECTING.value,
        )
    )
    signature = {"claim_id": "c1", "signer": "aa" * 32, "signature": "bb" * 64}
    db_session.execute(insert(models.ClaimSignature).values(**signature))
    db_session.commit()

    with pytest.raises(IntegrityError):
        db_session.execute(insert(models.ClaimSignature).values(**signature))
    db_session.rollback()
