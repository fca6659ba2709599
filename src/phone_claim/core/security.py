"""Signature and token utilities for claim authorization."""
from __future__ import annotations

import binascii
import uuid
from dataclasses import dataclass
from datetime import timedelta

from jose import JWTError, jwt
from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

from phone_claim.core.errors import UnauthorizedError
from phone_claim.core.settings import settings
from phone_claim.db.time import utcnow

CLAIM_TOKEN_TYPE = "claim"


@dataclass(frozen=True)
class ClaimGrant:
    """A decoded, not yet consumed, claim authorization token."""

    token_id: str
    phone_number: str


def claim_message(address: str, nonce: int, amount: str) -> bytes:
    """Return the canonical bytes a signer signs for a claim."""
    return f"{address}:{nonce}:{amount}".encode("utf-8")


def verify_signature(pubkey_hex: str, message: bytes, signature_hex: str) -> bool:
    """Verify an Ed25519 signature.

    Args:
        pubkey_hex: Hex-encoded 32-byte public key.
        message: Exact bytes that were signed on the client.
        signature_hex: Hex-encoded 64-byte signature.

    Returns:
        True if the signature is valid for `message` under `pubkey_hex`; False otherwise.
    """
    try:
        pubkey = VerifyKey(binascii.unhexlify(pubkey_hex))
        pubkey.verify(message, binascii.unhexlify(signature_hex))
    except (BadSignatureError, binascii.Error, ValueError, TypeError):
        return False
    return True


def create_claim_token(phone_number: str) -> tuple[str, int]:
    """Issue a single-use claim authorization token for a verified phone number.

    Returns the encoded JWT and its lifetime in seconds.
    """
    issued_at = utcnow()
    ttl = settings.claim_token_ttl_seconds
    to_encode: dict[str, object] = {
        "sub": phone_number,
        "jti": uuid.uuid4().hex,
        "typ": CLAIM_TOKEN_TYPE,
        "iat": issued_at,
        "exp": issued_at + timedelta(seconds=ttl),
    }
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt, ttl


def decode_claim_token(token: str) -> ClaimGrant:
    """Decode and validate a claim authorization token."""
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as err:
        raise UnauthorizedError("Could not validate claim authorization") from err

    subject = payload.get("sub")
    token_id = payload.get("jti")
    if payload.get("typ") != CLAIM_TOKEN_TYPE or not subject or not token_id:
        raise UnauthorizedError("Could not validate claim authorization")
    return ClaimGrant(token_id=str(token_id), phone_number=str(subject))
