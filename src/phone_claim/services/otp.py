"""One-time passcode issuance and verification.

A phone number has at most one live passcode. Requesting a new one is
blocked for `OTP_VALIDITY_SECONDS` after the previous issue, whether or not
that code was used. Redeeming a code flips `used` exactly once and yields a
single-use claim authorization token.
"""

from __future__ import annotations

import logging
import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import insert, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from phone_claim.core.errors import (
    ConflictError,
    ExpiredError,
    InternalError,
    InvalidError,
    NotFoundError,
    RateLimitedError,
)
from phone_claim.core.security import create_claim_token
from phone_claim.core.settings import settings
from phone_claim.db.time import Clock, seconds_since, utcnow
from phone_claim.models import OtpRecord, RegistrationRecord
from phone_claim.services.sms import SmsChannel
from phone_claim.utils.phone import phone_last4

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


@dataclass(frozen=True)
class OtpVerification:
    """Result of a successful verification."""

    phone_number: str
    claim_token: str
    expires_in: int


def generate_otp(length: int = 6) -> str:
    """Return a numeric passcode of `length` digits."""
    return "".join(secrets.choice(string.digits) for _ in range(length))


class OtpService:
    """Issue and redeem passcodes bound to a phone registration."""

    def __init__(self, db: Session, sms_channel: SmsChannel, clock: Clock = utcnow) -> None:
        self.db = db
        self.sms_channel = sms_channel
        self.clock = clock

    # --- Lookups ------------------------------------------------------------------
    def _find_registration(self, phone_number: str) -> RegistrationRecord | None:
        return (
            self.db.query(RegistrationRecord)
            .filter(RegistrationRecord.phone_number == phone_number)
            .order_by(RegistrationRecord.created_at.desc())
            .first()
        )

    def _find_otp(self, phone_number: str) -> OtpRecord | None:
        return (
            self.db.query(OtpRecord)
            .filter(OtpRecord.phone_number == phone_number)
            .order_by(OtpRecord.created_at.desc())
            .first()
        )

    # --- Writes -------------------------------------------------------------------
    def _ensure_registration(self, phone_number: str, nickname: str) -> None:
        """Insert a registration unless one already exists for the number."""
        if self._find_registration(phone_number) is not None:
            return

        try:
            self.db.execute(
                insert(RegistrationRecord).values(
                    phone_number=phone_number,
                    nickname=nickname,
                    created_at=self.clock(),
                    contract_address="",
                    is_confirmed=False,
                )
            )
            self.db.commit()
        except IntegrityError as err:
            self.db.rollback()
            logger.warning("Registration race lost for %s", phone_last4(phone_number))
            raise ConflictError("A user with the given phone number already exists.") from err
        except SQLAlchemyError as err:
            self.db.rollback()
            logger.error("Failed to register %s", phone_last4(phone_number), exc_info=True)
            raise InternalError(f"registration insert failed: {err}") from err
        logger.info("Registered new phone number %s", phone_last4(phone_number))

    def _upsert_otp(self, phone_number: str, code: str, issued_at: datetime) -> bool:
        """Store `code` as the live passcode in one conflict-resolving write.

        The existing row is only replaced once its cooldown has elapsed as of
        `issued_at`. Returns False when another request stored a newer code
        first.
        """
        dialect = self.db.get_bind().dialect.name
        dialect_insert = _UPSERT_DIALECTS.get(dialect)
        if dialect_insert is None:
            raise InternalError(f"OTP upsert is not supported on {dialect}")

        table = OtpRecord.__table__
        cutoff = issued_at - timedelta(seconds=settings.otp_validity_seconds)
        stmt = dialect_insert(table).values(
            phone_number=phone_number,
            code=code,
            used=False,
            created_at=issued_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.phone_number],
            set_={
                "code": stmt.excluded.code,
                "used": False,
                "created_at": stmt.excluded.created_at,
            },
            where=table.c.created_at < cutoff,
        )
        try:
            result = self.db.execute(stmt)
            if result.rowcount != 1:
                self.db.rollback()
                return False
            self.db.commit()
        except SQLAlchemyError as err:
            self.db.rollback()
            logger.error(
                "Passcode delivered to %s but could not be stored",
                phone_last4(phone_number),
                exc_info=True,
            )
            raise InternalError(f"otp upsert failed: {err}") from err
        return True

    # --- Operations ---------------------------------------------------------------
    async def request_otp(self, phone_number: str, nickname: str) -> None:
        """Send a fresh passcode to `phone_number`.

        Raises:
            ConflictError: A concurrent request registered the number first.
            RateLimitedError: A passcode was issued within the cooldown window.
            InternalError: Delivery or storage failed.
        """
        self._ensure_registration(phone_number, nickname)

        now = self.clock()
        existing = self._find_otp(phone_number)
        if existing is not None:
            age = seconds_since(existing.created_at, now)
            if age <= settings.otp_validity_seconds:
                logger.info(
                    "OTP for %s requested again after %.0fs; cooldown active",
                    phone_last4(phone_number),
                    age,
                )
                raise RateLimitedError("You have already requested the OTP")

        code = generate_otp(settings.otp_length)
        try:
            delivered = await self.sms_channel.send(code, phone_number)
        except Exception as err:
            logger.error("SMS channel raised for %s", phone_last4(phone_number), exc_info=True)
            raise InternalError(f"delivery failed: {err}") from err
        if not delivered:
            logger.error("Error sending message to %s", phone_last4(phone_number))
            raise InternalError("delivery failed")

        if not self._upsert_otp(phone_number, code, now):
            logger.warning(
                "Passcode sent to %s was superseded by a concurrent request",
                phone_last4(phone_number),
            )
            raise RateLimitedError("You have already requested the OTP")
        logger.info("OTP issued to %s", phone_last4(phone_number))

    def verify_otp(self, phone_number: str, submitted_code: str) -> OtpVerification:
        """Redeem `submitted_code` and return a claim authorization token.

        Raises:
            NotFoundError: No passcode was ever issued to the number.
            InvalidError: The code was already used or does not match.
            ExpiredError: The code is older than the validity window.
        """
        now = self.clock()
        record = self._find_otp(phone_number)
        if record is None:
            raise NotFoundError("No OTP has been requested for this phone number")
        if record.used:
            raise InvalidError("OTP code already used")
        if seconds_since(record.created_at, now) > settings.otp_validity_seconds:
            raise ExpiredError("OTP has expired")
        if submitted_code != record.code:
            logger.info("OTP mismatch for %s", phone_last4(phone_number))
            raise InvalidError("OTP code mismatch")

        # Compare-and-set: only the attempt that still sees used=False on this
        # exact issue wins.
        result = self.db.execute(
            update(OtpRecord)
            .where(
                OtpRecord.phone_number == phone_number,
                OtpRecord.used.is_(False),
                OtpRecord.code == record.code,
                OtpRecord.created_at == record.created_at,
            )
            .values(used=True)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            logger.info("Concurrent redemption lost for %s", phone_last4(phone_number))
            raise InvalidError("OTP code already used")
        self.db.commit()

        token, expires_in = create_claim_token(phone_number)
        logger.info("OTP verified for %s", phone_last4(phone_number))
        return OtpVerification(
            phone_number=phone_number,
            claim_token=token,
            expires_in=expires_in,
        )
