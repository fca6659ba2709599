"""One-time passcode ledger."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from phone_claim.db.session import Base
from phone_claim.db.time import utcnow


class OtpRecord(Base):
    """The single live passcode for a phone number.

    Reissuing overwrites `code` and `created_at` and clears `used`; rows are
    never versioned.
    """

    __tablename__ = "otp"

    phone_number: Mapped[str] = mapped_column(Text, primary_key=True)
    code: Mapped[str] = mapped_column(Text, nullable=False)
    used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
