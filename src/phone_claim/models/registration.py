"""Phone number registrations."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from phone_claim.db.session import Base
from phone_claim.db.time import utcnow


class RegistrationRecord(Base):
    """A phone number registered on its first OTP request.

    `contract_address` and `is_confirmed` are filled in by a later
    confirmation step; this service only creates rows.
    """

    __tablename__ = "registration"

    phone_number: Mapped[str] = mapped_column(Text, primary_key=True)
    nickname: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    contract_address: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_confirmed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
