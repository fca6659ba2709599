"""Phone number helpers."""

from __future__ import annotations

from typing import Final

E164_PATTERN: Final[str] = r"^\+[1-9]\d{1,14}$"
NICKNAME_PATTERN: Final[str] = r"^[A-Za-z]{1,20}$"


def phone_last4(phone_number: str) -> str:
    """Return a log-safe rendering of a phone number showing only the last four digits."""
    if len(phone_number) <= 4:
        return "****"
    return f"***{phone_number[-4:]}"
