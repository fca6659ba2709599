"""API endpoint modules."""

from .claims import router as claims_router
from .otp import router as otp_router
from .system import router as system_router

__all__ = ["claims_router", "otp_router", "system_router"]
