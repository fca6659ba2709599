"""HTTP API for the phone claim service."""

from .endpoints import claims_router, otp_router, system_router

__all__ = ["claims_router", "otp_router", "system_router"]
