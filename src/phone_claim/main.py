# src/phone_claim/main.py
"""Main entry point for the phone claim application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from phone_claim.api import claims_router, otp_router, system_router
from phone_claim.core.errors import InternalError, PhoneClaimError
from phone_claim.core.settings import settings
from phone_claim.db.session import create_tables
from phone_claim.services.sms import close_sms_channel

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Internal server error"

app = FastAPI(
    title="Phone Claim API",
    description="Phone-verified claim authorization",
    version=settings.app_version,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

app.include_router(otp_router)
app.include_router(claims_router)
app.include_router(system_router)


@app.exception_handler(PhoneClaimError)
async def handle_domain_error(request: Request, exc: PhoneClaimError) -> JSONResponse:
    if isinstance(exc, InternalError):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg', 'invalid value')}" if field else first.get("msg")
    else:
        message = "Invalid request"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": message})


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": GENERIC_ERROR_MESSAGE},
    )


@app.on_event("startup")
async def on_startup() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if settings.auto_create_tables:
        create_tables()
        logger.info("Database tables ensured")


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await close_sms_channel()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("phone_claim.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
