"""
Boundary error mapping.

Every failure raised while serving a feature is turned into an HTTP status and
a message fit for display next to the form that triggered it. Nothing is
retried here.
"""

import logging
from dataclasses import dataclass

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from imagestation.models.providers.base import (
    ModelError, ModelAuthError, ModelRateLimited, ModelTimeout, ModelResponseFormatError, ModelConfigError,
)
from .models.common import APIError

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error, please try again later"
AUTH_ERROR_MESSAGE = "The API key is invalid or has expired"
RATE_LIMIT_MESSAGE = "Too many requests, please try again later"
BAD_RESPONSE_MESSAGE = "Unexpected response format from the API"

SERVICE_MESSAGES = {
    "compress": "Compression failed, please try again",
    "remove_bg": "Background removal failed, please try again later",
    "recognize": "Image recognition service is temporarily unavailable, please try again later",
    "generate": "Image generation service is temporarily unavailable, please try again later",
    "download": "Download failed, please try again later",
}


@dataclass(frozen=True)
class Failure:
    status_code: int
    message: str
    error_code: str


def describe_failure(exc: Exception, feature: str) -> Failure:
    service_message = SERVICE_MESSAGES.get(feature, INTERNAL_ERROR_MESSAGE)

    if isinstance(exc, ModelConfigError):
        return Failure(500, INTERNAL_ERROR_MESSAGE, "config_error")
    if isinstance(exc, ValueError):
        return Failure(400, str(exc), "invalid_input")
    if isinstance(exc, ModelAuthError):
        return Failure(401, AUTH_ERROR_MESSAGE, "vendor_auth_failed")
    if isinstance(exc, ModelRateLimited):
        return Failure(429, RATE_LIMIT_MESSAGE, "vendor_rate_limited")
    if isinstance(exc, ModelTimeout):
        return Failure(504, service_message, "vendor_timeout")
    if isinstance(exc, ModelResponseFormatError):
        return Failure(502, BAD_RESPONSE_MESSAGE, "vendor_bad_response")
    if isinstance(exc, ModelError):
        status = exc.status_code if exc.status_code and 400 <= exc.status_code < 600 else 502
        return Failure(status, exc.detail or service_message, "vendor_error")
    return Failure(500, INTERNAL_ERROR_MESSAGE, "internal_error")


def failure_exception(exc: Exception, feature: str) -> HTTPException:
    """Log `exc` and wrap it as an HTTPException carrying the display message."""
    failure = describe_failure(exc, feature)
    if failure.status_code == 500:
        logger.exception(f"{feature} failed unexpectedly")
    else:
        logger.warning(f"{feature} failed ({failure.error_code}): {exc}")
    return HTTPException(
        status_code=failure.status_code,
        detail={"error": failure.message, "error_code": failure.error_code},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if isinstance(exc.detail, dict) and "error" in exc.detail:
        body = APIError(error=exc.detail["error"], error_code=exc.detail.get("error_code", f"http_{exc.status_code}"))
    else:
        body = APIError(error=str(exc.detail), error_code=f"http_{exc.status_code}")
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"), headers=exc.headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    body = APIError(
        error="Invalid request",
        error_code="invalid_input",
        details={"errors": [
            {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
            for err in exc.errors()
        ]},
    )
    return JSONResponse(status_code=400, content=body.model_dump(mode="json"))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
