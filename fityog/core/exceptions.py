"""
Custom exception classes and error handling.

Domain code raises these without knowing about HTTP; the handlers
registered by `register_exception_handlers` give every error the same
response shape.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

logger = logging.getLogger(__name__)


class FitYogError(Exception):
    """Base application error with an HTTP mapping."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_ERROR"

    def __init__(self, detail: str = "", error_code: Optional[str] = None):
        super().__init__(detail)
        self.detail = detail
        if error_code:
            self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.detail, "error_code": self.error_code}


class AuthenticationRequired(FitYogError):
    """Request lacks a valid session."""

    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "UNAUTHORIZED"

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(detail)


class ValidationError(FitYogError):
    """Malformed input, with per-field messages."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "VALIDATION_ERROR"

    def __init__(self, errors: List[Dict[str, str]], detail: str = "Validation failed"):
        super().__init__(detail)
        self.errors = errors

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["errors"] = self.errors
        return data


class ConflictError(FitYogError):
    """Resource conflict (e.g., duplicate username)."""

    status_code = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"


class IntegrityError(FitYogError):
    """A referenced row does not exist."""

    status_code = status.HTTP_409_CONFLICT
    error_code = "INTEGRITY_ERROR"


class StorageUnavailableError(FitYogError):
    """Transient storage failure; the caller may retry."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "STORAGE_UNAVAILABLE"


class RecommendationError(FitYogError):
    """
    The AI assistant could not produce recommendations.

    `detail` is the short description shown to callers; `upstream_message`
    keeps the provider's own message for the server log.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "AI_RECOMMENDATION_FAILED"

    def __init__(self, detail: str, upstream_message: Optional[str] = None):
        super().__init__(detail)
        self.upstream_message = upstream_message or detail


class UpstreamServiceError(RecommendationError):
    """Provider unreachable, timed out, rate-limited, misconfigured or erroring."""

    error_code = "AI_SERVICE_UNAVAILABLE"


class ResponseFormatError(RecommendationError):
    """Provider reply was empty, not JSON, or not the expected shape."""

    error_code = "AI_RESPONSE_FORMAT"


def _field_name(loc) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path")]
    return ".".join(parts) or "body"


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers that turn application errors into responses."""

    @app.exception_handler(AuthenticationRequired)
    async def authentication_required_handler(request: Request, exc: AuthenticationRequired):
        return Response(status_code=exc.status_code)

    @app.exception_handler(FitYogError)
    async def fityog_error_handler(request: Request, exc: FitYogError):
        if exc.status_code >= 500:
            logger.error(
                f"{type(exc).__name__}: {exc.detail}",
                extra={
                    "extra_fields": {
                        "method": request.method,
                        "path": request.url.path,
                        "error_code": exc.error_code,
                    }
                },
            )
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"field": _field_name(err.get("loc", ())), "message": err.get("msg", "Invalid value")}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ValidationError(errors).to_dict(),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler for unhandled errors."""
        logger.error(
            f"Unhandled exception: {exc}",
            exc_info=True,
            extra={
                "extra_fields": {
                    "method": request.method,
                    "path": request.url.path,
                }
            }
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )
