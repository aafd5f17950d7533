"""
Error hierarchy and the uniform {"error", "details"} response envelope.
"""
import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette import status

logger = logging.getLogger(__name__)


class ChatAppError(Exception):
    """Base class for errors that are reported to the caller."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error": self.message, "details": f"{type(self).__name__}: {self.message}"}


class InvalidRequestError(ChatAppError):
    http_status = status.HTTP_400_BAD_REQUEST


class AuthenticationError(ChatAppError):
    http_status = status.HTTP_401_UNAUTHORIZED


class InsufficientPointsError(ChatAppError):
    http_status = status.HTTP_402_PAYMENT_REQUIRED

    def __init__(self, required: int):
        self.required = required
        super().__init__(f"Insufficient points for boost. Need {required} points.")


class NotFoundError(ChatAppError):
    http_status = status.HTTP_404_NOT_FOUND


class UpstreamError(ChatAppError):
    http_status = status.HTTP_502_BAD_GATEWAY


class ConfigurationError(ChatAppError):
    pass


class ServiceUnavailableError(ChatAppError):
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE


class ProfileUnavailableError(ChatAppError):
    def __init__(self):
        super().__init__("Failed to fetch user profile")


# ── FastAPI handlers ──────────────────────────────────────────────────────────

async def chat_app_error_handler(request: Request, exc: ChatAppError) -> JSONResponse:
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = [
        "{}: {}".format(".".join(str(loc) for loc in err["loc"] if loc != "body"), err["msg"])
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request", "details": "; ".join(problems)},
    )


async def rate_limit_error_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    response = JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"error": "Rate limit exceeded", "details": f"Rate limit exceeded: {exc.detail}"},
    )
    # Same X-RateLimit headers slowapi's stock handler adds
    return request.app.state.limiter._inject_headers(response, request.state.view_rate_limit)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": str(exc) or "Internal server error", "details": repr(exc)},
    )
