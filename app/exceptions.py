"""
Scheduling error taxonomy rendered as RFC 7807 problem documents.

Every error the scheduling core raises maps onto one of four outcomes:

- InvalidParameterError (400): malformed or out-of-range input
- InvalidOperationError (409): valid input that the current state forbids
- UnauthorizedError (401): token or permission failure
- RuntimeFailureError (500): storage or unexpected failure

Responses keep the ``{"status", "message"}`` envelope the booking frontend
reads and add the problem-details fields (code, title, trace_id, ...).

See: https://datatracker.ietf.org/doc/html/rfc7807
"""

import logging
import traceback
import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.middleware.correlation import request_id_ctx

logger = logging.getLogger(__name__)

PROBLEM_BASE_URL = "https://inspections.example.com/problems"
PROBLEM_MEDIA_TYPE = "application/problem+json"

STATUS_TITLES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    500: "Internal Server Error",
}


class ErrorCode(str, Enum):
    """Stable machine-readable codes carried in every problem document."""

    UNAUTHORIZED = "AUTH_001"
    FORBIDDEN = "AUTH_002"

    VALIDATION_ERROR = "VAL_001"
    INVALID_FORMAT = "VAL_002"

    NOT_FOUND = "RES_001"
    ALREADY_EXISTS = "RES_002"
    CONFLICT = "RES_003"

    OPERATION_NOT_ALLOWED = "BIZ_003"

    DATABASE_ERROR = "EXT_004"
    INTERNAL_ERROR = "SRV_001"


# Codes used when a plain HTTPException (e.g. router 404/405) reaches the handler
HTTP_STATUS_CODES = {
    400: ErrorCode.VALIDATION_ERROR,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    409: ErrorCode.CONFLICT,
}


def _trace_id() -> str:
    """The current request id, or a fresh short id outside a request."""
    return request_id_ctx.get() or str(uuid.uuid4())[:12]


def _utc_timestamp() -> str:
    return datetime.utcnow().isoformat() + "Z"


def _problem_type(code: ErrorCode) -> str:
    return f"{PROBLEM_BASE_URL}/{code.value.lower().replace('_', '-')}"


class ProblemDetail(BaseModel):
    """
    Problem document body.

    ``message`` mirrors ``detail``.
    """

    type: str = Field(default="about:blank")
    title: str
    status: int
    message: str
    detail: str
    instance: Optional[str] = None
    code: str
    timestamp: str
    trace_id: str
    errors: Optional[List[Dict[str, Any]]] = None

    @classmethod
    def build(
        cls,
        status: int,
        code: ErrorCode,
        detail: str,
        instance: Optional[str] = None,
        errors: Optional[List[Dict[str, Any]]] = None,
        trace_id: Optional[str] = None,
        timestamp: Optional[str] = None,
    ) -> "ProblemDetail":
        return cls(
            type=_problem_type(code),
            title=STATUS_TITLES.get(status, "Error"),
            status=status,
            message=detail,
            detail=detail,
            instance=instance,
            code=code.value,
            timestamp=timestamp or _utc_timestamp(),
            trace_id=trace_id or _trace_id(),
            errors=errors,
        )

    def to_response(self, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
        return JSONResponse(
            status_code=self.status,
            content=self.model_dump(exclude_none=True),
            media_type=PROBLEM_MEDIA_TYPE,
            headers=headers,
        )


class SchedulingException(HTTPException):
    """
    Base class for every error the scheduling API raises on purpose.

    Usage:
        raise InvalidOperationError("Invoice already sent")
    """

    def __init__(
        self,
        status_code: int,
        code: ErrorCode,
        detail: str,
        errors: Optional[List[Dict[str, Any]]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.code = code
        self.errors = errors
        self.trace_id = _trace_id()
        self.timestamp = _utc_timestamp()
        super().__init__(status_code=status_code, detail=detail, headers=headers)

    @property
    def message(self) -> str:
        return self.detail

    def to_problem_detail(self, instance: Optional[str] = None) -> ProblemDetail:
        return ProblemDetail.build(
            self.status_code,
            self.code,
            self.detail,
            instance=instance,
            errors=self.errors,
            trace_id=self.trace_id,
            timestamp=self.timestamp,
        )

    def __str__(self) -> str:
        return f"{type(self).__name__}: {self.detail}"


class InvalidParameterError(SchedulingException):
    """Malformed or out-of-range input (400)."""

    def __init__(self, detail: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(400, ErrorCode.VALIDATION_ERROR, detail, errors=errors)


class InvalidOperationError(SchedulingException):
    """Valid input that the current state does not allow (409)."""

    def __init__(self, detail: str, code: ErrorCode = ErrorCode.OPERATION_NOT_ALLOWED):
        super().__init__(409, code, detail)


class DuplicateEntryError(InvalidOperationError):
    """Entry already exists (409)."""

    def __init__(self, detail: str):
        super().__init__(detail, code=ErrorCode.ALREADY_EXISTS)


class NotFoundError(InvalidOperationError):
    """Referenced entry does not exist (409)."""

    def __init__(self, detail: str):
        super().__init__(detail, code=ErrorCode.NOT_FOUND)


class UnauthorizedError(SchedulingException):
    """Authentication or permission failure (401)."""

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            401,
            ErrorCode.UNAUTHORIZED,
            detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class RuntimeFailureError(SchedulingException):
    """Storage or unexpected failure (500)."""

    def __init__(self, detail: str = "An unexpected error occurred"):
        super().__init__(500, ErrorCode.DATABASE_ERROR, detail)


# Exception handlers registered by app.main


async def scheduling_exception_handler(request: Request, exc: SchedulingException) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"{type(exc).__name__}: {exc.code.value} - {exc.detail}",
        extra={"trace_id": exc.trace_id, "status_code": exc.status_code, "path": request.url.path},
    )
    return exc.to_problem_detail(instance=request.url.path).to_response(headers=exc.headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = HTTP_STATUS_CODES.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
    problem = ProblemDetail.build(exc.status_code, code, str(exc.detail), instance=request.url.path)
    return problem.to_response()


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request-shape errors are reported as 400 with one entry per offending field."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    problem = ProblemDetail.build(
        400,
        ErrorCode.INVALID_FORMAT,
        "Request validation failed",
        instance=request.url.path,
        errors=errors,
    )
    return problem.to_response()


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    trace_id = _trace_id()
    logger.error(
        f"Unhandled exception: {type(exc).__name__}",
        extra={"trace_id": trace_id, "path": request.url.path},
    )
    logger.error(traceback.format_exc())

    # Internal details only leak in DEBUG
    from app.config import settings
    detail = str(exc) if settings.DEBUG else "An unexpected error occurred"

    problem = ProblemDetail.build(
        500, ErrorCode.INTERNAL_ERROR, detail, instance=request.url.path, trace_id=trace_id
    )
    return problem.to_response()


def create_exception_handlers() -> dict:
    """
    Handlers keyed by role.

    Usage in main.py:
        handlers = create_exception_handlers()
        app.add_exception_handler(SchedulingException, handlers["scheduling"])
    """
    return {
        "scheduling": scheduling_exception_handler,
        "http": http_exception_handler,
        "validation": validation_exception_handler,
        "generic": unhandled_exception_handler,
    }
