"""
Central error handling for the Leave Reconciliation Backend

Domain exceptions raised by the services live here together with the FastAPI
handlers that render them.
"""
from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi import HTTPException


CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "*",
    "Access-Control-Allow-Headers": "*",
}


class LeaveReconError(Exception):
    """Base class for every error the core raises"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = {k: v for k, v in context.items() if v is not None}

    @property
    def error_type(self) -> str:
        return type(self).__name__


class ValidationError(LeaveReconError):
    """Malformed or incomplete input; never auto-corrected"""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, field: Optional[str] = None, **context: Any):
        super().__init__(message, field=field, **context)
        self.field = field


class PermissionDeniedError(LeaveReconError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(LeaveReconError):
    status_code = status.HTTP_404_NOT_FOUND


class InvalidTransitionError(LeaveReconError):
    """A lifecycle transition that the state machine does not allow"""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, record_id: int, current_status: str, requested_status: str):
        super().__init__(
            f"Cannot move leave record {record_id} from {current_status} to {requested_status}",
            record_id=record_id,
            current_status=current_status,
            requested_status=requested_status,
        )
        self.record_id = record_id
        self.current_status = current_status
        self.requested_status = requested_status


class NoQualifyingRecordsError(LeaveReconError):
    """Aggregation found nothing to reconcile; an empty result, not a fault"""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, parent_company: str, month: str):
        super().__init__(
            f"No approved chargeable leave for {parent_company} in {month}",
            parent_company=parent_company,
            month=month,
        )
        self.parent_company = parent_company
        self.month = month


class ActualAmountUnavailableError(LeaveReconError):
    """The parent company has not reported an actual amount for a record"""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, leave_record_id: int, source: str):
        super().__init__(
            f"No actual amount reported for leave record {leave_record_id} (source={source})",
            leave_record_id=leave_record_id,
            source=source,
        )
        self.leave_record_id = leave_record_id


class PersistenceError(LeaveReconError):
    """A store operation failed"""


class PartialWriteError(PersistenceError):
    """
    The report header was persisted but its line items were not.

    The report with ``report_id`` now exists in an inconsistent state.
    """

    def __init__(self, report_id: int, written: int, expected: int, cause: Optional[str] = None):
        super().__init__(
            f"Reconciliation report {report_id} persisted with {written} of {expected} line items",
            report_id=report_id,
            written=written,
            expected=expected,
            cause=cause,
        )
        self.report_id = report_id
        self.written = written
        self.expected = expected


async def domain_exception_handler(request: Request, exc: LeaveReconError) -> JSONResponse:
    """
    Render a domain error with the same envelope as HTTP errors

    Args:
        request: FastAPI request object
        exc: LeaveReconError instance

    Returns:
        JSONResponse carrying the error type and its context
    """
    import logging
    from app.core.config import settings
    from app.utils.json_serializer import sanitize_for_json

    logger = logging.getLogger(__name__)
    if exc.status_code >= 500:
        logger.error("%s on %s: %s context=%s", exc.error_type, request.url.path, exc.message, exc.context)
    else:
        logger.info("%s on %s: %s", exc.error_type, request.url.path, exc.message)

    detail = exc.message
    if settings.APP_ENV == "prod" and exc.status_code >= 500 and not isinstance(exc, PartialWriteError):
        detail = "Internal server error"

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": True,
            "status_code": exc.status_code,
            "detail": detail,
            "error_type": exc.error_type,
            "context": sanitize_for_json(exc.context),
            "path": str(request.url.path)
        },
        headers=CORS_HEADERS,
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """
    Handle HTTPException with consistent JSON response format

    Args:
        request: FastAPI request object
        exc: HTTPException instance

    Returns:
        JSONResponse with error details
    """
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": True,
            "status_code": exc.status_code,
            "detail": exc.detail,
            "path": str(request.url.path)
        },
        headers=CORS_HEADERS,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle RequestValidationError with consistent JSON response format

    Does not leak internal validation details in production.
    """
    from app.core.config import settings

    if settings.APP_ENV == "prod":
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": True,
                "status_code": 422,
                "detail": "Validation error: Invalid request data",
                "path": str(request.url.path)
            }
        )

    # ctx may hold exception objects (e.g. ValueError) that are not JSON-safe
    errors = []
    for e in exc.errors():
        err = dict(e)
        if "ctx" in err and isinstance(err["ctx"], dict):
            err["ctx"] = {
                k: (str(v) if not isinstance(v, (str, int, float, bool, type(None))) else v)
                for k, v in err["ctx"].items()
            }
        errors.append(err)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": True,
            "status_code": 422,
            "detail": "Validation error",
            "errors": errors,
            "path": str(request.url.path)
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions with consistent JSON response format

    Does not leak internal error details in production.
    """
    from app.core.config import settings
    import logging
    import traceback

    logger = logging.getLogger(__name__)
    logger.error("Unhandled exception: %s", exc, exc_info=True)

    if settings.APP_ENV == "prod":
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": True,
                "status_code": 500,
                "detail": "Internal server error",
                "path": str(request.url.path)
            },
            headers=CORS_HEADERS,
        )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": True,
            "status_code": 500,
            "detail": str(exc),
            "path": str(request.url.path),
            "traceback": traceback.format_exc() if settings.APP_ENV == "local" else None
        },
        headers=CORS_HEADERS,
    )
