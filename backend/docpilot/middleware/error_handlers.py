"""Exception handlers producing standardized API error responses.

Pipeline exceptions are mapped to an HTTP status and a semantic error code so
the dashboard can react without parsing messages:

    {"detail": "Repository not found: 665f...", "code": "NOT_FOUND"}
"""

import logging
from enum import Enum
from typing import Dict, Type

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from docpilot.services.pipeline_exceptions import (
    AdapterUnavailable,
    AnalysisUnavailable,
    InvalidLocator,
    InvalidStatusTransition,
    MissingCredential,
    PipelineError,
    RepositoryAlreadyRegistered,
    RepositoryNotFound,
    SignatureInvalid,
    SuggestionNotFound,
)

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    GATEWAY_ERROR = "GATEWAY_ERROR"


STATUS_TO_ERROR_CODE: Dict[int, ErrorCode] = {
    400: ErrorCode.BAD_REQUEST,
    401: ErrorCode.UNAUTHORIZED,
    404: ErrorCode.NOT_FOUND,
    409: ErrorCode.CONFLICT,
    500: ErrorCode.INTERNAL_ERROR,
    502: ErrorCode.GATEWAY_ERROR,
    503: ErrorCode.SERVICE_UNAVAILABLE,
}

EXCEPTION_STATUS: Dict[Type[PipelineError], int] = {
    InvalidLocator: status.HTTP_400_BAD_REQUEST,
    MissingCredential: status.HTTP_400_BAD_REQUEST,
    InvalidStatusTransition: status.HTTP_400_BAD_REQUEST,
    SignatureInvalid: status.HTTP_401_UNAUTHORIZED,
    RepositoryNotFound: status.HTTP_404_NOT_FOUND,
    SuggestionNotFound: status.HTTP_404_NOT_FOUND,
    RepositoryAlreadyRegistered: status.HTTP_409_CONFLICT,
    AdapterUnavailable: status.HTTP_502_BAD_GATEWAY,
    AnalysisUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def get_error_code(status_code: int) -> ErrorCode:
    """Get ErrorCode from HTTP status code."""
    return STATUS_TO_ERROR_CODE.get(status_code, ErrorCode.INTERNAL_ERROR)


def status_for_exception(exc: PipelineError) -> int:
    for exc_type in type(exc).__mro__:
        if exc_type in EXCEPTION_STATUS:
            return EXCEPTION_STATUS[exc_type]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    status_code = status_for_exception(exc)
    if status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "code": get_error_code(status_code).value},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PipelineError, pipeline_error_handler)
