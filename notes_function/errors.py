import logging

from fastapi import status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

logger = logging.getLogger(__name__)

DATABASE_UNAVAILABLE_ERRORS = (OperationalError, InterfaceError, PoolTimeoutError)


class InvalidRequestBody(ValueError):
    """Raised when a request body cannot be decoded as JSON."""


# PUBLIC_INTERFACE
def error_response(exc: Exception) -> JSONResponse:
    """
    Map a failure raised while handling a notes request to a JSON response.

    - InvalidRequestBody -> 400
    - database connectivity errors -> 503
    - anything else -> 500; callers log the traceback with request context
    """
    if isinstance(exc, InvalidRequestBody):
        logger.info("Rejected request body: %s", exc)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Invalid JSON body"})

    if isinstance(exc, DATABASE_UNAVAILABLE_ERRORS):
        logger.error("Database unavailable: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"error": "Database unavailable"},
        )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal Server Error"},
    )
