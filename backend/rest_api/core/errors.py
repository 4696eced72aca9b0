"""
Exception handlers for errors that are not HTTPExceptions.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from shared.config.logging import rest_api_logger as logger
from shared.utils.exceptions import PersistenceError


async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
    # DataStore already logged the driver error with its traceback
    logger.warning(
        "Request failed on persistence",
        path=request.url.path,
        operation=exc.operation,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": f"Database error during {exc.operation}"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PersistenceError, persistence_error_handler)
