from typing import TYPE_CHECKING, Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

# The MySQL document store uses PyMySQL, so we catch its base error types too.
if TYPE_CHECKING:
    from pymysql import MySQLError as MySQLError  # pragma: no cover
    from pymysql.err import Error as PyMySQLError  # pragma: no cover
else:
    from pymysql import MySQLError as MySQLError
    from pymysql.err import Error as PyMySQLError


GENERIC_DB_ERROR_MESSAGE = "Database error. Please try again later."


class PlantCareError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class InvalidInputError(PlantCareError):
    status_code = 400


class AuthenticationError(PlantCareError):
    status_code = 401


class PermissionDeniedError(PlantCareError):
    status_code = 403


class NotFoundError(PlantCareError):
    status_code = 404


class InvalidJoinCodeError(NotFoundError):
    def __init__(self, message: str = "Invalid join code", details: Optional[dict[str, Any]] = None):
        super().__init__(message, details)


class JoinCodeExhaustedError(PlantCareError):
    """No free join code found within the retry budget."""

    status_code = 503


class StoreError(PlantCareError):
    """A document store read or write failed."""

    status_code = 500


class DocumentNotFoundError(StoreError):
    """Update issued against a document that does not exist."""


class PartialWriteError(StoreError):
    """A multi-document sequence stopped after some writes were applied.

    ``completed`` lists the steps that did go through; nothing is rolled back.
    """

    def __init__(self, message: str, completed: list[str], details: Optional[dict[str, Any]] = None):
        self.completed = list(completed)
        merged = dict(details or {})
        merged["completed"] = self.completed
        super().__init__(message, merged)


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers.

    - Map DB-related exceptions to HTTP 500 with a generic message.
    - Map PlantCareError subclasses to their status code and message.
    - Do NOT override HTTPException handling provided by FastAPI.
    """

    @app.exception_handler(MySQLError)
    async def mysql_error_handler(request: Request, exc: Exception) -> JSONResponse:  # noqa: ANN001
        return JSONResponse(status_code=500, content={"detail": GENERIC_DB_ERROR_MESSAGE})

    @app.exception_handler(PyMySQLError)
    async def pymysql_error_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:  # noqa: ANN001
        return JSONResponse(status_code=500, content={"detail": GENERIC_DB_ERROR_MESSAGE})

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"detail": GENERIC_DB_ERROR_MESSAGE})

    @app.exception_handler(PartialWriteError)
    async def partial_write_error_handler(request: Request, exc: PartialWriteError) -> JSONResponse:
        # Tell the caller which writes went through; nothing was rolled back.
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "completed": exc.completed, "details": exc.details},
        )

    @app.exception_handler(PlantCareError)
    async def plantcare_error_handler(request: Request, exc: PlantCareError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})
