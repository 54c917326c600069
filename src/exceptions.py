"""Error taxonomy and the FastAPI handlers that render it."""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError


class DomainError(Exception):
    """Base error carrying the HTTP status it maps to."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(DomainError):
    """Malformed or missing input."""

    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(DomainError):
    """Missing, invalid or expired credential."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(DomainError):
    """Authenticated, but the role lacks the capability."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(DomainError):
    """Referenced entity is absent."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(DomainError):
    """A status precondition was violated."""

    status_code = status.HTTP_409_CONFLICT


class InternalError(DomainError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.opt(exception=exc).error(f"{request.method} {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"detail": "Internal server error"})

    logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthorizedError) else None
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=headers)


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.opt(exception=exc).error(f"Database error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error(f"Unhandled exception on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


EXCEPTION_HANDLERS = {
    DomainError: domain_error_handler,
    SQLAlchemyError: database_error_handler,
    Exception: unhandled_exception_handler,
}


def register_exception_handlers(app: FastAPI) -> None:
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
