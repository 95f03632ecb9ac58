"""
Exception Handlers
Maps the domain exception hierarchy onto HTTP responses
"""
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from core.exceptions import (
    DomainException,
    ValidationException,
    NotFoundError,
    InvalidTransitionError,
    TerminalStateError,
    PreconditionFailedError,
    IneligibleApplicationError,
    ParticipantNotInvolvedError,
    UnauthorizedError,
    RateLimitedError,
    AlreadyExistsError,
    ConcurrencyConflictError,
    InfrastructureError,
)
from core.logging_config import logger


STATUS_CODES = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidTransitionError: status.HTTP_409_CONFLICT,
    TerminalStateError: status.HTTP_409_CONFLICT,
    PreconditionFailedError: status.HTTP_412_PRECONDITION_FAILED,
    IneligibleApplicationError: status.HTTP_403_FORBIDDEN,
    ParticipantNotInvolvedError: status.HTTP_403_FORBIDDEN,
    UnauthorizedError: status.HTTP_403_FORBIDDEN,
    RateLimitedError: status.HTTP_429_TOO_MANY_REQUESTS,
    AlreadyExistsError: status.HTTP_409_CONFLICT,
    ValidationException: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ConcurrencyConflictError: status.HTTP_409_CONFLICT,
    InfrastructureError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_code_for(exc: DomainException) -> int:
    for klass in type(exc).__mro__:
        if klass in STATUS_CODES:
            return STATUS_CODES[klass]
    return status.HTTP_400_BAD_REQUEST


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    code = status_code_for(exc)
    if code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")

    headers = None
    if isinstance(exc, RateLimitedError):
        headers = {"Retry-After": str(exc.retry_after)}

    return JSONResponse(
        status_code=code,
        content={"error": type(exc).__name__, "detail": str(exc)},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the domain exception handler on the app"""
    app.add_exception_handler(DomainException, domain_exception_handler)
