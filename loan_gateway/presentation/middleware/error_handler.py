"""Error handling middleware and exception handlers."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import structlog

from loan_gateway.domain.exceptions import (
    DomainException,
    ValidationException,
    NotFoundException,
    ConflictException,
    PolicyViolationException,
    ExternalDependencyException,
)
from .request_context import get_request_id

logger = structlog.get_logger(__name__)


def _error_response(status_code: int, exc: DomainException, message: str | None = None) -> JSONResponse:
    content = {
        "error": exc.code,
        "message": message or exc.message,
        "request_id": get_request_id(),
    }
    if exc.details is not None:
        content["details"] = exc.details
    return JSONResponse(status_code=status_code, content=content)


def error_handler_middleware(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI app.

    Maps domain exception families to HTTP responses. Handlers are
    resolved along the exception's MRO, so concrete exceptions such as
    LoanNotFoundException land on their family's handler.
    """

    @app.exception_handler(ValidationException)
    async def validation_handler(
        request: Request,
        exc: ValidationException,
    ) -> JSONResponse:
        """Handle malformed or out-of-range input."""
        return _error_response(422, exc)

    @app.exception_handler(NotFoundException)
    async def not_found_handler(
        request: Request,
        exc: NotFoundException,
    ) -> JSONResponse:
        """Handle missing entities."""
        return _error_response(404, exc)

    @app.exception_handler(ConflictException)
    async def conflict_handler(
        request: Request,
        exc: ConflictException,
    ) -> JSONResponse:
        """Handle operations that conflict with an entity's state."""
        logger.info(
            "state_conflict",
            request_id=get_request_id(),
            code=exc.code,
            current_status=exc.current_status,
        )
        return _error_response(409, exc)

    @app.exception_handler(PolicyViolationException)
    async def policy_violation_handler(
        request: Request,
        exc: PolicyViolationException,
    ) -> JSONResponse:
        """Handle lending policy rejections."""
        logger.info(
            "policy_violation",
            request_id=get_request_id(),
            code=exc.code,
            reasons=exc.reasons,
        )
        return _error_response(422, exc)

    @app.exception_handler(ExternalDependencyException)
    async def external_dependency_handler(
        request: Request,
        exc: ExternalDependencyException,
    ) -> JSONResponse:
        """Handle provider failures."""
        logger.error(
            "external_dependency_error",
            request_id=get_request_id(),
            provider=exc.provider,
            message=exc.message,
            status_code=exc.status_code,
        )
        return _error_response(
            503,
            exc,
            message="Service temporarily unavailable. Please try again.",
        )

    @app.exception_handler(DomainException)
    async def domain_exception_handler(
        request: Request,
        exc: DomainException,
    ) -> JSONResponse:
        """Handle generic domain exceptions."""
        logger.warning(
            "domain_exception",
            request_id=get_request_id(),
            code=exc.code,
            message=exc.message,
        )
        return _error_response(400, exc)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception(
            "unhandled_exception",
            request_id=get_request_id(),
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "INTERNAL_ERROR",
                "message": "An unexpected error occurred.",
                "request_id": get_request_id(),
            },
        )
