"""Typed domain failures raised by the PBB engine.

Services raise these instead of transport exceptions; ``register_error_handlers``
renders each kind as a distinct HTTP response with a readable message.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class PbbDomainError(Exception):
    """Base class for every failure the engine reports to callers."""

    kind = "error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, *, details: dict[str, object] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NotFoundError(PbbDomainError):
    """Referenced village, hamlet, user or payment does not exist."""

    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class CapacityExceededError(PbbDomainError):
    """Village already owns the maximum number of hamlets."""

    kind = "capacity_exceeded"
    status_code = status.HTTP_409_CONFLICT


class MismatchError(PbbDomainError):
    """Hamlet does not belong to the stated village."""

    kind = "mismatch"
    status_code = 422


class ConflictError(PbbDomainError):
    """Uniqueness violation (village code, username) or a lost concurrent write."""

    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT


class ForbiddenError(PbbDomainError):
    """Caller's scope does not cover the requested village or operation."""

    kind = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class InvalidError(PbbDomainError):
    """Schema-level constraint violated."""

    kind = "invalid"
    status_code = 422


def _render(exc: PbbDomainError) -> JSONResponse:
    body: dict[str, object] = {"detail": exc.message, "error": exc.kind}
    if exc.details:
        body["context"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=body)


def register_error_handlers(app: FastAPI) -> None:
    """Map domain failures to JSON responses."""

    @app.exception_handler(PbbDomainError)
    async def handle_domain_error(request: Request, exc: PbbDomainError) -> JSONResponse:
        logger.warning("%s %s rejected: %s (%s)", request.method, request.url.path, exc.message, exc.kind)
        return _render(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        # Payload constraint failures share the "invalid" kind with engine-raised InvalidError.
        logger.warning("%s %s rejected: request validation failed", request.method, request.url.path)
        return JSONResponse(
            status_code=InvalidError.status_code,
            content={"detail": jsonable_encoder(exc.errors()), "error": InvalidError.kind},
        )
