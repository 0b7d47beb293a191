"""Error kinds raised by the learning path core."""

from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class LearningPathError(Exception):
    """Base error; carries the code and HTTP status used in responses."""

    code = "ERROR"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationFailure(LearningPathError):
    """Malformed or out-of-range input. Nothing was mutated."""

    code = "VALIDATION_FAILED"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(LearningPathError):
    """A plan, skill or project id does not resolve for the user."""

    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class ConcurrentModification(LearningPathError):
    """Another writer committed to the same learning path first."""

    code = "CONFLICT"
    status_code = status.HTTP_409_CONFLICT


async def learning_path_error_handler(
    request: Request, exc: LearningPathError
) -> JSONResponse:
    """Render a core error in the standard error envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "code": exc.code,
                "message": exc.message,
                "details": exc.details,
            }
        },
    )


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report a rejected request body or parameter as ``ValidationFailure``."""
    failure = ValidationFailure(
        "Validation failed", {"errors": jsonable_encoder(exc.errors())}
    )
    return await learning_path_error_handler(request, failure)
