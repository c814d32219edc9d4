"""
Renders every failure as the House Hunt error envelope and logs it.

Envelope shape::

    {"error": {"code", "message", "timestamp", "request_id", "details"?}}
"""

from typing import Dict, Any, Optional, List
from datetime import datetime, timezone
from fastapi import Request, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from pydantic import ValidationError as PydanticValidationError
from house_hunt.utils.exceptions import APIException, ValidationError
import logging
import uuid

logger = logging.getLogger(__name__)

# Constraint fragments found in driver messages, mapped to client-facing text
CONSTRAINT_MESSAGES = (
    ("users.email", "An account with this email already exists"),
    ("ix_users_email", "An account with this email already exists"),
    ("uq_property_amenity_name", "Amenity listed twice for the same property"),
    ("foreign key", "Referenced user or property does not exist"),
    ("not null", "A required field is missing"),
)


class ErrorHandlerService:
    """Builds error responses for API, validation, database and unexpected errors."""

    @staticmethod
    def format_error_response(
        error_code: str,
        message: str,
        details: Optional[List[Dict[str, Any]]] = None,
        request_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Build the error envelope.

        Args:
            error_code: Machine readable code such as ``NOT_FOUND``
            message: Human readable message
            details: Per-field problems, omitted when empty
            request_id: Id of the request the error belongs to

        Returns:
            Envelope dictionary
        """
        body: Dict[str, Any] = {
            "code": error_code,
            "message": message,
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "request_id": request_id or ErrorHandlerService._new_request_id(),
        }
        if details:
            body["details"] = details
        return {"error": body}

    @classmethod
    def handle_api_exception(cls, exception: APIException, request: Optional[Request] = None) -> JSONResponse:
        """Render a service or dependency exception with its own status and code."""
        request_id = cls._get_request_id(request)
        error_code = exception.error_code or "API_ERROR"
        cls._log(logging.WARNING, request, request_id, f"{error_code} - {exception.detail}")

        details = exception.field_errors if isinstance(exception, ValidationError) else None
        return JSONResponse(
            status_code=exception.status_code,
            content=cls.format_error_response(error_code, exception.detail, details, request_id),
            headers=exception.headers
        )

    @classmethod
    def handle_validation_error(
        cls,
        exception: PydanticValidationError,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Render request body, query or model validation failures as 422.

        Each pydantic error becomes one ``details`` entry with the dotted field
        path, message and error type.
        """
        request_id = cls._get_request_id(request)
        details = [
            {
                "field": ".".join(str(part) for part in error.get("loc", ())),
                "message": error.get("msg"),
                "type": error.get("type"),
            }
            for error in exception.errors()
        ]
        cls._log(logging.WARNING, request, request_id, f"VALIDATION_ERROR - {len(details)} field errors")

        return JSONResponse(
            status_code=422,
            content=jsonable_encoder(
                cls.format_error_response("VALIDATION_ERROR", "Request validation failed", details, request_id)
            )
        )

    @classmethod
    def handle_database_error(cls, exception: SQLAlchemyError, request: Optional[Request] = None) -> JSONResponse:
        """
        Render database failures. Integrity violations become 409 CONFLICT,
        everything else 500 DATABASE_ERROR.
        """
        request_id = cls._get_request_id(request)

        if isinstance(exception, IntegrityError):
            status_code, error_code = 409, "CONFLICT"
            message = cls.describe_integrity_error(exception)
        else:
            status_code, error_code = 500, "DATABASE_ERROR"
            message = "Database operation failed"

        cls._log(
            logging.ERROR, request, request_id,
            f"{error_code} - {type(exception).__name__}: {exception}", exc_info=True
        )
        return JSONResponse(
            status_code=status_code,
            content=cls.format_error_response(error_code, message, request_id=request_id)
        )

    @classmethod
    def handle_http_exception(cls, exception: HTTPException, request: Optional[Request] = None) -> JSONResponse:
        """Render framework HTTP errors, e.g. unknown routes or wrong methods."""
        request_id = cls._get_request_id(request)
        error_code = f"HTTP_{exception.status_code}"
        cls._log(logging.WARNING, request, request_id, f"{error_code} - {exception.detail}")

        return JSONResponse(
            status_code=exception.status_code,
            content=cls.format_error_response(error_code, str(exception.detail), request_id=request_id),
            headers=getattr(exception, "headers", None)
        )

    @classmethod
    def handle_unexpected_error(cls, exception: Exception, request: Optional[Request] = None) -> JSONResponse:
        """Render anything else as 500 without leaking internals."""
        request_id = cls._get_request_id(request)
        cls._log(
            logging.ERROR, request, request_id,
            f"INTERNAL_SERVER_ERROR - {type(exception).__name__}: {exception}", exc_info=True
        )

        return JSONResponse(
            status_code=500,
            content=cls.format_error_response(
                "INTERNAL_SERVER_ERROR",
                "An unexpected error occurred. Please try again later.",
                request_id=request_id
            )
        )

    @staticmethod
    def describe_integrity_error(exception: IntegrityError) -> str:
        """Turn a driver integrity message into a client-facing sentence."""
        raw = str(exception.orig).lower()
        for fragment, message in CONSTRAINT_MESSAGES:
            if fragment in raw:
                return message
        return "Data integrity constraint violation"

    @staticmethod
    def _log(
        level: int,
        request: Optional[Request],
        request_id: str,
        message: str,
        exc_info: bool = False
    ) -> None:
        path = request.url.path if request else None
        logger.log(
            level,
            f"[{request_id}] {path or '-'}: {message}",
            extra={"request_id": request_id, "path": path},
            exc_info=exc_info
        )

    @staticmethod
    def _get_request_id(request: Optional[Request]) -> str:
        """Reuse the id assigned by the request logging middleware when present."""
        if request is not None:
            request_id = getattr(request.state, "request_id", None)
            if request_id:
                return request_id
        return ErrorHandlerService._new_request_id()

    @staticmethod
    def _new_request_id() -> str:
        return uuid.uuid4().hex[:8]
