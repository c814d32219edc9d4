"""
OpenAPI models for the error envelope returned by every failing endpoint.
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Any, Dict


class ErrorDetail(BaseModel):
    """One field-level problem reported with a 422."""

    field: Optional[str] = Field(None, examples=["body.price"])
    message: str
    type: Optional[str] = Field(None, examples=["greater_than"])


class ErrorResponse(BaseModel):
    code: str = Field(..., examples=["NOT_FOUND"])
    message: str = Field(..., examples=["Property not found"])
    timestamp: str = Field(..., examples=["2024-05-01T09:30:00.000000Z"])
    request_id: str = Field(..., examples=["3f9a1c2b"])
    details: Optional[List[ErrorDetail]] = None


class APIErrorResponse(BaseModel):
    error: ErrorResponse


ERROR_EXAMPLES = {
    400: ("Bad Request", "IMAGE_LIMIT_EXCEEDED", "A property can hold at most 10 images"),
    401: ("Unauthorized", "UNAUTHORIZED", "Authentication required"),
    403: ("Forbidden", "FORBIDDEN", "Insufficient permissions to update this property"),
    404: ("Not Found", "NOT_FOUND", "Property not found"),
    409: ("Conflict", "CONFLICT", "User with identifier 'owner@example.com' already exists"),
    422: ("Validation Error", "VALIDATION_ERROR", "Request validation failed"),
    500: ("Internal Server Error", "INTERNAL_SERVER_ERROR", "An unexpected error occurred. Please try again later."),
}


def get_error_responses(*status_codes: int) -> Dict[int, Dict[str, Any]]:
    """
    Build the ``responses`` mapping for a route or router.

    Args:
        status_codes: HTTP status codes the route can fail with

    Returns:
        Mapping of status code to description, model and example envelope
    """
    responses = {}
    for status_code in status_codes:
        if status_code not in ERROR_EXAMPLES:
            continue
        description, code, message = ERROR_EXAMPLES[status_code]
        responses[status_code] = {
            "description": description,
            "model": APIErrorResponse,
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": code,
                            "message": message,
                            "timestamp": "2024-05-01T09:30:00.000000Z",
                            "request_id": "3f9a1c2b",
                        }
                    }
                }
            },
        }
    return responses


def get_crud_error_responses() -> Dict[int, Dict[str, Any]]:
    """Failure modes shared by the property mutation endpoints."""
    return get_error_responses(400, 401, 403, 404, 422, 500)
