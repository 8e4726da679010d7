"""
Shared error response schemas for OpenAPI documentation.

Import these in endpoint files to add consistent error responses.

Note: These definitions use inline examples rather than model references
to avoid circular imports with the exceptions module.
"""

from typing import Dict, Any

PROBLEM_BASE_URL = "https://inspections.example.com/problems"


def _problem(description: str, status: int, title: str, code: str, detail: str, **extra) -> Dict[str, Any]:
    example = {
        "type": f"{PROBLEM_BASE_URL}/{code.lower().replace('_', '-')}",
        "title": title,
        "status": status,
        "message": detail,
        "detail": detail,
        "code": code,
        "timestamp": "2024-01-01T09:00:00Z",
        "trace_id": "abc123def456",
        **extra,
    }
    return {
        "description": description,
        "content": {"application/problem+json": {"example": example}},
    }


# Reusable response definitions for OpenAPI
ERROR_RESPONSES: Dict[int, Dict[str, Any]] = {
    400: _problem(
        "Bad Request - Invalid parameters",
        400, "Bad Request", "VAL_001", "Inspector unavailable",
    ),
    401: _problem(
        "Unauthorized - Missing or invalid token",
        401, "Unauthorized", "AUTH_001", "Invalid auth token",
    ),
    409: _problem(
        "Conflict - Operation not allowed in the current state",
        409, "Conflict", "BIZ_003", "Invoice already sent",
    ),
    500: _problem(
        "Internal Server Error",
        500, "Internal Server Error", "SRV_001", "An unexpected error occurred",
    ),
}
