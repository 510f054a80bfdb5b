"""Utility helpers for the standard JSON response envelope."""
from typing import Any


def error_response(code: str, message: str, details: Any = None) -> dict[str, Any]:
    """Return a standardized error payload."""

    payload: dict[str, Any] = {"success": False, "message": message, "error": {"code": code}}
    if details:
        payload["error"]["details"] = details
    return payload


def validation_details(errors: list[dict[str, Any]]) -> list[dict[str, str]]:
    """Flatten pydantic error dicts into ``{field, message}`` pairs."""

    details: list[dict[str, str]] = []
    for err in errors:
        # Drop the leading "body"/"query" segment FastAPI adds to locations.
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        details.append({"field": ".".join(loc) or "request", "message": err.get("msg", "invalid")})
    return details
