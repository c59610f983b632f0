"""Response envelope helpers: every endpoint answers {success, message, data}."""
from typing import Any, Optional


def success_response(data: Any = None, message: str = "Success", **extra) -> dict:
    body = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body


def error_response(message: str, errors: Optional[Any] = None) -> dict:
    body = {"success": False, "message": message}
    if errors is not None:
        body["errors"] = errors
    return body


def pagination_meta(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": (total + limit - 1) // limit if limit else 0,
    }
