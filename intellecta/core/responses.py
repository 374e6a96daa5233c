from typing import Any, Optional


def success(message: str, data: Optional[Any] = None) -> dict:
    """Standard success envelope"""
    body = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    return body


def error_body(message: str, errors: Optional[list] = None, **extra) -> dict:
    """Standard error envelope"""
    body = {"success": False, "message": message, "errors": errors}
    body.update(extra)
    return body
