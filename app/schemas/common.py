from typing import Any


def ok(data: Any = None, message: str | None = None, count: int | None = None) -> dict:
    """Success envelope shared by every endpoint: {success, data, message?, count?}."""
    out: dict = {"success": True, "data": data}
    if message is not None:
        out["message"] = message
    if count is not None:
        out["count"] = count
    return out


def fail(error: str) -> dict:
    return {"success": False, "error": error}
