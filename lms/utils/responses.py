# lms/utils/responses.py
from typing import Any, Dict, Optional


def envelope(
    data: Any = None,
    message: Optional[str] = None,
    count: Optional[int] = None,
    pagination: Optional[Dict[str, Any]] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """
    Sobre JSON común a todas las respuestas:
    {success, data?, message?, count?, pagination?}
    Solo se incluyen las claves con valor.
    """
    body: Dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    if count is not None:
        body["count"] = count
    if pagination is not None:
        body["pagination"] = pagination
    body.update({k: v for k, v in extra.items() if v is not None})
    return body


def error_body(message: str) -> Dict[str, Any]:
    return {"success": False, "message": message}
