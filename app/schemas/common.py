# 공통 응답 envelope: {success, data?, error?, message?}

from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder


def ok(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    """성공 응답. data/message는 값이 있을 때만 포함."""
    body: Dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = jsonable_encoder(data)
    if message is not None:
        body["message"] = message
    return body


def error_body(error: str) -> Dict[str, Any]:
    return {"success": False, "error": error}
