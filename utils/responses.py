from typing import Any

from fastapi.responses import JSONResponse


def ok(data: Any = None, message: str = "") -> dict:
    """성공 응답 표준 형식"""
    return {"success": True, "data": data, "message": message}


def fail(status_code: int, message: str) -> JSONResponse:
    """실패 응답 표준 형식 (HTTP 상태 코드 포함)"""
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": {"code": status_code, "message": message}},
    )
