import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from schemas.common import ErrorDetail, ErrorResponse
from services.data_client import DataStoreError

logger = logging.getLogger(__name__)


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message), latency_ms=0)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def add_error_handlers(app: FastAPI):
    @app.exception_handler(DataStoreError)
    async def data_store_exception_handler(request: Request, exc: DataStoreError):
        # 저장소 밖(라우터 등)에서 새어 나온 원격 저장소 오류
        logger.error(f"저장소 오류: {request.method} {request.url.path} {exc!r} details={exc.details}")
        return _error_response(502, "DATA_STORE_ERROR", "데이터 저장소 요청에 실패했습니다")

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"처리되지 않은 예외: {request.method} {request.url.path}")
        return _error_response(500, "INTERNAL_ERROR", str(exc))
