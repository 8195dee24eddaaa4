import logging
import traceback
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from .exceptions import ErrorKind, InternalServerError

logger = logging.getLogger("luckyapi")


def error_body(
    code: str, kind: ErrorKind, message: str, details: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """모든 에러 응답의 공통 형태"""
    return {
        "success": False,
        "error": {
            "code": code,
            "kind": kind.value,
            "message": message,
            "details": details or {},
        },
    }


def _describe(request: Request) -> str:
    client = request.client.host if request.client else "-"
    return f"{request.method} {request.url} from {client}"


def _log_by_status(label: str, request: Request, status_code: int, detail: Any, exc=None):
    line = f"[{label}] {_describe(request)} -> {status_code}: {detail}"
    if status_code < 500:
        logger.warning(line)
        return
    if exc is not None and exc.__traceback__ is not None:
        tb_str = "".join(traceback.format_tb(exc.__traceback__))
        line = f"{line}\n\nStack Trace:\n{tb_str}"
    logger.error(line)


async def handle_base_api_exception(request, exc):
    _log_by_status("BaseAPIException", request, exc.status_code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=exc.detail)  # type: ignore[arg-type]


async def handle_http_exception(request, exc):
    """라우팅 404/405 등 프레임워크 예외를 공통 에러 형태로 변환"""
    _log_by_status("HTTPException", request, exc.status_code, exc.detail, exc)

    if isinstance(exc.detail, dict) and "error" in exc.detail:  # type: ignore[truthy-bool]
        content = exc.detail  # type: ignore[assignment]
    else:
        kind = ErrorKind.VALIDATION if exc.status_code < 500 else ErrorKind.INTERNAL
        content = error_body("HTTP_ERROR", kind, str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=content)


def jsonable_errors(errors):
    """pydantic 에러의 ctx에 포함된 예외 객체를 문자열로 변환"""
    cleaned = []
    for err in errors:
        err = dict(err)
        if "ctx" in err:
            err["ctx"] = {k: str(v) for k, v in err["ctx"].items()}
        cleaned.append(err)
    return jsonable_encoder(cleaned)


async def handle_validation_error(request, exc):
    errors = jsonable_errors(exc.errors())
    _log_by_status("ValidationError", request, 422, errors)
    content = error_body(
        "VALIDATION_001", ErrorKind.VALIDATION, "Validation failed", {"errors": errors}
    )
    return JSONResponse(status_code=422, content=content)


async def handle_unexpected_error(request, exc):
    tb_str = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    logger.error(
        f"[Unhandled Error] {_describe(request)}\n"
        f"Exception Type: {type(exc).__name__}\n"
        f"Exception Message: {str(exc)}\n\n"
        f"Full Stack Trace:\n{tb_str}"
    )

    internal = InternalServerError()
    return JSONResponse(status_code=internal.status_code, content=internal.detail)  # type: ignore[arg-type]
