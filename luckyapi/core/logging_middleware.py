import logging
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from luckyapi.logging_config import request_id_var

logger = logging.getLogger("luckyapi")

REQUEST_ID_HEADER = "X-Request-ID"


class LoggingMiddleware(BaseHTTPMiddleware):
    """요청/응답 로깅 - 요청 ID와 호출 사용자를 함께 기록"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start = time.time()
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        user_id = request.headers.get("X-User-Id", "-")
        prefix = f"{request.method} {request.url.path} user={user_id}"

        try:
            logger.info(f"{prefix} started")
            try:
                response = await call_next(request)
            except Exception:
                logger.exception(f"{prefix} failed with unhandled error")
                raise

            duration_ms = (time.time() - start) * 1000
            line = f"{prefix} -> {response.status_code} in {duration_ms:.1f}ms"
            if response.status_code >= 500:
                logger.error(line)
            elif response.status_code >= 400:
                logger.warning(line)
            else:
                logger.info(line)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
