from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from lex_provider.core.config import settings
from lex_provider.core.logging import bind_request_id, reset_request_id


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Attach correlation IDs and emit one structured log line per lifecycle call."""

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)
        self._logger = logging.getLogger("lex_provider.request")

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ):
        request_id = request.headers.get(settings.request_id_header) or str(
            uuid.uuid4()
        )
        request_token = bind_request_id(request_id)
        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            self._logger.exception(
                "request failed",
                extra=self._request_fields(request, 500, start_time),
            )
            raise
        else:
            level = logging.WARNING if response.status_code >= 500 else logging.INFO
            self._logger.log(
                level,
                "request completed",
                extra=self._request_fields(request, response.status_code, start_time),
            )
            response.headers[settings.request_id_header] = request_id
            return response
        finally:
            reset_request_id(request_token)

    @staticmethod
    def _request_fields(request: Request, status_code: int, start_time: float) -> dict:
        duration_ms = (time.perf_counter() - start_time) * 1000
        return {
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "duration_ms": round(duration_ms, 2),
        }
