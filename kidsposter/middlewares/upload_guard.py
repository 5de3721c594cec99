from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from kidsposter.config import DEFAULT_UPLOAD_MAX_BYTES

logger = logging.getLogger("kids-poster")


class UploadGuardMiddleware(BaseHTTPMiddleware):
    """Reject oversized upload bodies and tag every API call with a request id."""

    WATCH_PATH_PREFIXES = ("/api/",)

    def __init__(self, app, *, max_body_bytes: int | None = None, **_: Any) -> None:  # type: ignore[override]
        self.max_body_bytes = self._normalise_limit(max_body_bytes, DEFAULT_UPLOAD_MAX_BYTES)
        super().__init__(app)

    @staticmethod
    def _normalise_limit(candidate: int | None, fallback: int) -> int | None:
        if candidate is None:
            candidate = fallback
        if candidate <= 0:
            return None
        return candidate

    def _too_large(self, content_length: int | None, body_len: int) -> bool:
        if self.max_body_bytes is None:
            return False
        if content_length and content_length > self.max_body_bytes:
            return True
        return body_len > self.max_body_bytes

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        path = request.url.path
        if request.method not in {"POST", "PUT", "PATCH"} or not any(
            path.startswith(prefix) for prefix in self.WATCH_PATH_PREFIXES
        ):
            return await call_next(request)

        rid = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        request.state.trace_id = rid
        start = time.time()

        content_length_header = request.headers.get("content-length")
        try:
            content_length = int(content_length_header) if content_length_header else None
        except (TypeError, ValueError):
            content_length = None

        if self._too_large(content_length, 0):
            return self._reject(rid, path, content_length or 0)

        body = await request.body()
        if self._too_large(None, len(body)):
            return self._reject(rid, path, len(body))

        logger.info(
            "[guard] rid=%s path=%s method=%s cl=%s size=%s",
            rid,
            path,
            request.method,
            content_length_header,
            len(body),
        )

        # The body read above is cached on the request and replayed downstream.
        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        logger.info(
            "[guard] rid=%s done status=%s dur_ms=%s",
            rid,
            response.status_code,
            int((time.time() - start) * 1000),
        )
        return response

    def _reject(self, rid: str, path: str, size: int) -> JSONResponse:
        logger.warning("[guard] rid=%s path=%s rejected oversize=%s", rid, path, size)
        return JSONResponse(
            status_code=413,
            content={"error": f"Upload too large ({size} bytes, limit {self.max_body_bytes})."},
            headers={"X-Request-ID": rid},
        )


__all__ = ["UploadGuardMiddleware"]
