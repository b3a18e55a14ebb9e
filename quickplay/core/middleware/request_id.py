import re
import time
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware

from quickplay.core.logging import latency_bucket_ms, log_event, request_id_ctx_var

# Client-supplied ids are echoed into logs and headers, so keep them short and printable
_ACCEPTED_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def _request_id_from(header_value):
    if header_value and _ACCEPTED_REQUEST_ID.match(header_value):
        return header_value
    return uuid4().hex


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind a request id for the duration of the request and log one line when it completes."""

    def __init__(self, app, header_name: str = "x-request-id"):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request, call_next):
        rid = _request_id_from(request.headers.get(self.header_name))
        request.state.request_id = rid
        token = request_id_ctx_var.set(rid)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers[self.header_name] = rid
            log_event(
                "warning" if response.status_code >= 500 else "info",
                "request.complete",
                request_id=rid,
                method=request.method,
                path=request.url.path,
                status=response.status_code,
                latency_bucket=latency_bucket_ms((time.perf_counter() - started) * 1000),
            )
            return response
        finally:
            request_id_ctx_var.reset(token)
