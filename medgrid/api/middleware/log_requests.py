# MEDGRID REGISTRY GRID

# COMPONENT: API REQUEST / RESPONSE LOGGING MIDDLEWARE
# REQUIREMENTS SATISFIED: backend observability and debugging support
"""
medgrid/api/middleware/log_requests.py

ASGI middleware logging every HTTP request and response handled by the
grid API.

Each request is tagged with a short request id, stamped on every log
record emitted while it is served. At INFO level the method,
path, status and latency are logged; at DEBUG level the request and
response bodies are logged too. Non-HTTP ASGI events pass straight
through. Request and response behavior is never modified.
"""
import uuid
import time
import logging
from starlette.types import ASGIApp, Receive, Scope, Send

from medgrid.utils.logging import request_id

logger = logging.getLogger("medgrid")

MAX_BODY_LOG = 2000


def _preview(body: bytes) -> str:
    text = body.decode("utf-8", errors="replace")
    if len(text) > MAX_BODY_LOG:
        return text[:MAX_BODY_LOG] + "...(truncated)"
    return text


class RequestLogger:
    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        token = request_id.set(str(uuid.uuid4())[:8])
        method = scope.get("method")
        path = scope.get("path")

        # ------------------------------
        # Capture request body
        # ------------------------------
        body_bytes = b""

        async def recv_wrapper():
            nonlocal body_bytes
            msg = await receive()
            if msg["type"] == "http.request":
                body_bytes += msg.get("body", b"")
            return msg

        # ------------------------------
        # Prepare response capture
        # ------------------------------
        resp_body = b""
        status_code = None

        async def send_wrapper(message):
            nonlocal resp_body, status_code

            if message["type"] == "http.response.start":
                status_code = message["status"]

            if message["type"] == "http.response.body":
                resp_body += message.get("body", b"")

            await send(message)

        start = time.time()
        try:
            await self.app(scope, recv_wrapper, send_wrapper)
        finally:
            duration_ms = round((time.time() - start) * 1000, 2)
            logger.info("%s %s -> %s (%s ms)", method, path, status_code, duration_ms)
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("request body: %s", _preview(body_bytes))
                logger.debug("response body: %s", _preview(resp_body))
            request_id.reset(token)
