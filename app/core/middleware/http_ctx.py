import time
import uuid
import logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from app.core.ctx import REQUEST_ID_CTX, ROUTE_CTX, CLIENT_IP_CTX, REDIS_CTX, ACTOR_CTX


logger = logging.getLogger("app.http")


def _client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


class HttpContextMiddleware(BaseHTTPMiddleware):
    """Binds request id, route, client ip and the shared redis client for the duration of one request."""

    def __init__(self, app, request_id_header: str = "X-Request-ID"):
        super().__init__(app)
        self.request_id_header = request_id_header

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(self.request_id_header) or uuid.uuid4().hex
        bound = [
            (REQUEST_ID_CTX, REQUEST_ID_CTX.set(request_id)),
            (ROUTE_CTX, ROUTE_CTX.set(f"{request.method} {request.url.path}")),
            (CLIENT_IP_CTX, CLIENT_IP_CTX.set(_client_ip(request))),
            (REDIS_CTX, REDIS_CTX.set(getattr(request.app.state, "redis", None))),
            (ACTOR_CTX, ACTOR_CTX.set(None)),
        ]
        started = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers.setdefault(self.request_id_header, request_id)
            logger.info(
                "%s %s -> %s in %dms", request.method, request.url.path, response.status_code,
                int((time.perf_counter() - started) * 1000),
                extra={"request_id": request_id}
            )
            return response
        finally:
            for var, token in reversed(bound):
                var.reset(token)
