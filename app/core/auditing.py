"""
Business audit trail.

Every state-changing service call runs inside an ``AuditSpan``. On exit one
record (SUCCESS or FAIL, with duration and the failure reason) is appended to
the audit Redis stream. The record carries the request and actor context set
by the HTTP middleware and the auth dependency. A broken Redis never fails
the request.
"""
import json
import time
import logging
from datetime import timezone, datetime
from typing import Any
from redis.exceptions import RedisError
from sqlalchemy.exc import IntegrityError
from app.core.config import AUDIT_STREAM
from app.core.ctx import get_redis, get_request_id, get_route, get_client_ip, current_actor
from app.domain.exceptions import AppError


logger = logging.getLogger("app.audit")

SUCCESS = "SUCCESS"
FAIL = "FAIL"


def _failure_reason(exc: BaseException | None) -> str | None:
    if exc is None:
        return None
    if isinstance(exc, AppError):
        return f"{type(exc).__name__}: {exc}"
    if isinstance(exc, IntegrityError):
        return "Integrity error"
    return type(exc).__name__


def _audit_record(span: "AuditSpan", status: str, reason: str | None) -> dict[str, Any]:
    actor = current_actor()
    return {
        "request_id": get_request_id(),
        "route": get_route(),
        "actor_ip": get_client_ip(),
        "actor_user_id": actor.user_id if actor else None,
        "actor_roles": list(actor.roles) if actor else [],
        "actor_tenant_id": actor.tenant_id if actor else None,
        "scope": span.scope,
        "action": span.action,
        "status": status,
        "object_type": span.object_type,
        "object_id": span.object_id,
        "event_id": span.event_id,
        "order_id": span.order_id,
        "ticket_id": span.ticket_id,
        "reason": reason,
        "meta": span.meta,
    }


async def audit_emit(record: dict[str, Any]) -> str | None:
    r = get_redis()
    if not r:
        return None
    try:
        return await r.xadd(AUDIT_STREAM, {"json": json.dumps(record, default=str)})
    except RedisError:
        logger.warning(
            "Audit emit failed",
            extra={"scope": record["scope"], "action": record["action"], "status": record["status"]}
        )
        return None


class AuditSpan:
    """Async context manager; ids learned mid-operation are assigned on the span before it exits."""

    def __init__(self, *, scope: str, action: str,
                 object_type: str | None = None, object_id: int | None = None,
                 event_id: int | None = None, order_id: int | None = None,
                 ticket_id: int | None = None, meta: dict[str, Any] | None = None):
        self.scope = scope
        self.action = action
        self.object_type = object_type
        self.object_id = object_id
        self.event_id = event_id
        self.order_id = order_id
        self.ticket_id = ticket_id
        self.meta = dict(meta or {})
        self._started = 0.0

    async def __aenter__(self):
        self._started = time.perf_counter()
        self.meta.setdefault("occurred_at", datetime.now(timezone.utc).isoformat(timespec="milliseconds"))
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.meta["duration_ms"] = int((time.perf_counter() - self._started) * 1000)
        status = FAIL if exc else SUCCESS
        await audit_emit(_audit_record(self, status, _failure_reason(exc)))
        return False
