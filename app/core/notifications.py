"""
Completed-order facts for the payment/notification collaborators.

Facts go to a Redis stream; consumers live outside this service. Publishing is
best effort and never feeds back into checkout or cancellation.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any
from redis.exceptions import RedisError
from app.core.config import ORDERS_STREAM
from app.core.ctx import get_redis, get_request_id
from app.domain.orders.models import Order, Ticket


logger = logging.getLogger("app.notifications")


class OrderFact:
    ORDER_COMPLETED = "order.completed"
    TICKET_CANCELLED = "ticket.cancelled"


async def publish_fact(kind: str, data: dict[str, Any]) -> str | None:
    r = get_redis()
    if not r:
        logger.debug("No redis client in context, dropping fact %s", kind)
        return None

    body = {
        "type": kind,
        "request_id": get_request_id(),
        "published_at": datetime.now(timezone.utc).isoformat(),
        "data": data,
    }
    try:
        return await r.xadd(ORDERS_STREAM, {"json": json.dumps(body, default=str)})
    except RedisError:
        logger.exception("Publishing %s failed", kind, extra={"fact": kind})
        return None


async def publish_order_completed(order: Order) -> str | None:
    return await publish_fact(OrderFact.ORDER_COMPLETED, {
        "order_id": order.id,
        "tenant_id": order.tenant_id,
        "event_id": order.event_id,
        "buyer_email": order.buyer_email,
        "buyer_name": order.buyer_name,
        "total_amount": order.total_amount,
        "currency": order.currency,
        "payment_reference": order.payment_reference,
        "ticket_count": len(order.tickets),
        "public_lookup_token": order.public_lookup_token,
    })


async def publish_ticket_cancelled(order: Order, ticket: Ticket, refund_amount: int) -> str | None:
    return await publish_fact(OrderFact.TICKET_CANCELLED, {
        "order_id": order.id,
        "tenant_id": order.tenant_id,
        "ticket_id": ticket.id,
        "buyer_email": order.buyer_email,
        "refund_amount": refund_amount,
        "currency": order.currency,
        "order_status": order.status.value,
    })
