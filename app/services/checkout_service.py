import logging
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.auditing import AuditSpan
from app.core.config import ORDER_SETTLEMENT, DEFAULT_CURRENCY
from app.core.notifications import publish_order_completed
from app.core.security import build_qr_payload, sign_qr_payload, epoch_millis, generate_lookup_token
from app.domain.catalog import crud as catalog_crud
from app.domain.catalog.models import TicketType
from app.domain.orders import crud
from app.domain.orders.models import Order, OrderItem, OrderStatus, Ticket, TicketStatus
from app.domain.orders.schemas import CheckoutRequestDTO, CheckoutItemDTO
from app.domain.exceptions import InvalidInput, NotFound, Conflict
from app.services import inventory_service
from app.services.catalog_service import get_event, is_on_sale
from app.services.discount_service import validate_discount_code, compute_discount, redeem_discount_code


logger = logging.getLogger("app.checkout")

SETTLE_IMMEDIATELY = "immediate"
LOOKUP_TOKEN_ATTEMPTS = 5


def _merge_line_items(items: list[CheckoutItemDTO]) -> list[tuple[int, int]]:
    """One line per ticket type, ordered by id so concurrent checkouts lock rows in the same order."""
    merged: dict[int, int] = {}
    for item in items:
        merged[item.ticket_type_id] = merged.get(item.ticket_type_id, 0) + item.quantity
    return sorted(merged.items())


async def _resolve_ticket_types(
        db: AsyncSession,
        event_id: int,
        lines: list[tuple[int, int]],
        now: datetime
) -> dict[int, TicketType]:
    requested_ids = [ticket_type_id for ticket_type_id, _ in lines]
    ticket_types = {tt.id: tt for tt in await catalog_crud.get_ticket_types_by_ids(db, event_id, requested_ids)}

    missing = [tt_id for tt_id in requested_ids if tt_id not in ticket_types]
    if missing:
        raise InvalidInput(
            "One or more ticket types not found for this event",
            ctx={"event_id": event_id, "ticket_type_ids": missing}
        )

    for ticket_type in ticket_types.values():
        if not is_on_sale(ticket_type, now):
            raise InvalidInput(
                f"Ticket type {ticket_type.name} is not available for purchase at this time",
                ctx={"ticket_type_id": ticket_type.id, "status": ticket_type.status}
            )
    return ticket_types


async def _apply_discount(
        db: AsyncSession,
        event_id: int,
        code: str | None,
        subtotal: int,
        now: datetime
) -> tuple[int, int | None]:
    if not code:
        return 0, None

    verdict = await validate_discount_code(db, event_id, code, now)
    if not verdict.valid:
        raise InvalidInput(verdict.reason, ctx={"event_id": event_id, "discount_code": code.upper()})

    amount = compute_discount(subtotal, verdict.discount_type, verdict.discount_value)
    if amount == 0:
        return 0, None
    await redeem_discount_code(db, verdict.discount_id)
    return amount, verdict.discount_id


async def _new_lookup_token(db: AsyncSession) -> str:
    for _ in range(LOOKUP_TOKEN_ATTEMPTS):
        token = generate_lookup_token()
        if not await crud.lookup_token_taken(db, token):
            return token
    raise Conflict("Could not allocate order lookup token")


def _sign_tickets(order: Order, tickets: list[Ticket], issued_at: datetime) -> None:
    issued_at_ms = epoch_millis(issued_at)
    for ticket in tickets:
        payload = build_qr_payload(ticket.id, order.id, order.event_id, ticket.attendee_name, issued_at_ms)
        ticket.qr_payload = payload
        ticket.qr_signature = sign_qr_payload(payload)


async def checkout(db: AsyncSession, schema: CheckoutRequestDTO, now: datetime | None = None) -> Order:
    """
    Turn one checkout request into an order with its items and signed tickets
    - Every write shares the request transaction, any failure rolls back stock, redemptions and rows together
    - Stock is claimed with conditional updates, never read-then-write
    - Tickets are flushed before signing because the credential embeds the ticket id
    """
    async with AuditSpan(
        scope="CHECKOUT",
        action="CREATE_ORDER",
        object_type="order",
        event_id=schema.event_id,
        meta={"lines": len(schema.items), "discount_code": bool(schema.discount_code)}
    ) as span:
        now = now or datetime.now(timezone.utc)

        # Part 1 - event and ticket type eligibility
        event = await get_event(db, schema.event_id)
        lines = _merge_line_items(schema.items)
        ticket_types = await _resolve_ticket_types(db, event.id, lines, now)

        # Part 2 - claim stock, first failure aborts the whole checkout
        for ticket_type_id, quantity in lines:
            await inventory_service.reserve(db, ticket_type_id, quantity)

        # Part 3 - totals and discount
        subtotal = sum(ticket_types[tt_id].price * quantity for tt_id, quantity in lines)
        discount_amount, discount_code_id = await _apply_discount(db, event.id, schema.discount_code, subtotal, now)
        total = max(0, subtotal - discount_amount)

        # Part 4 - order and items
        settled = ORDER_SETTLEMENT == SETTLE_IMMEDIATELY
        order = Order(
            tenant_id=event.tenant_id,
            event_id=event.id,
            buyer_email=schema.buyer_email,
            buyer_name=schema.buyer_name,
            subtotal_amount=subtotal,
            discount_amount=discount_amount,
            total_amount=total,
            currency=DEFAULT_CURRENCY,
            discount_code_id=discount_code_id,
            status=OrderStatus.COMPLETED if settled else OrderStatus.PENDING,
            completed_at=now if settled else None,
            public_lookup_token=await _new_lookup_token(db),
            items=[
                OrderItem(
                    ticket_type_id=tt_id,
                    ticket_type_name_snapshot=ticket_types[tt_id].name,
                    unit_price=ticket_types[tt_id].price,
                    quantity=quantity,
                    subtotal=ticket_types[tt_id].price * quantity
                )
                for tt_id, quantity in lines
            ],
            tickets=[]
        )
        db.add(order)

        # Part 5 - one unsigned ticket per unit, flushed to get ids
        tickets = [
            Ticket(
                ticket_type_id=tt_id,
                attendee_name=schema.buyer_name,
                attendee_email=schema.buyer_email,
                qr_payload="",
                qr_signature="",
                status=TicketStatus.VALID
            )
            for tt_id, quantity in lines
            for _ in range(quantity)
        ]
        order.tickets.extend(tickets)
        await db.flush()

        # Part 6 - sign now that ids exist
        _sign_tickets(order, tickets, now)
        await db.flush()

        span.object_id = order.id
        span.order_id = order.id
        span.meta.update({"tickets": len(tickets), "total_amount": total, "status": order.status.value})
        logger.info(
            "Order %s created with %d tickets", order.id, len(tickets),
            extra={"order_id": order.id, "event_id": event.id, "status": order.status.value}
        )

        if order.status == OrderStatus.COMPLETED:
            await publish_order_completed(order)
        return order


async def complete_order(db: AsyncSession, order_id: int, payment_reference: str) -> Order:
    """Payment confirmation from the payment collaborator; repeat calls with the same reference are no-ops."""
    async with AuditSpan(
        scope="CHECKOUT",
        action="COMPLETE_ORDER",
        object_type="order",
        object_id=order_id,
        order_id=order_id
    ) as span:
        order = await crud.get_order(db, order_id, for_update=True)
        if not order:
            raise NotFound("Order not found", ctx={"order_id": order_id})

        if order.status == OrderStatus.COMPLETED:
            if order.payment_reference in (None, payment_reference):
                order.payment_reference = payment_reference
                await db.flush()
                span.meta["idempotent"] = True
                return order
            raise Conflict(
                "Order already completed with another payment",
                ctx={"order_id": order_id, "payment_reference": order.payment_reference}
            )
        if order.status == OrderStatus.CANCELLED:
            raise Conflict("Order is cancelled", ctx={"order_id": order_id})

        order.status = OrderStatus.COMPLETED
        order.payment_reference = payment_reference
        order.completed_at = datetime.now(timezone.utc)
        await db.flush()

        span.event_id = order.event_id
        await publish_order_completed(order)
        return order


async def get_order_by_lookup_token(db: AsyncSession, token: str, email: str) -> Order:
    order = await crud.get_order_by_lookup_token(db, token.strip().upper())
    # same answer for unknown token and wrong email
    if not order or order.buyer_email.lower() != email.lower():
        raise NotFound("Order not found", ctx={"token": token})
    return order
