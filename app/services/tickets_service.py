import logging
from datetime import datetime, timezone, timedelta
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.auditing import AuditSpan
from app.core.config import CANCELLATION_CUTOFF_HOURS
from app.core.notifications import publish_ticket_cancelled
from app.core.security import verify_qr_payload, parse_qr_payload
from app.domain.auth.schemas import Identity
from app.domain.orders import crud
from app.domain.orders.models import Order, OrderStatus, Ticket, TicketStatus
from app.domain.orders.schemas import CheckInRequestDTO, TicketCancellationReadDTO, TicketReadDTO
from app.domain.exceptions import NotFound, Conflict, Forbidden, InvalidInput
from app.services import inventory_service


logger = logging.getLogger("app.tickets")

PLATFORM_ROLE = "SUPERADMIN"
CANCELLATION_MESSAGE = "Ticket cancelled successfully. Refund will be processed within 5-7 business days."


def _require_same_tenant(identity: Identity, order: Order) -> None:
    if identity.has_role(PLATFORM_ROLE):
        return
    if identity.tenant_id is None or identity.tenant_id != order.tenant_id:
        raise Forbidden(
            "Ticket belongs to another tenant",
            ctx={"ticket_tenant_id": order.tenant_id, "user_tenant_id": identity.tenant_id}
        )


def _require_buyer(identity: Identity, order: Order) -> None:
    if identity.email.lower() != order.buyer_email.lower():
        raise Forbidden("You do not have permission to cancel this ticket", ctx={"order_id": order.id})


def _ticket_id_from_request(schema: CheckInRequestDTO) -> int:
    if schema.qr_payload is None:
        return schema.ticket_id

    # scanned codes are checked before any database lookup
    if not verify_qr_payload(schema.qr_payload, schema.qr_signature):
        raise Forbidden("Invalid ticket credential", ctx={"reason": "bad_signature"})
    claimed_id = parse_qr_payload(schema.qr_payload)["ticketId"]
    if schema.ticket_id is not None and schema.ticket_id != claimed_id:
        raise InvalidInput(
            "Ticket id does not match scanned credential",
            ctx={"ticket_id": schema.ticket_id, "credential_ticket_id": claimed_id}
        )
    return claimed_id


def refund_hint(order: Order, ticket: Ticket) -> int:
    """Unit price less this ticket's proportional share of the order discount."""
    unit_price = next((item.unit_price for item in order.items if item.ticket_type_id == ticket.ticket_type_id), 0)
    if order.discount_amount <= 0 or order.subtotal_amount <= 0:
        return unit_price
    return max(0, unit_price - unit_price * order.discount_amount // order.subtotal_amount)


async def check_in(
        db: AsyncSession,
        identity: Identity,
        schema: CheckInRequestDTO,
        now: datetime | None = None
) -> Ticket:
    """
    Mark a ticket as used at the door
    - The ticket row is locked, so a concurrent cancellation sees the scan or waits for it
    - The stored credential is re-verified with the signing key instead of trusting the row
    - Only tickets of completed orders can be scanned
    """
    async with AuditSpan(scope="TICKETS", action="CHECK_IN", object_type="ticket") as span:
        now = now or datetime.now(timezone.utc)
        ticket_id = _ticket_id_from_request(schema)
        span.object_id = span.ticket_id = ticket_id

        ticket = await crud.get_ticket(db, ticket_id, for_update=True)
        if not ticket:
            raise NotFound("Ticket not found", ctx={"ticket_id": ticket_id})
        order = ticket.order
        span.order_id = order.id
        span.event_id = order.event_id

        _require_same_tenant(identity, order)

        if ticket.status == TicketStatus.SCANNED:
            raise Conflict(
                "Ticket has already been checked in",
                ctx={"ticket_id": ticket.id, "checked_in_at": ticket.checked_in_at}
            )
        if ticket.status == TicketStatus.CANCELLED:
            raise Conflict("Ticket is cancelled", ctx={"ticket_id": ticket.id})

        if not verify_qr_payload(ticket.qr_payload, ticket.qr_signature):
            logger.warning("Stored credential failed verification", extra={"ticket_id": ticket.id})
            raise Forbidden("Ticket credential failed verification", ctx={"ticket_id": ticket.id})
        if schema.qr_payload is not None and schema.qr_payload != ticket.qr_payload:
            raise Forbidden("Scanned credential does not match ticket", ctx={"ticket_id": ticket.id})

        if order.status != OrderStatus.COMPLETED:
            raise Conflict("Order is not completed", ctx={"order_id": order.id, "order_status": order.status})

        ticket.status = TicketStatus.SCANNED
        ticket.checked_in_at = now
        await db.flush()
        return ticket


async def cancel_ticket(
        db: AsyncSession,
        identity: Identity,
        ticket_id: int,
        now: datetime | None = None
) -> TicketCancellationReadDTO:
    """
    Cancel one ticket of the caller's order and put its unit back on sale
    - Order row is locked first, cancellations of sibling tickets run one at a time
    - Order becomes CANCELLED only when every sibling re-read under lock is cancelled
    """
    async with AuditSpan(
        scope="TICKETS",
        action="CANCEL",
        object_type="ticket",
        object_id=ticket_id,
        ticket_id=ticket_id
    ) as span:
        now = now or datetime.now(timezone.utc)

        ticket = await crud.get_ticket(db, ticket_id)
        if not ticket:
            raise NotFound(f"Ticket with ID '{ticket_id}' not found", ctx={"ticket_id": ticket_id})

        order = await crud.get_order(db, ticket.order_id, for_update=True)
        ticket = await crud.get_ticket(db, ticket_id, for_update=True)
        span.order_id = order.id
        span.event_id = order.event_id

        _require_buyer(identity, order)

        if ticket.status == TicketStatus.CANCELLED:
            raise Conflict("This ticket is already cancelled", ctx={"ticket_id": ticket_id})
        if ticket.status == TicketStatus.SCANNED or ticket.checked_in_at is not None:
            raise Conflict(
                "This ticket has already been checked in and cannot be cancelled",
                ctx={"ticket_id": ticket_id}
            )

        if order.event.event_start - now < timedelta(hours=CANCELLATION_CUTOFF_HOURS):
            raise InvalidInput(
                f"Tickets cannot be cancelled less than {CANCELLATION_CUTOFF_HOURS} hours before the event",
                ctx={"event_id": order.event_id, "event_start": order.event.event_start}
            )

        ticket.status = TicketStatus.CANCELLED
        ticket.cancelled_at = now
        await db.flush()
        await inventory_service.release(db, ticket.ticket_type_id, 1)

        siblings = await crud.list_order_tickets(db, order.id, for_update=True)
        if all(t.status == TicketStatus.CANCELLED for t in siblings):
            order.status = OrderStatus.CANCELLED
            await db.flush()
            span.meta["order_cancelled"] = True

        refund_amount = refund_hint(order, ticket)
        span.meta["refund_amount"] = refund_amount
        await publish_ticket_cancelled(order, ticket, refund_amount)

        return TicketCancellationReadDTO(
            message=CANCELLATION_MESSAGE,
            refund_amount=refund_amount,
            currency=order.currency,
            order_status=order.status,
            ticket=TicketReadDTO.model_validate(ticket)
        )
