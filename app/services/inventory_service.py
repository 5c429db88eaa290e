"""
Inventory ledger: the only writer of ``ticket_types.quantity_sold``.

Both directions are single conditional UPDATE statements. Under concurrent
checkouts PostgreSQL re-checks the WHERE clause once the row lock is granted,
so each remaining unit has exactly one winner and no read-then-write window
exists.
"""
import logging
from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession
from app.domain.catalog.models import TicketType
from app.domain.exceptions import InsufficientInventory, InvalidInput, NotFound


logger = logging.getLogger("app.inventory")


def _require_positive(quantity: int, ticket_type_id: int) -> None:
    if quantity < 1:
        raise InvalidInput("Quantity must be at least 1", ctx={"ticket_type_id": ticket_type_id, "quantity": quantity})


async def reserve(db: AsyncSession, ticket_type_id: int, quantity: int) -> int:
    """Claim ``quantity`` units; returns the new sold count."""
    _require_positive(quantity, ticket_type_id)
    sold = await db.scalar(
        update(TicketType)
        .where(
            TicketType.id == ticket_type_id,
            TicketType.quantity_sold + quantity <= TicketType.quantity_total
        )
        .values(quantity_sold=TicketType.quantity_sold + quantity)
        .returning(TicketType.quantity_sold)
    )
    if sold is not None:
        return sold

    row = (await db.execute(
        select(TicketType.name, TicketType.quantity_total, TicketType.quantity_sold)
        .where(TicketType.id == ticket_type_id)
    )).first()
    if row is None:
        raise NotFound("Ticket type not found", ctx={"ticket_type_id": ticket_type_id})

    raise InsufficientInventory(
        row.name,
        ticket_type_id=ticket_type_id,
        requested=quantity,
        available=max(0, row.quantity_total - row.quantity_sold)
    )


async def release(db: AsyncSession, ticket_type_id: int, quantity: int = 1) -> int | None:
    """Return ``quantity`` units to stock; the sold count is clamped at zero."""
    _require_positive(quantity, ticket_type_id)
    sold = await db.scalar(
        update(TicketType)
        .where(TicketType.id == ticket_type_id)
        .values(quantity_sold=func.greatest(TicketType.quantity_sold - quantity, 0))
        .returning(TicketType.quantity_sold)
    )
    if sold is None:
        logger.warning("Release for missing ticket type", extra={"ticket_type_id": ticket_type_id})
    return sold
