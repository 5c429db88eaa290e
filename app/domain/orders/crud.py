from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from .models import Order, Ticket


async def get_order(db: AsyncSession, order_id: int, *, for_update: bool = False) -> Order | None:
    stmt = select(Order).where(Order.id == order_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    return await db.scalar(stmt)


async def get_order_by_lookup_token(db: AsyncSession, token: str) -> Order | None:
    return await db.scalar(select(Order).where(Order.public_lookup_token == token))


async def lookup_token_taken(db: AsyncSession, token: str) -> bool:
    return bool(await db.scalar(select(select(1).where(Order.public_lookup_token == token).exists())))


async def get_ticket(db: AsyncSession, ticket_id: int, *, for_update: bool = False) -> Ticket | None:
    stmt = select(Ticket).where(Ticket.id == ticket_id)
    if for_update:
        # lock only the ticket row; rows already in the identity map are refreshed
        stmt = stmt.with_for_update(of=Ticket).execution_options(populate_existing=True)
    return await db.scalar(stmt)


async def list_order_tickets(db: AsyncSession, order_id: int, *, for_update: bool = False) -> list[Ticket]:
    stmt = select(Ticket).where(Ticket.order_id == order_id).order_by(Ticket.id)
    if for_update:
        stmt = stmt.with_for_update(of=Ticket).execution_options(populate_existing=True)
    result = await db.scalars(stmt)
    return list(result.all())
