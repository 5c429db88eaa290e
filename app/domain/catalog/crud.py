from datetime import datetime
from typing import Iterable
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from .models import Event, TicketType, TicketTypeStatus


async def get_event_by_id(db: AsyncSession, event_id: int) -> Event | None:
    stmt = select(Event).where(Event.id == event_id)
    result = await db.execute(stmt)
    return result.scalars().first()


async def get_event_by_slug(db: AsyncSession, tenant_id: int, slug: str) -> Event | None:
    stmt = select(Event).where(Event.tenant_id == tenant_id, Event.slug == slug)
    result = await db.execute(stmt)
    return result.scalars().first()


async def list_ticket_types_for_event(db: AsyncSession, event_id: int) -> list[TicketType]:
    stmt = select(TicketType).where(TicketType.event_id == event_id).order_by(TicketType.price, TicketType.id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_purchasable_ticket_types(db: AsyncSession, event_id: int, now: datetime) -> list[TicketType]:
    stmt = (
        select(TicketType)
        .where(
            TicketType.event_id == event_id,
            TicketType.status == TicketTypeStatus.ACTIVE,
            TicketType.sales_start <= now,
            TicketType.sales_end >= now
        )
        .order_by(TicketType.price, TicketType.id)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_ticket_types_by_ids(db: AsyncSession, event_id: int, ids: Iterable[int]) -> list[TicketType]:
    stmt = select(TicketType).where(TicketType.event_id == event_id, TicketType.id.in_(list(ids)))
    result = await db.execute(stmt)
    return list(result.scalars().all())
