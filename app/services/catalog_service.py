from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from app.domain.catalog import crud
from app.domain.catalog.models import Event, EventStatus, TicketType, TicketTypeStatus
from app.domain.catalog.schemas import TicketTypeReadDTO
from app.domain.exceptions import NotFound


def _is_publicly_visible(event: Event) -> bool:
    return event.status == EventStatus.ACTIVE and event.is_public


def is_on_sale(ticket_type: TicketType, now: datetime) -> bool:
    return (
        ticket_type.status == TicketTypeStatus.ACTIVE
        and ticket_type.sales_start <= now <= ticket_type.sales_end
    )


async def get_event(db: AsyncSession, event_id: int) -> Event:
    event = await crud.get_event_by_id(db, event_id)
    if not event or not _is_publicly_visible(event):
        raise NotFound("Event not found or not available for purchase", ctx={"event_id": event_id})
    return event


async def get_event_by_slug(db: AsyncSession, tenant_id: int, slug: str) -> Event:
    event = await crud.get_event_by_slug(db, tenant_id, slug.strip().lower())
    if not event or not _is_publicly_visible(event):
        raise NotFound("Event not found", ctx={"tenant_id": tenant_id, "slug": slug})
    return event


async def get_purchasable_ticket_types(db: AsyncSession, event_id: int, now: datetime | None = None) -> list[TicketType]:
    now = now or datetime.now(timezone.utc)
    return await crud.list_purchasable_ticket_types(db, event_id, now)


async def list_event_ticket_types(db: AsyncSession, event_id: int) -> list[TicketTypeReadDTO]:
    await get_event(db, event_id)
    now = datetime.now(timezone.utc)
    ticket_types = await crud.list_ticket_types_for_event(db, event_id)
    return [
        TicketTypeReadDTO.model_validate(tt).model_copy(update={"on_sale": is_on_sale(tt, now)})
        for tt in ticket_types
        if tt.status != TicketTypeStatus.CLOSED
    ]
