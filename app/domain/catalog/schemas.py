from datetime import datetime
from pydantic import BaseModel, ConfigDict
from app.domain.catalog.models import EventStatus, TicketTypeStatus


class EventReadDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra='forbid')

    id: int
    tenant_id: int
    slug: str
    name: str
    description: str | None
    venue: str | None
    status: EventStatus
    event_start: datetime
    event_end: datetime


class TicketTypeReadDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra='forbid')

    id: int
    event_id: int
    name: str
    description: str | None
    price: int
    quantity_total: int
    quantity_sold: int
    quantity_available: int
    sales_start: datetime
    sales_end: datetime
    status: TicketTypeStatus
    on_sale: bool = False
