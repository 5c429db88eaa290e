from typing import Annotated
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from app.domain.catalog.schemas import EventReadDTO, TicketTypeReadDTO
from app.services import catalog_service


router = APIRouter(tags=["catalog"])
db_dependency = Annotated[AsyncSession, Depends(get_db)]


@router.get(
    "/events/{event_id}",
    status_code=status.HTTP_200_OK,
    response_model=EventReadDTO
)
async def get_event(event_id: int, db: db_dependency):
    return await catalog_service.get_event(db, event_id)


@router.get(
    "/tenants/{tenant_id}/events/{slug}",
    status_code=status.HTTP_200_OK,
    response_model=EventReadDTO
)
async def get_event_by_slug(tenant_id: int, slug: str, db: db_dependency):
    return await catalog_service.get_event_by_slug(db, tenant_id, slug)


@router.get(
    "/events/{event_id}/ticket-types",
    status_code=status.HTTP_200_OK,
    response_model=list[TicketTypeReadDTO]
)
async def list_event_ticket_types(event_id: int, db: db_dependency):
    return await catalog_service.list_event_ticket_types(db, event_id)
