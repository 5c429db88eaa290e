from typing import Annotated
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from app.core.dependencies.auth import get_current_identity_with_roles
from app.domain.auth.schemas import Identity
from app.domain.orders.schemas import CheckInRequestDTO, CheckedInTicketReadDTO, TicketCancellationReadDTO
from app.services import tickets_service


router = APIRouter(tags=["tickets"])
db_dependency = Annotated[AsyncSession, Depends(get_db)]


@router.post(
    "/check-in",
    status_code=status.HTTP_200_OK,
    response_model=CheckedInTicketReadDTO,
    responses={
        status.HTTP_403_FORBIDDEN: {"description": "Credential failed verification or ticket belongs to another tenant"},
        status.HTTP_404_NOT_FOUND: {"description": "Ticket not found"},
        status.HTTP_409_CONFLICT: {"description": "Ticket already checked in, cancelled, or order not completed"},
    }
)
async def check_in(
        schema: CheckInRequestDTO,
        db: db_dependency,
        identity: Annotated[Identity, Depends(get_current_identity_with_roles("STAFF", "ADMIN", "SUPERADMIN"))]
):
    return await tickets_service.check_in(db, identity, schema)


@router.delete(
    "/tickets/{ticket_id}",
    status_code=status.HTTP_200_OK,
    response_model=TicketCancellationReadDTO,
    responses={
        status.HTTP_400_BAD_REQUEST: {"description": "Event starts within the cancellation cutoff"},
        status.HTTP_403_FORBIDDEN: {"description": "Ticket belongs to another buyer"},
        status.HTTP_404_NOT_FOUND: {"description": "Ticket not found"},
        status.HTTP_409_CONFLICT: {"description": "Ticket already cancelled or checked in"},
    }
)
async def cancel_ticket(
        ticket_id: int,
        db: db_dependency,
        identity: Annotated[Identity, Depends(get_current_identity_with_roles("CUSTOMER", "ADMIN"))]
):
    return await tickets_service.cancel_ticket(db, identity, ticket_id)
