from typing import Annotated
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from app.core.dependencies.auth import get_current_identity_with_roles
from app.domain.orders.schemas import OrderReadDTO, OrderLookupQueryDTO, OrderCompleteRequestDTO
from app.services import checkout_service

router = APIRouter(prefix="/orders", tags=["orders"])
db_dependency = Annotated[AsyncSession, Depends(get_db)]


@router.get(
    "/lookup/{token}",
    response_model=OrderReadDTO,
    status_code=status.HTTP_200_OK
)
async def lookup_order(token: str, db: db_dependency, query: Annotated[OrderLookupQueryDTO, Depends()]):
    return await checkout_service.get_order_by_lookup_token(db, token, query.email)


@router.post(
    "/{order_id}/complete",
    response_model=OrderReadDTO,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(get_current_identity_with_roles("ADMIN", "SUPERADMIN"))]
)
async def complete_order(order_id: int, schema: OrderCompleteRequestDTO, db: db_dependency):
    return await checkout_service.complete_order(db, order_id, schema.payment_reference)
