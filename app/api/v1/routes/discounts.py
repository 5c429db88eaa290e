from typing import Annotated
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from app.domain.discounts.schemas import DiscountValidationRequestDTO, DiscountValidationDTO
from app.services import discount_service


router = APIRouter(prefix="/events/{event_id}/discount-codes", tags=["discounts"])
db_dependency = Annotated[AsyncSession, Depends(get_db)]


@router.post(
    "/validate",
    status_code=status.HTTP_200_OK,
    response_model=DiscountValidationDTO,
    response_model_exclude_none=True
)
async def validate_discount_code(event_id: int, schema: DiscountValidationRequestDTO, db: db_dependency):
    return await discount_service.check_discount_code(db, event_id, schema.code)
