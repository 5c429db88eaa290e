from typing import Annotated
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from app.core.dependencies.auth import get_optional_identity
from app.domain.orders.schemas import CheckoutRequestDTO, OrderReadDTO
from app.services import checkout_service


router = APIRouter(tags=["checkout"])
db_dependency = Annotated[AsyncSession, Depends(get_db)]


@router.post(
    "/checkout",
    status_code=status.HTTP_201_CREATED,
    response_model=OrderReadDTO,
    dependencies=[Depends(get_optional_identity)]
)
async def checkout(schema: CheckoutRequestDTO, db: db_dependency, response: Response):
    order = await checkout_service.checkout(db, schema)
    response.headers["Location"] = f"/orders/lookup/{order.public_lookup_token}"
    return order
