from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from app.domain.discounts import crud
from app.domain.discounts.models import DiscountType
from app.domain.discounts.schemas import DiscountValidationDTO
from app.domain.exceptions import InvalidInput
from app.services.catalog_service import get_event


class DiscountReason:
    VALID = "Discount code is valid"
    NOT_FOUND = "Discount code not found or invalid"
    NOT_STARTED = "Discount code has not started yet"
    EXPIRED = "Discount code has expired"
    EXHAUSTED = "Discount code has reached maximum redemptions"


def compute_discount(subtotal: int, discount_type: DiscountType, value: int) -> int:
    """Discount in minor units, never larger than the subtotal it applies to."""
    if subtotal <= 0 or value <= 0:
        return 0
    if discount_type == DiscountType.PERCENTAGE:
        amount = subtotal * min(value, 100) // 100
    else:
        amount = value
    return min(amount, subtotal)


async def validate_discount_code(
        db: AsyncSession,
        event_id: int,
        code: str,
        now: datetime | None = None
) -> DiscountValidationDTO:
    """
    Soft validation of a discount code for an event
    - Case-insensitive exact match scoped to the event
    - Returns valid=False with a reason instead of raising
    """
    now = now or datetime.now(timezone.utc)
    discount = await crud.get_active_code_for_event(db, event_id, code)
    if not discount:
        return DiscountValidationDTO(valid=False, reason=DiscountReason.NOT_FOUND)

    if discount.starts_at > now:
        return DiscountValidationDTO(valid=False, code=discount.code, reason=DiscountReason.NOT_STARTED)
    if discount.expires_at < now:
        return DiscountValidationDTO(valid=False, code=discount.code, reason=DiscountReason.EXPIRED)
    if discount.times_redeemed >= discount.max_redemptions:
        return DiscountValidationDTO(valid=False, code=discount.code, reason=DiscountReason.EXHAUSTED)

    return DiscountValidationDTO(
        valid=True,
        code=discount.code,
        discount_id=discount.id,
        discount_type=discount.discount_type,
        discount_value=discount.discount_value,
        reason=DiscountReason.VALID
    )


async def check_discount_code(db: AsyncSession, event_id: int, code: str) -> DiscountValidationDTO:
    await get_event(db, event_id)
    return await validate_discount_code(db, event_id, code)


async def redeem_discount_code(db: AsyncSession, discount_code_id: int) -> int:
    # guarded increment, concurrent checkouts cannot push past max_redemptions
    redeemed = await crud.increment_redemptions(db, discount_code_id)
    if redeemed is None:
        raise InvalidInput(DiscountReason.EXHAUSTED, ctx={"discount_code_id": discount_code_id})
    return redeemed
