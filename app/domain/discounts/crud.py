from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession
from .models import DiscountCode, DiscountCodeStatus


async def get_active_code_for_event(db: AsyncSession, event_id: int, code: str) -> DiscountCode | None:
    stmt = select(DiscountCode).where(
        DiscountCode.event_id == event_id,
        DiscountCode.code == func.upper(code),
        DiscountCode.status == DiscountCodeStatus.ACTIVE
    )
    result = await db.execute(stmt)
    return result.scalars().first()


async def increment_redemptions(db: AsyncSession, discount_code_id: int) -> int | None:
    """Bump the counter only while below the cap; None when no row matched."""
    return await db.scalar(
        update(DiscountCode)
        .where(
            DiscountCode.id == discount_code_id,
            DiscountCode.times_redeemed < DiscountCode.max_redemptions
        )
        .values(times_redeemed=DiscountCode.times_redeemed + 1)
        .returning(DiscountCode.times_redeemed)
    )
