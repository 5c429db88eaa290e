from app.core.database import Base
from enum import Enum
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Identity, Text, ForeignKey, Integer, TIMESTAMP, func, Enum as SQLEnum, UniqueConstraint, \
    CheckConstraint


class DiscountType(str, Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"


class DiscountCodeStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class DiscountCode(Base):
    __tablename__ = "discount_codes"

    id: Mapped[int] = mapped_column(Identity(always=True), primary_key=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    # stored upper-case, lookups are case-insensitive
    code: Mapped[str] = mapped_column(Text, nullable=False)
    discount_type: Mapped[DiscountType] = mapped_column(SQLEnum(DiscountType, name="discount_type"), nullable=False)
    discount_value: Mapped[int] = mapped_column(Integer, nullable=False)
    starts_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    max_redemptions: Mapped[int] = mapped_column(Integer, nullable=False)
    times_redeemed: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    status: Mapped[DiscountCodeStatus] = mapped_column(
        SQLEnum(DiscountCodeStatus, name="discount_code_status"),
        nullable=False,
        server_default=DiscountCodeStatus.ACTIVE.value
    )
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    event: Mapped["Event"] = relationship(lazy="selectin")

    __table_args__ = (
        UniqueConstraint("event_id", "code", name="uq_discount_event_code"),
        CheckConstraint("code = upper(code)", name="chk_discount_code_upper"),
        CheckConstraint("discount_value >= 0", name="chk_discount_value_nonneg"),
        CheckConstraint(
            "discount_type <> 'PERCENTAGE' OR discount_value <= 100",
            name="chk_discount_percentage_range"
        ),
        CheckConstraint("times_redeemed >= 0", name="chk_discount_redeemed_nonneg"),
        CheckConstraint("times_redeemed <= max_redemptions", name="chk_discount_redemption_cap"),
        CheckConstraint("expires_at > starts_at", name="chk_discount_window"),
    )
