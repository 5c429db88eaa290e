from sqlalchemy.orm import mapped_column, Mapped, relationship
from sqlalchemy import Identity, Text, Integer, ForeignKey, CheckConstraint, UniqueConstraint, Boolean, TIMESTAMP, \
    func, Enum
from app.core.database import Base
from datetime import datetime
import enum


class EventStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"


class TicketTypeStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    CLOSED = "CLOSED"


class Event(Base):
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Identity(always=True), primary_key=True)
    tenant_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    slug: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    venue: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[EventStatus] = mapped_column(
        Enum(EventStatus, name="event_status"),
        nullable=False,
        default=EventStatus.DRAFT
    )
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    event_start: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    event_end: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    ticket_types: Mapped[list["TicketType"]] = relationship(back_populates="event", lazy="selectin")

    __table_args__ = (
        UniqueConstraint("tenant_id", "slug", name="uq_event_tenant_slug"),
        CheckConstraint("event_end > event_start", name="chk_event_time_range"),
    )


class TicketType(Base):
    __tablename__ = "ticket_types"

    id: Mapped[int] = mapped_column(Identity(always=True), primary_key=True)
    event_id: Mapped[int] = mapped_column(
        ForeignKey("events.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity_total: Mapped[int] = mapped_column(Integer, nullable=False)
    # written only by the inventory ledger
    quantity_sold: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    sales_start: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    sales_end: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    status: Mapped[TicketTypeStatus] = mapped_column(
        Enum(TicketTypeStatus, name="ticket_type_status"),
        nullable=False,
        default=TicketTypeStatus.ACTIVE
    )

    event: Mapped["Event"] = relationship(back_populates="ticket_types", lazy="selectin")

    @property
    def quantity_available(self) -> int:
        return max(0, self.quantity_total - self.quantity_sold)

    __table_args__ = (
        CheckConstraint("price >= 0", name="chk_ticket_type_price_nonneg"),
        CheckConstraint("quantity_total >= 0", name="chk_ticket_type_total_nonneg"),
        CheckConstraint("quantity_sold >= 0", name="chk_ticket_type_sold_nonneg"),
        CheckConstraint("quantity_sold <= quantity_total", name="chk_ticket_type_no_oversell"),
        CheckConstraint("sales_end >= sales_start", name="chk_ticket_type_sales_range"),
    )
