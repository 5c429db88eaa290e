from app.core.database import Base
from enum import Enum
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Identity, Text, ForeignKey, Integer, TIMESTAMP, func, Enum as SQLEnum, UniqueConstraint, \
    CheckConstraint, String


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class TicketStatus(str, Enum):
    VALID = "VALID"
    SCANNED = "SCANNED"
    CANCELLED = "CANCELLED"


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Identity(always=True), primary_key=True)
    tenant_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id", ondelete="RESTRICT"), nullable=False, index=True)
    buyer_email: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    buyer_name: Mapped[str] = mapped_column(Text, nullable=False)
    subtotal_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    discount_amount: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    total_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    discount_code_id: Mapped[int | None] = mapped_column(
        ForeignKey("discount_codes.id", ondelete="SET NULL"),
        nullable=True
    )
    status: Mapped[OrderStatus] = mapped_column(SQLEnum(OrderStatus, name="order_status"),
                                                nullable=False, server_default=OrderStatus.PENDING.value)
    payment_reference: Mapped[str | None] = mapped_column(Text, nullable=True)
    public_lookup_token: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    event: Mapped["Event"] = relationship(lazy="selectin")
    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order", lazy="selectin", cascade="all, delete-orphan", order_by="OrderItem.id"
    )
    tickets: Mapped[list["Ticket"]] = relationship(
        back_populates="order", lazy="selectin", cascade="all, delete-orphan", order_by="Ticket.id"
    )

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="chk_order_total_nonneg"),
        CheckConstraint("discount_amount >= 0", name="chk_order_discount_nonneg"),
        CheckConstraint("total_amount = subtotal_amount - discount_amount", name="chk_order_total_balance"),
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Identity(always=True), primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    ticket_type_id: Mapped[int] = mapped_column(ForeignKey("ticket_types.id", ondelete="RESTRICT"), nullable=False)
    ticket_type_name_snapshot: Mapped[str] = mapped_column(Text, nullable=False)
    unit_price: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    subtotal: Mapped[int] = mapped_column(Integer, nullable=False)

    order: Mapped["Order"] = relationship(back_populates="items", lazy="selectin")

    __table_args__ = (
        UniqueConstraint("order_id", "ticket_type_id", name="uq_order_item_ticket_type"),
        CheckConstraint("quantity >= 1", name="chk_order_item_quantity"),
        CheckConstraint("unit_price >= 0", name="chk_order_item_price_nonneg"),
        CheckConstraint("subtotal = unit_price * quantity", name="chk_order_item_subtotal"),
    )


class Ticket(Base):
    __tablename__ = "tickets"

    id: Mapped[int] = mapped_column(Identity(always=True), primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    ticket_type_id: Mapped[int] = mapped_column(ForeignKey("ticket_types.id", ondelete="RESTRICT"),
                                                nullable=False, index=True)
    attendee_name: Mapped[str] = mapped_column(Text, nullable=False)
    attendee_email: Mapped[str] = mapped_column(Text, nullable=False)
    # empty until the row has an id and can be signed
    qr_payload: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    qr_signature: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    status: Mapped[TicketStatus] = mapped_column(SQLEnum(TicketStatus, name="ticket_status"),
                                                 nullable=False, server_default=TicketStatus.VALID.value)
    seat_label: Mapped[str | None] = mapped_column(Text, nullable=True)
    checked_in_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    order: Mapped["Order"] = relationship(back_populates="tickets", lazy="selectin")
    ticket_type: Mapped["TicketType"] = relationship(lazy="selectin")

    __table_args__ = (
        CheckConstraint("status <> 'SCANNED' OR checked_in_at IS NOT NULL", name="chk_ticket_scanned_at"),
        CheckConstraint("NOT (status = 'CANCELLED' AND checked_in_at IS NOT NULL)", name="chk_ticket_scan_not_cancel"),
    )
