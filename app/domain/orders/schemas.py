from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, EmailStr, field_validator, model_validator
from app.core.config import MAX_TICKETS_PER_LINE
from app.core.utils.text_utils import strip_text, normalize_email
from app.domain.orders.models import OrderStatus, TicketStatus


class CheckoutItemDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    ticket_type_id: int = Field(gt=0)
    quantity: int = Field(ge=1, le=MAX_TICKETS_PER_LINE)


class CheckoutRequestDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    event_id: int = Field(gt=0)
    buyer_email: EmailStr
    buyer_name: str = Field(min_length=2, max_length=200)
    items: list[CheckoutItemDTO] = Field(min_length=1, max_length=50)
    discount_code: str | None = Field(default=None, max_length=64)

    _strip_buyer_name = field_validator("buyer_name", mode="before")(strip_text)
    _strip_discount_code = field_validator("discount_code", mode="before")(strip_text)
    _normalize_buyer_email = field_validator("buyer_email", mode="before")(normalize_email)


class OrderItemReadDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra='forbid')

    id: int
    ticket_type_id: int
    ticket_type_name: str = Field(validation_alias='ticket_type_name_snapshot')
    unit_price: int
    quantity: int
    subtotal: int


class TicketReadDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra='forbid')

    id: int
    order_id: int
    ticket_type_id: int
    attendee_name: str
    attendee_email: str
    qr_payload: str
    status: TicketStatus
    seat_label: str | None = None
    checked_in_at: datetime | None = None


class CheckedInTicketReadDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra='forbid')

    id: int
    order_id: int
    ticket_type_id: int
    attendee_name: str
    status: TicketStatus
    seat_label: str | None = None
    checked_in_at: datetime | None = None


class OrderReadDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra='forbid')

    id: int
    event_id: int
    buyer_email: str
    buyer_name: str
    subtotal_amount: int
    discount_amount: int
    total_amount: int
    currency: str
    status: OrderStatus
    public_lookup_token: str
    payment_reference: str | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None
    items: list[OrderItemReadDTO] = Field(default_factory=list)
    tickets: list[TicketReadDTO] = Field(default_factory=list)


class OrderLookupQueryDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    email: EmailStr

    _normalize_email = field_validator("email", mode="before")(normalize_email)


class OrderCompleteRequestDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    payment_reference: str = Field(min_length=1, max_length=200)

    _strip_reference = field_validator("payment_reference", mode="before")(strip_text)


class CheckInRequestDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    ticket_id: int | None = Field(default=None, gt=0)
    qr_payload: str | None = Field(default=None, max_length=2000)
    qr_signature: str | None = Field(default=None, max_length=200)

    @model_validator(mode="after")
    def _check_ticket_reference(self):
        if self.qr_payload is None and self.qr_signature is None:
            if self.ticket_id is None:
                raise ValueError("Either ticket_id or a scanned QR credential is required")
            return self
        if not self.qr_payload or not self.qr_signature:
            raise ValueError("qr_payload and qr_signature must be sent together")
        return self


class TicketCancellationReadDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    message: str
    refund_amount: int
    currency: str
    order_status: OrderStatus
    ticket: TicketReadDTO
