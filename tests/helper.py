from datetime import datetime, timezone, timedelta
from app.core.security import build_qr_payload, sign_qr_payload, epoch_millis
from app.domain.auth.schemas import Identity
from app.domain.catalog.models import Event, EventStatus, TicketType, TicketTypeStatus
from app.domain.orders.models import Order, OrderItem, OrderStatus, Ticket, TicketStatus


def db_with_scalars_first(mocker, value):
    res = mocker.Mock()
    res.scalars.return_value.first.return_value = value
    db = mocker.Mock()
    db.execute = mocker.AsyncMock(return_value=res)
    return db, res


def db_with_scalar(mocker, value):
    db = mocker.Mock()
    db.scalar = mocker.AsyncMock(return_value=value)
    return db


def make_db(mocker):
    db = mocker.Mock()
    db.add = mocker.Mock()
    db.flush = mocker.AsyncMock()
    db.scalar = mocker.AsyncMock()
    db.execute = mocker.AsyncMock()
    return db


def make_identity(email="ana@gmail.com", roles=("CUSTOMER",), tenant_id=None, user_id=1) -> Identity:
    return Identity(user_id=user_id, email=email, tenant_id=tenant_id, roles=frozenset(roles))


def make_event(**overrides) -> Event:
    values = dict(
        id=1,
        tenant_id=7,
        slug="summer-fest",
        name="Summer Fest",
        description=None,
        venue="Dhaka Arena",
        status=EventStatus.ACTIVE,
        is_public=True,
        event_start=datetime(2025, 1, 10, 18, tzinfo=timezone.utc),
        event_end=datetime(2025, 1, 10, 23, tzinfo=timezone.utc),
    )
    values.update(overrides)
    return Event(**values)


def make_ticket_type(**overrides) -> TicketType:
    values = dict(
        id=2,
        event_id=1,
        name="VIP",
        description=None,
        price=5000,
        quantity_total=100,
        quantity_sold=0,
        sales_start=datetime(2024, 12, 1, tzinfo=timezone.utc),
        sales_end=datetime(2025, 1, 10, tzinfo=timezone.utc),
        status=TicketTypeStatus.ACTIVE,
    )
    values.update(overrides)
    return TicketType(**values)


def make_order(
        ticket_statuses=(TicketStatus.VALID,),
        *,
        status=OrderStatus.COMPLETED,
        event_start=datetime(2025, 1, 10, 18, tzinfo=timezone.utc),
        unit_price=5000,
        discount_amount=0,
        buyer_email="ana@gmail.com",
) -> Order:
    """Completed order for ticket type 2 with one signed ticket per status, ids starting at 5."""
    quantity = len(ticket_statuses)
    subtotal = unit_price * quantity
    order = Order(
        id=10,
        tenant_id=7,
        event_id=1,
        buyer_email=buyer_email,
        buyer_name="Ana Rahman",
        subtotal_amount=subtotal,
        discount_amount=discount_amount,
        total_amount=subtotal - discount_amount,
        currency="BDT",
        status=status,
        public_lookup_token="ABCD2345",
        items=[
            OrderItem(
                id=1,
                ticket_type_id=2,
                ticket_type_name_snapshot="VIP",
                unit_price=unit_price,
                quantity=quantity,
                subtotal=subtotal
            )
        ],
        tickets=[],
    )
    order.event = make_event(event_start=event_start, event_end=event_start + timedelta(hours=5))

    issued_at = epoch_millis(datetime(2025, 1, 1, tzinfo=timezone.utc))
    for offset, ticket_status in enumerate(ticket_statuses):
        ticket_id = 5 + offset
        payload = build_qr_payload(ticket_id, order.id, order.event_id, "Ana Rahman", issued_at)
        order.tickets.append(Ticket(
            id=ticket_id,
            order_id=order.id,
            ticket_type_id=2,
            attendee_name="Ana Rahman",
            attendee_email=buyer_email,
            qr_payload=payload,
            qr_signature=sign_qr_payload(payload),
            status=ticket_status,
            checked_in_at=datetime(2025, 1, 1, tzinfo=timezone.utc) if ticket_status == TicketStatus.SCANNED else None,
        ))
    return order
