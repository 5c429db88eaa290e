from .catalog.models import Event, TicketType
from .discounts.models import DiscountCode
from .orders.models import Order, OrderItem, Ticket

__all__ = ("Event", "TicketType", "DiscountCode", "Order", "OrderItem", "Ticket")
