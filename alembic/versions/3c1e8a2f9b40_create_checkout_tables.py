"""create checkout tables

Revision ID: 3c1e8a2f9b40
Revises:
Create Date: 2026-10-19 10:12:44.218301

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3c1e8a2f9b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


event_status = postgresql.ENUM('DRAFT', 'ACTIVE', 'CANCELLED', name='event_status', create_type=False)
ticket_type_status = postgresql.ENUM('ACTIVE', 'PAUSED', 'CLOSED', name='ticket_type_status', create_type=False)
discount_type = postgresql.ENUM('PERCENTAGE', 'FIXED_AMOUNT', name='discount_type', create_type=False)
discount_code_status = postgresql.ENUM('ACTIVE', 'INACTIVE', name='discount_code_status', create_type=False)
order_status = postgresql.ENUM('PENDING', 'COMPLETED', 'CANCELLED', name='order_status', create_type=False)
ticket_status = postgresql.ENUM('VALID', 'SCANNED', 'CANCELLED', name='ticket_status', create_type=False)

ENUMS = (event_status, ticket_type_status, discount_type, discount_code_status, order_status, ticket_status)


def upgrade():
    bind = op.get_bind()
    for enum_type in ENUMS:
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        'events',
        sa.Column('id', sa.Integer(), sa.Identity(always=True), primary_key=True),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('slug', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('venue', sa.Text(), nullable=True),
        sa.Column('status', event_status, nullable=False),
        sa.Column('is_public', sa.Boolean(), nullable=False),
        sa.Column('event_start', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('event_end', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('tenant_id', 'slug', name='uq_event_tenant_slug'),
        sa.CheckConstraint('event_end > event_start', name='chk_event_time_range'),
    )
    op.create_index('ix_events_tenant_id', 'events', ['tenant_id'])

    op.create_table(
        'ticket_types',
        sa.Column('id', sa.Integer(), sa.Identity(always=True), primary_key=True),
        sa.Column('event_id', sa.Integer(), sa.ForeignKey('events.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.Column('quantity_total', sa.Integer(), nullable=False),
        sa.Column('quantity_sold', sa.Integer(), server_default='0', nullable=False),
        sa.Column('sales_start', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('sales_end', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('status', ticket_type_status, nullable=False),
        sa.CheckConstraint('price >= 0', name='chk_ticket_type_price_nonneg'),
        sa.CheckConstraint('quantity_total >= 0', name='chk_ticket_type_total_nonneg'),
        sa.CheckConstraint('quantity_sold >= 0', name='chk_ticket_type_sold_nonneg'),
        sa.CheckConstraint('quantity_sold <= quantity_total', name='chk_ticket_type_no_oversell'),
        sa.CheckConstraint('sales_end >= sales_start', name='chk_ticket_type_sales_range'),
    )
    op.create_index('ix_ticket_types_event_id', 'ticket_types', ['event_id'])

    op.create_table(
        'discount_codes',
        sa.Column('id', sa.Integer(), sa.Identity(always=True), primary_key=True),
        sa.Column('event_id', sa.Integer(), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('code', sa.Text(), nullable=False),
        sa.Column('discount_type', discount_type, nullable=False),
        sa.Column('discount_value', sa.Integer(), nullable=False),
        sa.Column('starts_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('expires_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('max_redemptions', sa.Integer(), nullable=False),
        sa.Column('times_redeemed', sa.Integer(), server_default='0', nullable=False),
        sa.Column('status', discount_code_status, server_default='ACTIVE', nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('event_id', 'code', name='uq_discount_event_code'),
        sa.CheckConstraint('code = upper(code)', name='chk_discount_code_upper'),
        sa.CheckConstraint('discount_value >= 0', name='chk_discount_value_nonneg'),
        sa.CheckConstraint(
            "discount_type <> 'PERCENTAGE' OR discount_value <= 100",
            name='chk_discount_percentage_range'
        ),
        sa.CheckConstraint('times_redeemed >= 0', name='chk_discount_redeemed_nonneg'),
        sa.CheckConstraint('times_redeemed <= max_redemptions', name='chk_discount_redemption_cap'),
        sa.CheckConstraint('expires_at > starts_at', name='chk_discount_window'),
    )
    op.create_index('ix_discount_codes_event_id', 'discount_codes', ['event_id'])

    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), sa.Identity(always=True), primary_key=True),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('event_id', sa.Integer(), sa.ForeignKey('events.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('buyer_email', sa.Text(), nullable=False),
        sa.Column('buyer_name', sa.Text(), nullable=False),
        sa.Column('subtotal_amount', sa.Integer(), nullable=False),
        sa.Column('discount_amount', sa.Integer(), server_default='0', nullable=False),
        sa.Column('total_amount', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False),
        sa.Column(
            'discount_code_id', sa.Integer(),
            sa.ForeignKey('discount_codes.id', ondelete='SET NULL'),
            nullable=True
        ),
        sa.Column('status', order_status, server_default='PENDING', nullable=False),
        sa.Column('payment_reference', sa.Text(), nullable=True),
        sa.Column('public_lookup_token', sa.Text(), nullable=False, unique=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('completed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.CheckConstraint('total_amount >= 0', name='chk_order_total_nonneg'),
        sa.CheckConstraint('discount_amount >= 0', name='chk_order_discount_nonneg'),
        sa.CheckConstraint('total_amount = subtotal_amount - discount_amount', name='chk_order_total_balance'),
    )
    op.create_index('ix_orders_tenant_id', 'orders', ['tenant_id'])
    op.create_index('ix_orders_event_id', 'orders', ['event_id'])
    op.create_index('ix_orders_buyer_email', 'orders', ['buyer_email'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer(), sa.Identity(always=True), primary_key=True),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column(
            'ticket_type_id', sa.Integer(),
            sa.ForeignKey('ticket_types.id', ondelete='RESTRICT'),
            nullable=False
        ),
        sa.Column('ticket_type_name_snapshot', sa.Text(), nullable=False),
        sa.Column('unit_price', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('subtotal', sa.Integer(), nullable=False),
        sa.UniqueConstraint('order_id', 'ticket_type_id', name='uq_order_item_ticket_type'),
        sa.CheckConstraint('quantity >= 1', name='chk_order_item_quantity'),
        sa.CheckConstraint('unit_price >= 0', name='chk_order_item_price_nonneg'),
        sa.CheckConstraint('subtotal = unit_price * quantity', name='chk_order_item_subtotal'),
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])

    op.create_table(
        'tickets',
        sa.Column('id', sa.Integer(), sa.Identity(always=True), primary_key=True),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column(
            'ticket_type_id', sa.Integer(),
            sa.ForeignKey('ticket_types.id', ondelete='RESTRICT'),
            nullable=False
        ),
        sa.Column('attendee_name', sa.Text(), nullable=False),
        sa.Column('attendee_email', sa.Text(), nullable=False),
        sa.Column('qr_payload', sa.Text(), server_default='', nullable=False),
        sa.Column('qr_signature', sa.Text(), server_default='', nullable=False),
        sa.Column('status', ticket_status, server_default='VALID', nullable=False),
        sa.Column('seat_label', sa.Text(), nullable=True),
        sa.Column('checked_in_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('cancelled_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("status <> 'SCANNED' OR checked_in_at IS NOT NULL", name='chk_ticket_scanned_at'),
        sa.CheckConstraint(
            "NOT (status = 'CANCELLED' AND checked_in_at IS NOT NULL)",
            name='chk_ticket_scan_not_cancel'
        ),
    )
    op.create_index('ix_tickets_order_id', 'tickets', ['order_id'])
    op.create_index('ix_tickets_ticket_type_id', 'tickets', ['ticket_type_id'])


def downgrade():
    for table in ('tickets', 'order_items', 'orders', 'discount_codes', 'ticket_types', 'events'):
        op.drop_table(table)
    bind = op.get_bind()
    for enum_type in reversed(ENUMS):
        enum_type.drop(bind, checkfirst=True)
