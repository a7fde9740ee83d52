"""SQLAlchemy table definitions for the BarterHub database.

This module defines all database tables using SQLAlchemy Core (NOT ORM).
Tables are defined as metadata for schema generation and query building.
"""

from sqlalchemy import (
    MetaData,
    Table,
    Column,
    Integer,
    String,
    Text,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    JSON,
)
from datetime import datetime, timezone

# MetaData object for all table definitions
metadata = MetaData()

# Products table (catalog view consulted at proposal/counter time)
products = Table(
    'products',
    metadata,
    Column('product_id', Integer, primary_key=True, autoincrement=True),
    Column('owner_id', Integer, nullable=False),
    Column('title', String, nullable=False),
    Column('status', String, nullable=False, default='available'),
    Column('created_at', DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)),
)

Index('idx_products_owner', products.c.owner_id)

# Trades table - one row per trade, every sub-protocol flag included
trades = Table(
    'trades',
    metadata,
    Column('trade_id', Integer, primary_key=True, autoincrement=True),
    Column('buyer_id', Integer, nullable=False),
    Column('seller_id', Integer, nullable=False),
    Column('target_product_id', Integer, nullable=False),
    Column('status', String, nullable=False),
    Column('awaiting_response_from', String, nullable=False),
    Column('offered_cash_cents', Integer, nullable=False, default=0),
    Column('message', Text),

    # Fulfillment option
    Column('trade_option', String),                        # meetup | delivery
    Column('delivery_address', Text),
    Column('change_requested_option', String),
    Column('change_requested_by', Integer),
    Column('change_requested_delivery_address', Text),

    # Meetup consensus
    Column('meetup_location', Text),
    Column('buyer_meetup_confirmed', Boolean, nullable=False, default=False),
    Column('seller_meetup_confirmed', Boolean, nullable=False, default=False),

    # Completion settlement
    Column('buyer_completed', Boolean, nullable=False, default=False),
    Column('seller_completed', Boolean, nullable=False, default=False),
    Column('buyer_rating', Integer),
    Column('seller_rating', Integer),
    Column('buyer_feedback', Text),
    Column('seller_feedback', Text),

    Column('created_at', DateTime(timezone=True), nullable=False),
    Column('updated_at', DateTime(timezone=True), nullable=False),
    Column('first_completion_at', DateTime(timezone=True)),
    Column('completed_at', DateTime(timezone=True)),
    Column('version', Integer, nullable=False, default=1),
)

# Indexes for trades
Index('idx_trades_buyer', trades.c.buyer_id, trades.c.status)
Index('idx_trades_seller', trades.c.seller_id, trades.c.status)
Index('idx_trades_first_completion', trades.c.first_completion_at)

# Trade items table - ordered, each tagged with the offering side
trade_items = Table(
    'trade_items',
    metadata,
    Column('item_id', Integer, primary_key=True, autoincrement=True),
    Column('trade_id', Integer, ForeignKey('trades.trade_id', ondelete='CASCADE'), nullable=False),
    Column('position', Integer, nullable=False),
    Column('product_id', Integer, nullable=False),
    Column('offered_by', String, nullable=False),           # buyer | seller
)

Index('idx_trade_items_trade', trade_items.c.trade_id, trade_items.c.position)

# Trade events table (append-only audit log)
trade_events = Table(
    'trade_events',
    metadata,
    Column('event_id', Integer, primary_key=True, autoincrement=True),
    Column('trade_id', Integer, ForeignKey('trades.trade_id', ondelete='CASCADE'), nullable=False),
    Column('actor_id', Integer, nullable=False),
    Column('action', String, nullable=False),
    Column('from_status', String),
    Column('to_status', String, nullable=False),
    Column('note', Text),
    Column('details', JSON),
    Column('occurred_at', DateTime(timezone=True), nullable=False),
)

Index('idx_trade_events_trade', trade_events.c.trade_id, trade_events.c.event_id)
