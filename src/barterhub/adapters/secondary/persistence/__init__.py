"""SQLAlchemy persistence adapters"""
from .engine import create_engine_from_config, get_database_url
from .models import metadata, products, trades, trade_items, trade_events
from .trade_repository_sqlalchemy import TradeRepositorySQLAlchemy

__all__ = [
    'create_engine_from_config',
    'get_database_url',
    'metadata',
    'products',
    'trades',
    'trade_items',
    'trade_events',
    'TradeRepositorySQLAlchemy',
]
