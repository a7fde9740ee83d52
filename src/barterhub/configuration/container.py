"""
Dependency Injection Container.

Provides singleton instances and factory methods for:
- Database engine
- Trade repository, product catalog and notifier
- Per-trade write locks
- Mediator with all handlers registered
- Pipeline behaviors (middleware)
"""
from sqlalchemy.engine import Engine

from ..mediator import Mediator
from ..adapters.secondary.persistence.engine import create_engine_from_config
from ..adapters.secondary.persistence.trade_repository_sqlalchemy import TradeRepositorySQLAlchemy
from ..adapters.secondary.catalog.product_catalog_sqlalchemy import ProductCatalogSQLAlchemy
from ..adapters.secondary.notifications.logging_notifier import LoggingNotifier
from ..application.common.behaviors import LoggingBehavior, ValidationBehavior
from ..application.common.locks import TradeLocks
from ..application.trading.commands import (
    ProposeTradeCommand,
    ProposeTradeHandler,
    AcceptTradeCommand,
    AcceptTradeHandler,
    DeclineTradeCommand,
    DeclineTradeHandler,
    CounterTradeCommand,
    CounterTradeHandler,
    CancelTradeCommand,
    CancelTradeHandler,
    SelectTradeOptionCommand,
    SelectTradeOptionHandler,
    LockTradeOptionCommand,
    LockTradeOptionHandler,
    RequestOptionChangeCommand,
    RequestOptionChangeHandler,
    ApproveOptionChangeCommand,
    ApproveOptionChangeHandler,
    RejectOptionChangeCommand,
    RejectOptionChangeHandler,
    ConfirmMeetupCommand,
    ConfirmMeetupHandler,
    SubmitCompletionCommand,
    SubmitCompletionHandler,
)
from ..application.trading.queries import (
    GetTradeQuery,
    GetTradeHandler,
    ListTradesQuery,
    ListTradesHandler,
    CountTradesQuery,
    CountTradesHandler,
    GetTradeProgressQuery,
    GetTradeProgressHandler,
    GetTradeHistoryQuery,
    GetTradeHistoryHandler,
)
from ..ports.repositories import ITradeRepository
from ..ports.outbound.notifier import INotifier
from .settings import settings


# Singleton instances
_engine = None
_trade_repo = None
_product_catalog = None
_notifier = None
_trade_locks = None
_mediator = None


def get_engine() -> Engine:
    """
    Get or create the SQLAlchemy engine.

    Returns:
        Engine: Singleton engine for settings.db_path (or DATABASE_URL)
    """
    global _engine
    if _engine is None:
        _engine = create_engine_from_config(settings.db_path)
    return _engine


def get_trade_repository() -> ITradeRepository:
    """
    Get or create trade repository.

    Returns:
        ITradeRepository: Singleton trade repository instance
    """
    global _trade_repo
    if _trade_repo is None:
        _trade_repo = TradeRepositorySQLAlchemy(get_engine())
    return _trade_repo


def get_product_catalog() -> ProductCatalogSQLAlchemy:
    """
    Get or create product catalog.

    Returns:
        ProductCatalogSQLAlchemy: Singleton catalog instance
    """
    global _product_catalog
    if _product_catalog is None:
        _product_catalog = ProductCatalogSQLAlchemy(get_engine())
    return _product_catalog


def get_notifier() -> INotifier:
    global _notifier
    if _notifier is None:
        _notifier = LoggingNotifier()
    return _notifier


def get_trade_locks() -> TradeLocks:
    """
    Get or create the per-trade lock registry.

    All handlers must share one registry or the locks serialize nothing.
    """
    global _trade_locks
    if _trade_locks is None:
        _trade_locks = TradeLocks(timeout_seconds=settings.lock_timeout_seconds)
    return _trade_locks


def get_mediator() -> Mediator:
    """
    Get or create configured mediator with all handlers registered.

    The mediator is configured with:
    1. Pipeline behaviors (LoggingBehavior, ValidationBehavior)
    2. All trade command handlers
    3. All trade query handlers

    Returns:
        Mediator: Fully configured mediator instance
    """
    global _mediator
    if _mediator is None:
        _mediator = Mediator()

        # These execute in order: Logging -> Validation -> Handler
        _mediator.register_behavior(LoggingBehavior())
        _mediator.register_behavior(ValidationBehavior())

        trade_repo = get_trade_repository()
        catalog = get_product_catalog()
        notifier = get_notifier()
        locks = get_trade_locks()

        # ===== Negotiation =====
        _mediator.register_handler(
            ProposeTradeCommand,
            lambda: ProposeTradeHandler(trade_repo, catalog, notifier)
        )
        _mediator.register_handler(
            AcceptTradeCommand,
            lambda: AcceptTradeHandler(trade_repo, locks, notifier)
        )
        _mediator.register_handler(
            DeclineTradeCommand,
            lambda: DeclineTradeHandler(trade_repo, locks, notifier)
        )
        _mediator.register_handler(
            CounterTradeCommand,
            lambda: CounterTradeHandler(trade_repo, locks, catalog, notifier)
        )
        _mediator.register_handler(
            CancelTradeCommand,
            lambda: CancelTradeHandler(trade_repo, locks, notifier)
        )

        # ===== Fulfillment option =====
        _mediator.register_handler(
            SelectTradeOptionCommand,
            lambda: SelectTradeOptionHandler(trade_repo, locks, notifier)
        )
        _mediator.register_handler(
            LockTradeOptionCommand,
            lambda: LockTradeOptionHandler(trade_repo, locks, notifier)
        )
        _mediator.register_handler(
            RequestOptionChangeCommand,
            lambda: RequestOptionChangeHandler(trade_repo, locks, notifier)
        )
        _mediator.register_handler(
            ApproveOptionChangeCommand,
            lambda: ApproveOptionChangeHandler(trade_repo, locks, notifier)
        )
        _mediator.register_handler(
            RejectOptionChangeCommand,
            lambda: RejectOptionChangeHandler(trade_repo, locks, notifier)
        )

        # ===== Meetup and completion =====
        _mediator.register_handler(
            ConfirmMeetupCommand,
            lambda: ConfirmMeetupHandler(trade_repo, locks, notifier)
        )
        _mediator.register_handler(
            SubmitCompletionCommand,
            lambda: SubmitCompletionHandler(trade_repo, locks, notifier)
        )

        # ===== Queries =====
        _mediator.register_handler(
            GetTradeQuery,
            lambda: GetTradeHandler(trade_repo)
        )
        _mediator.register_handler(
            ListTradesQuery,
            lambda: ListTradesHandler(trade_repo)
        )
        _mediator.register_handler(
            CountTradesQuery,
            lambda: CountTradesHandler(trade_repo)
        )
        _mediator.register_handler(
            GetTradeProgressQuery,
            lambda: GetTradeProgressHandler(trade_repo)
        )
        _mediator.register_handler(
            GetTradeHistoryQuery,
            lambda: GetTradeHistoryHandler(trade_repo)
        )

    return _mediator


def reset_container():
    """
    Reset all singleton instances.

    Useful for testing to ensure clean state between tests.
    """
    global _engine, _trade_repo, _product_catalog, _notifier, _trade_locks, _mediator

    # Dispose so an in-memory database is dropped with its engine
    if _engine is not None:
        _engine.dispose()

    _engine = None
    _trade_repo = None
    _product_catalog = None
    _notifier = None
    _trade_locks = None
    _mediator = None
