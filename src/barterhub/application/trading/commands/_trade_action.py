"""Shared plumbing for commands that act on an existing trade"""
import logging
from abc import abstractmethod
from typing import Any, Iterable, Optional, TypeVar

from ....mediator import RequestHandler
from ....domain.shared.exceptions import (
    TradeNotFoundError,
    ProductNotFoundError,
    ProductOwnershipError,
    ProductUnavailableError,
    ValidationError,
)
from ....domain.trading.trade import Trade, TradeEvent
from ....ports.repositories import ITradeRepository
from ....ports.outbound.catalog import IProductCatalog
from ....ports.outbound.notifier import INotifier
from ...common.locks import TradeLocks

logger = logging.getLogger(__name__)

TCommand = TypeVar('TCommand')


def require_positive_id(name: str, value: Any) -> None:
    """Raise ValidationError unless value is a positive integer id"""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{name} must be a positive integer, got {value!r}")


def check_offered_products(catalog: IProductCatalog, owner_id: int,
                           product_ids: Iterable[int]) -> None:
    """
    Verify each offered product exists, is available and belongs to owner_id.

    Raises:
        ProductNotFoundError: If a product does not exist
        ProductUnavailableError: If a product is no longer available
        ProductOwnershipError: If a product belongs to someone else
    """
    for product_id in product_ids:
        product = catalog.find_product(product_id)
        if product is None:
            raise ProductNotFoundError(f"Offered product {product_id} not found")
        if product.owner_id != owner_id:
            raise ProductOwnershipError(f"You do not own product {product_id}")
        if not product.available:
            raise ProductUnavailableError(f"Product {product_id} is no longer available")


def notify_parties(notifier: Optional[INotifier], trade: Trade, event: TradeEvent) -> None:
    """Fire-and-forget notification of both parties; failures never undo a transition"""
    if notifier is None:
        return
    try:
        notifier.publish(event, [trade.buyer_id, trade.seller_id])
    except Exception as e:
        logger.warning(
            f"Notification for trade {trade.trade_id} ({event.action.value}) failed: {e}"
        )


class TradeActionHandler(RequestHandler[TCommand, Trade]):
    """
    Base handler: lock the trade, load it, apply one domain action, save, notify.

    Subclasses implement apply(). Returning None from apply() means the
    action was a no-op and nothing is written or announced.
    """

    def __init__(
        self,
        trade_repository: ITradeRepository,
        trade_locks: TradeLocks,
        notifier: Optional[INotifier] = None
    ):
        self._trade_repo = trade_repository
        self._locks = trade_locks
        self._notifier = notifier

    async def handle(self, request: TCommand) -> Trade:
        """
        Handle a trade action command

        Returns:
            Trade as stored after the action

        Raises:
            TradeNotFoundError: If the trade id is unknown
            DomainException: Whatever the domain action rejects with
        """
        trade_id = request.trade_id

        with self._locks.hold(trade_id):
            trade = self._trade_repo.find_by_id(trade_id)
            if trade is None:
                raise TradeNotFoundError(f"Trade {trade_id} not found")

            event = self.apply(trade, request)
            if event is None:
                logger.debug(f"{type(request).__name__} on trade {trade_id} changed nothing")
                return trade

            implied = trade.pull_implied_events()
            saved = self._trade_repo.save(trade, event, implied=implied)

        for written in implied + [event]:
            logger.info(
                f"Trade {trade_id}: {written.action.value} by user {written.actor_id} "
                f"({written.from_status.value if written.from_status else '-'} -> {written.to_status.value})"
            )
            notify_parties(self._notifier, saved, written)
        return saved

    @abstractmethod
    def apply(self, trade: Trade, request: TCommand) -> Optional[TradeEvent]:
        """Apply the domain action to the loaded trade"""
        pass
