"""Counter trade command"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Tuple

from ....mediator import Request
from ....domain.trading.trade import Trade, TradeEvent
from ....ports.repositories import ITradeRepository
from ....ports.outbound.catalog import IProductCatalog
from ....ports.outbound.notifier import INotifier
from ...common.locks import TradeLocks
from ._trade_action import TradeActionHandler, require_positive_id, check_offered_products


@dataclass(frozen=True)
class CounterTradeCommand(Request[Trade]):
    """Command to replace the terms on the table with a counter-proposal"""
    trade_id: int
    caller_id: int
    new_product_ids: Tuple[int, ...] = field(default_factory=tuple)
    new_cash_amount: Decimal = Decimal("0")
    message: Optional[str] = None

    def validate(self) -> None:
        require_positive_id("trade_id", self.trade_id)
        require_positive_id("caller_id", self.caller_id)
        for product_id in self.new_product_ids:
            require_positive_id("offered product id", product_id)


class CounterTradeHandler(TradeActionHandler[CounterTradeCommand]):
    """Handler for CounterTradeCommand"""

    def __init__(
        self,
        trade_repository: ITradeRepository,
        trade_locks: TradeLocks,
        catalog: IProductCatalog,
        notifier: Optional[INotifier] = None
    ):
        super().__init__(trade_repository, trade_locks, notifier)
        self._catalog = catalog

    def apply(self, trade: Trade, request: CounterTradeCommand) -> TradeEvent:
        # Party and turn are checked by the domain before the catalog is consulted
        event = trade.counter(
            request.caller_id,
            request.new_product_ids,
            new_cash_amount=request.new_cash_amount,
            message=request.message,
        )
        check_offered_products(self._catalog, request.caller_id, request.new_product_ids)
        return event
