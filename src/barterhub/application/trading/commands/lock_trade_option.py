"""Lock trade option command"""
from dataclasses import dataclass

from ....mediator import Request
from ....domain.trading.trade import Trade, TradeEvent
from ._trade_action import TradeActionHandler, require_positive_id


@dataclass(frozen=True)
class LockTradeOptionCommand(Request[Trade]):
    """Command for the buyer to lock the chosen fulfillment option (accepted -> active)"""
    trade_id: int
    caller_id: int

    def validate(self) -> None:
        require_positive_id("trade_id", self.trade_id)
        require_positive_id("caller_id", self.caller_id)


class LockTradeOptionHandler(TradeActionHandler[LockTradeOptionCommand]):
    """
    Handler for LockTradeOptionCommand

    Locking up front is optional: the first meetup confirmation or completion
    on an accepted trade locks it as well.
    """

    def apply(self, trade: Trade, request: LockTradeOptionCommand) -> TradeEvent:
        return trade.lock_option(request.caller_id)
