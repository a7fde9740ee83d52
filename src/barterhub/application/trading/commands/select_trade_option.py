"""Select trade option command"""
from dataclasses import dataclass
from typing import Optional

from ....mediator import Request
from ....domain.trading.trade import Trade, TradeEvent, TradeOption
from ._trade_action import TradeActionHandler, require_positive_id


@dataclass(frozen=True)
class SelectTradeOptionCommand(Request[Trade]):
    """
    Command for the buyer to choose the fulfillment option when none was given
    at proposal time. On an accepted trade this also locks it.
    """
    trade_id: int
    caller_id: int
    trade_option: TradeOption
    delivery_address: Optional[str] = None

    def validate(self) -> None:
        require_positive_id("trade_id", self.trade_id)
        require_positive_id("caller_id", self.caller_id)


class SelectTradeOptionHandler(TradeActionHandler[SelectTradeOptionCommand]):
    """Handler for SelectTradeOptionCommand"""

    def apply(self, trade: Trade, request: SelectTradeOptionCommand) -> TradeEvent:
        return trade.select_option(
            request.caller_id,
            request.trade_option,
            delivery_address=request.delivery_address,
        )
