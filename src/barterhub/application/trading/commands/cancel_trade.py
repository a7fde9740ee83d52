"""Cancel trade command"""
from dataclasses import dataclass
from typing import Optional

from ....mediator import Request
from ....domain.trading.trade import Trade, TradeEvent
from ._trade_action import TradeActionHandler, require_positive_id


@dataclass(frozen=True)
class CancelTradeCommand(Request[Trade]):
    """Command for either party to abort a trade that has not reached a terminal state"""
    trade_id: int
    caller_id: int
    note: Optional[str] = None

    def validate(self) -> None:
        require_positive_id("trade_id", self.trade_id)
        require_positive_id("caller_id", self.caller_id)


class CancelTradeHandler(TradeActionHandler[CancelTradeCommand]):
    """Handler for CancelTradeCommand"""

    def apply(self, trade: Trade, request: CancelTradeCommand) -> TradeEvent:
        return trade.cancel(request.caller_id, note=request.note)
