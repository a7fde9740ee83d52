"""Accept trade command"""
from dataclasses import dataclass
from typing import Optional

from ....mediator import Request
from ....domain.trading.trade import Trade, TradeEvent
from ._trade_action import TradeActionHandler, require_positive_id


@dataclass(frozen=True)
class AcceptTradeCommand(Request[Trade]):
    """Command for the responding party (initially the seller) to accept an offer"""
    trade_id: int
    caller_id: int
    note: Optional[str] = None

    def validate(self) -> None:
        require_positive_id("trade_id", self.trade_id)
        require_positive_id("caller_id", self.caller_id)


class AcceptTradeHandler(TradeActionHandler[AcceptTradeCommand]):
    """Handler for AcceptTradeCommand"""

    def apply(self, trade: Trade, request: AcceptTradeCommand) -> TradeEvent:
        return trade.accept(request.caller_id, note=request.note)
