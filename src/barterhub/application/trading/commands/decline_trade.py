"""Decline trade command"""
from dataclasses import dataclass
from typing import Optional

from ....mediator import Request
from ....domain.trading.trade import Trade, TradeEvent
from ._trade_action import TradeActionHandler, require_positive_id


@dataclass(frozen=True)
class DeclineTradeCommand(Request[Trade]):
    """Command to decline the offer on the table (terminal)"""
    trade_id: int
    caller_id: int
    note: Optional[str] = None

    def validate(self) -> None:
        require_positive_id("trade_id", self.trade_id)
        require_positive_id("caller_id", self.caller_id)


class DeclineTradeHandler(TradeActionHandler[DeclineTradeCommand]):
    """Handler for DeclineTradeCommand"""

    def apply(self, trade: Trade, request: DeclineTradeCommand) -> TradeEvent:
        return trade.decline(request.caller_id, note=request.note)
