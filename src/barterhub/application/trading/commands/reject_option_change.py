"""Reject option change command"""
from dataclasses import dataclass
from typing import Optional

from ....mediator import Request
from ....domain.trading.trade import Trade, TradeEvent
from ._trade_action import TradeActionHandler, require_positive_id


@dataclass(frozen=True)
class RejectOptionChangeCommand(Request[Trade]):
    """Command for the seller to turn down the outstanding option change"""
    trade_id: int
    caller_id: int
    note: Optional[str] = None

    def validate(self) -> None:
        require_positive_id("trade_id", self.trade_id)
        require_positive_id("caller_id", self.caller_id)


class RejectOptionChangeHandler(TradeActionHandler[RejectOptionChangeCommand]):
    """Handler for RejectOptionChangeCommand"""

    def apply(self, trade: Trade, request: RejectOptionChangeCommand) -> TradeEvent:
        return trade.reject_option_change(request.caller_id, note=request.note)
