"""Approve option change command"""
from dataclasses import dataclass

from ....mediator import Request
from ....domain.trading.trade import Trade, TradeEvent
from ._trade_action import TradeActionHandler, require_positive_id


@dataclass(frozen=True)
class ApproveOptionChangeCommand(Request[Trade]):
    """Command for the seller to apply the buyer's outstanding option change"""
    trade_id: int
    caller_id: int

    def validate(self) -> None:
        require_positive_id("trade_id", self.trade_id)
        require_positive_id("caller_id", self.caller_id)


class ApproveOptionChangeHandler(TradeActionHandler[ApproveOptionChangeCommand]):
    """Handler for ApproveOptionChangeCommand"""

    def apply(self, trade: Trade, request: ApproveOptionChangeCommand) -> TradeEvent:
        return trade.approve_option_change(request.caller_id)
