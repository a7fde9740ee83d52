"""Request option change command"""
from dataclasses import dataclass
from typing import Optional

from ....mediator import Request
from ....domain.trading.trade import Trade, TradeEvent, TradeOption
from ._trade_action import TradeActionHandler, require_positive_id


@dataclass(frozen=True)
class RequestOptionChangeCommand(Request[Trade]):
    """Command for the buyer to ask the seller to switch meetup/delivery"""
    trade_id: int
    caller_id: int
    requested_option: TradeOption
    requested_delivery_address: Optional[str] = None

    def validate(self) -> None:
        require_positive_id("trade_id", self.trade_id)
        require_positive_id("caller_id", self.caller_id)


class RequestOptionChangeHandler(TradeActionHandler[RequestOptionChangeCommand]):
    """Handler for RequestOptionChangeCommand"""

    def apply(self, trade: Trade, request: RequestOptionChangeCommand) -> TradeEvent:
        return trade.request_option_change(
            request.caller_id,
            request.requested_option,
            requested_delivery_address=request.requested_delivery_address,
        )
