"""Submit completion command"""
from dataclasses import dataclass
from typing import Optional

from ....mediator import Request
from ....domain.trading.trade import Trade, TradeEvent
from ._trade_action import TradeActionHandler, require_positive_id


@dataclass(frozen=True)
class SubmitCompletionCommand(Request[Trade]):
    """Command for one party to attest completion with a rating and optional feedback"""
    trade_id: int
    caller_id: int
    rating: int
    feedback: Optional[str] = None

    def validate(self) -> None:
        require_positive_id("trade_id", self.trade_id)
        require_positive_id("caller_id", self.caller_id)


class SubmitCompletionHandler(TradeActionHandler[SubmitCompletionCommand]):
    """
    Handler for SubmitCompletionCommand

    The second attestation settles the trade (status completed) in the same
    write that records it.
    """

    def apply(self, trade: Trade, request: SubmitCompletionCommand) -> TradeEvent:
        return trade.submit_completion(
            request.caller_id,
            request.rating,
            feedback=request.feedback,
        )
