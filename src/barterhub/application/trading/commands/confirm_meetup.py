"""Confirm meetup command"""
from dataclasses import dataclass
from typing import Optional

from ....mediator import Request
from ....domain.trading.trade import Trade, TradeEvent
from ._trade_action import TradeActionHandler, require_positive_id


@dataclass(frozen=True)
class ConfirmMeetupCommand(Request[Trade]):
    """Command for one party to confirm the meetup location"""
    trade_id: int
    caller_id: int
    location: str

    def validate(self) -> None:
        require_positive_id("trade_id", self.trade_id)
        require_positive_id("caller_id", self.caller_id)


class ConfirmMeetupHandler(TradeActionHandler[ConfirmMeetupCommand]):
    """
    Handler for ConfirmMeetupCommand

    A repeated confirmation from the same party is a no-op: the trade is
    returned unchanged and nothing is written or announced.
    """

    def apply(self, trade: Trade, request: ConfirmMeetupCommand) -> Optional[TradeEvent]:
        return trade.confirm_meetup(request.caller_id, request.location)
