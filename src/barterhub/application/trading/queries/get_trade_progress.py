"""Get trade progress query"""
from dataclasses import dataclass

from ....mediator import Request, RequestHandler
from ....domain.trading.progress import TradeProgress
from ....ports.repositories import ITradeRepository
from ._access import load_for_participant


@dataclass(frozen=True)
class GetTradeProgressQuery(Request[TradeProgress]):
    """Query for the caller's view of a trade's meetup and completion progress"""
    trade_id: int
    caller_id: int


class GetTradeProgressHandler(RequestHandler[GetTradeProgressQuery, TradeProgress]):
    """Handler for GetTradeProgressQuery"""

    def __init__(self, trade_repository: ITradeRepository):
        self._trade_repo = trade_repository

    async def handle(self, request: GetTradeProgressQuery) -> TradeProgress:
        trade = load_for_participant(self._trade_repo, request.trade_id, request.caller_id)
        return TradeProgress.for_viewer(trade, request.caller_id)
