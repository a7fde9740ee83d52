"""Get trade history query"""
from dataclasses import dataclass
from typing import List

from ....mediator import Request, RequestHandler
from ....domain.trading.trade import TradeEvent
from ....ports.repositories import ITradeRepository
from ._access import load_for_participant


@dataclass(frozen=True)
class GetTradeHistoryQuery(Request[List[TradeEvent]]):
    """Query for a trade's audit log"""
    trade_id: int
    caller_id: int


class GetTradeHistoryHandler(RequestHandler[GetTradeHistoryQuery, List[TradeEvent]]):
    """Handler for GetTradeHistoryQuery"""

    def __init__(self, trade_repository: ITradeRepository):
        self._trade_repo = trade_repository

    async def handle(self, request: GetTradeHistoryQuery) -> List[TradeEvent]:
        """
        Handle get trade history query

        Returns:
            Every accepted action on the trade, oldest first, including the
            terms of each proposal and counter-proposal
        """
        load_for_participant(self._trade_repo, request.trade_id, request.caller_id)
        return self._trade_repo.list_events(request.trade_id)
