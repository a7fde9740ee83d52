"""Count trades query"""
from dataclasses import dataclass
from typing import Dict

from ....mediator import Request, RequestHandler
from ....domain.trading.trade import TradeStatus
from ....ports.repositories import ITradeRepository


@dataclass(frozen=True)
class CountTradesQuery(Request[Dict[TradeStatus, int]]):
    """Query for per-status trade counts (badges)"""
    caller_id: int


class CountTradesHandler(RequestHandler[CountTradesQuery, Dict[TradeStatus, int]]):
    """Handler for CountTradesQuery"""

    def __init__(self, trade_repository: ITradeRepository):
        self._trade_repo = trade_repository

    async def handle(self, request: CountTradesQuery) -> Dict[TradeStatus, int]:
        """
        Handle count trades query

        Returns:
            Count for every status, zero where the caller has none
        """
        counts = {status: 0 for status in TradeStatus}
        counts.update(self._trade_repo.count_by_status(request.caller_id))
        return counts
