"""List trades query"""
from dataclasses import dataclass
from typing import List, Optional

from ....mediator import Request, RequestHandler
from ....domain.trading.trade import Trade, TradeStatus, Party
from ....ports.repositories import ITradeRepository


@dataclass(frozen=True)
class ListTradesQuery(Request[List[Trade]]):
    """Query to list trades the caller is buyer or seller in"""
    caller_id: int
    status: Optional[TradeStatus] = None
    role: Optional[Party] = None


class ListTradesHandler(RequestHandler[ListTradesQuery, List[Trade]]):
    """Handler for ListTradesQuery"""

    def __init__(self, trade_repository: ITradeRepository):
        self._trade_repo = trade_repository

    async def handle(self, request: ListTradesQuery) -> List[Trade]:
        """
        Handle list trades query

        Args:
            request: Query with caller and optional status/role filters

        Returns:
            Trades, newest first
        """
        return self._trade_repo.find_by_participant(
            request.caller_id,
            status=request.status,
            role=request.role,
        )
