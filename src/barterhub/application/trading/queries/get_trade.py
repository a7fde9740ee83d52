"""Get trade query"""
from dataclasses import dataclass

from ....mediator import Request, RequestHandler
from ....domain.trading.trade import Trade
from ....ports.repositories import ITradeRepository
from ._access import load_for_participant


@dataclass(frozen=True)
class GetTradeQuery(Request[Trade]):
    """Query to get a single trade"""
    trade_id: int
    caller_id: int


class GetTradeHandler(RequestHandler[GetTradeQuery, Trade]):
    """Handler for GetTradeQuery"""

    def __init__(self, trade_repository: ITradeRepository):
        self._trade_repo = trade_repository

    async def handle(self, request: GetTradeQuery) -> Trade:
        """
        Handle get trade query

        Args:
            request: Query with trade ID and caller ID

        Returns:
            Trade entity

        Raises:
            TradeNotFoundError: If trade not found
            ForbiddenError: If the caller is not a party to the trade
        """
        return load_for_participant(self._trade_repo, request.trade_id, request.caller_id)
