"""Participant-only trade loading shared by the queries"""
from ....domain.shared.exceptions import TradeNotFoundError
from ....domain.trading.trade import Trade
from ....ports.repositories import ITradeRepository


def load_for_participant(trade_repo: ITradeRepository, trade_id: int, caller_id: int) -> Trade:
    """
    Load a trade the caller takes part in.

    Raises:
        TradeNotFoundError: If the trade does not exist
        ForbiddenError: If the caller is neither buyer nor seller
    """
    trade = trade_repo.find_by_id(trade_id)
    if trade is None:
        raise TradeNotFoundError(f"Trade {trade_id} not found")
    trade.party_of(caller_id)
    return trade
