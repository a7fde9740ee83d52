"""Trade queries"""
from .get_trade import GetTradeQuery, GetTradeHandler
from .list_trades import ListTradesQuery, ListTradesHandler
from .count_trades import CountTradesQuery, CountTradesHandler
from .get_trade_progress import GetTradeProgressQuery, GetTradeProgressHandler
from .get_trade_history import GetTradeHistoryQuery, GetTradeHistoryHandler

__all__ = [
    'GetTradeQuery',
    'GetTradeHandler',
    'ListTradesQuery',
    'ListTradesHandler',
    'CountTradesQuery',
    'CountTradesHandler',
    'GetTradeProgressQuery',
    'GetTradeProgressHandler',
    'GetTradeHistoryQuery',
    'GetTradeHistoryHandler',
]
