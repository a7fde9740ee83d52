"""Trading domain - trade lifecycle and its sub-protocols"""

from .trade import (
    Trade,
    TradeItem,
    TradeStatus,
    TradeOption,
    TradeAction,
    TradeEvent,
    Party,
    OptionChangeRequest,
    TERMINAL_STATUSES,
    LEGAL_TRANSITIONS,
)
from .progress import TradeProgress, TradeStage

__all__ = [
    'Trade',
    'TradeItem',
    'TradeStatus',
    'TradeOption',
    'TradeAction',
    'TradeEvent',
    'Party',
    'OptionChangeRequest',
    'TERMINAL_STATUSES',
    'LEGAL_TRANSITIONS',
    'TradeProgress',
    'TradeStage',
]
