"""Trade commands"""
from .propose_trade import ProposeTradeCommand, ProposeTradeHandler
from .accept_trade import AcceptTradeCommand, AcceptTradeHandler
from .decline_trade import DeclineTradeCommand, DeclineTradeHandler
from .counter_trade import CounterTradeCommand, CounterTradeHandler
from .cancel_trade import CancelTradeCommand, CancelTradeHandler
from .select_trade_option import SelectTradeOptionCommand, SelectTradeOptionHandler
from .lock_trade_option import LockTradeOptionCommand, LockTradeOptionHandler
from .request_option_change import RequestOptionChangeCommand, RequestOptionChangeHandler
from .approve_option_change import ApproveOptionChangeCommand, ApproveOptionChangeHandler
from .reject_option_change import RejectOptionChangeCommand, RejectOptionChangeHandler
from .confirm_meetup import ConfirmMeetupCommand, ConfirmMeetupHandler
from .submit_completion import SubmitCompletionCommand, SubmitCompletionHandler

__all__ = [
    'ProposeTradeCommand',
    'ProposeTradeHandler',
    'AcceptTradeCommand',
    'AcceptTradeHandler',
    'DeclineTradeCommand',
    'DeclineTradeHandler',
    'CounterTradeCommand',
    'CounterTradeHandler',
    'CancelTradeCommand',
    'CancelTradeHandler',
    'SelectTradeOptionCommand',
    'SelectTradeOptionHandler',
    'LockTradeOptionCommand',
    'LockTradeOptionHandler',
    'RequestOptionChangeCommand',
    'RequestOptionChangeHandler',
    'ApproveOptionChangeCommand',
    'ApproveOptionChangeHandler',
    'RejectOptionChangeCommand',
    'RejectOptionChangeHandler',
    'ConfirmMeetupCommand',
    'ConfirmMeetupHandler',
    'SubmitCompletionCommand',
    'SubmitCompletionHandler',
]
