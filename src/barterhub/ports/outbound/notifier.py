"""Notifier port interface"""
from abc import ABC, abstractmethod
from typing import Sequence

from ...domain.trading.trade import TradeEvent


class INotifier(ABC):
    """Port for fire-and-forget trade notifications (badges, counts, streams)"""

    @abstractmethod
    def publish(self, event: TradeEvent, recipient_ids: Sequence[int]) -> None:
        """
        Announce a committed trade transition.

        Args:
            event: Transition that was just persisted
            recipient_ids: Users to inform (both parties)
        """
        pass
