from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

from ..domain.trading.trade import Trade, TradeEvent, TradeStatus, Party


class ITradeRepository(ABC):
    """
    Port for trade persistence (the trade store).

    The store is the single source of truth for every trade field,
    including the meetup and completion sub-protocol flags.
    """

    @abstractmethod
    def create(self, trade: Trade, event: TradeEvent) -> Trade:
        """
        Persist a new trade with its items and creation event atomically.

        Args:
            trade: Unsaved trade (trade_id is None)
            event: Creation event; its trade_id is filled in by the store

        Returns:
            Trade with assigned ID
        """
        pass

    @abstractmethod
    def find_by_id(self, trade_id: int) -> Optional[Trade]:
        """Load trade by ID"""
        pass

    @abstractmethod
    def save(self, trade: Trade, event: TradeEvent, implied: Sequence[TradeEvent] = ()) -> Trade:
        """
        Write the trade's new state and append its audit events in one transaction.

        Args:
            trade: Trade as loaded and mutated; trade.version is the expected
                stored version
            event: Event describing the transition
            implied: Events the action triggered first (an implicit option
                lock), appended before event

        Returns:
            Trade reloaded at its new version

        Raises:
            TradeNotFoundError: If the trade no longer exists
            ConcurrentModificationError: If the stored version moved since load
        """
        pass

    @abstractmethod
    def find_by_participant(
        self,
        user_id: int,
        status: Optional[TradeStatus] = None,
        role: Optional[Party] = None
    ) -> List[Trade]:
        """List trades the user takes part in, newest first"""
        pass

    @abstractmethod
    def count_by_status(self, user_id: int) -> Dict[TradeStatus, int]:
        """Count the user's trades per status"""
        pass

    @abstractmethod
    def list_events(self, trade_id: int) -> List[TradeEvent]:
        """List the trade's audit events, oldest first"""
        pass
