"""Notifier that writes trade announcements to the log."""
import logging
from typing import Sequence

from ....domain.trading.trade import TradeEvent
from ....ports.outbound.notifier import INotifier

logger = logging.getLogger(__name__)


class LoggingNotifier(INotifier):
    """Default notifier: one INFO line per committed transition"""

    def publish(self, event: TradeEvent, recipient_ids: Sequence[int]) -> None:
        recipients = ", ".join(str(user_id) for user_id in recipient_ids)
        logger.info(
            f"Notify [{recipients}]: trade {event.trade_id} {event.action.value} "
            f"-> {event.to_status.value}"
        )
