"""
Derived trade progress.

The only place that turns stored trade fields into "where is this trade at"
answers. Queries and the CLI read these helpers instead of re-deriving
sub-protocol state from status alone.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .trade import Trade, TradeStatus, TradeOption, Party


class TradeStage(Enum):
    """Viewer-relative stage of a trade"""
    NEGOTIATING = "negotiating"                      # counterparty must respond
    AWAITING_RESPONSE = "awaiting_response"          # viewer must respond
    AWAITING_OPTION_LOCK = "awaiting_option_lock"
    OPTION_CHANGE_PENDING = "option_change_pending"
    ARRANGING_MEETUP = "arranging_meetup"
    READY_FOR_EXCHANGE = "ready_for_exchange"
    WAITING_FOR_COUNTERPARTY = "waiting_for_counterparty"
    COMPLETED = "completed"
    DECLINED = "declined"
    CANCELLED = "cancelled"


def meetup_confirmed(trade: Trade) -> bool:
    """Both parties confirmed the meetup location"""
    return (
        trade.trade_option is TradeOption.MEETUP
        and trade.buyer_meetup_confirmed
        and trade.seller_meetup_confirmed
    )


def has_confirmed_meetup(trade: Trade, party: Party) -> bool:
    if party is Party.BUYER:
        return trade.buyer_meetup_confirmed
    return trade.seller_meetup_confirmed


def has_completed(trade: Trade, party: Party) -> bool:
    if party is Party.BUYER:
        return trade.buyer_completed
    return trade.seller_completed


def waiting_for_counterparty(trade: Trade, party: Party) -> bool:
    """The party attested completion and the other side has not yet"""
    return has_completed(trade, party) and not has_completed(trade, party.other())


def rating_of(trade: Trade, party: Party) -> Optional[int]:
    return trade.buyer_rating if party is Party.BUYER else trade.seller_rating


def feedback_of(trade: Trade, party: Party) -> Optional[str]:
    return trade.buyer_feedback if party is Party.BUYER else trade.seller_feedback


def stage_for(trade: Trade, party: Party) -> TradeStage:
    """
    Derive the stage of a trade as seen by one party.

    Args:
        trade: Trade to inspect
        party: Viewing party

    Returns:
        TradeStage for the viewer
    """
    status = trade.status

    if status is TradeStatus.COMPLETED:
        return TradeStage.COMPLETED
    if status is TradeStatus.DECLINED:
        return TradeStage.DECLINED
    if status is TradeStatus.CANCELLED:
        return TradeStage.CANCELLED

    # Stored countered rows read as negotiation
    if status in (TradeStatus.PENDING, TradeStatus.COUNTERED):
        if trade.awaiting_response_from is party:
            return TradeStage.AWAITING_RESPONSE
        return TradeStage.NEGOTIATING

    if status is TradeStatus.ACCEPTED:
        if trade.option_change_requested is not None:
            return TradeStage.OPTION_CHANGE_PENDING
        return TradeStage.AWAITING_OPTION_LOCK

    # active
    if waiting_for_counterparty(trade, party):
        return TradeStage.WAITING_FOR_COUNTERPARTY
    if trade.trade_option is TradeOption.MEETUP and not meetup_confirmed(trade):
        return TradeStage.ARRANGING_MEETUP
    return TradeStage.READY_FOR_EXCHANGE


@dataclass(frozen=True)
class TradeProgress:
    """Snapshot of a trade's sub-protocol state for one viewer"""
    trade_id: int
    viewer: Party
    status: TradeStatus
    stage: TradeStage
    awaiting_response_from: Optional[Party]
    trade_option: Optional[TradeOption]
    option_change_pending: bool
    meetup_location: Optional[str]
    self_meetup_confirmed: bool
    other_meetup_confirmed: bool
    meetup_confirmed: bool
    self_completed: bool
    other_completed: bool
    waiting_for_counterparty: bool
    self_rating: Optional[int]
    other_rating: Optional[int]
    self_feedback: Optional[str]
    other_feedback: Optional[str]

    @classmethod
    def for_viewer(cls, trade: Trade, viewer_id: int) -> "TradeProgress":
        """
        Build the progress snapshot for a participant

        Raises:
            ForbiddenError: If the viewer is not a party to the trade
        """
        party = trade.party_of(viewer_id)
        other = party.other()
        stage = stage_for(trade, party)
        negotiating = stage in (TradeStage.AWAITING_RESPONSE, TradeStage.NEGOTIATING)
        return cls(
            trade_id=trade.trade_id,
            viewer=party,
            status=trade.status,
            stage=stage,
            awaiting_response_from=trade.awaiting_response_from if negotiating else None,
            trade_option=trade.trade_option,
            option_change_pending=trade.option_change_requested is not None,
            meetup_location=trade.meetup_location,
            self_meetup_confirmed=has_confirmed_meetup(trade, party),
            other_meetup_confirmed=has_confirmed_meetup(trade, other),
            meetup_confirmed=meetup_confirmed(trade),
            self_completed=has_completed(trade, party),
            other_completed=has_completed(trade, other),
            waiting_for_counterparty=waiting_for_counterparty(trade, party),
            self_rating=rating_of(trade, party),
            other_rating=rating_of(trade, other),
            self_feedback=feedback_of(trade, party),
            other_feedback=feedback_of(trade, other),
        )
