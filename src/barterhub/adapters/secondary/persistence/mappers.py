from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from ....domain.trading.trade import (
    Trade,
    TradeItem,
    TradeStatus,
    TradeOption,
    TradeAction,
    TradeEvent,
    Party,
    OptionChangeRequest,
)


def _parse_datetime(value):
    """Parse datetime from database - handles both SQLite strings and PostgreSQL datetime objects

    Ensures all datetimes are timezone-aware (UTC) for consistency.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(value)

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    return dt


def _to_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize to UTC before writing; SQLite drops the offset on storage"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def cash_to_cents(amount: Decimal) -> int:
    return int((amount * 100).to_integral_value())


def cents_to_cash(cents: Optional[int]) -> Decimal:
    return (Decimal(cents or 0) / Decimal(100)).quantize(Decimal("0.01"))


class TradeMapper:
    """Map between database rows and Trade entities"""

    @staticmethod
    def from_db_rows(row, item_rows: Iterable) -> Trade:
        """
        Convert a trades row and its trade_items rows to a Trade entity.

        Items are expected in position order.
        """
        change_request = None
        if row.change_requested_option:
            change_request = OptionChangeRequest(
                requested_option=TradeOption(row.change_requested_option),
                requested_by=row.change_requested_by,
                requested_delivery_address=row.change_requested_delivery_address,
            )

        return Trade(
            trade_id=int(row.trade_id),
            buyer_id=row.buyer_id,
            seller_id=row.seller_id,
            target_product_id=row.target_product_id,
            items=[
                TradeItem(product_id=item.product_id, offered_by=Party(item.offered_by))
                for item in item_rows
            ],
            offered_cash_amount=cents_to_cash(row.offered_cash_cents),
            message=row.message,
            status=TradeStatus(row.status),
            trade_option=TradeOption(row.trade_option) if row.trade_option else None,
            delivery_address=row.delivery_address,
            option_change_requested=change_request,
            meetup_location=row.meetup_location,
            buyer_meetup_confirmed=bool(row.buyer_meetup_confirmed),
            seller_meetup_confirmed=bool(row.seller_meetup_confirmed),
            buyer_completed=bool(row.buyer_completed),
            seller_completed=bool(row.seller_completed),
            buyer_rating=row.buyer_rating,
            seller_rating=row.seller_rating,
            buyer_feedback=row.buyer_feedback,
            seller_feedback=row.seller_feedback,
            awaiting_response_from=Party(row.awaiting_response_from),
            created_at=_parse_datetime(row.created_at),
            updated_at=_parse_datetime(row.updated_at),
            first_completion_at=_parse_datetime(row.first_completion_at),
            completed_at=_parse_datetime(row.completed_at),
            version=int(row.version),
        )

    @staticmethod
    def to_db_dict(trade: Trade) -> Dict[str, Any]:
        """
        Convert Trade entity to a trades row (without trade_id and version).
        """
        request = trade.option_change_requested
        return {
            'buyer_id': trade.buyer_id,
            'seller_id': trade.seller_id,
            'target_product_id': trade.target_product_id,
            'status': trade.status.value,
            'awaiting_response_from': trade.awaiting_response_from.value,
            'offered_cash_cents': cash_to_cents(trade.offered_cash_amount),
            'message': trade.message,
            'trade_option': trade.trade_option.value if trade.trade_option else None,
            'delivery_address': trade.delivery_address,
            'change_requested_option': request.requested_option.value if request else None,
            'change_requested_by': request.requested_by if request else None,
            'change_requested_delivery_address': request.requested_delivery_address if request else None,
            'meetup_location': trade.meetup_location,
            'buyer_meetup_confirmed': trade.buyer_meetup_confirmed,
            'seller_meetup_confirmed': trade.seller_meetup_confirmed,
            'buyer_completed': trade.buyer_completed,
            'seller_completed': trade.seller_completed,
            'buyer_rating': trade.buyer_rating,
            'seller_rating': trade.seller_rating,
            'buyer_feedback': trade.buyer_feedback,
            'seller_feedback': trade.seller_feedback,
            'created_at': _to_utc(trade.created_at),
            'updated_at': _to_utc(trade.updated_at),
            'first_completion_at': _to_utc(trade.first_completion_at),
            'completed_at': _to_utc(trade.completed_at),
        }

    @staticmethod
    def items_to_db_rows(trade_id: int, items: Iterable[TradeItem]) -> List[Dict[str, Any]]:
        return [
            {
                'trade_id': trade_id,
                'position': position,
                'product_id': item.product_id,
                'offered_by': item.offered_by.value,
            }
            for position, item in enumerate(items)
        ]


class TradeEventMapper:
    """Map between trade_events rows and TradeEvent value objects"""

    @staticmethod
    def from_db_row(row) -> TradeEvent:
        return TradeEvent(
            event_id=int(row.event_id),
            trade_id=int(row.trade_id),
            actor_id=row.actor_id,
            action=TradeAction(row.action),
            from_status=TradeStatus(row.from_status) if row.from_status else None,
            to_status=TradeStatus(row.to_status),
            note=row.note,
            details=row.details or {},
            occurred_at=_parse_datetime(row.occurred_at),
        )

    @staticmethod
    def to_db_dict(trade_id: int, event: TradeEvent) -> Dict[str, Any]:
        return {
            'trade_id': trade_id,
            'actor_id': event.actor_id,
            'action': event.action.value,
            'from_status': event.from_status.value if event.from_status else None,
            'to_status': event.to_status.value,
            'note': event.note,
            'details': event.details or {},
            'occurred_at': _to_utc(event.occurred_at),
        }
