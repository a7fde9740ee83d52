"""SQLAlchemy-based TradeRepository implementation."""

import logging
from collections import defaultdict
from typing import Dict, List, Optional, Sequence

from sqlalchemy import select, insert, update, delete, func, or_
from sqlalchemy.engine import Connection, Engine

from ....domain.shared.exceptions import TradeNotFoundError, ConcurrentModificationError
from ....domain.trading.trade import Trade, TradeEvent, TradeStatus, Party
from ....ports.repositories import ITradeRepository
from .models import trades, trade_items, trade_events
from .mappers import TradeMapper, TradeEventMapper

logger = logging.getLogger(__name__)


class TradeRepositorySQLAlchemy(ITradeRepository):
    """
    SQLAlchemy implementation of the trade store

    Each write runs in one engine.begin() transaction covering the trade row,
    its items and the audit event. Saves are conditional on the version the
    trade was loaded at, so a stale writer fails instead of overwriting.
    """

    def __init__(self, engine: Engine):
        """
        Initialize trade repository.

        Args:
            engine: SQLAlchemy Engine instance
        """
        self._engine = engine

    def create(self, trade: Trade, event: TradeEvent) -> Trade:
        """
        Persist a new trade with its items and creation event.

        Args:
            trade: Unsaved trade entity
            event: Creation event (trade_id filled in here)

        Returns:
            Trade with assigned ID at version 1
        """
        with self._engine.begin() as conn:
            values = TradeMapper.to_db_dict(trade)
            values['version'] = 1
            result = conn.execute(insert(trades).values(**values))
            trade_id = int(result.inserted_primary_key[0])

            self._write_items(conn, trade_id, trade)
            conn.execute(insert(trade_events).values(**TradeEventMapper.to_db_dict(trade_id, event)))

            logger.debug(f"Created trade {trade_id}")
            return self._load(conn, trade_id)

    def find_by_id(self, trade_id: int) -> Optional[Trade]:
        """
        Find trade by ID.

        Args:
            trade_id: Trade identifier

        Returns:
            Trade if found, None otherwise
        """
        with self._engine.connect() as conn:
            return self._load(conn, trade_id)

    def save(self, trade: Trade, event: TradeEvent, implied: Sequence[TradeEvent] = ()) -> Trade:
        """
        Write the trade's new state and append its events.

        The version moves by one per save, however many events it carries.

        Args:
            trade: Trade entity as loaded and mutated
            event: Transition event
            implied: Events recorded ahead of event, written first

        Returns:
            Trade reloaded at its new version

        Raises:
            TradeNotFoundError: If the trade row is gone
            ConcurrentModificationError: If the stored version moved since load
        """
        trade_id = trade.trade_id

        with self._engine.begin() as conn:
            values = TradeMapper.to_db_dict(trade)
            values['version'] = trade.version + 1
            stmt = (
                update(trades)
                .where(
                    trades.c.trade_id == trade_id,
                    trades.c.version == trade.version
                )
                .values(**values)
            )
            result = conn.execute(stmt)

            if result.rowcount == 0:
                current = conn.execute(
                    select(trades.c.version).where(trades.c.trade_id == trade_id)
                ).fetchone()
                if current is None:
                    raise TradeNotFoundError(f"Trade {trade_id} not found")
                logger.warning(
                    f"Stale write on trade {trade_id}: loaded v{trade.version}, stored v{current.version}"
                )
                raise ConcurrentModificationError(
                    f"Trade {trade_id} was changed by someone else; reload and try again"
                )

            conn.execute(delete(trade_items).where(trade_items.c.trade_id == trade_id))
            self._write_items(conn, trade_id, trade)
            for written in [*implied, event]:
                conn.execute(insert(trade_events).values(**TradeEventMapper.to_db_dict(trade_id, written)))

            return self._load(conn, trade_id)

    def find_by_participant(
        self,
        user_id: int,
        status: Optional[TradeStatus] = None,
        role: Optional[Party] = None
    ) -> List[Trade]:
        """
        Find trades where the user is buyer or seller.

        Args:
            user_id: Participant ID
            status: Optional status filter
            role: Optional side filter

        Returns:
            List of trades, newest first (empty if none found)
        """
        if role is Party.BUYER:
            participant = trades.c.buyer_id == user_id
        elif role is Party.SELLER:
            participant = trades.c.seller_id == user_id
        else:
            participant = or_(trades.c.buyer_id == user_id, trades.c.seller_id == user_id)

        stmt = select(trades).where(participant)
        if status is not None:
            stmt = stmt.where(trades.c.status == status.value)
        stmt = stmt.order_by(trades.c.created_at.desc(), trades.c.trade_id.desc())

        with self._engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
            if not rows:
                return []

            items_by_trade = defaultdict(list)
            item_rows = conn.execute(
                select(trade_items)
                .where(trade_items.c.trade_id.in_([row.trade_id for row in rows]))
                .order_by(trade_items.c.trade_id, trade_items.c.position)
            ).fetchall()
            for item in item_rows:
                items_by_trade[item.trade_id].append(item)

            return [TradeMapper.from_db_rows(row, items_by_trade[row.trade_id]) for row in rows]

    def count_by_status(self, user_id: int) -> Dict[TradeStatus, int]:
        """
        Count the user's trades per status.

        Args:
            user_id: Participant ID

        Returns:
            Mapping of status to count (statuses with no trades omitted)
        """
        stmt = (
            select(trades.c.status, func.count().label('total'))
            .where(or_(trades.c.buyer_id == user_id, trades.c.seller_id == user_id))
            .group_by(trades.c.status)
        )
        with self._engine.connect() as conn:
            return {TradeStatus(row.status): int(row.total) for row in conn.execute(stmt)}

    def list_events(self, trade_id: int) -> List[TradeEvent]:
        """
        List the audit events of a trade.

        Args:
            trade_id: Trade identifier

        Returns:
            Events oldest first
        """
        stmt = (
            select(trade_events)
            .where(trade_events.c.trade_id == trade_id)
            .order_by(trade_events.c.event_id.asc())
        )
        with self._engine.connect() as conn:
            return [TradeEventMapper.from_db_row(row) for row in conn.execute(stmt)]

    def _load(self, conn: Connection, trade_id: int) -> Optional[Trade]:
        row = conn.execute(select(trades).where(trades.c.trade_id == trade_id)).fetchone()
        if not row:
            return None

        item_rows = conn.execute(
            select(trade_items)
            .where(trade_items.c.trade_id == trade_id)
            .order_by(trade_items.c.position)
        ).fetchall()
        return TradeMapper.from_db_rows(row, item_rows)

    def _write_items(self, conn: Connection, trade_id: int, trade: Trade) -> None:
        rows = TradeMapper.items_to_db_rows(trade_id, trade.items)
        if rows:
            conn.execute(insert(trade_items), rows)
