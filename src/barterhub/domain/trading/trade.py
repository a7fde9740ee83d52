"""Trade aggregate and value objects"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from ..shared.exceptions import (
    ForbiddenError,
    InvalidStateError,
    PendingChangeExistsError,
    CompletionAlreadySubmittedError,
    ValidationError,
    InvalidOfferError,
    LocationMismatchError,
)


class TradeStatus(Enum):
    """Trade status enumeration"""
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    # Only found on rows written by older clients; counter() keeps a trade pending
    COUNTERED = "countered"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    def is_terminal(self) -> bool:
        """Check if no further transitions are allowed"""
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES: FrozenSet[TradeStatus] = frozenset({
    TradeStatus.COMPLETED,
    TradeStatus.DECLINED,
    TradeStatus.CANCELLED,
})

# pending -> pending is a counter-offer handing the turn to the other party
LEGAL_TRANSITIONS: Dict[TradeStatus, FrozenSet[TradeStatus]] = {
    TradeStatus.PENDING: frozenset({
        TradeStatus.ACCEPTED,
        TradeStatus.DECLINED,
        TradeStatus.PENDING,
        TradeStatus.CANCELLED,
    }),
    TradeStatus.COUNTERED: frozenset({TradeStatus.CANCELLED}),
    TradeStatus.ACCEPTED: frozenset({TradeStatus.ACTIVE, TradeStatus.CANCELLED}),
    TradeStatus.ACTIVE: frozenset({TradeStatus.COMPLETED, TradeStatus.CANCELLED}),
    TradeStatus.DECLINED: frozenset(),
    TradeStatus.COMPLETED: frozenset(),
    TradeStatus.CANCELLED: frozenset(),
}


class Party(Enum):
    """Side of a trade"""
    BUYER = "buyer"
    SELLER = "seller"

    def other(self) -> "Party":
        """Get the counterparty"""
        return Party.SELLER if self is Party.BUYER else Party.BUYER


class TradeOption(Enum):
    """Fulfillment option: how the goods physically change hands"""
    MEETUP = "meetup"
    DELIVERY = "delivery"


class TradeAction(Enum):
    """Actions recorded in the trade audit log"""
    PROPOSE = "propose"
    ACCEPT = "accept"
    DECLINE = "decline"
    COUNTER = "counter"
    CANCEL = "cancel"
    SELECT_OPTION = "select_option"
    LOCK_OPTION = "lock_option"
    REQUEST_OPTION_CHANGE = "request_option_change"
    APPROVE_OPTION_CHANGE = "approve_option_change"
    REJECT_OPTION_CHANGE = "reject_option_change"
    CONFIRM_MEETUP = "confirm_meetup"
    SUBMIT_COMPLETION = "submit_completion"


@dataclass(frozen=True)
class TradeItem:
    """One product offered by one side of a trade"""
    product_id: int
    offered_by: Party

    def __post_init__(self):
        if not isinstance(self.product_id, int) or self.product_id <= 0:
            raise ValidationError(f"Invalid product id: {self.product_id!r}")
        if not isinstance(self.offered_by, Party):
            raise ValidationError("offered_by must be a Party")


@dataclass(frozen=True)
class OptionChangeRequest:
    """Outstanding request from the buyer to change the fulfillment option"""
    requested_option: TradeOption
    requested_by: int
    requested_delivery_address: Optional[str] = None


@dataclass(frozen=True)
class TradeEvent:
    """One accepted transition of a trade, as written to the audit log"""
    trade_id: Optional[int]
    actor_id: int
    action: TradeAction
    from_status: Optional[TradeStatus]
    to_status: TradeStatus
    occurred_at: datetime
    note: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    event_id: Optional[int] = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_cash(value: Any) -> Decimal:
    """
    Normalize a cash amount to a non-negative two-decimal Decimal.

    Raises:
        ValidationError: If the value is not a number or is negative
    """
    if value is None or value == "":
        return Decimal("0.00")
    if isinstance(value, bool):
        raise ValidationError(f"Invalid cash amount: {value!r}")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"Invalid cash amount: {value!r}")
    if not amount.is_finite():
        raise ValidationError(f"Invalid cash amount: {value!r}")
    if amount < 0:
        raise ValidationError("Offered cash amount cannot be negative")
    return amount.quantize(Decimal("0.01"))


def validated_fulfillment(
    option: Any,
    delivery_address: Optional[str]
) -> Tuple[TradeOption, Optional[str]]:
    """
    Validate a fulfillment option and its delivery address.

    Delivery requires a non-empty address; meetup never carries one.

    Returns:
        Tuple of (option, normalized address or None)

    Raises:
        ValidationError: If the option is unknown or the address is missing
    """
    if not isinstance(option, TradeOption):
        try:
            option = TradeOption(str(option).lower())
        except ValueError:
            raise ValidationError(
                f"Unknown trade option {option!r}; expected 'meetup' or 'delivery'"
            )

    if option is TradeOption.DELIVERY:
        address = (delivery_address or "").strip()
        if not address:
            raise ValidationError("A delivery address is required for delivery trades")
        return option, address

    return option, None


def _normalize_location(location: str) -> str:
    return " ".join(location.split()).casefold()


def _clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class Trade:
    """
    Trade aggregate - a proposed, negotiated or settled exchange between two users

    Every mutating method validates status, caller and payload before touching
    any field, so a rejected action leaves the trade exactly as it was. Each
    accepted action returns the TradeEvent describing it; events recorded on
    the way (an implicit option lock) are collected with pull_implied_events().

    Invariants:
    - buyer_id and seller_id differ and never change
    - the offer contains at least one item or a positive cash amount
    - delivery_address is set iff trade_option is delivery
    - trade_option is read-only once the trade is active
    - status is completed iff both parties have submitted completion
    - terminal trades (completed, declined, cancelled) never change
    """

    def __init__(
        self,
        trade_id: Optional[int],
        buyer_id: int,
        seller_id: int,
        target_product_id: int,
        items: Iterable[TradeItem],
        offered_cash_amount: Any = 0,
        message: Optional[str] = None,
        status: TradeStatus = TradeStatus.PENDING,
        trade_option: Optional[TradeOption] = None,
        delivery_address: Optional[str] = None,
        option_change_requested: Optional[OptionChangeRequest] = None,
        meetup_location: Optional[str] = None,
        buyer_meetup_confirmed: bool = False,
        seller_meetup_confirmed: bool = False,
        buyer_completed: bool = False,
        seller_completed: bool = False,
        buyer_rating: Optional[int] = None,
        seller_rating: Optional[int] = None,
        buyer_feedback: Optional[str] = None,
        seller_feedback: Optional[str] = None,
        awaiting_response_from: Party = Party.SELLER,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
        first_completion_at: Optional[datetime] = None,
        completed_at: Optional[datetime] = None,
        version: int = 0
    ):
        """
        Initialize a Trade entity

        Raises:
            ValidationError: If the field combination violates an invariant
        """
        if buyer_id == seller_id:
            raise ValidationError("Buyer and seller must be different users")
        if not isinstance(target_product_id, int) or target_product_id <= 0:
            raise ValidationError(f"Invalid target product id: {target_product_id!r}")

        items = list(items)
        cash = as_cash(offered_cash_amount)
        if not items and cash <= 0:
            raise InvalidOfferError("A trade must offer at least one item or some cash")

        if trade_option is None:
            if delivery_address:
                raise ValidationError("delivery_address requires the delivery option")
        else:
            trade_option, delivery_address = validated_fulfillment(trade_option, delivery_address)

        if (buyer_completed and seller_completed) != (status is TradeStatus.COMPLETED):
            raise ValidationError(
                "Trade status must be completed exactly when both parties completed"
            )

        now = _utcnow()
        self._trade_id = trade_id
        self._buyer_id = buyer_id
        self._seller_id = seller_id
        self._target_product_id = target_product_id
        self._items: List[TradeItem] = items
        self._offered_cash_amount = cash
        self._message = message
        self._status = status
        self._trade_option = trade_option
        self._delivery_address = delivery_address
        self._option_change_requested = option_change_requested
        self._meetup_location = meetup_location
        self._buyer_meetup_confirmed = bool(buyer_meetup_confirmed)
        self._seller_meetup_confirmed = bool(seller_meetup_confirmed)
        self._buyer_completed = bool(buyer_completed)
        self._seller_completed = bool(seller_completed)
        self._buyer_rating = buyer_rating
        self._seller_rating = seller_rating
        self._buyer_feedback = buyer_feedback
        self._seller_feedback = seller_feedback
        self._awaiting_response_from = awaiting_response_from
        self._created_at = created_at or now
        self._updated_at = updated_at or self._created_at
        self._first_completion_at = first_completion_at
        self._completed_at = completed_at
        self._version = version
        self._implied_events: List[TradeEvent] = []

    @classmethod
    def propose(
        cls,
        buyer_id: int,
        seller_id: int,
        target_product_id: int,
        offered_product_ids: Iterable[int],
        offered_cash_amount: Any = 0,
        message: Optional[str] = None,
        trade_option: Optional[Any] = None,
        delivery_address: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> "Trade":
        """
        Create a new pending trade proposed by the buyer

        Catalog checks (existence, ownership, availability) belong to the
        caller; this only enforces the shape of the offer.

        Args:
            buyer_id: Proposing user
            seller_id: Owner of the target product
            target_product_id: Product the buyer wants
            offered_product_ids: Buyer's products offered in exchange
            offered_cash_amount: Optional cash supplement
            message: Optional note for the seller
            trade_option: Optional fulfillment option chosen up front
            delivery_address: Required when trade_option is delivery
            now: Creation timestamp (defaults to current UTC time)

        Returns:
            Unsaved Trade with status pending and the seller to respond

        Raises:
            ValidationError: If the offer or fulfillment terms are malformed
            InvalidOfferError: If nothing is offered
        """
        if buyer_id == seller_id:
            raise ValidationError("Cannot propose a trade on your own product")

        product_ids = _unique_product_ids(offered_product_ids)
        if target_product_id in product_ids:
            raise ValidationError("The requested product cannot also be offered")

        if trade_option is not None:
            trade_option, delivery_address = validated_fulfillment(trade_option, delivery_address)
        elif delivery_address:
            raise ValidationError("delivery_address requires the delivery option")

        now = now or _utcnow()
        return cls(
            trade_id=None,
            buyer_id=buyer_id,
            seller_id=seller_id,
            target_product_id=target_product_id,
            items=[TradeItem(pid, Party.BUYER) for pid in product_ids],
            offered_cash_amount=offered_cash_amount,
            message=_clean_text(message),
            trade_option=trade_option,
            delivery_address=delivery_address,
            awaiting_response_from=Party.SELLER,
            created_at=now,
            updated_at=now,
        )

    # ===== Properties =====

    @property
    def trade_id(self) -> Optional[int]:
        return self._trade_id

    @property
    def buyer_id(self) -> int:
        return self._buyer_id

    @property
    def seller_id(self) -> int:
        return self._seller_id

    @property
    def target_product_id(self) -> int:
        return self._target_product_id

    @property
    def items(self) -> Tuple[TradeItem, ...]:
        return tuple(self._items)

    @property
    def offered_cash_amount(self) -> Decimal:
        return self._offered_cash_amount

    @property
    def message(self) -> Optional[str]:
        return self._message

    @property
    def status(self) -> TradeStatus:
        return self._status

    @property
    def trade_option(self) -> Optional[TradeOption]:
        return self._trade_option

    @property
    def delivery_address(self) -> Optional[str]:
        return self._delivery_address

    @property
    def option_change_requested(self) -> Optional[OptionChangeRequest]:
        return self._option_change_requested

    @property
    def meetup_location(self) -> Optional[str]:
        return self._meetup_location

    @property
    def buyer_meetup_confirmed(self) -> bool:
        return self._buyer_meetup_confirmed

    @property
    def seller_meetup_confirmed(self) -> bool:
        return self._seller_meetup_confirmed

    @property
    def buyer_completed(self) -> bool:
        return self._buyer_completed

    @property
    def seller_completed(self) -> bool:
        return self._seller_completed

    @property
    def buyer_rating(self) -> Optional[int]:
        return self._buyer_rating

    @property
    def seller_rating(self) -> Optional[int]:
        return self._seller_rating

    @property
    def buyer_feedback(self) -> Optional[str]:
        return self._buyer_feedback

    @property
    def seller_feedback(self) -> Optional[str]:
        return self._seller_feedback

    @property
    def awaiting_response_from(self) -> Party:
        """Party whose turn it is to accept, decline or counter while pending"""
        return self._awaiting_response_from

    @property
    def proposer(self) -> Party:
        """Party who made the proposal currently on the table"""
        return self._awaiting_response_from.other()

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    @property
    def first_completion_at(self) -> Optional[datetime]:
        return self._first_completion_at

    @property
    def completed_at(self) -> Optional[datetime]:
        return self._completed_at

    @property
    def version(self) -> int:
        """Store revision this instance was loaded at"""
        return self._version

    # ===== Queries =====

    def has_offer(self) -> bool:
        """Check if the trade offers at least one item or some cash"""
        return bool(self._items) or self._offered_cash_amount > 0

    def is_terminal(self) -> bool:
        return self._status.is_terminal()

    def items_offered_by(self, party: Party) -> List[TradeItem]:
        return [item for item in self._items if item.offered_by is party]

    def participant_id(self, party: Party) -> int:
        return self._buyer_id if party is Party.BUYER else self._seller_id

    def is_participant(self, user_id: int) -> bool:
        return user_id in (self._buyer_id, self._seller_id)

    def party_of(self, caller_id: int) -> Party:
        """
        Resolve which side of the trade the caller is on

        Raises:
            ForbiddenError: If the caller is neither buyer nor seller
        """
        if caller_id == self._buyer_id:
            return Party.BUYER
        if caller_id == self._seller_id:
            return Party.SELLER
        raise ForbiddenError(f"User {caller_id} is not a party to trade {self._trade_id}")

    # ===== Negotiation =====

    def accept(self, caller_id: int, note: Optional[str] = None,
               now: Optional[datetime] = None) -> TradeEvent:
        """
        Accept the proposal on the table

        Raises:
            ForbiddenError: If the caller is not the party awaited to respond
            InvalidStateError: If the trade is not pending
            InvalidOfferError: If the trade offers nothing
        """
        party = self.party_of(caller_id)
        self._require_status("accept", TradeStatus.PENDING)
        self._require_turn(party, "accept")
        if not self.has_offer():
            raise InvalidOfferError(f"Trade {self._trade_id} offers neither items nor cash")

        return self._transition(caller_id, TradeAction.ACCEPT, TradeStatus.ACCEPTED, now, note)

    def decline(self, caller_id: int, note: Optional[str] = None,
                now: Optional[datetime] = None) -> TradeEvent:
        """
        Decline the proposal on the table (terminal)

        Raises:
            ForbiddenError: If the caller is not the party awaited to respond
            InvalidStateError: If the trade is not pending
        """
        party = self.party_of(caller_id)
        self._require_status("decline", TradeStatus.PENDING)
        self._require_turn(party, "decline")

        return self._transition(caller_id, TradeAction.DECLINE, TradeStatus.DECLINED, now, note)

    def counter(
        self,
        caller_id: int,
        new_product_ids: Iterable[int],
        new_cash_amount: Any = 0,
        message: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> TradeEvent:
        """
        Replace the terms with the caller's counter-proposal

        The new items are tagged as offered by the caller and the turn passes
        to the other party. The previous terms are overwritten; they survive
        only in the returned event's details.

        Raises:
            ForbiddenError: If it is not the caller's turn to respond
            InvalidStateError: If the trade is not pending
            InvalidOfferError: If the counter offers nothing
            ValidationError: If product ids repeat or include the target
        """
        party = self.party_of(caller_id)
        self._require_status("counter", TradeStatus.PENDING)
        self._require_turn(party, "counter")

        product_ids = _unique_product_ids(new_product_ids)
        if self._target_product_id in product_ids:
            raise ValidationError("The requested product cannot also be offered")
        cash = as_cash(new_cash_amount)
        if not product_ids and cash <= 0:
            raise InvalidOfferError("A counter-offer must include at least one item or some cash")

        self._items = [TradeItem(pid, party) for pid in product_ids]
        self._offered_cash_amount = cash
        self._message = _clean_text(message)
        self._awaiting_response_from = party.other()

        return self._transition(
            caller_id, TradeAction.COUNTER, TradeStatus.PENDING, now, message,
            details=self.terms_snapshot(),
        )

    def cancel(self, caller_id: int, note: Optional[str] = None,
               now: Optional[datetime] = None) -> TradeEvent:
        """
        Abort the trade from any non-terminal status

        Raises:
            ForbiddenError: If the caller is not a party to the trade
            InvalidStateError: If the trade is already terminal
        """
        self.party_of(caller_id)
        if self.is_terminal():
            raise InvalidStateError(
                f"Trade {self._trade_id} is already {self._status.value} and cannot be cancelled"
            )
        return self._transition(caller_id, TradeAction.CANCEL, TradeStatus.CANCELLED, now, note)

    # ===== Fulfillment option =====

    def select_option(
        self,
        caller_id: int,
        trade_option: Any,
        delivery_address: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> TradeEvent:
        """
        Choose the fulfillment option for the first time

        Selecting on an accepted trade is the lock event and activates it.

        Raises:
            ForbiddenError: If the caller is not the buyer
            InvalidStateError: If the status is not pending/accepted or an
                option was already chosen
            ValidationError: If the option or delivery address is invalid
        """
        party = self.party_of(caller_id)
        self._require_status("choose a fulfillment option for", TradeStatus.PENDING, TradeStatus.ACCEPTED)
        self._require_party(party, Party.BUYER, "Only the buyer can choose the fulfillment option")
        if self._trade_option is not None:
            raise InvalidStateError(
                f"Trade {self._trade_id} already uses {self._trade_option.value}; "
                "request an option change instead"
            )
        option, address = validated_fulfillment(trade_option, delivery_address)

        self._trade_option = option
        self._delivery_address = address
        target = TradeStatus.ACTIVE if self._status is TradeStatus.ACCEPTED else self._status
        return self._transition(
            caller_id, TradeAction.SELECT_OPTION, target, now,
            details={"trade_option": option.value, "delivery_address": address},
        )

    def lock_option(self, caller_id: int, now: Optional[datetime] = None) -> TradeEvent:
        """
        Lock the chosen fulfillment option and activate the trade

        Raises:
            ForbiddenError: If the caller is not the buyer
            InvalidStateError: If the trade is not accepted or has no option
            PendingChangeExistsError: If an option change is still outstanding
        """
        party = self.party_of(caller_id)
        self._require_status("lock the fulfillment option of", TradeStatus.ACCEPTED)
        self._require_party(party, Party.BUYER, "Only the buyer can lock the fulfillment option")
        if self._trade_option is None:
            raise InvalidStateError(
                f"Trade {self._trade_id} has no fulfillment option; choose one first"
            )
        if self._option_change_requested is not None:
            raise PendingChangeExistsError(
                f"Trade {self._trade_id} has an option change awaiting the seller's decision"
            )

        return self._transition(
            caller_id, TradeAction.LOCK_OPTION, TradeStatus.ACTIVE, now,
            details={"trade_option": self._trade_option.value},
        )

    def _ready_for_implicit_lock(self) -> bool:
        return (
            self._status is TradeStatus.ACCEPTED
            and self._trade_option is not None
            and self._option_change_requested is None
        )

    def _lock_implicitly(self, caller_id: int, now: datetime) -> None:
        # Recorded ahead of the action that triggered it
        self._implied_events.append(self._transition(
            caller_id, TradeAction.LOCK_OPTION, TradeStatus.ACTIVE, now,
            details={"trade_option": self._trade_option.value, "implicit": True},
        ))

    def request_option_change(
        self,
        caller_id: int,
        requested_option: Any,
        requested_delivery_address: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> TradeEvent:
        """
        Ask the seller to switch the fulfillment option

        Raises:
            ForbiddenError: If the caller is not the buyer
            InvalidStateError: If the option is locked or none was chosen yet
            PendingChangeExistsError: If a request is already outstanding
            ValidationError: If delivery lacks an address or nothing changes
        """
        party = self.party_of(caller_id)
        if self._status is TradeStatus.ACTIVE:
            raise InvalidStateError(
                f"The fulfillment option of trade {self._trade_id} is locked"
            )
        self._require_status("request an option change on", TradeStatus.PENDING, TradeStatus.ACCEPTED)
        self._require_party(party, Party.BUYER, "Only the buyer can request an option change")
        if self._trade_option is None:
            raise InvalidStateError(
                f"Trade {self._trade_id} has no fulfillment option yet; choose one instead"
            )
        if self._option_change_requested is not None:
            raise PendingChangeExistsError(
                f"Trade {self._trade_id} already has an option change awaiting the seller's decision"
            )
        option, address = validated_fulfillment(requested_option, requested_delivery_address)
        if option is self._trade_option and address == self._delivery_address:
            raise ValidationError("The requested option matches the current terms")

        self._option_change_requested = OptionChangeRequest(
            requested_option=option,
            requested_by=caller_id,
            requested_delivery_address=address,
        )
        return self._transition(
            caller_id, TradeAction.REQUEST_OPTION_CHANGE, self._status, now,
            details={"requested_option": option.value, "requested_delivery_address": address},
        )

    def approve_option_change(self, caller_id: int, now: Optional[datetime] = None) -> TradeEvent:
        """
        Apply the outstanding option change request

        Raises:
            ForbiddenError: If the caller is not the seller
            InvalidStateError: If no request is outstanding
        """
        party = self.party_of(caller_id)
        self._require_status("approve an option change on", TradeStatus.PENDING, TradeStatus.ACCEPTED)
        self._require_party(party, Party.SELLER, "Only the seller can approve an option change")
        request = self._require_change_request()

        previous = self._trade_option
        self._trade_option = request.requested_option
        self._delivery_address = request.requested_delivery_address
        self._option_change_requested = None
        return self._transition(
            caller_id, TradeAction.APPROVE_OPTION_CHANGE, self._status, now,
            details={
                "from_option": previous.value if previous else None,
                "trade_option": request.requested_option.value,
                "delivery_address": request.requested_delivery_address,
            },
        )

    def reject_option_change(self, caller_id: int, note: Optional[str] = None,
                             now: Optional[datetime] = None) -> TradeEvent:
        """
        Discard the outstanding option change request; the current option stands

        Raises:
            ForbiddenError: If the caller is not the seller
            InvalidStateError: If no request is outstanding
        """
        party = self.party_of(caller_id)
        self._require_status("reject an option change on", TradeStatus.PENDING, TradeStatus.ACCEPTED)
        self._require_party(party, Party.SELLER, "Only the seller can reject an option change")
        request = self._require_change_request()

        self._option_change_requested = None
        return self._transition(
            caller_id, TradeAction.REJECT_OPTION_CHANGE, self._status, now, note,
            details={"requested_option": request.requested_option.value},
        )

    # ===== Meetup consensus =====

    def confirm_meetup(self, caller_id: int, location: Optional[str],
                       now: Optional[datetime] = None) -> Optional[TradeEvent]:
        """
        Record the caller's confirmation of the meetup location

        The first confirmer's location is authoritative. Confirmations are
        monotonic: repeating one changes nothing and returns None. On an
        accepted trade whose option is settled the option is locked first.

        Raises:
            ForbiddenError: If the caller is not a party to the trade
            InvalidStateError: If the trade is not (or cannot become) an active
                meetup trade
            ValidationError: If the location is empty
            LocationMismatchError: If the location differs from the recorded one
        """
        party = self.party_of(caller_id)
        implicit_lock = self._ready_for_implicit_lock()
        if not implicit_lock:
            self._require_status("confirm the meetup for", TradeStatus.ACTIVE)
        if self._trade_option is not TradeOption.MEETUP:
            raise InvalidStateError(
                f"Trade {self._trade_id} is not a meetup trade; nothing to confirm"
            )
        location = (location or "").strip()
        if not location:
            raise ValidationError("A meetup location is required")
        if self._meetup_location is not None and \
                _normalize_location(self._meetup_location) != _normalize_location(location):
            raise LocationMismatchError(
                f"Meetup location for trade {self._trade_id} is already set to "
                f"'{self._meetup_location}'"
            )

        already = self._buyer_meetup_confirmed if party is Party.BUYER else self._seller_meetup_confirmed
        if already:
            return None

        now = now or _utcnow()
        if implicit_lock:
            self._lock_implicitly(caller_id, now)
        if party is Party.BUYER:
            self._buyer_meetup_confirmed = True
        else:
            self._seller_meetup_confirmed = True
        if self._meetup_location is None:
            self._meetup_location = location

        return self._transition(
            caller_id, TradeAction.CONFIRM_MEETUP, self._status, now,
            details={"location": self._meetup_location, "party": party.value},
        )

    # ===== Completion settlement =====

    def submit_completion(
        self,
        caller_id: int,
        rating: Any,
        feedback: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> TradeEvent:
        """
        Attest completion with a 1-5 rating; settles the trade when both sides have submitted.

        First submission wins: a party cannot resubmit or change their rating.
        On an accepted trade whose option is settled the option is locked first.

        Raises:
            ForbiddenError: If the caller is not a party to the trade
            InvalidStateError: If the trade is not active and cannot be locked
            ValidationError: If the rating is not an integer from 1 to 5
            CompletionAlreadySubmittedError: If the caller already submitted
        """
        party = self.party_of(caller_id)
        implicit_lock = self._ready_for_implicit_lock()
        if not implicit_lock:
            self._require_status("complete", TradeStatus.ACTIVE)
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationError("Rating must be a whole number between 1 and 5")
        already = self._buyer_completed if party is Party.BUYER else self._seller_completed
        if already:
            raise CompletionAlreadySubmittedError(
                f"You have already submitted completion for trade {self._trade_id}"
            )

        now = now or _utcnow()
        if implicit_lock:
            self._lock_implicitly(caller_id, now)
        feedback = _clean_text(feedback)
        if party is Party.BUYER:
            self._buyer_completed = True
            self._buyer_rating = rating
            self._buyer_feedback = feedback
        else:
            self._seller_completed = True
            self._seller_rating = rating
            self._seller_feedback = feedback
        if self._first_completion_at is None:
            self._first_completion_at = now

        settled = self._buyer_completed and self._seller_completed
        target = self._status
        if settled:
            target = TradeStatus.COMPLETED
            self._completed_at = now

        return self._transition(
            caller_id, TradeAction.SUBMIT_COMPLETION, target, now,
            details={"party": party.value, "rating": rating, "settled": settled},
        )

    # ===== Helpers =====

    def pull_implied_events(self) -> List[TradeEvent]:
        """
        Take the events an action recorded before its own, oldest first

        confirm_meetup and submit_completion lock an accepted trade on the way;
        the lock_option event they produce is handed out here, once.
        """
        events, self._implied_events = self._implied_events, []
        return events

    def terms_snapshot(self) -> Dict[str, Any]:
        """Current proposal terms in a JSON-friendly form"""
        return {
            "proposed_by": self.proposer.value,
            "items": [
                {"product_id": item.product_id, "offered_by": item.offered_by.value}
                for item in self._items
            ],
            "offered_cash_amount": str(self._offered_cash_amount),
            "message": self._message,
        }

    def proposal_event(self) -> TradeEvent:
        """Audit event for the creation of this trade"""
        return TradeEvent(
            trade_id=self._trade_id,
            actor_id=self._buyer_id,
            action=TradeAction.PROPOSE,
            from_status=None,
            to_status=self._status,
            occurred_at=self._created_at,
            note=self._message,
            details=dict(
                self.terms_snapshot(),
                trade_option=self._trade_option.value if self._trade_option else None,
            ),
        )

    def _require_status(self, verb: str, *allowed: TradeStatus) -> None:
        if self._status not in allowed:
            raise InvalidStateError(
                f"Cannot {verb} trade {self._trade_id}: it is {self._status.value}"
            )

    def _require_turn(self, party: Party, verb: str) -> None:
        awaited = self._awaiting_response_from
        if party is not awaited:
            raise ForbiddenError(f"Only the {awaited.value} can {verb} this offer")

    def _require_party(self, party: Party, expected: Party, message: str) -> None:
        if party is not expected:
            raise ForbiddenError(message)

    def _require_change_request(self) -> OptionChangeRequest:
        if self._option_change_requested is None:
            raise InvalidStateError(
                f"Trade {self._trade_id} has no pending option change request"
            )
        return self._option_change_requested

    def _transition(
        self,
        actor_id: int,
        action: TradeAction,
        target: TradeStatus,
        now: Optional[datetime],
        note: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> TradeEvent:
        # Sub-protocol actions keep the status; only real moves are checked
        if target is not self._status or action is TradeAction.COUNTER:
            if target not in LEGAL_TRANSITIONS[self._status]:
                raise InvalidStateError(
                    f"Illegal transition {self._status.value} -> {target.value}"
                )
        now = now or _utcnow()
        previous = self._status
        self._status = target
        self._updated_at = now
        return TradeEvent(
            trade_id=self._trade_id,
            actor_id=actor_id,
            action=action,
            from_status=previous,
            to_status=target,
            occurred_at=now,
            note=_clean_text(note),
            details=details or {},
        )

    def __repr__(self) -> str:
        return (
            f"Trade(id={self._trade_id}, "
            f"buyer={self._buyer_id}, seller={self._seller_id}, "
            f"status={self._status.value})"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Trade):
            return False
        return self._trade_id is not None and self._trade_id == other._trade_id

    def __hash__(self) -> int:
        return hash(("Trade", self._trade_id))


def _unique_product_ids(product_ids: Iterable[int]) -> List[int]:
    ids = list(product_ids or [])
    if len(set(ids)) != len(ids):
        raise ValidationError("The same product cannot be offered twice")
    return ids
