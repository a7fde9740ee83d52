"""Trade CLI commands"""
import argparse
import asyncio
from decimal import Decimal, InvalidOperation
from typing import Optional

from ....configuration.container import get_mediator
from ....application.trading.commands import (
    ProposeTradeCommand,
    AcceptTradeCommand,
    DeclineTradeCommand,
    CounterTradeCommand,
    CancelTradeCommand,
    SelectTradeOptionCommand,
    LockTradeOptionCommand,
    RequestOptionChangeCommand,
    ApproveOptionChangeCommand,
    RejectOptionChangeCommand,
    ConfirmMeetupCommand,
    SubmitCompletionCommand,
)
from ....application.trading.queries import (
    GetTradeQuery,
    ListTradesQuery,
    CountTradesQuery,
    GetTradeProgressQuery,
    GetTradeHistoryQuery,
)
from ....domain.shared.exceptions import DomainException
from ....domain.trading.trade import Trade, TradeStatus, TradeOption, Party
from .user_selector import get_user_id_from_args, add_user_argument, UserSelectionError


def _cash(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"invalid cash amount: {value!r}")


def _option(value: Optional[str]) -> Optional[TradeOption]:
    return TradeOption(value) if value else None


def _send(command):
    return asyncio.run(get_mediator().send_async(command))


def _describe_offer(trade: Trade) -> str:
    parts = [f"#{item.product_id} ({item.offered_by.value})" for item in trade.items]
    if trade.offered_cash_amount > 0:
        parts.append(f"cash {trade.offered_cash_amount}")
    return ", ".join(parts) if parts else "nothing"


def _print_trade_line(trade: Trade) -> None:
    print(
        f"  [{trade.trade_id}] product #{trade.target_product_id} "
        f"buyer {trade.buyer_id} / seller {trade.seller_id} - {trade.status.value}"
    )


def _run_action(args: argparse.Namespace, build, done: str) -> int:
    """Build a trade command for the acting user, send it and report the outcome"""
    try:
        user_id = get_user_id_from_args(args)
        trade = _send(build(user_id))
        print(f"✅ {done.format(trade=trade)}")
        return 0
    except (DomainException, UserSelectionError) as e:
        print(f"❌ Error: {e}")
        return 1


def propose_command(args: argparse.Namespace) -> int:
    """Handle trade propose command"""
    return _run_action(
        args,
        lambda user_id: ProposeTradeCommand(
            caller_id=user_id,
            target_product_id=args.product_id,
            offered_product_ids=tuple(args.items or ()),
            offered_cash_amount=args.cash,
            message=args.message,
            trade_option=_option(args.option),
            delivery_address=args.address,
        ),
        "Proposed trade {trade.trade_id} to seller {trade.seller_id}",
    )


def accept_command(args: argparse.Namespace) -> int:
    """Handle trade accept command"""
    return _run_action(
        args,
        lambda user_id: AcceptTradeCommand(trade_id=args.trade_id, caller_id=user_id, note=args.note),
        "Trade {trade.trade_id} accepted",
    )


def decline_command(args: argparse.Namespace) -> int:
    """Handle trade decline command"""
    return _run_action(
        args,
        lambda user_id: DeclineTradeCommand(trade_id=args.trade_id, caller_id=user_id, note=args.note),
        "Trade {trade.trade_id} declined",
    )


def counter_command(args: argparse.Namespace) -> int:
    """Handle trade counter command"""
    return _run_action(
        args,
        lambda user_id: CounterTradeCommand(
            trade_id=args.trade_id,
            caller_id=user_id,
            new_product_ids=tuple(args.items or ()),
            new_cash_amount=args.cash,
            message=args.message,
        ),
        "Counter-offer sent on trade {trade.trade_id}; "
        "waiting for the {trade.awaiting_response_from.value}",
    )


def cancel_command(args: argparse.Namespace) -> int:
    """Handle trade cancel command"""
    return _run_action(
        args,
        lambda user_id: CancelTradeCommand(trade_id=args.trade_id, caller_id=user_id, note=args.note),
        "Trade {trade.trade_id} cancelled",
    )


def select_option_command(args: argparse.Namespace) -> int:
    """Handle trade select-option command"""
    return _run_action(
        args,
        lambda user_id: SelectTradeOptionCommand(
            trade_id=args.trade_id,
            caller_id=user_id,
            trade_option=TradeOption(args.option),
            delivery_address=args.address,
        ),
        "Trade {trade.trade_id} will use {trade.trade_option.value} ({trade.status.value})",
    )


def lock_option_command(args: argparse.Namespace) -> int:
    """Handle trade lock-option command"""
    return _run_action(
        args,
        lambda user_id: LockTradeOptionCommand(trade_id=args.trade_id, caller_id=user_id),
        "Trade {trade.trade_id} is active with {trade.trade_option.value}",
    )


def request_change_command(args: argparse.Namespace) -> int:
    """Handle trade request-change command"""
    return _run_action(
        args,
        lambda user_id: RequestOptionChangeCommand(
            trade_id=args.trade_id,
            caller_id=user_id,
            requested_option=TradeOption(args.option),
            requested_delivery_address=args.address,
        ),
        "Option change requested on trade {trade.trade_id}; waiting for the seller",
    )


def approve_change_command(args: argparse.Namespace) -> int:
    """Handle trade approve-change command"""
    return _run_action(
        args,
        lambda user_id: ApproveOptionChangeCommand(trade_id=args.trade_id, caller_id=user_id),
        "Trade {trade.trade_id} now uses {trade.trade_option.value}",
    )


def reject_change_command(args: argparse.Namespace) -> int:
    """Handle trade reject-change command"""
    return _run_action(
        args,
        lambda user_id: RejectOptionChangeCommand(trade_id=args.trade_id, caller_id=user_id, note=args.note),
        "Option change rejected on trade {trade.trade_id}",
    )


def confirm_meetup_command(args: argparse.Namespace) -> int:
    """Handle trade confirm-meetup command"""
    return _run_action(
        args,
        lambda user_id: ConfirmMeetupCommand(
            trade_id=args.trade_id, caller_id=user_id, location=args.location
        ),
        "Meetup at '{trade.meetup_location}' confirmed "
        "(buyer: {trade.buyer_meetup_confirmed}, seller: {trade.seller_meetup_confirmed})",
    )


def complete_command(args: argparse.Namespace) -> int:
    """Handle trade complete command"""
    return _run_action(
        args,
        lambda user_id: SubmitCompletionCommand(
            trade_id=args.trade_id, caller_id=user_id, rating=args.rating, feedback=args.feedback
        ),
        "Completion recorded on trade {trade.trade_id} ({trade.status.value})",
    )


def show_command(args: argparse.Namespace) -> int:
    """Handle trade show command"""
    try:
        user_id = get_user_id_from_args(args)
        trade = _send(GetTradeQuery(trade_id=args.trade_id, caller_id=user_id))
        progress = _send(GetTradeProgressQuery(trade_id=args.trade_id, caller_id=user_id))
    except (DomainException, UserSelectionError) as e:
        print(f"❌ Error: {e}")
        return 1

    print(f"Trade {trade.trade_id}:")
    print(f"  Product: #{trade.target_product_id}")
    print(f"  Buyer: {trade.buyer_id}  Seller: {trade.seller_id}  (you are the {progress.viewer.value})")
    print(f"  Status: {trade.status.value}  Stage: {progress.stage.value}")
    print(f"  Offer: {_describe_offer(trade)}")
    if trade.message:
        print(f"  Message: {trade.message}")
    if progress.awaiting_response_from is not None:
        print(f"  Awaiting response from: {progress.awaiting_response_from.value}")
    if trade.trade_option:
        option = trade.trade_option.value
        if trade.delivery_address:
            option += f" to {trade.delivery_address}"
        print(f"  Option: {option}")
    if trade.option_change_requested:
        request = trade.option_change_requested
        print(f"  Option change requested: {request.requested_option.value}")
    if trade.meetup_location:
        print(f"  Meetup: {trade.meetup_location} "
              f"(you: {'✓' if progress.self_meetup_confirmed else '✗'}, "
              f"them: {'✓' if progress.other_meetup_confirmed else '✗'})")
    if progress.self_completed or progress.other_completed:
        print(f"  Completion: you {'✓' if progress.self_completed else '✗'}, "
              f"them {'✓' if progress.other_completed else '✗'}")
    print(f"  Created: {trade.created_at.isoformat()}")
    print(f"  Updated: {trade.updated_at.isoformat()}")
    return 0


def list_command(args: argparse.Namespace) -> int:
    """Handle trade list command"""
    try:
        user_id = get_user_id_from_args(args)
        trades = _send(ListTradesQuery(
            caller_id=user_id,
            status=TradeStatus(args.status) if args.status else None,
            role=Party(args.role) if args.role else None,
        ))
    except (DomainException, UserSelectionError) as e:
        print(f"❌ Error: {e}")
        return 1

    if not trades:
        print("No trades found")
        return 0

    print(f"Trades ({len(trades)}):")
    for trade in trades:
        _print_trade_line(trade)
    return 0


def history_command(args: argparse.Namespace) -> int:
    """Handle trade history command"""
    try:
        user_id = get_user_id_from_args(args)
        events = _send(GetTradeHistoryQuery(trade_id=args.trade_id, caller_id=user_id))
    except (DomainException, UserSelectionError) as e:
        print(f"❌ Error: {e}")
        return 1

    print(f"Trade {args.trade_id} history ({len(events)} events):")
    for event in events:
        moved = event.to_status.value
        if event.from_status is not None and event.from_status is not event.to_status:
            moved = f"{event.from_status.value} -> {event.to_status.value}"
        line = f"  {event.occurred_at.isoformat()}  user {event.actor_id}  {event.action.value}  [{moved}]"
        if event.note:
            line += f"  \"{event.note}\""
        print(line)
    return 0


def counts_command(args: argparse.Namespace) -> int:
    """Handle trade counts command"""
    try:
        user_id = get_user_id_from_args(args)
        counts = _send(CountTradesQuery(caller_id=user_id))
    except (DomainException, UserSelectionError) as e:
        print(f"❌ Error: {e}")
        return 1

    print(f"Trades for user {user_id}:")
    for status, total in counts.items():
        print(f"  {status.value:<10} {total}")
    return 0


def setup_trade_commands(subparsers):
    """Setup trade CLI commands"""
    trade_parser = subparsers.add_parser("trade", help="Trade lifecycle")
    trade_subparsers = trade_parser.add_subparsers(dest="trade_command")

    def action(name, help_text, func):
        parser = trade_subparsers.add_parser(name, help=help_text)
        parser.add_argument("trade_id", type=int)
        add_user_argument(parser)
        parser.set_defaults(func=func)
        return parser

    # Propose
    propose_parser = trade_subparsers.add_parser("propose", help="Propose a trade for a product")
    propose_parser.add_argument("product_id", type=int, help="Product you want")
    propose_parser.add_argument("--items", type=int, nargs="*", help="Your product IDs to offer")
    propose_parser.add_argument("--cash", type=_cash, default=Decimal("0"), help="Cash to add")
    propose_parser.add_argument("--message")
    propose_parser.add_argument("--option", choices=[o.value for o in TradeOption])
    propose_parser.add_argument("--address", help="Delivery address")
    add_user_argument(propose_parser)
    propose_parser.set_defaults(func=propose_command)

    # Negotiation
    action("accept", "Accept the offer on the table", accept_command).add_argument("--note")
    action("decline", "Decline the offer on the table", decline_command).add_argument("--note")
    counter_parser = action("counter", "Replace the offer with your own", counter_command)
    counter_parser.add_argument("--items", type=int, nargs="*", help="Your product IDs to offer")
    counter_parser.add_argument("--cash", type=_cash, default=Decimal("0"))
    counter_parser.add_argument("--message")
    action("cancel", "Cancel the trade", cancel_command).add_argument("--note")

    # Fulfillment option
    select_parser = action("select-option", "Choose meetup or delivery", select_option_command)
    select_parser.add_argument("option", choices=[o.value for o in TradeOption])
    select_parser.add_argument("--address", help="Delivery address")
    action("lock-option", "Lock the chosen option and start the exchange", lock_option_command)
    change_parser = action("request-change", "Ask the seller to switch option", request_change_command)
    change_parser.add_argument("option", choices=[o.value for o in TradeOption])
    change_parser.add_argument("--address", help="Delivery address")
    action("approve-change", "Approve the requested option change", approve_change_command)
    action("reject-change", "Reject the requested option change", reject_change_command).add_argument("--note")

    # Meetup and completion
    meetup_parser = action("confirm-meetup", "Confirm the meetup location", confirm_meetup_command)
    meetup_parser.add_argument("location")
    complete_parser = action("complete", "Confirm completion and rate the other party", complete_command)
    complete_parser.add_argument("--rating", type=int, required=True, help="1 to 5")
    complete_parser.add_argument("--feedback")

    # Reads
    action("show", "Show a trade and your progress", show_command)
    action("history", "Show the trade's audit log", history_command)

    list_parser = trade_subparsers.add_parser("list", help="List your trades")
    list_parser.add_argument("--status", choices=[s.value for s in TradeStatus])
    list_parser.add_argument("--role", choices=[p.value for p in Party])
    add_user_argument(list_parser)
    list_parser.set_defaults(func=list_command)

    counts_parser = trade_subparsers.add_parser("counts", help="Count your trades per status")
    add_user_argument(counts_parser)
    counts_parser.set_defaults(func=counts_command)
