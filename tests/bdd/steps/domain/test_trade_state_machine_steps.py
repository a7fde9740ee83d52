"""
BDD step definitions for the Trade aggregate state machine.

Pure domain tests: no repository, no mediator.
"""
import pytest
from datetime import datetime, timezone
from decimal import Decimal
from pytest_bdd import scenarios, given, when, then, parsers

from barterhub.domain.shared import exceptions
from barterhub.domain.trading.trade import Trade, TradeItem, TradeOption, Party

scenarios("../../features/domain/trade_state_machine.feature")

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def context():
    """Shared context for test scenarios"""
    return {}


def _attempt(context, action, *args, **kwargs):
    context["error"] = None
    try:
        event = action(*args, **kwargs)
    except exceptions.DomainException as e:
        context["error"] = e
        return
    if event is not None:
        context["event"] = event


# ==============================================================================
# Background
# ==============================================================================
@given(parsers.parse(
    "a pending trade {trade_id:d} between buyer {buyer_id:d} and seller {seller_id:d} "
    "for product {target:d} offering product {offered:d}"
))
def pending_trade(context, trade_id, buyer_id, seller_id, target, offered):
    context["trade"] = Trade(
        trade_id=trade_id,
        buyer_id=buyer_id,
        seller_id=seller_id,
        target_product_id=target,
        items=[TradeItem(offered, Party.BUYER)],
        trade_option=TradeOption.MEETUP,
        created_at=NOW,
    )


@given(parsers.parse('the trade has been moved to "{status}"'))
def move_trade(context, status):
    trade = context["trade"]
    buyer, seller = trade.buyer_id, trade.seller_id
    if status == "declined":
        trade.decline(seller)
    elif status == "cancelled":
        trade.cancel(buyer)
    else:
        trade.accept(seller)
        if status == "active":
            trade.lock_option(buyer)
    assert trade.status.value == status


# ==============================================================================
# Actions
# ==============================================================================
@when(parsers.parse("user {user_id:d} accepts"))
def user_accepts(context, user_id):
    _attempt(context, context["trade"].accept, user_id, now=NOW)


@when(parsers.parse("user {user_id:d} cancels"))
def user_cancels(context, user_id):
    _attempt(context, context["trade"].cancel, user_id, now=NOW)


@when(parsers.parse('user {user_id:d} counters with cash "{amount}"'))
def user_counters(context, user_id, amount):
    _attempt(context, context["trade"].counter, user_id, [], new_cash_amount=Decimal(amount), now=NOW)


@when(parsers.parse("user {user_id:d} completes with rating {rating:d}"))
def user_completes(context, user_id, rating):
    _attempt(context, context["trade"].submit_completion, user_id, rating, now=NOW)


# ==============================================================================
# Outcomes
# ==============================================================================
@then(parsers.parse('the trade is "{status}"'))
def check_status(context, status):
    assert context["trade"].status.value == status


@then(parsers.parse("the action is rejected with {error_name}"))
def check_rejected(context, error_name):
    assert isinstance(context["error"], getattr(exceptions, error_name))


@then(parsers.parse('the last event records "{action}" from "{from_status}" to "{to_status}"'))
def check_event(context, action, from_status, to_status):
    event = context["event"]
    assert event.action.value == action
    assert event.from_status.value == from_status
    assert event.to_status.value == to_status
    assert event.occurred_at == NOW


@then(parsers.parse("the turn belongs to the {party}"))
def check_turn(context, party):
    assert context["trade"].awaiting_response_from is Party(party)


@then(parsers.parse('the offer holds no items and cash "{amount}"'))
def check_offer(context, amount):
    trade = context["trade"]
    assert trade.items == ()
    assert trade.offered_cash_amount == Decimal(amount)


@then("both parties have completed")
def check_both_completed(context):
    trade = context["trade"]
    assert trade.buyer_completed and trade.seller_completed


@then("the trade has a completion time")
def check_completed_at(context):
    assert context["trade"].completed_at == NOW
