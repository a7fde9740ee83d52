"""
Shared BDD steps for trade application scenarios.

Every action goes through the real mediator backed by the in-memory
database configured in the root conftest.py. Failed actions are recorded in
context["error"] so Then steps can assert on them.
"""
import asyncio
from decimal import Decimal

import pytest
from pytest_bdd import given, when, then, parsers

from barterhub.application.trading.commands import (
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
from barterhub.application.trading.queries import (
    GetTradeQuery,
    GetTradeProgressQuery,
    GetTradeHistoryQuery,
)
from barterhub.domain.shared import exceptions
from barterhub.domain.trading.trade import TradeOption


def _user(context, party):
    return context["users"][party]


def _act(context, mediator, command):
    """Send a command; remember the resulting trade or the domain error"""
    context["error"] = None
    try:
        trade = asyncio.run(mediator.send_async(command))
    except exceptions.DomainException as e:
        context["error"] = e
        return None
    context["trade"] = trade
    context["trade_id"] = trade.trade_id
    return trade


def _current_trade(context, mediator):
    query = GetTradeQuery(trade_id=context["trade_id"], caller_id=context["users"]["buyer"])
    return asyncio.run(mediator.send_async(query))


def _progress(context, mediator, party):
    query = GetTradeProgressQuery(trade_id=context["trade_id"], caller_id=_user(context, party))
    return asyncio.run(mediator.send_async(query))


# ==============================================================================
# Setup
# ==============================================================================
@given(parsers.parse("user {buyer_id:d} is the buyer and user {seller_id:d} is the seller"))
def set_parties(context, buyer_id, seller_id):
    context["users"] = {"buyer": buyer_id, "seller": seller_id}
    context.setdefault("products", {})


@given(parsers.parse('the {party} lists "{title}"'))
def list_product(context, catalog, party, title):
    context["products"][title] = catalog.add_product(_user(context, party), title)


@given(parsers.parse('"{title}" is unavailable'))
def make_unavailable(context, catalog, title):
    product = context["products"][title]
    context["products"][title] = catalog.set_available(product.product_id, False)


# ==============================================================================
# Negotiation
# ==============================================================================
@given(parsers.re(
    r'the (?P<party>buyer|seller) proposes "(?P<offered>[^"]+)" for "(?P<wanted>[^"]+)"'
    r'(?: with (?P<fulfillment>meetup|delivery) ?(?:to "(?P<address>[^"]*)")?)?'
))
@when(parsers.re(
    r'the (?P<party>buyer|seller) proposes "(?P<offered>[^"]+)" for "(?P<wanted>[^"]+)"'
    r'(?: with (?P<fulfillment>meetup|delivery) ?(?:to "(?P<address>[^"]*)")?)?'
))
def propose_trade(context, mediator, party, offered, wanted, fulfillment, address):
    command = ProposeTradeCommand(
        caller_id=_user(context, party),
        target_product_id=context["products"][wanted].product_id,
        offered_product_ids=(context["products"][offered].product_id,),
        trade_option=TradeOption(fulfillment) if fulfillment else None,
        delivery_address=address,
    )
    _act(context, mediator, command)


@given(parsers.parse("the {party} accepts the trade"))
@when(parsers.parse("the {party} accepts the trade"))
def accept_trade(context, mediator, party):
    _act(context, mediator, AcceptTradeCommand(
        trade_id=context["trade_id"], caller_id=_user(context, party)
    ))


@when(parsers.parse("user {user_id:d} accepts the trade"))
def stranger_accepts_trade(context, mediator, user_id):
    _act(context, mediator, AcceptTradeCommand(trade_id=context["trade_id"], caller_id=user_id))


@when(parsers.parse("the {party} accepts trade {trade_id:d}"))
def accept_unknown_trade(context, mediator, party, trade_id):
    _act(context, mediator, AcceptTradeCommand(trade_id=trade_id, caller_id=_user(context, party)))


@when(parsers.parse("the {party} declines the trade"))
def decline_trade(context, mediator, party):
    _act(context, mediator, DeclineTradeCommand(
        trade_id=context["trade_id"], caller_id=_user(context, party)
    ))


@when(parsers.parse('the {party} counters with cash "{amount}"'))
def counter_with_cash(context, mediator, party, amount):
    _act(context, mediator, CounterTradeCommand(
        trade_id=context["trade_id"],
        caller_id=_user(context, party),
        new_cash_amount=Decimal(amount),
    ))


@when(parsers.parse('the {party} counters offering "{title}"'))
def counter_with_item(context, mediator, party, title):
    _act(context, mediator, CounterTradeCommand(
        trade_id=context["trade_id"],
        caller_id=_user(context, party),
        new_product_ids=(context["products"][title].product_id,),
    ))


@given(parsers.parse("the {party} cancels the trade"))
@when(parsers.parse("the {party} cancels the trade"))
def cancel_trade(context, mediator, party):
    _act(context, mediator, CancelTradeCommand(
        trade_id=context["trade_id"], caller_id=_user(context, party)
    ))


# ==============================================================================
# Fulfillment option
# ==============================================================================
@when(parsers.parse('the {party} selects delivery to "{address}"'))
def select_delivery(context, mediator, party, address):
    _act(context, mediator, SelectTradeOptionCommand(
        trade_id=context["trade_id"],
        caller_id=_user(context, party),
        trade_option=TradeOption.DELIVERY,
        delivery_address=address,
    ))


@when(parsers.parse("the {party} selects meetup"))
def select_meetup(context, mediator, party):
    _act(context, mediator, SelectTradeOptionCommand(
        trade_id=context["trade_id"],
        caller_id=_user(context, party),
        trade_option=TradeOption.MEETUP,
    ))


@given(parsers.parse("the {party} locks the trade option"))
@when(parsers.parse("the {party} locks the trade option"))
def lock_option(context, mediator, party):
    _act(context, mediator, LockTradeOptionCommand(
        trade_id=context["trade_id"], caller_id=_user(context, party)
    ))


@when(parsers.re(r'the (?P<party>buyer|seller) requests an option change to delivery at "(?P<address>[^"]*)"'))
def request_delivery_change(context, mediator, party, address):
    _act(context, mediator, RequestOptionChangeCommand(
        trade_id=context["trade_id"],
        caller_id=_user(context, party),
        requested_option=TradeOption.DELIVERY,
        requested_delivery_address=address,
    ))


@when(parsers.parse("the {party} requests an option change to meetup"))
def request_meetup_change(context, mediator, party):
    _act(context, mediator, RequestOptionChangeCommand(
        trade_id=context["trade_id"],
        caller_id=_user(context, party),
        requested_option=TradeOption.MEETUP,
    ))


@when(parsers.parse("the {party} approves the option change"))
def approve_change(context, mediator, party):
    _act(context, mediator, ApproveOptionChangeCommand(
        trade_id=context["trade_id"], caller_id=_user(context, party)
    ))


@when(parsers.parse("the {party} rejects the option change"))
def reject_change(context, mediator, party):
    _act(context, mediator, RejectOptionChangeCommand(
        trade_id=context["trade_id"], caller_id=_user(context, party)
    ))


# ==============================================================================
# Meetup and completion
# ==============================================================================
@when(parsers.parse('the {party} confirms the meetup at "{location}"'))
def confirm_meetup(context, mediator, party, location):
    _act(context, mediator, ConfirmMeetupCommand(
        trade_id=context["trade_id"], caller_id=_user(context, party), location=location
    ))


@when(parsers.parse("the {party} submits completion with rating {rating:d}"))
def submit_completion(context, mediator, party, rating):
    _act(context, mediator, SubmitCompletionCommand(
        trade_id=context["trade_id"], caller_id=_user(context, party), rating=rating
    ))


# ==============================================================================
# Outcomes
# ==============================================================================
@then("the action should succeed")
def check_success(context):
    assert context.get("error") is None, f"unexpected error: {context['error']!r}"


@then(parsers.parse("the action should fail with {error_name}"))
def check_failure(context, error_name):
    expected = getattr(exceptions, error_name)
    assert isinstance(context.get("error"), expected), \
        f"expected {error_name}, got {context.get('error')!r}"


@then(parsers.parse('the error message should be "{message}"'))
def check_error_message(context, message):
    assert str(context["error"]) == message


@then(parsers.parse('the trade status should be "{status}"'))
def check_status(context, mediator, status):
    assert _current_trade(context, mediator).status.value == status


@then(parsers.parse("the trade should await a response from the {party}"))
def check_turn(context, mediator, party):
    assert _current_trade(context, mediator).awaiting_response_from.value == party


@then(parsers.parse('the trade should offer cash "{amount}"'))
def check_cash(context, mediator, amount):
    assert _current_trade(context, mediator).offered_cash_amount == Decimal(amount)


@then(parsers.parse('the trade should offer "{title}"'))
def check_offered_item(context, mediator, title):
    trade = _current_trade(context, mediator)
    assert [item.product_id for item in trade.items] == [context["products"][title].product_id]


@then(parsers.parse('the trade option should be "{option}"'))
def check_option(context, mediator, option):
    assert _current_trade(context, mediator).trade_option.value == option


@then(parsers.parse('the delivery address should be "{address}"'))
def check_address(context, mediator, address):
    assert _current_trade(context, mediator).delivery_address == address


@then("an option change should be pending")
def check_change_pending(context, mediator):
    assert _current_trade(context, mediator).option_change_requested is not None


@then("no option change should be pending")
def check_no_change_pending(context, mediator):
    assert _current_trade(context, mediator).option_change_requested is None


@then(parsers.parse('the meetup location should be "{location}"'))
def check_meetup_location(context, mediator, location):
    assert _current_trade(context, mediator).meetup_location == location


@then("the meetup should be confirmed by both parties")
def check_meetup_confirmed(context, mediator):
    assert _progress(context, mediator, "buyer").meetup_confirmed is True


@then("the meetup should not be confirmed by both parties")
def check_meetup_not_confirmed(context, mediator):
    assert _progress(context, mediator, "buyer").meetup_confirmed is False


@then(parsers.parse("the {party} should be waiting for the counterparty"))
def check_waiting(context, mediator, party):
    assert _progress(context, mediator, party).waiting_for_counterparty is True


@then(parsers.parse("the {party} should not have completed"))
def check_not_completed(context, mediator, party):
    assert _progress(context, mediator, party).self_completed is False


@then(parsers.parse("the {party} rating should be {rating:d}"))
def check_rating(context, mediator, party, rating):
    trade = _current_trade(context, mediator)
    actual = trade.buyer_rating if party == "buyer" else trade.seller_rating
    assert actual == rating


@then(parsers.parse('the trade history should read "{actions}"'))
def check_history(context, mediator, actions):
    query = GetTradeHistoryQuery(trade_id=context["trade_id"], caller_id=context["users"]["seller"])
    events = asyncio.run(mediator.send_async(query))
    assert ", ".join(event.action.value for event in events) == actions
