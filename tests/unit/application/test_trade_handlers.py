"""
Unit tests for trade command handlers with mocked ports.

Tests observable behavior through handle(): what is saved, what is
announced, and which errors reach the caller.
"""
import asyncio
import logging
from decimal import Decimal
from unittest.mock import Mock

import pytest

from barterhub.application.common.locks import TradeLocks
from barterhub.application.trading.commands import (
    ProposeTradeCommand,
    ProposeTradeHandler,
    AcceptTradeCommand,
    AcceptTradeHandler,
    CounterTradeCommand,
    CounterTradeHandler,
    ConfirmMeetupCommand,
    ConfirmMeetupHandler,
)
from barterhub.domain.shared.exceptions import (
    TradeNotFoundError,
    ProductNotFoundError,
    ProductOwnershipError,
    ProductUnavailableError,
    ForbiddenError,
    ValidationError,
)
from barterhub.domain.trading.trade import Trade, TradeAction, TradeOption, TradeStatus
from barterhub.ports.repositories import ITradeRepository
from barterhub.ports.outbound.catalog import IProductCatalog, CatalogProduct
from barterhub.ports.outbound.notifier import INotifier

BUYER = 1
SELLER = 2


def stored_trade(**kwargs):
    trade = Trade.propose(BUYER, SELLER, 3, [7], trade_option=TradeOption.MEETUP, **kwargs)
    trade._trade_id = 10
    trade._version = 1
    return trade


def make_catalog(*products):
    catalog = Mock(spec=IProductCatalog)
    by_id = {product.product_id: product for product in products}
    catalog.find_product.side_effect = by_id.get
    return catalog


@pytest.fixture
def trade_repo():
    repo = Mock(spec=ITradeRepository)
    repo.save.side_effect = lambda trade, event, implied=(): trade
    repo.create.side_effect = lambda trade, event: trade
    return repo


@pytest.fixture
def notifier():
    return Mock(spec=INotifier)


class TestProposeTradeHandler:

    def catalog(self, target_available=True, offered_owner=BUYER):
        return make_catalog(
            CatalogProduct(3, SELLER, "Film camera", target_available),
            CatalogProduct(7, offered_owner, "Vinyl collection"),
        )

    def test_creates_trade_with_proposal_event(self, trade_repo, notifier):
        handler = ProposeTradeHandler(trade_repo, self.catalog(), notifier)

        trade = asyncio.run(handler.handle(ProposeTradeCommand(
            caller_id=BUYER, target_product_id=3, offered_product_ids=(7,),
            offered_cash_amount=Decimal("2.50"),
        )))

        assert trade.seller_id == SELLER
        assert trade.status is TradeStatus.PENDING
        created_trade, event = trade_repo.create.call_args.args
        assert event.action is TradeAction.PROPOSE
        assert event.from_status is None
        assert event.details["offered_cash_amount"] == "2.50"
        notifier.publish.assert_called_once()
        assert notifier.publish.call_args.args[1] == [BUYER, SELLER]

    def test_unknown_target(self, trade_repo):
        handler = ProposeTradeHandler(trade_repo, make_catalog())

        with pytest.raises(ProductNotFoundError):
            asyncio.run(handler.handle(ProposeTradeCommand(caller_id=BUYER, target_product_id=3)))
        trade_repo.create.assert_not_called()

    def test_unavailable_target(self, trade_repo):
        handler = ProposeTradeHandler(trade_repo, self.catalog(target_available=False))

        with pytest.raises(ProductUnavailableError):
            asyncio.run(handler.handle(ProposeTradeCommand(
                caller_id=BUYER, target_product_id=3, offered_product_ids=(7,)
            )))

    def test_offered_product_owned_by_someone_else(self, trade_repo):
        handler = ProposeTradeHandler(trade_repo, self.catalog(offered_owner=55))

        with pytest.raises(ProductOwnershipError):
            asyncio.run(handler.handle(ProposeTradeCommand(
                caller_id=BUYER, target_product_id=3, offered_product_ids=(7,)
            )))
        trade_repo.create.assert_not_called()

    def test_cannot_target_own_product(self, trade_repo):
        handler = ProposeTradeHandler(trade_repo, self.catalog())

        with pytest.raises(ValidationError):
            asyncio.run(handler.handle(ProposeTradeCommand(
                caller_id=SELLER, target_product_id=3, offered_cash_amount=Decimal("5")
            )))


class TestTradeActionHandler:

    def test_saves_and_notifies(self, trade_repo, notifier):
        trade_repo.find_by_id.return_value = stored_trade()
        handler = AcceptTradeHandler(trade_repo, TradeLocks(), notifier)

        result = asyncio.run(handler.handle(AcceptTradeCommand(trade_id=10, caller_id=SELLER)))

        assert result.status is TradeStatus.ACCEPTED
        saved_trade, event = trade_repo.save.call_args.args
        assert saved_trade.version == 1
        assert event.action is TradeAction.ACCEPT
        notifier.publish.assert_called_once_with(event, [BUYER, SELLER])

    def test_unknown_trade(self, trade_repo, notifier):
        trade_repo.find_by_id.return_value = None
        handler = AcceptTradeHandler(trade_repo, TradeLocks(), notifier)

        with pytest.raises(TradeNotFoundError):
            asyncio.run(handler.handle(AcceptTradeCommand(trade_id=10, caller_id=SELLER)))
        notifier.publish.assert_not_called()

    def test_rejected_action_is_not_saved(self, trade_repo, notifier):
        trade_repo.find_by_id.return_value = stored_trade()
        handler = AcceptTradeHandler(trade_repo, TradeLocks(), notifier)

        with pytest.raises(ForbiddenError):
            asyncio.run(handler.handle(AcceptTradeCommand(trade_id=10, caller_id=BUYER)))

        trade_repo.save.assert_not_called()
        notifier.publish.assert_not_called()

    def test_notifier_failure_does_not_undo_transition(self, trade_repo, notifier, caplog):
        trade_repo.find_by_id.return_value = stored_trade()
        notifier.publish.side_effect = ConnectionError("push service down")
        handler = AcceptTradeHandler(trade_repo, TradeLocks(), notifier)

        with caplog.at_level(logging.WARNING):
            result = asyncio.run(handler.handle(AcceptTradeCommand(trade_id=10, caller_id=SELLER)))

        assert result.status is TradeStatus.ACCEPTED
        trade_repo.save.assert_called_once()
        assert "push service down" in caplog.text

    def test_implicit_lock_is_saved_and_announced_first(self, trade_repo, notifier):
        trade = stored_trade()
        trade.accept(SELLER)
        trade_repo.find_by_id.return_value = trade
        handler = ConfirmMeetupHandler(trade_repo, TradeLocks(), notifier)

        result = asyncio.run(handler.handle(ConfirmMeetupCommand(
            trade_id=10, caller_id=SELLER, location="Starbucks, BGC"
        )))

        assert result.status is TradeStatus.ACTIVE
        trade_repo.save.assert_called_once()
        _, event = trade_repo.save.call_args.args
        implied = trade_repo.save.call_args.kwargs["implied"]
        assert [e.action for e in implied] == [TradeAction.LOCK_OPTION]
        assert event.action is TradeAction.CONFIRM_MEETUP
        announced = [call.args[0].action for call in notifier.publish.call_args_list]
        assert announced == [TradeAction.LOCK_OPTION, TradeAction.CONFIRM_MEETUP]

    def test_no_op_meetup_confirmation_writes_nothing(self, trade_repo, notifier):
        trade = stored_trade()
        trade.accept(SELLER)
        trade.lock_option(BUYER)
        trade.confirm_meetup(BUYER, "Starbucks, BGC")
        trade_repo.find_by_id.return_value = trade
        handler = ConfirmMeetupHandler(trade_repo, TradeLocks(), notifier)

        result = asyncio.run(handler.handle(ConfirmMeetupCommand(
            trade_id=10, caller_id=BUYER, location="Starbucks, BGC"
        )))

        assert result is trade
        trade_repo.save.assert_not_called()
        notifier.publish.assert_not_called()


class TestCounterTradeHandler:

    def test_turn_is_checked_before_catalog(self, trade_repo):
        trade_repo.find_by_id.return_value = stored_trade()
        catalog = make_catalog()
        handler = CounterTradeHandler(trade_repo, TradeLocks(), catalog)

        with pytest.raises(ForbiddenError):
            asyncio.run(handler.handle(CounterTradeCommand(
                trade_id=10, caller_id=BUYER, new_product_ids=(99,)
            )))
        catalog.find_product.assert_not_called()

    def test_counter_items_must_belong_to_caller(self, trade_repo):
        trade_repo.find_by_id.return_value = stored_trade()
        catalog = make_catalog(CatalogProduct(21, BUYER, "Bicycle"))
        handler = CounterTradeHandler(trade_repo, TradeLocks(), catalog)

        with pytest.raises(ProductOwnershipError):
            asyncio.run(handler.handle(CounterTradeCommand(
                trade_id=10, caller_id=SELLER, new_product_ids=(21,)
            )))
        trade_repo.save.assert_not_called()

    def test_seller_cannot_counter_with_the_requested_product(self, trade_repo):
        trade_repo.find_by_id.return_value = stored_trade()
        catalog = make_catalog(CatalogProduct(3, SELLER, "Film camera"))
        handler = CounterTradeHandler(trade_repo, TradeLocks(), catalog)

        with pytest.raises(ValidationError):
            asyncio.run(handler.handle(CounterTradeCommand(
                trade_id=10, caller_id=SELLER, new_product_ids=(3,)
            )))
        trade_repo.save.assert_not_called()

    def test_valid_counter_is_saved(self, trade_repo):
        trade_repo.find_by_id.return_value = stored_trade()
        catalog = make_catalog(CatalogProduct(21, SELLER, "Tripod"))
        handler = CounterTradeHandler(trade_repo, TradeLocks(), catalog)

        result = asyncio.run(handler.handle(CounterTradeCommand(
            trade_id=10, caller_id=SELLER, new_product_ids=(21,), message="tripod instead?"
        )))

        assert [item.product_id for item in result.items] == [21]
        _, event = trade_repo.save.call_args.args
        assert event.action is TradeAction.COUNTER
        assert event.note == "tripod instead?"
