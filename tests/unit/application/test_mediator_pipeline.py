"""Unit tests for the mediator and its pipeline behaviors"""
import asyncio
import logging
from dataclasses import dataclass

import pytest

from barterhub.mediator import Mediator, Request, RequestHandler, HandlerNotRegisteredError
from barterhub.application.common.behaviors import LoggingBehavior, ValidationBehavior
from barterhub.application.trading.commands import AcceptTradeCommand, SubmitCompletionCommand
from barterhub.domain.shared.exceptions import ValidationError, InvalidStateError


@dataclass(frozen=True)
class EchoQuery(Request[str]):
    text: str

    def validate(self):
        if not self.text:
            raise ValidationError("text is required")


class EchoHandler(RequestHandler[EchoQuery, str]):
    def __init__(self, calls):
        self.calls = calls

    async def handle(self, request):
        self.calls.append(request.text)
        if request.text == "conflict":
            raise InvalidStateError("already done")
        if request.text == "crash":
            raise RuntimeError("disk on fire")
        return request.text.upper()


@pytest.fixture
def pipeline():
    calls = []
    mediator = Mediator()
    mediator.register_behavior(LoggingBehavior())
    mediator.register_behavior(ValidationBehavior())
    mediator.register_handler(EchoQuery, lambda: EchoHandler(calls))
    return mediator, calls


def test_request_reaches_handler(pipeline):
    mediator, calls = pipeline

    assert asyncio.run(mediator.send_async(EchoQuery("hi"))) == "HI"
    assert calls == ["hi"]


def test_sync_send(pipeline):
    mediator, _ = pipeline
    assert mediator.send(EchoQuery("sync")) == "SYNC"


def test_validation_runs_before_handler(pipeline):
    mediator, calls = pipeline

    with pytest.raises(ValidationError):
        asyncio.run(mediator.send_async(EchoQuery("")))

    assert calls == []


def test_domain_rejection_logged_as_warning(pipeline, caplog):
    mediator, _ = pipeline

    with caplog.at_level(logging.WARNING):
        with pytest.raises(InvalidStateError):
            asyncio.run(mediator.send_async(EchoQuery("conflict")))

    record = next(r for r in caplog.records if "EchoQuery" in r.getMessage())
    assert record.levelno == logging.WARNING
    assert record.exc_info is None


def test_unexpected_failure_logged_as_error(pipeline, caplog):
    mediator, _ = pipeline

    with caplog.at_level(logging.WARNING):
        with pytest.raises(RuntimeError):
            asyncio.run(mediator.send_async(EchoQuery("crash")))

    record = next(r for r in caplog.records if "EchoQuery" in r.getMessage())
    assert record.levelno == logging.ERROR
    assert record.exc_info is not None


def test_unregistered_request_type():
    with pytest.raises(HandlerNotRegisteredError):
        asyncio.run(Mediator().send_async(EchoQuery("x")))


def test_container_registers_every_trade_request(mediator):
    from barterhub.application.trading import commands, queries

    for module in (commands, queries):
        for name in module.__all__:
            if name.endswith(("Command", "Query")):
                assert mediator.has_handler(getattr(module, name)), name


@pytest.mark.parametrize("command", [
    AcceptTradeCommand(trade_id=0, caller_id=1),
    AcceptTradeCommand(trade_id=1, caller_id=-3),
    SubmitCompletionCommand(trade_id=True, caller_id=1, rating=5),
])
def test_commands_reject_malformed_ids(command):
    with pytest.raises(ValidationError):
        command.validate()
