"""
Command/query mediator.

Every trade action and read goes through one Mediator: a request object
(frozen dataclass) is routed through the registered pipeline behaviors to
the handler registered for its type.
"""
import asyncio
from abc import ABC, abstractmethod
from typing import TypeVar, Generic, Any, Callable, Dict, List

TRequest = TypeVar('TRequest')
TResponse = TypeVar('TResponse')


class HandlerNotRegisteredError(LookupError):
    """Raised when a request type has no registered handler"""
    pass


class Request(Generic[TResponse], ABC):
    """
    Base class for all requests (commands and queries).

    Inheritors should be frozen dataclasses; TResponse is what the handler
    returns.

    Example:
        @dataclass(frozen=True)
        class GetTradeQuery(Request[Trade]):
            trade_id: int
            caller_id: int
    """
    pass


class RequestHandler(Generic[TRequest, TResponse], ABC):
    """Handles one request type and returns its response"""

    @abstractmethod
    async def handle(self, request: TRequest) -> TResponse:
        """
        Handle the request and return a response.

        Args:
            request: The request to handle

        Returns:
            The response of type TResponse
        """
        pass


class PipelineBehavior(ABC):
    """
    Middleware wrapped around every handler call.

    A behavior may inspect the request, call next_handler(), inspect or
    replace the response, and observe exceptions.
    """

    @abstractmethod
    async def handle(self, request: Any, next_handler):
        """
        Handle the request and call next in pipeline.

        Args:
            request: The request to handle
            next_handler: Async callable to invoke next behavior/handler

        Returns:
            The response from the pipeline
        """
        pass


class Mediator:
    """Routes requests through behaviors to their handlers"""

    def __init__(self):
        self._handlers: Dict[type, Callable[[], RequestHandler]] = {}
        self._behaviors: List[PipelineBehavior] = []

    def register_handler(self, request_type: type, handler_factory: Callable[[], RequestHandler]):
        """
        Register a handler factory for a request type.

        Args:
            request_type: The request class to handle
            handler_factory: Callable returning a handler instance
        """
        self._handlers[request_type] = handler_factory

    def register_behavior(self, behavior: PipelineBehavior):
        """
        Register a pipeline behavior; behaviors run in registration order.

        Args:
            behavior: The behavior instance to add to pipeline
        """
        self._behaviors.append(behavior)

    def has_handler(self, request_type: type) -> bool:
        return request_type in self._handlers

    async def send_async(self, request: Request[TResponse]) -> TResponse:
        """
        Send a request through the pipeline to its handler.

        Args:
            request: The request to send

        Returns:
            The response from the handler

        Raises:
            HandlerNotRegisteredError: If no handler registered for request type
        """
        request_type = type(request)

        if request_type not in self._handlers:
            raise HandlerNotRegisteredError(f"No handler registered for {request_type.__name__}")

        async def final_handler():
            handler = self._handlers[request_type]()
            return await handler.handle(request)

        # Wrap in reverse so the first registered behavior runs outermost
        pipeline = final_handler
        for behavior in reversed(self._behaviors):
            next_pipeline = pipeline
            pipeline = lambda b=behavior, n=next_pipeline: b.handle(request, n)

        return await pipeline()

    def send(self, request: Request[TResponse]) -> TResponse:
        """Synchronous entry point for callers without an event loop (CLI, scripts)"""
        return asyncio.run(self.send_async(request))
