"""
Pipeline behaviors (middleware) for the mediator.

Behaviors intercept requests before/after handler execution:
- LoggingBehavior records failed requests
- ValidationBehavior runs a request's own validate() before its handler
"""
import logging
from typing import Any

from ...domain.shared.exceptions import DomainException
from ...mediator import PipelineBehavior


logger = logging.getLogger(__name__)


class LoggingBehavior(PipelineBehavior):
    """
    Logs command/query failures.

    Domain rejections (wrong party, wrong status, bad payload) are expected
    outcomes and are logged at WARNING without a traceback. Anything else is
    logged at ERROR with exc_info. Exceptions are always re-raised.
    """

    async def handle(self, request: Any, next_handler):
        request_name = type(request).__name__

        try:
            return await next_handler()
        except DomainException as e:
            logger.warning(f"{request_name} rejected: {type(e).__name__}: {e}")
            raise
        except Exception as e:
            logger.error(f"Failed executing {request_name}: {e}", exc_info=True)
            raise


class ValidationBehavior(PipelineBehavior):
    """
    Validates requests before handler execution.

    If the request has a validate() method, calls it. Requests use this for
    transport-level shape checks; protocol rules stay in the domain.
    """

    async def handle(self, request: Any, next_handler):
        if hasattr(request, 'validate') and callable(getattr(request, 'validate')):
            request.validate()

        return await next_handler()
