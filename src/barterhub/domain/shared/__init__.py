"""Shared domain primitives"""
from .exceptions import (
    DomainException,
    NotFoundError,
    TradeNotFoundError,
    ProductNotFoundError,
    ForbiddenError,
    InvalidStateError,
    PendingChangeExistsError,
    CompletionAlreadySubmittedError,
    ConcurrentModificationError,
    ValidationError,
    InvalidOfferError,
    ProductOwnershipError,
    ProductUnavailableError,
    LocationMismatchError,
    TradeLockTimeoutError,
)

__all__ = [
    'DomainException',
    'NotFoundError',
    'TradeNotFoundError',
    'ProductNotFoundError',
    'ForbiddenError',
    'InvalidStateError',
    'PendingChangeExistsError',
    'CompletionAlreadySubmittedError',
    'ConcurrentModificationError',
    'ValidationError',
    'InvalidOfferError',
    'ProductOwnershipError',
    'ProductUnavailableError',
    'LocationMismatchError',
    'TradeLockTimeoutError',
]
