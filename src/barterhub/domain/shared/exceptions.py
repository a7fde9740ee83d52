class DomainException(Exception):
    """Base exception for all domain errors"""
    pass

class NotFoundError(DomainException):
    """Raised when a trade or product id is unknown"""
    pass

class TradeNotFoundError(NotFoundError):
    """Raised when trade not found"""
    pass

class ProductNotFoundError(NotFoundError):
    """Raised when a catalog product not found"""
    pass

class ForbiddenError(DomainException):
    """Raised when the caller is not a party to the trade or it is not their turn"""
    pass

class InvalidStateError(DomainException):
    """Raised when an action is illegal in the trade's current status"""
    pass

class PendingChangeExistsError(InvalidStateError):
    """Raised when an option change request is already outstanding"""
    pass

class CompletionAlreadySubmittedError(InvalidStateError):
    """Raised when a party tries to resubmit their completion attestation"""
    pass

class ConcurrentModificationError(InvalidStateError):
    """Raised when a trade was modified by another writer since it was loaded"""
    pass

class ValidationError(DomainException):
    """Raised when an action payload is malformed"""
    pass

class InvalidOfferError(ValidationError):
    """Raised when an offer contains neither items nor cash"""
    pass

class ProductOwnershipError(ValidationError):
    """Raised when a party offers a product they do not own"""
    pass

class ProductUnavailableError(ValidationError):
    """Raised when a product is no longer available for trading"""
    pass

class LocationMismatchError(ValidationError):
    """Raised when a meetup confirmation names a different location than the recorded one"""
    pass

class TradeLockTimeoutError(DomainException):
    """Raised when the per-trade write lock could not be acquired in time"""
    pass
