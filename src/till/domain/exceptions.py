"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
"""


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """Malformed input or a violated business rule."""


class EntityNotFoundError(DomainException):
    """A referenced transaction, item, category or line does not exist."""


class InvalidStateError(DomainException):
    """A mutation was attempted on a transaction that is no longer open."""


class UnavailableError(DomainException):
    """The referenced catalog item is not in stock."""


class InsufficientPaymentError(DomainException):
    """The paid amount does not cover the transaction total."""


class StoreError(DomainException):
    """The underlying store failed; the durable record may be inconsistent."""
