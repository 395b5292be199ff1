"""Custom exception hierarchy for fincontrol."""

from decimal import Decimal


class FinControlError(Exception):
    """Base exception for all fincontrol errors."""


class EntityNotFoundError(FinControlError):
    """Raised when a referenced entity does not exist."""


class ReferentialIntegrityError(EntityNotFoundError):
    """Raised when a foreign key reference is violated."""


class DataIntegrityError(FinControlError):
    """Raised when persisted data is malformed (e.g. an invoice without a card)."""


class InvalidEntityStateError(FinControlError):
    """Raised when an entity is in an invalid state for the operation."""


class InvalidOperationError(FinControlError):
    """Raised when a request is rejected before any state is changed."""


class CreditLimitExceededError(InvalidOperationError):
    """Raised when a purchase would exceed the card's available limit."""

    def __init__(self, card_id: str, available: Decimal, requested: Decimal) -> None:
        super().__init__(
            f"Purchase of {requested} exceeds available limit {available} on card {card_id}"
        )
        self.card_id = card_id
        self.available = available
        self.requested = requested


class RateSourceError(FinControlError):
    """Raised when the benchmark rate source cannot be read."""


class ConfigurationError(FinControlError):
    """Raised when configuration is invalid or missing."""
