"""Domain models for cards, invoices and investments."""

from fincontrol.models.card import CreditCard, Invoice, Purchase, PurchaseRequest
from fincontrol.models.enums import (
    VARIABLE_INCOME_TYPES,
    Indexer,
    InvestmentType,
    InvoiceStatus,
    OperationType,
)
from fincontrol.models.investment import Investment, Operation, OperationRequest

__all__ = [
    "CreditCard",
    "Indexer",
    "Investment",
    "InvestmentType",
    "Invoice",
    "InvoiceStatus",
    "Operation",
    "OperationRequest",
    "OperationType",
    "Purchase",
    "PurchaseRequest",
    "VARIABLE_INCOME_TYPES",
]
