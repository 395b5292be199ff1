"""Credit card, invoice and purchase models."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from fincontrol.exceptions import InvalidEntityStateError
from fincontrol.models.enums import InvoiceStatus


@dataclass
class CreditCard:
    """Credit card configuration."""

    card_id: str
    name: str
    closing_day: int  # 1-31, clipped to month length when resolving
    due_day: int  # 1-31
    credit_limit: Decimal
    is_active: bool = True

    def __post_init__(self) -> None:
        for label, day in (("closing_day", self.closing_day), ("due_day", self.due_day)):
            if not 1 <= day <= 31:
                raise InvalidEntityStateError(f"{label} must be between 1 and 31, got {day}")
        if self.credit_limit < 0:
            raise InvalidEntityStateError(f"credit_limit must not be negative, got {self.credit_limit}")


@dataclass
class Invoice:
    """Monthly statement (fatura), keyed by card and due month/year."""

    invoice_id: str
    card_id: str
    month: int
    year: int
    closing_date: date
    due_date: date
    status: InvoiceStatus = InvoiceStatus.OPEN
    total: Decimal = Decimal("0")
    paid_amount: Decimal = Decimal("0")
    created_at: datetime | None = None

    @property
    def outstanding(self) -> Decimal:
        return self.total - self.paid_amount


@dataclass
class Purchase:
    """One installment (parcela) routed to an invoice."""

    purchase_id: str
    invoice_id: str
    description: str
    value: Decimal  # installment amount
    total_value: Decimal  # original full price
    category: str
    date: date  # cycle date of this installment
    installments: int = 1
    current_installment: int = 1
    parent_purchase_id: str | None = None
    is_recurring: bool = False
    notes: str | None = None
    created_at: datetime | None = None


@dataclass
class PurchaseRequest:
    """Incoming purchase to be spread over the card's invoices."""

    value: Decimal
    date: date
    category: str
    description: str = ""
    installments: int = 1
    is_recurring: bool = False
    notes: str | None = None

    def __post_init__(self) -> None:
        if self.value <= 0:
            raise InvalidEntityStateError(f"Purchase value must be positive, got {self.value}")
        if self.installments < 1:
            raise InvalidEntityStateError(f"installments must be >= 1, got {self.installments}")
