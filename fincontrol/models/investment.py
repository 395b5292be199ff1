"""Investment position and operation models."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from fincontrol.models.enums import Indexer, InvestmentType, OperationType


@dataclass
class Investment:
    """Investment position."""

    investment_id: str
    name: str
    type: InvestmentType
    indexer: Indexer = Indexer.NA
    interest_rate: Decimal | None = None  # contracted rate, meaning depends on indexer
    quantity: Decimal = Decimal("0")
    average_price: Decimal = Decimal("0")
    current_price: Decimal = Decimal("0")
    total_invested: Decimal = Decimal("0")
    current_value: Decimal = Decimal("0")
    profit_loss: Decimal = Decimal("0")
    profit_loss_percent: Decimal = Decimal("0")
    maturity_date: date | None = None
    updated_at: datetime | None = None

    @property
    def is_fixed_income(self) -> bool:
        return self.type.is_fixed_income


@dataclass
class Operation:
    """Buy/deposit or sell/withdraw recorded against a position."""

    operation_id: str
    investment_id: str
    type: OperationType
    quantity: Decimal
    price: Decimal  # amount for fixed income, unit price for variable income
    total: Decimal
    date: date
    fees: Decimal = Decimal("0")
    notes: str | None = None

    @property
    def is_inflow(self) -> bool:
        return self.type.is_inflow

    @property
    def is_outflow(self) -> bool:
        return not self.type.is_inflow


@dataclass
class OperationRequest:
    """Incoming operation for a position."""

    type: OperationType
    price: Decimal
    date: date
    quantity: Decimal = Decimal("1")
    fees: Decimal = Decimal("0")
    notes: str | None = None
