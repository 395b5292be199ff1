"""Enumeration types for card and investment entities."""

from enum import Enum


class InvoiceStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    PAID = "paid"
    OVERDUE = "overdue"


class InvestmentType(str, Enum):
    # Variable income: quantity x price
    STOCK = "stock"
    FII = "fii"
    ETF = "etf"
    CRYPTO = "crypto"
    # Fixed income: balance based
    CDB = "cdb"
    TREASURY = "treasury"
    LCI_LCA = "lci_lca"
    SAVINGS = "savings"
    OTHER = "other"

    @property
    def is_fixed_income(self) -> bool:
        return self not in VARIABLE_INCOME_TYPES


VARIABLE_INCOME_TYPES = frozenset(
    {InvestmentType.STOCK, InvestmentType.FII, InvestmentType.ETF, InvestmentType.CRYPTO}
)


class Indexer(str, Enum):
    CDI = "CDI"
    SELIC = "SELIC"
    IPCA = "IPCA"
    PREFIXADO = "PREFIXADO"
    NA = "NA"


class OperationType(str, Enum):
    BUY = "buy"
    SELL = "sell"
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"

    @property
    def is_inflow(self) -> bool:
        return self in (OperationType.BUY, OperationType.DEPOSIT)
