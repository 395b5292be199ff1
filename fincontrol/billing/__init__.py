"""Credit card billing: cycle resolution, invoice ledgers and installments."""

from fincontrol.billing.cycle import (
    InvoiceCycle,
    add_months,
    clip_day,
    invoice_dates,
    resolve_cycle,
    resolve_invoice,
    shift_cycle,
)
from fincontrol.billing.installments import (
    DistributionResult,
    InstallmentDistributor,
    InstallmentPlan,
    plan_installments,
)
from fincontrol.billing.ledger import BaseLedger, InMemoryLedger, new_invoice
from fincontrol.billing.postgres import PostgresLedger

__all__ = [
    "BaseLedger",
    "DistributionResult",
    "InMemoryLedger",
    "InstallmentDistributor",
    "InstallmentPlan",
    "InvoiceCycle",
    "PostgresLedger",
    "add_months",
    "clip_day",
    "invoice_dates",
    "new_invoice",
    "plan_installments",
    "resolve_cycle",
    "resolve_invoice",
    "shift_cycle",
]
