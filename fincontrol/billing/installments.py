"""Installment distribution of card purchases across invoice cycles."""

from __future__ import annotations

import uuid as _uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Callable

from fincontrol.billing.cycle import add_months, resolve_cycle
from fincontrol.billing.ledger import BaseLedger
from fincontrol.logging import get_logger
from fincontrol.models.card import CreditCard, Invoice, Purchase, PurchaseRequest

logger = get_logger(__name__)


@dataclass(frozen=True)
class InstallmentPlan:
    """Planned placement of one installment."""

    number: int
    date: date
    value: Decimal
    month: int
    year: int


@dataclass
class DistributionResult:
    """Rows written by one distribution."""

    purchases: list[Purchase] = field(default_factory=list)
    invoices: list[Invoice] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return sum((p.value for p in self.purchases), Decimal("0"))


def plan_installments(card: CreditCard, request: PurchaseRequest) -> list[InstallmentPlan]:
    """Split a purchase into equal monthly installments routed to invoice cycles.

    Each installment is dated ``i`` months after the purchase (same day,
    clipped to month length) and valued ``value / installments``. Remainders
    are not redistributed, so the series may differ from ``value`` by
    sub-cent amounts.
    """
    installment_value = request.value / request.installments
    plans = []
    for i in range(request.installments):
        installment_date = add_months(request.date, i)
        month, year = resolve_cycle(installment_date, card.closing_day, card.due_day)
        plans.append(
            InstallmentPlan(
                number=i + 1,
                date=installment_date,
                value=installment_value,
                month=month,
                year=year,
            )
        )
    return plans


class InstallmentDistributor:
    """Create the purchase rows of a (possibly installment) card purchase.

    Parameters
    ----------
    ledger : BaseLedger
        Ledger holding cards, invoices and purchases.
    id_factory : Callable[[], str] | None
        Generator of purchase ids (default: random UUID hex).
    """

    def __init__(
        self,
        ledger: BaseLedger,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self.ledger = ledger
        self._new_id = id_factory or (lambda: _uuid.uuid4().hex)

    def preview(self, card_id: str, request: PurchaseRequest) -> list[InstallmentPlan]:
        """Plan a purchase without writing anything."""
        return plan_installments(self.ledger.get_card(card_id), request)

    def distribute(self, card_id: str, request: PurchaseRequest) -> DistributionResult:
        """Write every installment of ``request`` as one unit of work.

        The limit check runs before any row is written; any failure inside the
        loop rolls back the whole series.

        Raises
        ------
        CreditLimitExceededError
            When the full purchase value does not fit in the available limit.
        EntityNotFoundError
            When the card does not exist.
        """
        result = DistributionResult()

        with self.ledger.transaction() as ledger:
            card = ledger.get_card(card_id, lock=True)
            ledger.check_limit(card_id, request.value)

            series = request.installments > 1
            parent_purchase_id = self._new_id() if series else None
            touched: dict[str, Invoice] = {}

            for plan in plan_installments(card, request):
                invoice = ledger.get_or_create_invoice(card_id, plan.month, plan.year)
                description = request.description
                if series:
                    description = f"{request.description} ({plan.number}/{request.installments})".strip()

                purchase = Purchase(
                    purchase_id=self._new_id(),
                    invoice_id=invoice.invoice_id,
                    description=description,
                    value=plan.value,
                    total_value=request.value,
                    category=request.category,
                    date=plan.date,
                    installments=request.installments,
                    current_installment=plan.number,
                    parent_purchase_id=parent_purchase_id,
                    is_recurring=request.is_recurring,
                    notes=request.notes,
                )
                ledger.add_purchase(purchase)
                ledger.increment_total(invoice.invoice_id, plan.value)

                result.purchases.append(purchase)
                touched[invoice.invoice_id] = invoice

            result.invoices = [ledger.get_invoice(invoice_id) for invoice_id in touched]

        logger.info(
            "Distributed %s over %d installment(s) on card %s",
            request.value,
            request.installments,
            card_id,
        )
        return result
