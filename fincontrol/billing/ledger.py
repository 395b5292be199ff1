"""Invoice ledger: get-or-create invoices, atomic totals and limit accounting."""

from __future__ import annotations

import threading
import uuid as _uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Iterator

from fincontrol.billing.cycle import invoice_dates
from fincontrol.exceptions import (
    CreditLimitExceededError,
    DataIntegrityError,
    EntityNotFoundError,
    InvalidOperationError,
    ReferentialIntegrityError,
)
from fincontrol.logging import get_logger
from fincontrol.models.card import CreditCard, Invoice, Purchase
from fincontrol.models.enums import InvoiceStatus

logger = get_logger(__name__)


class BaseLedger(ABC):
    """Storage-agnostic invoice ledger.

    Subclasses provide the primitive reads and writes; limit accounting and
    status transitions are shared.
    """

    @abstractmethod
    def add_card(self, card: CreditCard) -> None:
        """Register a credit card."""

    @abstractmethod
    def get_card(self, card_id: str, lock: bool = False) -> CreditCard:
        """Load a card, optionally locking it for the current unit of work."""

    @abstractmethod
    def get_or_create_invoice(self, card_id: str, month: int, year: int) -> Invoice:
        """Return the invoice for (card, month, year), creating it if absent."""

    @abstractmethod
    def get_invoice(self, invoice_id: str) -> Invoice:
        """Load an invoice by id."""

    @abstractmethod
    def increment_total(self, invoice_id: str, amount: Decimal) -> Decimal:
        """Atomically add ``amount`` to an invoice total and return the new total."""

    @abstractmethod
    def add_purchase(self, purchase: Purchase) -> None:
        """Persist a purchase row."""

    @abstractmethod
    def get_purchase(self, purchase_id: str) -> Purchase:
        """Load a purchase by id."""

    @abstractmethod
    def invoice_purchases(self, invoice_id: str) -> list[Purchase]:
        """All purchases routed to an invoice."""

    @abstractmethod
    def series_purchases(self, parent_purchase_id: str) -> list[Purchase]:
        """All installments sharing a parent purchase id."""

    @abstractmethod
    def delete_purchase(self, purchase_id: str) -> None:
        """Delete one purchase row (totals are adjusted by the caller)."""

    @abstractmethod
    def card_invoices(self, card_id: str) -> list[Invoice]:
        """All invoices of a card ordered by (year, month)."""

    @abstractmethod
    def used_limit(self, card_id: str) -> Decimal:
        """Sum of outstanding balances over the card's unpaid invoices."""

    @abstractmethod
    def update_invoice(self, invoice_id: str, status: InvoiceStatus, paid_amount: Decimal) -> Invoice:
        """Persist a status and paid amount change."""

    @abstractmethod
    def transaction(self) -> Iterator[BaseLedger]:
        """Context manager delimiting one unit of work."""

    # Shared behaviour
    def available_limit(self, card_id: str) -> Decimal:
        """Credit still available on a card."""
        card = self.get_card(card_id)
        return card.credit_limit - self.used_limit(card_id)

    def check_limit(self, card_id: str, requested: Decimal) -> None:
        """Reject ``requested`` if it does not fit in the available limit.

        Raises
        ------
        CreditLimitExceededError
            When ``used + requested > credit_limit``.
        """
        card = self.get_card(card_id)
        used = self.used_limit(card_id)
        if used + requested > card.credit_limit:
            available = card.credit_limit - used
            logger.warning(
                "Rejected %s on card %s: available limit %s", requested, card_id, available
            )
            raise CreditLimitExceededError(card_id, available, requested)

    def card_for_invoice(self, invoice_id: str) -> CreditCard:
        """Card that owns an invoice.

        Raises
        ------
        DataIntegrityError
            When the invoice references a card that does not exist.
        """
        invoice = self.get_invoice(invoice_id)
        try:
            return self.get_card(invoice.card_id)
        except EntityNotFoundError as e:
            raise DataIntegrityError(
                f"Invoice {invoice_id} references missing card {invoice.card_id}"
            ) from e

    def remove_purchase(self, purchase_id: str) -> list[Purchase]:
        """Delete a purchase, or its whole installment series, fixing totals.

        Returns
        -------
        list[Purchase]
            The deleted rows.
        """
        with self.transaction():
            purchase = self.get_purchase(purchase_id)
            if purchase.parent_purchase_id:
                removed = self.series_purchases(purchase.parent_purchase_id)
            else:
                removed = [purchase]

            for row in removed:
                self.increment_total(row.invoice_id, -row.value)
                self.delete_purchase(row.purchase_id)

        logger.info("Removed %d purchase row(s) for %s", len(removed), purchase_id)
        return removed

    def register_payment(self, invoice_id: str, amount: Decimal | None = None) -> Invoice:
        """Record a payment against an invoice.

        Parameters
        ----------
        invoice_id : str
            Invoice being paid.
        amount : Decimal | None
            Amount paid now. ``None`` pays the full outstanding balance, or
            just marks the invoice paid when nothing is outstanding.

        Returns
        -------
        Invoice
            The updated invoice.
        """
        with self.transaction():
            invoice = self.get_invoice(invoice_id)
            outstanding = invoice.outstanding
            if amount is None and outstanding <= 0:
                updated = self.update_invoice(invoice_id, InvoiceStatus.PAID, invoice.paid_amount)
                logger.info("Marked invoice %s as paid with nothing outstanding", invoice_id)
                return updated
            if amount is None:
                amount = outstanding
            if amount <= 0:
                raise InvalidOperationError(f"Payment amount must be positive, got {amount}")
            if amount > outstanding:
                raise InvalidOperationError(
                    f"Payment of {amount} exceeds outstanding balance {outstanding} on invoice {invoice_id}"
                )

            paid_amount = invoice.paid_amount + amount
            status = InvoiceStatus.PAID if paid_amount >= invoice.total else invoice.status
            updated = self.update_invoice(invoice_id, status, paid_amount)

        logger.info("Registered payment of %s on invoice %s (%s)", amount, invoice_id, status.value)
        return updated

    def refresh_statuses(self, card_id: str, today: date | None = None) -> list[Invoice]:
        """Apply time-driven transitions: open -> closed -> overdue.

        Returns
        -------
        list[Invoice]
            Invoices whose status changed.
        """
        today = today or date.today()
        changed = []
        with self.transaction():
            for invoice in self.card_invoices(card_id):
                if invoice.status == InvoiceStatus.PAID:
                    continue
                status = invoice.status
                if today > invoice.due_date and invoice.outstanding > 0:
                    status = InvoiceStatus.OVERDUE
                elif today > invoice.closing_date and status == InvoiceStatus.OPEN:
                    status = InvoiceStatus.CLOSED
                if status != invoice.status:
                    changed.append(self.update_invoice(invoice.invoice_id, status, invoice.paid_amount))
        return changed


def new_invoice(card: CreditCard, month: int, year: int, invoice_id: str | None = None) -> Invoice:
    """Build a fresh open invoice for the due cycle ``month``/``year``."""
    closing_date, due_date = invoice_dates(month, year, card.closing_day, card.due_day)
    return Invoice(
        invoice_id=invoice_id or _uuid.uuid4().hex,
        card_id=card.card_id,
        month=month,
        year=year,
        closing_date=closing_date,
        due_date=due_date,
        status=InvoiceStatus.OPEN,
        total=Decimal("0"),
        paid_amount=Decimal("0"),
        created_at=datetime.now(),
    )


@dataclass
class InMemoryLedger(BaseLedger):
    """In-memory ledger with relationship indexes.

    A re-entrant lock guards every read and write, so ``get_or_create_invoice``
    is the single creation point per key and increments never lose updates.
    Writes made inside ``transaction()`` append to an undo log that is replayed
    in reverse when the block raises, reverting the stored objects in place.
    """

    cards: dict[str, CreditCard] = field(default_factory=dict)
    invoices: dict[str, Invoice] = field(default_factory=dict)
    purchases: dict[str, Purchase] = field(default_factory=dict)

    # Relationship indexes
    _invoice_keys: dict[tuple[str, int, int], str] = field(default_factory=dict)
    _invoice_purchases: dict[str, list[str]] = field(default_factory=dict)
    _series: dict[str, list[str]] = field(default_factory=dict)

    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)
    _undo_log: list[Callable[[], None]] = field(default_factory=list, repr=False, compare=False)
    _depth: int = field(default=0, repr=False, compare=False)

    def add_card(self, card: CreditCard) -> None:
        with self._lock:
            previous = self.cards.get(card.card_id)
            self.cards[card.card_id] = card
            if previous is None:
                self._record(lambda: self.cards.pop(card.card_id, None))
            else:
                self._record(lambda: self.cards.__setitem__(card.card_id, previous))

    def get_card(self, card_id: str, lock: bool = False) -> CreditCard:
        with self._lock:
            card = self.cards.get(card_id)
        if card is None:
            raise EntityNotFoundError(f"Credit card {card_id} not found")
        return card

    def get_or_create_invoice(self, card_id: str, month: int, year: int) -> Invoice:
        with self._lock:
            key = (card_id, month, year)
            invoice_id = self._invoice_keys.get(key)
            if invoice_id is not None:
                return self.invoices[invoice_id]

            if card_id not in self.cards:
                raise ReferentialIntegrityError(f"Credit card {card_id} not found")

            invoice = new_invoice(self.cards[card_id], month, year)
            self.invoices[invoice.invoice_id] = invoice
            self._invoice_keys[key] = invoice.invoice_id
            self._invoice_purchases[invoice.invoice_id] = []
            self._record(lambda: self._drop_invoice(invoice.invoice_id, key))
            logger.debug("Created invoice %s for card %s (%02d/%d)", invoice.invoice_id, card_id, month, year)
            return invoice

    def get_invoice(self, invoice_id: str) -> Invoice:
        with self._lock:
            invoice = self.invoices.get(invoice_id)
        if invoice is None:
            raise EntityNotFoundError(f"Invoice {invoice_id} not found")
        return invoice

    def increment_total(self, invoice_id: str, amount: Decimal) -> Decimal:
        with self._lock:
            invoice = self.get_invoice(invoice_id)
            previous = invoice.total
            invoice.total += amount
            self._record(lambda: setattr(invoice, "total", previous))
            return invoice.total

    def add_purchase(self, purchase: Purchase) -> None:
        with self._lock:
            if purchase.invoice_id not in self.invoices:
                raise ReferentialIntegrityError(f"Invoice {purchase.invoice_id} not found")

            if purchase.created_at is None:
                purchase.created_at = datetime.now()
            self.purchases[purchase.purchase_id] = purchase
            self._invoice_purchases[purchase.invoice_id].append(purchase.purchase_id)
            if purchase.parent_purchase_id:
                self._series.setdefault(purchase.parent_purchase_id, []).append(purchase.purchase_id)
            self._record(lambda: self._unlink_purchase(purchase.purchase_id))

    def get_purchase(self, purchase_id: str) -> Purchase:
        with self._lock:
            purchase = self.purchases.get(purchase_id)
        if purchase is None:
            raise EntityNotFoundError(f"Purchase {purchase_id} not found")
        return purchase

    def invoice_purchases(self, invoice_id: str) -> list[Purchase]:
        with self._lock:
            ids = self._invoice_purchases.get(invoice_id, [])
            return [self.purchases[pid] for pid in ids]

    def series_purchases(self, parent_purchase_id: str) -> list[Purchase]:
        with self._lock:
            ids = self._series.get(parent_purchase_id, [])
            return [self.purchases[pid] for pid in ids]

    def delete_purchase(self, purchase_id: str) -> None:
        with self._lock:
            purchase = self.purchases[purchase_id]
            positions = self._unlink_purchase(purchase_id)
            self._record(lambda: self._relink_purchase(purchase, *positions))

    def card_invoices(self, card_id: str) -> list[Invoice]:
        with self._lock:
            invoices = [inv for inv in self.invoices.values() if inv.card_id == card_id]
        return sorted(invoices, key=lambda inv: (inv.year, inv.month))

    def used_limit(self, card_id: str) -> Decimal:
        with self._lock:
            return sum(
                (inv.outstanding for inv in self.card_invoices(card_id) if inv.status != InvoiceStatus.PAID),
                Decimal("0"),
            )

    def update_invoice(self, invoice_id: str, status: InvoiceStatus, paid_amount: Decimal) -> Invoice:
        with self._lock:
            invoice = self.get_invoice(invoice_id)
            previous = (invoice.status, invoice.paid_amount)
            invoice.status = status
            invoice.paid_amount = paid_amount
            self._record(lambda: self._set_payment_state(invoice, *previous))
            return invoice

    @contextmanager
    def transaction(self) -> Iterator[InMemoryLedger]:
        with self._lock:
            mark = len(self._undo_log)
            self._depth += 1
            try:
                yield self
            except BaseException:
                self._rollback(mark)
                raise
            finally:
                self._depth -= 1
                if not self._depth:
                    self._undo_log.clear()

    def summary(self) -> dict[str, int]:
        """Return summary counts of all entities."""
        with self._lock:
            return {
                "cards": len(self.cards),
                "invoices": len(self.invoices),
                "purchases": len(self.purchases),
            }

    # Undo log
    def _record(self, undo: Callable[[], None]) -> None:
        if self._depth:
            self._undo_log.append(undo)

    def _rollback(self, mark: int) -> None:
        while len(self._undo_log) > mark:
            self._undo_log.pop()()

    def _drop_invoice(self, invoice_id: str, key: tuple[str, int, int]) -> None:
        self.invoices.pop(invoice_id, None)
        self._invoice_keys.pop(key, None)
        self._invoice_purchases.pop(invoice_id, None)

    def _unlink_purchase(self, purchase_id: str) -> tuple[int, int | None]:
        """Remove a purchase and return its positions in the invoice and series indexes."""
        purchase = self.purchases.pop(purchase_id)
        invoice_ids = self._invoice_purchases[purchase.invoice_id]
        invoice_position = invoice_ids.index(purchase_id)
        del invoice_ids[invoice_position]

        series_position = None
        if purchase.parent_purchase_id:
            series_ids = self._series[purchase.parent_purchase_id]
            series_position = series_ids.index(purchase_id)
            del series_ids[series_position]
            if not series_ids:
                del self._series[purchase.parent_purchase_id]
        return invoice_position, series_position

    def _relink_purchase(self, purchase: Purchase, invoice_position: int, series_position: int | None) -> None:
        self.purchases[purchase.purchase_id] = purchase
        self._invoice_purchases[purchase.invoice_id].insert(invoice_position, purchase.purchase_id)
        if series_position is not None:
            self._series.setdefault(purchase.parent_purchase_id, []).insert(series_position, purchase.purchase_id)

    @staticmethod
    def _set_payment_state(invoice: Invoice, status: InvoiceStatus, paid_amount: Decimal) -> None:
        invoice.status = status
        invoice.paid_amount = paid_amount
