"""Billing-cycle resolution for credit card purchases.

Invoices are identified by the month/year in which they are *due*, which is
the statement the cardholder actually pays. A purchase made after the closing
day rolls into the next closing cycle, and when the due day is on or before
the closing day the payment falls in the month after closing.

Example: closing day 29, due day 5. A purchase on 15/01 closes on 29/01 and
is due on 05/02, so it belongs to the February invoice.
"""

import calendar
from dataclasses import dataclass
from datetime import date

from fincontrol.models.card import CreditCard


@dataclass(frozen=True)
class InvoiceCycle:
    """Resolved invoice identity plus its concrete calendar dates."""

    month: int
    year: int
    closing_date: date
    due_date: date


def shift_cycle(month: int, year: int, delta: int) -> tuple[int, int]:
    """Move a (month, year) pair by ``delta`` months, wrapping the year."""
    index = year * 12 + (month - 1) + delta
    return index % 12 + 1, index // 12


def clip_day(year: int, month: int, day: int) -> date:
    """Build a date, clipping ``day`` to the last valid day of the month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


def add_months(d: date, months: int) -> date:
    """Same day-of-month ``months`` later, clipped to the target month length."""
    month, year = shift_cycle(d.month, d.year, months)
    return clip_day(year, month, d.day)


def resolve_cycle(purchase_date: date, closing_day: int, due_day: int) -> tuple[int, int]:
    """Return the (month, year) of the invoice a purchase belongs to.

    Parameters
    ----------
    purchase_date : date
        Date the charge is attributed to.
    closing_day : int
        Card closing day (1-31).
    due_day : int
        Card due day (1-31).

    Returns
    -------
    tuple[int, int]
        Due month and year of the invoice.
    """
    closing_month, closing_year = purchase_date.month, purchase_date.year
    if purchase_date.day > closing_day:
        closing_month, closing_year = shift_cycle(closing_month, closing_year, 1)

    if due_day <= closing_day:
        return shift_cycle(closing_month, closing_year, 1)
    return closing_month, closing_year


def invoice_dates(month: int, year: int, closing_day: int, due_day: int) -> tuple[date, date]:
    """Closing and due dates of the invoice due in ``month``/``year``."""
    due_date = clip_day(year, month, due_day)

    closing_month, closing_year = month, year
    if due_day <= closing_day:
        closing_month, closing_year = shift_cycle(month, year, -1)
    closing_date = clip_day(closing_year, closing_month, closing_day)

    return closing_date, due_date


def resolve_invoice(purchase_date: date, card: CreditCard) -> InvoiceCycle:
    """Resolve the invoice cycle for a purchase on ``card``."""
    month, year = resolve_cycle(purchase_date, card.closing_day, card.due_day)
    closing_date, due_date = invoice_dates(month, year, card.closing_day, card.due_day)
    return InvoiceCycle(month=month, year=year, closing_date=closing_date, due_date=due_date)
