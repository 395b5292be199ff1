"""Tests for billing-cycle resolution."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from fincontrol.billing import (
    add_months,
    clip_day,
    invoice_dates,
    resolve_cycle,
    resolve_invoice,
    shift_cycle,
)
from fincontrol.models import CreditCard


class TestShiftCycle:
    """Tests for month arithmetic."""

    def test_forward(self) -> None:
        assert shift_cycle(3, 2024, 1) == (4, 2024)

    def test_forward_year_wrap(self) -> None:
        assert shift_cycle(12, 2024, 1) == (1, 2025)

    def test_backward_year_wrap(self) -> None:
        assert shift_cycle(1, 2025, -1) == (12, 2024)

    def test_many_months(self) -> None:
        assert shift_cycle(11, 2024, 14) == (1, 2026)


class TestClipDay:
    """Tests for day clipping and month addition."""

    def test_clip_to_leap_february(self) -> None:
        assert clip_day(2024, 2, 31) == date(2024, 2, 29)

    def test_clip_to_common_february(self) -> None:
        assert clip_day(2023, 2, 30) == date(2023, 2, 28)

    def test_no_clip_needed(self) -> None:
        assert clip_day(2024, 4, 15) == date(2024, 4, 15)

    def test_add_months_clips(self) -> None:
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2024, 1, 31), 3) == date(2024, 4, 30)

    def test_add_months_year_wrap(self) -> None:
        assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)

    def test_add_zero_months(self) -> None:
        assert add_months(date(2024, 5, 5), 0) == date(2024, 5, 5)


class TestResolveCycle:
    """Tests for invoice month/year resolution."""

    def test_after_closing_same_month_due(self) -> None:
        """Purchase after closing goes to next month's invoice."""
        assert resolve_cycle(date(2024, 3, 15), closing_day=10, due_day=17) == (4, 2024)

    def test_on_closing_day_stays(self) -> None:
        """A purchase on the closing day belongs to the closing cycle."""
        assert resolve_cycle(date(2024, 3, 10), closing_day=10, due_day=17) == (3, 2024)

    def test_before_closing_same_month_due(self) -> None:
        assert resolve_cycle(date(2024, 3, 5), closing_day=10, due_day=17) == (3, 2024)

    def test_due_after_closing_month(self) -> None:
        """Closing 29, due 5: a January purchase is due in February."""
        assert resolve_cycle(date(2024, 1, 15), closing_day=29, due_day=5) == (2, 2024)

    def test_double_shift_wraps_year(self) -> None:
        """Past closing in December and due next month: February of next year."""
        assert resolve_cycle(date(2024, 12, 30), closing_day=29, due_day=5) == (2, 2025)

    def test_due_wrap_only(self) -> None:
        assert resolve_cycle(date(2024, 12, 10), closing_day=25, due_day=5) == (1, 2025)

    def test_closing_wrap_only(self) -> None:
        assert resolve_cycle(date(2024, 12, 15), closing_day=10, due_day=17) == (1, 2025)

    def test_due_equal_closing_shifts(self) -> None:
        assert resolve_cycle(date(2024, 3, 5), closing_day=10, due_day=10) == (4, 2024)

    def test_closing_day_beyond_month_length(self) -> None:
        """Closing day 31 in February: every February day is on or before closing."""
        assert resolve_cycle(date(2024, 2, 29), closing_day=31, due_day=10) == (3, 2024)

    def test_deterministic(self) -> None:
        purchase_date = date(2024, 7, 20)
        results = {resolve_cycle(purchase_date, 15, 22) for _ in range(10)}
        assert results == {(8, 2024)}


class TestInvoiceDates:
    """Tests for closing and due dates of an invoice."""

    def test_same_month(self) -> None:
        assert invoice_dates(4, 2024, closing_day=10, due_day=17) == (date(2024, 4, 10), date(2024, 4, 17))

    def test_closing_previous_month(self) -> None:
        assert invoice_dates(2, 2024, closing_day=29, due_day=5) == (date(2024, 1, 29), date(2024, 2, 5))

    def test_closing_previous_year(self) -> None:
        assert invoice_dates(1, 2025, closing_day=25, due_day=5) == (date(2024, 12, 25), date(2025, 1, 5))

    def test_clipped_closing(self) -> None:
        assert invoice_dates(3, 2024, closing_day=31, due_day=10) == (date(2024, 2, 29), date(2024, 3, 10))


class TestResolveInvoice:
    """Tests for full invoice cycle resolution."""

    def test_resolve_invoice(self, wrap_card: CreditCard) -> None:
        cycle = resolve_invoice(date(2024, 1, 15), wrap_card)

        assert (cycle.month, cycle.year) == (2, 2024)
        assert cycle.closing_date == date(2024, 1, 29)
        assert cycle.due_date == date(2024, 2, 5)

    @pytest.mark.parametrize("closing_day", [1, 5, 15, 28, 29, 30, 31])
    @pytest.mark.parametrize("due_day", [1, 5, 10, 20, 28, 31])
    def test_dates_are_ordered(self, closing_day: int, due_day: int) -> None:
        """Closing never precedes the purchase and due never precedes closing."""
        card = CreditCard("c1", "Card", closing_day, due_day, Decimal("1000"))
        purchase_date = date(2023, 12, 1)
        while purchase_date < date(2025, 3, 1):
            cycle = resolve_invoice(purchase_date, card)

            assert 1 <= cycle.month <= 12
            assert cycle.closing_date >= purchase_date
            assert cycle.due_date >= cycle.closing_date
            assert resolve_invoice(purchase_date, card) == cycle
            purchase_date += timedelta(days=3)
