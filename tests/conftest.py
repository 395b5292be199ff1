"""Pytest configuration and fixtures."""

from datetime import date
from decimal import Decimal

import pytest

from fincontrol.billing import InMemoryLedger
from fincontrol.models import CreditCard


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def sample_card_id() -> str:
    """Sample card ID."""
    return "card-test-001"


@pytest.fixture
def card(sample_card_id: str) -> CreditCard:
    """Card closing on the 10th and due on the 17th of the same month."""
    return CreditCard(
        card_id=sample_card_id,
        name="Test Card",
        closing_day=10,
        due_day=17,
        credit_limit=Decimal("5000"),
    )


@pytest.fixture
def wrap_card() -> CreditCard:
    """Card whose due day falls in the month after closing."""
    return CreditCard(
        card_id="card-test-002",
        name="Wrap Card",
        closing_day=29,
        due_day=5,
        credit_limit=Decimal("10000"),
    )


@pytest.fixture
def ledger(card: CreditCard, wrap_card: CreditCard) -> InMemoryLedger:
    """In-memory ledger with both sample cards registered."""
    ledger = InMemoryLedger()
    ledger.add_card(card)
    ledger.add_card(wrap_card)
    return ledger


@pytest.fixture
def today() -> date:
    """Fixed reference date."""
    return date(2024, 6, 14)
