"""Demo cards, purchases and fixed-income positions."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterator

from fincontrol.generators.base import BaseGenerator
from fincontrol.models import (
    CreditCard,
    Indexer,
    Investment,
    InvestmentType,
    OperationRequest,
    OperationType,
    PurchaseRequest,
)


class CardGenerator(BaseGenerator):
    """Generate credit cards with realistic closing/due day pairs."""

    ISSUERS = ["Nubank", "Inter", "Itaú", "Bradesco", "Santander", "C6", "BB", "Caixa"]

    # Due day usually falls 7-10 days after closing, often in the next month
    DUE_OFFSETS = [7, 8, 10]

    def generate(self) -> CreditCard:
        closing_day = self.rng.randint(1, 28)
        due_day = (closing_day + self.rng.choice(self.DUE_OFFSETS) - 1) % 28 + 1
        limit = self.rng.randint(5, 200) * 100

        return CreditCard(
            card_id=self.new_id(),
            name=f"{self.rng.choice(self.ISSUERS)} {self.fake.credit_card_provider()}",
            closing_day=closing_day,
            due_day=due_day,
            credit_limit=Decimal(limit),
        )


class PurchaseRequestGenerator(BaseGenerator):
    """Generate card purchase requests over a date range."""

    # Category -> (min, max) amount
    CATEGORIES = {
        "Supermercado": (50, 800),
        "Combustível": (100, 400),
        "Restaurante": (30, 300),
        "Delivery": (20, 150),
        "Farmácia": (20, 500),
        "Roupas": (50, 1000),
        "Eletrônicos": (100, 5000),
        "Streaming": (20, 60),
        "Viagem": (300, 6000),
        "Outros": (20, 500),
    }

    INSTALLMENT_CHOICES = [1, 2, 3, 6, 10, 12]
    INSTALLMENT_WEIGHTS = [0.4, 0.15, 0.15, 0.15, 0.1, 0.05]

    def generate(self, purchase_date: date) -> PurchaseRequest:
        category = self.rng.choice(list(self.CATEGORIES))
        low, high = self.CATEGORIES[category]
        amount = Decimal(str(round(self.rng.uniform(low, high), 2)))

        installments = 1
        if amount > 200:
            installments = self.rng.choices(self.INSTALLMENT_CHOICES, weights=self.INSTALLMENT_WEIGHTS, k=1)[0]

        return PurchaseRequest(
            value=amount,
            date=purchase_date,
            category=category,
            description=self.fake.company(),
            installments=installments,
        )

    def generate_between(
        self,
        start: date,
        end: date,
        avg_per_day: float = 0.5,
    ) -> Iterator[PurchaseRequest]:
        """Yield purchases day by day (exponentially distributed daily counts)."""
        current = start
        while current <= end:
            count = int(self.rng.expovariate(1 / avg_per_day)) if avg_per_day > 0 else 0
            for _ in range(count):
                yield self.generate(current)
            current += timedelta(days=1)


class InvestmentGenerator(BaseGenerator):
    """Generate fixed-income positions and their deposit requests."""

    FIXED_INCOME_TYPES = [InvestmentType.CDB, InvestmentType.TREASURY, InvestmentType.LCI_LCA]

    # Indexer -> (min, max) contracted rate
    CONTRACTED_RATES = {
        Indexer.CDI: (90, 120),  # % of CDI
        Indexer.SELIC: (0, 1),  # spread % a.a.
        Indexer.IPCA: (4, 7),  # real rate % a.a.
        Indexer.PREFIXADO: (9, 14),  # % a.a.
    }

    def generate(self) -> Investment:
        indexer = self.rng.choice(list(self.CONTRACTED_RATES))
        low, high = self.CONTRACTED_RATES[indexer]
        investment_type = self.rng.choice(self.FIXED_INCOME_TYPES)

        return Investment(
            investment_id=self.new_id(),
            name=f"{investment_type.value.upper()} {self.fake.company()}",
            type=investment_type,
            indexer=indexer,
            interest_rate=Decimal(str(round(self.rng.uniform(low, high), 2))),
            maturity_date=date.today() + timedelta(days=self.rng.randint(180, 1800)),
        )

    def generate_deposits(
        self,
        start: date,
        count: int = 3,
        max_gap_days: int = 90,
    ) -> list[OperationRequest]:
        """Deposits in chronological order starting at ``start``, never in the future."""
        requests = []
        current = start
        for _ in range(count):
            if current > date.today():
                break
            requests.append(
                OperationRequest(
                    type=OperationType.DEPOSIT,
                    price=Decimal(self.rng.randint(5, 200) * 100),
                    date=current,
                )
            )
            current += timedelta(days=self.rng.randint(1, max_gap_days))
        return requests
