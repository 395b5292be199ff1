"""Tests for investment operations and revaluation."""

from datetime import date
from decimal import Decimal

import pytest

from fincontrol.exceptions import InvalidOperationError
from fincontrol.investments import record_operation, revalue_position, validate_operation
from fincontrol.models import Indexer, Investment, InvestmentType, Operation, OperationRequest, OperationType
from fincontrol.rates import synthetic_series

TODAY = date(2024, 6, 14)


@pytest.fixture
def cdb() -> Investment:
    """Fixed-income position holding 1000."""
    return Investment(
        investment_id="inv-cdb",
        name="CDB Banco",
        type=InvestmentType.CDB,
        indexer=Indexer.CDI,
        interest_rate=Decimal("100"),
        quantity=Decimal("1"),
        average_price=Decimal("1000"),
        current_price=Decimal("1000"),
        total_invested=Decimal("1000"),
        current_value=Decimal("1000"),
    )


@pytest.fixture
def stock() -> Investment:
    """Variable-income position with 10 units at 20."""
    return Investment(
        investment_id="inv-stock",
        name="PETR4",
        type=InvestmentType.STOCK,
        quantity=Decimal("10"),
        average_price=Decimal("20"),
        current_price=Decimal("25"),
        total_invested=Decimal("200"),
        current_value=Decimal("250"),
    )


def request(op_type: OperationType, price: str, on: date = TODAY, quantity: str = "1") -> OperationRequest:
    return OperationRequest(type=op_type, price=Decimal(price), date=on, quantity=Decimal(quantity))


class TestValidateOperation:
    """Tests for operation rejection rules."""

    def test_withdrawal_above_balance_rejected(self, cdb: Investment) -> None:
        """Withdrawing more than the current value fails before any change."""
        before = Investment(**vars(cdb))

        with pytest.raises(InvalidOperationError, match="exceeds current balance"):
            record_operation(cdb, [], request(OperationType.WITHDRAW, "1000.01"), today=TODAY)

        assert cdb == before

    def test_withdrawal_of_full_balance_allowed(self, cdb: Investment) -> None:
        validate_operation(cdb, request(OperationType.WITHDRAW, "1000"), None, today=TODAY)

    def test_future_date_rejected(self, cdb: Investment) -> None:
        with pytest.raises(InvalidOperationError, match="future"):
            validate_operation(cdb, request(OperationType.DEPOSIT, "10", on=date(2024, 6, 15)), None, today=TODAY)

    def test_out_of_order_rejected(self, cdb: Investment) -> None:
        with pytest.raises(InvalidOperationError, match="before the latest operation"):
            validate_operation(
                cdb, request(OperationType.DEPOSIT, "10", on=date(2024, 5, 1)), date(2024, 5, 2), today=TODAY
            )

    def test_same_day_as_latest_allowed(self, cdb: Investment) -> None:
        validate_operation(cdb, request(OperationType.DEPOSIT, "10", on=date(2024, 5, 2)), date(2024, 5, 2), today=TODAY)

    @pytest.mark.parametrize("price", ["0", "-10"])
    def test_non_positive_price(self, cdb: Investment, price: str) -> None:
        with pytest.raises(InvalidOperationError, match="price"):
            validate_operation(cdb, request(OperationType.DEPOSIT, price), None, today=TODAY)

    def test_non_positive_quantity(self, stock: Investment) -> None:
        with pytest.raises(InvalidOperationError, match="quantity"):
            validate_operation(stock, request(OperationType.BUY, "10", quantity="0"), None, today=TODAY)

    def test_sell_above_holding(self, stock: Investment) -> None:
        with pytest.raises(InvalidOperationError, match="units held"):
            validate_operation(stock, request(OperationType.SELL, "30", quantity="11"), None, today=TODAY)


class TestRecordOperation:
    """Tests for position updates."""

    def test_fixed_income_deposit(self, cdb: Investment) -> None:
        outcome = record_operation(cdb, [], request(OperationType.DEPOSIT, "500", quantity="3"), today=TODAY)

        assert outcome.operation.quantity == Decimal("1")
        assert outcome.operation.total == Decimal("500")
        assert outcome.position.total_invested == Decimal("1500")
        assert outcome.position.current_value == Decimal("1500")
        assert outcome.position.quantity == Decimal("1")
        assert cdb.current_value == Decimal("1000")

    def test_fixed_income_withdrawal_is_proportional(self, cdb: Investment) -> None:
        grown = Investment(**{**vars(cdb), "current_value": Decimal("1200")})

        outcome = record_operation(grown, [], request(OperationType.WITHDRAW, "600"), today=TODAY)

        assert outcome.position.current_value == Decimal("600")
        assert outcome.position.total_invested == Decimal("500")
        assert outcome.position.profit_loss == Decimal("100")
        assert outcome.position.profit_loss_percent == Decimal("20")

    def test_variable_income_buy_updates_average(self, stock: Investment) -> None:
        outcome = record_operation(stock, [], request(OperationType.BUY, "30", quantity="10"), today=TODAY)

        position = outcome.position
        assert position.quantity == Decimal("20")
        assert position.total_invested == Decimal("500")
        assert position.average_price == Decimal("25")
        assert position.current_value == Decimal("500")

    def test_variable_income_sell(self, stock: Investment) -> None:
        outcome = record_operation(stock, [], request(OperationType.SELL, "30", quantity="4"), today=TODAY)

        position = outcome.position
        assert position.quantity == Decimal("6")
        assert position.total_invested == Decimal("120")
        assert position.average_price == Decimal("20")
        assert position.current_value == Decimal("150")
        assert position.profit_loss == Decimal("30")

    def test_fees_added_to_total(self, stock: Investment) -> None:
        req = OperationRequest(
            type=OperationType.BUY, price=Decimal("10"), date=TODAY, quantity=Decimal("2"), fees=Decimal("1.50")
        )

        outcome = record_operation(stock, [], req, today=TODAY)

        assert outcome.operation.total == Decimal("21.50")

    def test_chronology_checked_against_history(self, cdb: Investment) -> None:
        history = [
            Operation("op-1", cdb.investment_id, OperationType.DEPOSIT, Decimal("1"), Decimal("1000"), Decimal("1000"), date(2024, 6, 1))
        ]

        with pytest.raises(InvalidOperationError):
            record_operation(cdb, history, request(OperationType.DEPOSIT, "10", on=date(2024, 5, 31)), today=TODAY)

    def test_id_factory(self, cdb: Investment) -> None:
        outcome = record_operation(
            cdb, [], request(OperationType.DEPOSIT, "10"), today=TODAY, id_factory=lambda: "op-fixed"
        )
        assert outcome.operation.operation_id == "op-fixed"
        assert outcome.operation.investment_id == cdb.investment_id


class TestRevaluePosition:
    """Tests for fixed-income revaluation."""

    def test_revalue_from_deposits(self) -> None:
        position = Investment("inv-1", "CDB", InvestmentType.CDB, indexer=Indexer.CDI, interest_rate=Decimal("100"))
        operations = []
        for on, amount in ((date(2024, 1, 2), "1000"), (date(2024, 3, 1), "500")):
            outcome = record_operation(position, operations, request(OperationType.DEPOSIT, amount, on=on), today=TODAY)
            operations.append(outcome.operation)
            position = outcome.position
        series = synthetic_series(date(2024, 1, 1), TODAY, Decimal("0.04"))

        revalued, result = revalue_position(position, operations, series, today=TODAY)

        assert result is not None
        assert revalued.current_value == result.gross_value
        assert revalued.profit_loss == result.gross_yield
        assert revalued.current_value > Decimal("1500")
        assert revalued.total_invested == Decimal("1500")

    def test_default_contracted_rate(self) -> None:
        position = Investment("inv-1", "CDB", InvestmentType.CDB, indexer=Indexer.CDI)
        op = Operation("op-1", "inv-1", OperationType.DEPOSIT, Decimal("1"), Decimal("100"), Decimal("100"), date(2024, 6, 3))
        series = synthetic_series(date(2024, 6, 1), TODAY, Decimal("1"))

        _, result = revalue_position(position, [op], series, today=TODAY)

        # 100% of the benchmark: ten business days at 1%
        assert abs(result.gross_value - Decimal("100") * Decimal("1.01") ** 10) < Decimal("1e-12")

    def test_no_indexer_unchanged(self) -> None:
        position = Investment("inv-1", "Poupança", InvestmentType.SAVINGS)
        series = synthetic_series(date(2024, 1, 1), TODAY, Decimal("0.04"))

        revalued, result = revalue_position(position, [], series, today=TODAY)

        assert result is None
        assert revalued is position

    def test_variable_income_rejected(self, stock: Investment) -> None:
        with pytest.raises(InvalidOperationError, match="not fixed income"):
            revalue_position(stock, [], synthetic_series(date(2024, 1, 1), TODAY, Decimal("0.04")))
