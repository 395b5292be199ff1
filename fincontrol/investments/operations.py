"""Recording operations against investment positions."""

from __future__ import annotations

import uuid as _uuid
from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Iterable

from fincontrol.exceptions import InvalidOperationError
from fincontrol.logging import get_logger
from fincontrol.models.enums import Indexer
from fincontrol.models.investment import Investment, Operation, OperationRequest
from fincontrol.rates.series import RateSeries
from fincontrol.yields.calculator import YieldResult, compute_yield

logger = get_logger(__name__)

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")
DEFAULT_CONTRACTED_RATE = Decimal("100")


@dataclass
class OperationOutcome:
    """New operation plus the position it produced."""

    operation: Operation
    position: Investment


def validate_operation(
    position: Investment,
    request: OperationRequest,
    last_operation_date: date | None,
    today: date | None = None,
) -> None:
    """Reject an operation before anything is written.

    Raises
    ------
    InvalidOperationError
        Future date, date before the latest existing operation, non-positive
        price or quantity, or a sale/withdrawal above what the position holds.
    """
    today = today or date.today()

    if request.price <= 0:
        raise InvalidOperationError(f"Operation price must be positive, got {request.price}")
    if request.quantity <= 0:
        raise InvalidOperationError(f"Operation quantity must be positive, got {request.quantity}")
    if request.date > today:
        raise InvalidOperationError(f"Operation date {request.date} is in the future")
    if last_operation_date is not None and request.date < last_operation_date:
        raise InvalidOperationError(
            f"Operation date {request.date} is before the latest operation ({last_operation_date})"
        )

    if request.type.is_inflow:
        return

    if position.is_fixed_income:
        if request.price > position.current_value:
            raise InvalidOperationError(
                f"Withdrawal of {request.price} exceeds current balance {position.current_value}"
            )
    elif request.quantity > position.quantity:
        raise InvalidOperationError(
            f"Quantity {request.quantity} exceeds the {position.quantity} units held"
        )


def record_operation(
    position: Investment,
    operations: Iterable[Operation],
    request: OperationRequest,
    today: date | None = None,
    id_factory: Callable[[], str] | None = None,
) -> OperationOutcome:
    """Validate ``request`` and return the new operation and updated position.

    The input position is not mutated.
    """
    last_date = max((op.date for op in operations), default=None)
    validate_operation(position, request, last_date, today)

    quantity = request.quantity if not position.is_fixed_income else Decimal("1")
    total = quantity * request.price + request.fees
    operation = Operation(
        operation_id=(id_factory or (lambda: _uuid.uuid4().hex))(),
        investment_id=position.investment_id,
        type=request.type,
        quantity=quantity,
        price=request.price,
        total=total,
        date=request.date,
        fees=request.fees,
        notes=request.notes,
    )

    if position.is_fixed_income:
        updated = _apply_fixed_income(position, operation)
    else:
        updated = _apply_variable_income(position, operation)

    logger.info(
        "Recorded %s of %s on %s (value now %s)",
        operation.type.value,
        operation.total,
        position.investment_id,
        updated.current_value,
    )
    return OperationOutcome(operation=operation, position=updated)


def revalue_position(
    position: Investment,
    operations: Iterable[Operation],
    series: RateSeries,
    today: date | None = None,
) -> tuple[Investment, YieldResult | None]:
    """Recompute a fixed-income position's value from its operations.

    Positions without an indexer are returned unchanged with a None result.

    Raises
    ------
    InvalidOperationError
        When the position is variable income.
    """
    if not position.is_fixed_income:
        raise InvalidOperationError(f"Investment {position.investment_id} is not fixed income")

    operations = list(operations)
    deposits = [op for op in operations if op.is_inflow]
    withdrawals = [op for op in operations if op.is_outflow]
    contracted_rate = position.interest_rate or DEFAULT_CONTRACTED_RATE

    result = compute_yield(deposits, withdrawals, contracted_rate, position.indexer, series, today)
    if result is None:
        if position.indexer != Indexer.NA:
            logger.debug("No deposits recorded for %s", position.investment_id)
        return position, None

    updated = replace(
        position,
        current_value=result.gross_value,
        current_price=result.gross_value,
        profit_loss=result.gross_yield,
        profit_loss_percent=result.gross_yield_percent,
        updated_at=datetime.now(),
    )
    return updated, result


def _apply_fixed_income(position: Investment, operation: Operation) -> Investment:
    if operation.is_inflow:
        total_invested = position.total_invested + operation.total
        current_value = position.current_value + operation.total
    else:
        # Reduce invested capital in proportion to the share redeemed
        redeemed_share = operation.total / position.current_value if position.current_value else Decimal("1")
        total_invested = max(_ZERO, position.total_invested - position.total_invested * redeemed_share)
        current_value = max(_ZERO, position.current_value - operation.total)

    return _with_profit(
        replace(
            position,
            quantity=Decimal("1"),
            average_price=total_invested,
            current_price=current_value,
            total_invested=total_invested,
            current_value=current_value,
            updated_at=datetime.now(),
        )
    )


def _apply_variable_income(position: Investment, operation: Operation) -> Investment:
    if operation.is_inflow:
        quantity = position.quantity + operation.quantity
        total_invested = position.total_invested + operation.total
    else:
        quantity = max(_ZERO, position.quantity - operation.quantity)
        total_invested = max(_ZERO, position.total_invested - operation.quantity * position.average_price)

    average_price = total_invested / quantity if quantity > 0 else _ZERO
    current_price = position.current_price or operation.price

    return _with_profit(
        replace(
            position,
            quantity=quantity,
            average_price=average_price,
            current_price=current_price,
            total_invested=total_invested,
            current_value=quantity * current_price,
            updated_at=datetime.now(),
        )
    )


def _with_profit(position: Investment) -> Investment:
    profit_loss = position.current_value - position.total_invested
    percent = profit_loss / position.total_invested * _HUNDRED if position.total_invested > 0 else _ZERO
    return replace(position, profit_loss=profit_loss, profit_loss_percent=percent)
