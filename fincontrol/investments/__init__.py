"""Investment operations and fixed-income revaluation."""

from fincontrol.investments.operations import (
    OperationOutcome,
    record_operation,
    revalue_position,
    validate_operation,
)

__all__ = [
    "OperationOutcome",
    "record_operation",
    "revalue_position",
    "validate_operation",
]
