"""Serialization of engine results for JSON boundaries."""

from dataclasses import asdict, fields, is_dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any

CENT = Decimal("0.01")


def money(value: Decimal | int | float) -> Decimal:
    """Round a monetary amount to cents (half up)."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def to_dict(obj: Any, round_money: bool = False) -> dict:
    """Convert object to dictionary."""
    if is_dataclass(obj):
        return dataclass_to_dict(obj, round_money)
    elif isinstance(obj, dict):
        return {k: serialize_value(v, round_money) for k, v in obj.items()}
    else:
        return {"value": str(obj)}


def dataclass_to_dict(obj: Any, round_money: bool = False) -> dict:
    """Convert dataclass (nested ones included) to a JSON-safe dict."""
    return {key: serialize_value(value, round_money) for key, value in asdict(obj).items()}


def to_dict_fast(obj: Any, round_money: bool = False) -> dict:
    """Convert a flat dataclass without the deep copy done by ``asdict``.

    Parameters
    ----------
    obj : Any
        A dataclass instance.
    round_money : bool
        Round Decimal fields to cents.

    Returns
    -------
    dict
        Serialized dictionary.
    """
    return {
        f.name: serialize_value(getattr(obj, f.name), round_money)
        for f in fields(obj)
        if not f.name.startswith("_")
    }


def serialize_value(value: Any, round_money: bool = False) -> Any:
    """Serialize a value for JSON output.

    Decimals become strings; with ``round_money`` they are rounded to cents
    first.
    """
    if isinstance(value, Decimal):
        return str(money(value)) if round_money else str(value)
    elif isinstance(value, Enum):
        return value.value
    elif isinstance(value, datetime):
        return value.isoformat()
    elif isinstance(value, date):
        return value.isoformat()
    elif isinstance(value, dict):
        return {k: serialize_value(v, round_money) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return [serialize_value(v, round_money) for v in value]
    return value
