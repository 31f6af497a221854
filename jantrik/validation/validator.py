"""
Entry Validation

DESIGN DECISION: Input is validated in two steps, number first:

STEP 1 - NUMBER:
- Must be a whole number
- Must fall inside the collection's range

STEP 2 - AMOUNT:
- Must be a decimal number
- Must be strictly positive

Only when both pass is the amount applied, and it is applied to a NEW
snapshot. The snapshot passed in is never touched, so a rejected input
leaves nothing behind.

IMPORTANT: Validation NEVER silently fixes input. "12abc" is rejected,
not read as 12.
"""

import math
import re
from typing import Union

from jantrik.models.collection import (
    AddAmountResult,
    CollectionConfig,
    CollectionSnapshot,
)


RawInput = Union[str, int, float]

_INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")
_DECIMAL_PATTERN = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


class ValidationError(Exception):
    """
    Rejected (number, amount) input.

    `message` is the text shown to the user.
    """

    def __init__(self, field: str, message: str, raw_value: object = None):
        super().__init__(message)
        self.field = field
        self.message = message
        self.raw_value = raw_value


def number_error_message(config: CollectionConfig) -> str:
    return (
        f"Please enter a valid number between "
        f"{config.min_label} and {config.max_label}"
    )


AMOUNT_ERROR_MESSAGE = "Please enter a valid amount greater than 0"
TOTAL_TOO_LARGE_MESSAGE = "That amount would make the total for this number too large"


def parse_number_input(raw: RawInput, config: CollectionConfig) -> int:
    """
    Parse the number field.

    Raises:
        ValidationError: If it is not a whole number inside the range
    """
    value = _to_integer(raw)
    if value is None or not config.contains(value):
        raise ValidationError("number", number_error_message(config), raw)
    return value


def parse_amount_input(raw: RawInput) -> float:
    """
    Parse the amount field.

    Raises:
        ValidationError: If it is not a finite number greater than zero
    """
    value = _to_decimal(raw)
    if value is None or not math.isfinite(value) or value <= 0:
        raise ValidationError("amount", AMOUNT_ERROR_MESSAGE, raw)
    return value


def apply_amount(
    snapshot: CollectionSnapshot,
    number_input: RawInput,
    amount_input: RawInput,
    config: CollectionConfig,
) -> AddAmountResult:
    """
    Validate a (number, amount) pair and add the amount to the number.

    Returns:
        AddAmountResult holding the new snapshot and the new total

    Raises:
        ValidationError: On any invalid input; `snapshot` is unchanged
    """
    number = parse_number_input(number_input, config)
    amount = parse_amount_input(amount_input)

    key = config.key_for(number)
    new_total = snapshot.get(key) + amount
    if not math.isfinite(new_total):
        raise ValidationError("amount", TOTAL_TOO_LARGE_MESSAGE, amount_input)

    updated = snapshot.with_amount_added(key, amount)

    return AddAmountResult(
        number=key,
        amount_added=amount,
        new_total=updated.get(key),
        snapshot=updated,
    )


def _to_integer(raw: RawInput) -> int | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if raw.is_integer() else None
    if isinstance(raw, str):
        text = raw.strip()
        if _INTEGER_PATTERN.fullmatch(text):
            return int(text)
    return None


def _to_decimal(raw: RawInput) -> float | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        text = raw.strip()
        if _DECIMAL_PATTERN.fullmatch(text):
            return float(text)
    return None
