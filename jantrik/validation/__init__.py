"""Input validation package."""

from jantrik.validation.validator import (
    AMOUNT_ERROR_MESSAGE,
    TOTAL_TOO_LARGE_MESSAGE,
    ValidationError,
    apply_amount,
    number_error_message,
    parse_amount_input,
    parse_number_input,
)

__all__ = [
    "AMOUNT_ERROR_MESSAGE",
    "TOTAL_TOO_LARGE_MESSAGE",
    "ValidationError",
    "apply_amount",
    "number_error_message",
    "parse_amount_input",
    "parse_number_input",
]
