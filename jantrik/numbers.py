"""
Number range helpers.

Every collection key is a number rendered as a zero-padded string of a
fixed width ("007", "42"). Fixed width is what makes plain string ordering
match numeric ordering everywhere else in the package.
"""


def format_number(number: int, length: int) -> str:
    """Render a number as a key, left-padded with '0' to `length`."""
    return str(number).zfill(length)


def generate_numbers(start: int, end: int, pad_length: int) -> dict[str, float]:
    """
    Build the zero-filled mapping for [start, end].

    One entry per integer in the range, keyed by `format_number`.
    An inverted range (start > end) yields an empty mapping.
    """
    return {
        format_number(i, pad_length): 0.0
        for i in range(start, end + 1)
    }


def format_amount(amount: float, grouping: bool = False) -> str:
    """
    Render an amount for messages and the UI.

    Whole amounts drop the trailing ".0". With `grouping`, thousands are
    separated and at most three decimals are shown ("1,234.5").
    """
    if float(amount).is_integer():
        return f"{int(amount):,}" if grouping else str(int(amount))
    if grouping:
        return f"{amount:,.3f}".rstrip("0").rstrip(".")
    return str(amount)
