"""Currency helpers.

All money in the engine is ``Decimal`` rounded half-up to cents, so that
``68.005`` becomes ``68.01`` the way a member would expect on a receipt.
"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")

_CURRENCY_PREFIX = re.compile(r"^(USD|US\$|\$)\s*", re.IGNORECASE)


def round_currency(amount: Decimal) -> Decimal:
    """Round to 2 decimal places, half-up."""
    return Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)


def parse_amount(value: Any) -> Optional[Decimal]:
    """Parse a money value from a number or a string such as ``"$1,085.50"``.

    Floats go through ``str`` first so ``85.1`` parses as ``85.1`` and not as
    its binary approximation.

    Returns:
        Parsed Decimal, or None if the value is empty or unparseable.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, int):
        parsed = Decimal(value)
    elif isinstance(value, float):
        parsed = Decimal(str(value))
    elif isinstance(value, str):
        text = _CURRENCY_PREFIX.sub("", value.strip())
        text = text.replace(",", "").replace(" ", "")
        if not text:
            return None
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None

    # NaN and Infinity (json.loads accepts both) are not amounts
    if not parsed.is_finite():
        return None
    return parsed


def clamp(amount: Decimal, low: Decimal, high: Decimal) -> Decimal:
    """Clamp ``amount`` into ``[low, high]``."""
    return max(low, min(amount, high))
