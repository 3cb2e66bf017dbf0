"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re


def parse_amount(amount_str: str) -> Decimal:
    """Parse a naira amount string into a Decimal.

    Handles various formats:
    - "1250.50"
    - "₦1,250.50"
    - "NGN 1,250.50"
    - "-1250.50"
    - "(1,250.50)" (negative in parentheses)
    - "250k" (thousands)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    amount_str = re.sub(r"^(NGN|₦|N)\s*", "", amount_str, flags=re.IGNORECASE)
    amount_str = amount_str.replace(",", "").strip()

    multiplier = Decimal("1")
    if amount_str[-1:].lower() == "k":
        multiplier = Decimal("1000")
        amount_str = amount_str[:-1]
    elif amount_str[-1:].lower() == "m":
        multiplier = Decimal("1000000")
        amount_str = amount_str[:-1]

    try:
        amount = Decimal(amount_str) * multiplier
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}'") from e
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return -amount if is_negative else amount
