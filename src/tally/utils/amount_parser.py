"""Amount parsing utilities."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
import re

_NON_NUMERIC = re.compile(r"[^0-9.,+\-]")
_THOUSANDS_GROUP = re.compile(r"\d*\.\d{3}")
CENT = Decimal("0.01")


def parse_amount(amount_str: str) -> Decimal:
    """Parse a locale-ambiguous amount string into a Decimal.

    Handles various formats:
    - "1.234,56" and "1,234.56" (the separator occurring last is decimal)
    - "-50,00" (a lone comma is decimal)
    - "1.200" and "1.234.567" (repeated dots, or one dot followed by
      exactly three digits, are thousands grouping)
    - "12.50", "€ -12,50", "(12,50)" (negative in parentheses)

    A single dot followed by three digits is always read as grouping, so
    "1.234" parses as 1234 even when one-point-two-three-four was meant.
    Results are rounded half-up to whole cents, the precision the ledger
    stores.

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    text = amount_str.strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if text.startswith("(") and text.endswith(")"):
        is_negative = True
        text = text[1:-1]

    cleaned = _NON_NUMERIC.sub("", text)

    # Only a leading sign counts
    if cleaned[:1] in ("-", "+"):
        if cleaned[0] == "-":
            is_negative = not is_negative
        cleaned = cleaned[1:]
    cleaned = cleaned.replace("-", "").replace("+", "")

    cleaned = _normalize_separators(cleaned)

    if not cleaned or cleaned == ".":
        raise ValueError(f"Could not parse amount '{amount_str}'")

    try:
        amount = Decimal(cleaned).quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}")

    return -amount if is_negative else amount


def _normalize_separators(digits: str) -> str:
    """Rewrite grouping/decimal separators into a plain ``1234.56`` form."""
    has_dot = "." in digits
    has_comma = "," in digits

    if has_dot and has_comma:
        if digits.rfind(",") > digits.rfind("."):
            return digits.replace(".", "").replace(",", ".")
        return digits.replace(",", "")

    if has_comma:
        if digits.count(",") > 1:
            raise ValueError(f"Ambiguous amount '{digits}': several decimal commas")
        return digits.replace(",", ".")

    if has_dot:
        if digits.count(".") > 1 or _THOUSANDS_GROUP.fullmatch(digits):
            return digits.replace(".", "")

    return digits
