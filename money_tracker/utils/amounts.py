"""
Amount helpers: sign normalization for extracted amounts, rupiah formatting
for replies, and lenient balance parsing for the ledger summary.
"""

from decimal import Decimal, InvalidOperation


def normalize_amount(amount: str) -> str:
    """
    Strip a single leading minus sign from an amount string.

    Anything else is returned unchanged: no numeric validation, no currency
    stripping, and ``"-0"`` becomes ``"0"`` like any other negative.
    """
    if amount.startswith("-"):
        return amount[1:]
    return amount


def _to_decimal(value: str) -> Decimal:
    cleaned = value.strip().replace(",", "")
    if cleaned.lower().startswith("rp"):
        cleaned = cleaned[2:].strip()
    return Decimal(cleaned)


def parse_balance(value: str) -> float:
    """
    Parse a summary cell such as ``"-50,000"`` into a float; unparseable or
    empty cells count as ``0.0``.
    """
    try:
        result = _to_decimal(value)
    except (InvalidOperation, ValueError):
        return 0.0
    if not result.is_finite():
        return 0.0
    return float(result)


def format_rupiah(amount: str) -> str:
    """
    Format an amount for display, e.g. ``"1500000"`` -> ``"Rp 1,500,000"``.

    Fractions are truncated. Values that do not parse are echoed as
    ``"Rp <amount>"``.
    """
    try:
        value = _to_decimal(amount)
    except (InvalidOperation, ValueError):
        return f"Rp {amount}"
    if not value.is_finite():
        return f"Rp {amount}"
    return f"Rp {int(value):,}"
