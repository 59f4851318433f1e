"""
Product Metrics

Pure functions behind the list and detail views: currency formatting,
unit margin and break-even ROAS.

Break-even ROAS is price / (price - cogs): the revenue each ad dollar must
return for the sale to cover its own product cost. Three outcomes are
distinguished by calculate_roas():

    None   insufficient input (price or cogs missing / not a number)
    0      guaranteed loss (margin <= 0)
    "2.50" positive ratio, formatted to two decimals
"""
import re
from typing import Any, Optional, Union

PLACEHOLDER = "-"
LOSS_LABEL = "Loss"
DEFAULT_GOOD_THRESHOLD = 1.5

RoasResult = Optional[Union[str, int]]

# Leading decimal number, the same prefix a browser parseFloat() accepts
_NUMBER_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def parse_number(value: Any) -> Optional[float]:
    """
    Leniently parse a numeric-as-text field.

    "12.5" -> 12.5, " 3abc" -> 3.0, "" / None / "abc" -> None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if value == value else None  # NaN
    match = _NUMBER_PREFIX.match(str(value))
    if not match:
        return None
    return float(match.group(1))


def format_currency(value: Any) -> str:
    """Format as US dollars with 2 decimals; falsy or non-numeric -> "-"."""
    if not value:
        return PLACEHOLDER
    amount = parse_number(value)
    if amount is None:
        return PLACEHOLDER
    if amount < 0:
        return f"-${abs(amount):,.2f}"
    return f"${amount:,.2f}"


def calculate_margin(price: Any, cogs: Any) -> Optional[float]:
    """Unit margin (price - cogs), or None if either side is missing."""
    p = parse_number(price)
    c = parse_number(cogs)
    if p is None or c is None:
        return None
    return p - c


def calculate_roas(price: Any, cogs: Any) -> RoasResult:
    """Break-even ROAS: None (no result), 0 (loss) or a 2-decimal string."""
    p = parse_number(price)
    c = parse_number(cogs)
    if p is None or c is None:
        return None

    margin = p - c
    if margin <= 0:
        return 0

    return f"{p / margin:.2f}"


def roas_rating(roas: RoasResult, threshold: float = DEFAULT_GOOD_THRESHOLD) -> Optional[str]:
    """
    "good" when 0 < roas <= threshold (little ad spend needed to break even),
    "bad" otherwise, None when there is no result.
    """
    if roas is None:
        return None
    value = float(roas)
    if 0 < value <= threshold:
        return "good"
    return "bad"


def format_roas(roas: RoasResult) -> str:
    """Display form: "-" for no result, "Loss" for 0, "1.25x" otherwise."""
    if roas is None:
        return PLACEHOLDER
    if float(roas) <= 0:
        return LOSS_LABEL
    return f"{roas}x"


def format_margin(price: Any, cogs: Any) -> str:
    """Margin column: shown only when both price and cogs are filled in."""
    if not price or not cogs:
        return PLACEHOLDER
    margin = calculate_margin(price, cogs)
    if margin is None:
        return PLACEHOLDER
    return format_currency(margin)
