"""
Tolerant money handling.

Amounts arrive in whatever shape the driver/client apps stored them:
numbers, numeric strings, or strings with currency formatting
("15 000 FCFA"). Everything that is not a digit, "." or "-" is noise.
"""
import math
import re
from decimal import Decimal, ROUND_HALF_UP

# Share of the ride price paid out to the driver; the platform keeps the remainder.
DRIVER_RATE = Decimal("0.70")

_NOISE = re.compile(r"[^0-9.\-]+")
_LEADING_NUMBER = re.compile(r"-?(?:\d+\.?\d*|\.\d+)")


def parse_money(value) -> float:
    """Coerce a loosely-typed amount to float; absent or unparseable → 0."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        number = float(value)
        return number if math.isfinite(number) else 0.0

    match = _LEADING_NUMBER.match(_NOISE.sub("", str(value)))
    if match is None:
        return 0.0
    return float(match.group(0))


def driver_balance(driver) -> float:
    """Parsed available balance; the legacy field wins whenever it is present."""
    raw = driver.legacy_balance if driver.legacy_balance is not None else driver.available_balance
    return parse_money(raw)


def to_decimal(value) -> Decimal:
    return Decimal(str(parse_money(value)))


def format_money(amount: Decimal) -> str:
    """Plain string form used when writing balances back ("15700", "15700.5")."""
    return format(amount.normalize(), "f")


def round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def split_payout(price: Decimal) -> tuple[Decimal, Decimal]:
    """
    Returns (driver_amount, platform_amount).
    Driver share is rounded to a whole unit; the platform gets the exact
    remainder so the two always add back up to `price`.
    """
    driver_amount = (price * DRIVER_RATE).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return driver_amount, price - driver_amount
