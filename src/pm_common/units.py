"""Unit conversions between ledger representations and display values.

Ledger time: microseconds since the Unix epoch (LEDGER_TIME_UNITS_PER_MS per ms).
Stake amounts: integer minor units, 10**STAKE_DECIMALS per whole token.
All comparisons against wall-clock time go through ledger_time_to_ms first.
The create_market close_time argument uses the same microsecond unit that
get_market_info returns; a value in seconds would read back as a close time in
January 1970, leaving the new market closed the moment it is created.
"""

import time
from datetime import datetime, timezone
from decimal import ROUND_DOWN, Decimal, InvalidOperation

from src.pm_common.errors import InvalidStakeAmountError

LEDGER_TIME_UNITS_PER_MS = 1000
STAKE_DECIMALS = 9

_MS_PER_HOUR = 60 * 60 * 1000
_MS_PER_DAY = 24 * _MS_PER_HOUR


def now_ms() -> int:
    """Wall-clock milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


def ledger_time_to_ms(value: int) -> int:
    return value // LEDGER_TIME_UNITS_PER_MS


def ms_to_ledger_time(ms: int) -> int:
    return ms * LEDGER_TIME_UNITS_PER_MS


def ledger_time_to_datetime(value: int) -> datetime:
    return datetime.fromtimestamp(ledger_time_to_ms(value) / 1000, tz=timezone.utc)


def datetime_to_ledger_time(dt: datetime) -> int:
    """Naive datetimes are taken as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return ms_to_ledger_time(int(dt.timestamp() * 1000))


def to_minor_units(amount: str | int | Decimal, decimals: int = STAKE_DECIMALS) -> int:
    """Parse a user-entered token amount into integer minor units.

    "1.5" -> 1_500_000_000 with 9 decimals. Rejects non-numeric input,
    non-positive values and more fractional digits than the token supports.
    """
    if isinstance(amount, float):
        raise InvalidStakeAmountError(amount, "pass a string or Decimal, not float")
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation:
        raise InvalidStakeAmountError(amount, "not a number") from None
    if not value.is_finite():
        raise InvalidStakeAmountError(amount, "not a number")
    if value <= 0:
        raise InvalidStakeAmountError(amount, "must be positive")

    scaled = value.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise InvalidStakeAmountError(amount, f"at most {decimals} decimal places")
    return int(scaled)


def minor_units_to_display(amount: int, decimals: int = STAKE_DECIMALS, places: int = 2) -> str:
    """Integer minor units -> fixed-point display string: 1_500_000_000 -> '1.50'."""
    value = Decimal(amount).scaleb(-decimals)
    quantum = Decimal(1).scaleb(-places)
    return f"{value.quantize(quantum, rounding=ROUND_DOWN):,}"


def format_time_remaining(close_time: int, now: int) -> str:
    """Human countdown to a ledger close_time, measured from `now` (ms)."""
    remaining = ledger_time_to_ms(close_time) - now
    if remaining <= 0:
        return "Closed"
    days = remaining // _MS_PER_DAY
    hours = (remaining % _MS_PER_DAY) // _MS_PER_HOUR
    if days > 0:
        return f"{days}d {hours}h remaining"
    return f"{hours}h remaining"
