"""
Period key policy.

Writes are gated on ONE canonical key per calendar month: "YYYY-MM".
Coarser labels are read-side groupings over that key only:

    "2024-05"  -> ["2024-05"]
    "2024-Q2"  -> ["2024-04", "2024-05", "2024-06"]
    "2024-H2"  -> ["2024-07", ..., "2024-12"]
    "2024"     -> ["2024-01", ..., "2024-12"]
"""

import calendar
import re
from datetime import date, datetime


MONTH_KEY_RE = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")
QUARTER_RE = re.compile(r"^(\d{4})-Q([1-4])$")
HALF_RE = re.compile(r"^(\d{4})-H([12])$")
YEAR_RE = re.compile(r"^(\d{4})$")


class PeriodLabelError(ValueError):
    """Raised for malformed period keys or labels."""


def coerce_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            raise PeriodLabelError(f"Invalid date: {value!r}")
    raise PeriodLabelError(f"Invalid date: {value!r}")


def period_key_of(value) -> str:
    """Canonical month key for a date: 2024-05-15 -> "2024-05"."""
    d = coerce_date(value)
    return f"{d.year:04d}-{d.month:02d}"


def validate_period_key(key: str) -> str:
    """Return `key` if it is a canonical "YYYY-MM" key, else raise."""
    if not isinstance(key, str) or not MONTH_KEY_RE.match(key):
        raise PeriodLabelError(
            f"Invalid period key {key!r}: expected YYYY-MM."
        )
    return key


def _month_range(year: int, first_month: int, count: int) -> list[str]:
    return [f"{year:04d}-{m:02d}" for m in range(first_month, first_month + count)]


def month_keys_for_label(label: str) -> list[str]:
    """Expand a read-side label into its canonical month keys (ascending)."""
    label = (label or "").strip()

    match = MONTH_KEY_RE.match(label)
    if match:
        return [label]

    match = QUARTER_RE.match(label)
    if match:
        year, quarter = int(match.group(1)), int(match.group(2))
        return _month_range(year, (quarter - 1) * 3 + 1, 3)

    match = HALF_RE.match(label)
    if match:
        year, half = int(match.group(1)), int(match.group(2))
        return _month_range(year, (half - 1) * 6 + 1, 6)

    match = YEAR_RE.match(label)
    if match:
        return _month_range(int(match.group(1)), 1, 12)

    raise PeriodLabelError(
        f"Invalid period {label!r}: expected YYYY-MM, YYYY-Qn, YYYY-Hn or YYYY."
    )


def month_bounds(key: str) -> tuple[date, date]:
    """First and last day of a canonical month key."""
    validate_period_key(key)
    year, month = int(key[:4]), int(key[5:])
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def label_date_range(label: str) -> tuple[date, date]:
    """First and last day covered by a read-side label."""
    keys = month_keys_for_label(label)
    return month_bounds(keys[0])[0], month_bounds(keys[-1])[1]
