"""
dates.py

Calendar generation for the reporting horizon.

One DateEntry row per calendar day:
- date (datetime64, unique, strictly increasing)
- year
- month_number (1-12)
- month_name (January..December)
"""

from __future__ import annotations

from datetime import date
from typing import Optional, Tuple

import pandas as pd


DATE_COLUMNS = ["date", "year", "month_number", "month_name"]


class InvalidRangeError(ValueError):
    """Raised when a calendar range is empty, inverted or unparseable."""


def _to_timestamp(value, label: str) -> pd.Timestamp:
    if value is None:
        raise InvalidRangeError(f"Calendar {label} date is missing")
    try:
        ts = pd.Timestamp(value)
    except (TypeError, ValueError) as e:
        raise InvalidRangeError(f"Calendar {label} date is not a valid date: {value!r} ({e})")
    if pd.isna(ts):
        raise InvalidRangeError(f"Calendar {label} date is missing")
    return ts.normalize()


def generate(start, end) -> pd.DataFrame:
    """
    Generate one DateEntry per day in [start, end] inclusive.

    Raises:
        InvalidRangeError: if start > end or either bound is missing
    """
    start_ts = _to_timestamp(start, "start")
    end_ts = _to_timestamp(end, "end")
    if start_ts > end_ts:
        raise InvalidRangeError(
            f"Calendar start {start_ts.date()} is after end {end_ts.date()}"
        )

    days = pd.date_range(start_ts, end_ts, freq="D").astype("datetime64[ns]")
    return pd.DataFrame({
        "date": days,
        "year": days.year.astype(int),
        "month_number": days.month.astype(int),
        "month_name": days.month_name(),
    })


def horizon(facts: pd.DataFrame, horizon_end, horizon_start=None) -> Tuple[date, date]:
    """
    Default reporting horizon covering every fact in the ledger.

    Starts on Jan 1 of the earliest fact year and ends on the later of
    horizon_end and Dec 31 of the latest fact year. An empty ledger runs
    from Jan 1 of the horizon_end year to horizon_end.
    """
    end = _to_timestamp(horizon_end, "end")
    dates = facts["date"].dropna() if "date" in facts.columns else pd.Series(dtype="datetime64[ns]")
    dates = pd.to_datetime(dates)

    if dates.empty:
        first_year = end.year
        stop = end
    else:
        first_year = int(dates.min().year)
        stop = max(end, pd.Timestamp(int(dates.max().year), 12, 31))

    start = _to_timestamp(horizon_start, "start") if horizon_start is not None else pd.Timestamp(first_year, 1, 1)
    return start.date(), stop.date()


def period_label(year: int, month_number: int) -> str:
    return f"{int(year):04d}-{int(month_number):02d}"


def bounded(calendar: pd.DataFrame, excluded_year: Optional[int], horizon_end) -> pd.DataFrame:
    """Calendar rows outside the excluded year and on or before horizon_end."""
    end = _to_timestamp(horizon_end, "end")
    mask = calendar["date"] <= end
    if excluded_year is not None:
        mask &= calendar["year"] != int(excluded_year)
    return calendar.loc[mask].reset_index(drop=True)
