"""
Date utilities for month-indexed projections.

Projections are indexed by month offset from a start date. These helpers map
between calendar dates and month indexes, always normalizing to the first of
the month as financial calculations require.
"""

from datetime import datetime, date
from typing import Union

import pandas as pd
from dateutil.relativedelta import relativedelta

from propforecast.utils.error_utils import error_handler


@error_handler
def parse_date(
    date_input: Union[str, datetime, date, pd.Timestamp],
    normalize_to_month_start: bool = True,
) -> pd.Timestamp:
    """
    Parse a date-like value into a pandas Timestamp.

    Args:
        date_input: Date as ISO string, datetime, date or Timestamp
        normalize_to_month_start: If True, sets day to 1

    Returns:
        pd.Timestamp: Parsed (and optionally normalized) timestamp

    Raises:
        ValueError: If the input is None or cannot be parsed
        TypeError: If input type is not supported

    Examples:
        >>> parse_date("2024-01-15")
        Timestamp('2024-01-01 00:00:00')
    """
    if date_input is None:
        raise ValueError("Date input cannot be None")

    if isinstance(date_input, pd.Timestamp):
        result = date_input
    elif isinstance(date_input, (datetime, date)):
        result = pd.Timestamp(date_input)
    elif isinstance(date_input, str):
        if not date_input.strip():
            raise ValueError("Date string cannot be empty")
        result = pd.Timestamp(datetime.strptime(date_input.strip()[:10], "%Y-%m-%d"))
    else:
        raise TypeError(f"Unsupported date input type: {type(date_input)}")

    if normalize_to_month_start:
        result = result.replace(day=1)

    return result


@error_handler
def month_index_to_date(start_date: Union[str, date, pd.Timestamp], month_index: int) -> date:
    """
    Calendar month (first day) for a projection month index.

    Examples:
        >>> month_index_to_date("2025-01-01", 13)
        datetime.date(2026, 2, 1)
    """
    start = parse_date(start_date).date()
    return start + relativedelta(months=month_index)


@error_handler
def months_between(start: Union[str, date, pd.Timestamp], end: Union[str, date, pd.Timestamp]) -> int:
    """
    Whole months elapsed from start to end (negative if end precedes start).

    Days are ignored beyond the month boundary, so 2020-01-31 -> 2021-01-01
    counts as 12 months.
    """
    delta = relativedelta(parse_date(end).date(), parse_date(start).date())
    return delta.years * 12 + delta.months


@error_handler
def month_series(start_date: Union[str, date, pd.Timestamp], months: int) -> pd.DatetimeIndex:
    """Month-start DatetimeIndex of length ``months`` beginning at start_date."""
    return pd.date_range(start=parse_date(start_date), periods=months, freq="MS")
