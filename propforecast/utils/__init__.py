"""
Utility modules for PropForecast.

This package contains reusable utility functions for date handling,
rate conversions, and error handling throughout the application.
"""

from propforecast.utils.date_utils import (
    parse_date,
    month_index_to_date,
    months_between,
    month_series,
)

from propforecast.utils.rate_utils import (
    annual_pct_to_decimal,
    annual_pct_to_monthly_decimal,
    monthly_interest,
    apply_percent_change,
    MONTHS_PER_YEAR,
    PERCENTAGE_TO_DECIMAL,
)

from propforecast.utils.error_utils import (
    ForecastError,
    ProjectionError,
    error_handler,
    logger,
)

__all__ = [
    # Date utilities
    "parse_date",
    "month_index_to_date",
    "months_between",
    "month_series",
    # Rate utilities
    "annual_pct_to_decimal",
    "annual_pct_to_monthly_decimal",
    "monthly_interest",
    "apply_percent_change",
    "MONTHS_PER_YEAR",
    "PERCENTAGE_TO_DECIMAL",
    # Error handling
    "ForecastError",
    "ProjectionError",
    "error_handler",
    "logger",
]
