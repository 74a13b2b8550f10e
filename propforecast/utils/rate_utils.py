"""
Rate conversion utilities for portfolio projections.

Conventions:
- All user inputs are annual rates as percentages (e.g., 6.0 = 6%)
- All calculations use decimal rates (e.g., 0.06 = 6%)
- Monthly rates are derived from annual rates: annual_decimal / 12
- Variable naming: *_rate_annual_pct, *_rate_monthly_decimal, etc.
"""

from typing import Union
from propforecast.utils.error_utils import error_handler

# Convenience constants for common conversions
MONTHS_PER_YEAR = 12
PERCENTAGE_TO_DECIMAL = 100.0


@error_handler
def annual_pct_to_decimal(rate_pct: Union[float, str]) -> float:
    """
    Convert annual percentage rate to decimal format.

    Examples:
        >>> annual_pct_to_decimal(5.0)
        0.05
        >>> annual_pct_to_decimal("7.5")
        0.075
    """
    return float(rate_pct) / PERCENTAGE_TO_DECIMAL


@error_handler
def annual_pct_to_monthly_decimal(rate_pct: Union[float, str]) -> float:
    """
    Convert annual percentage rate directly to monthly decimal rate.

    Examples:
        >>> round(annual_pct_to_monthly_decimal(6.0), 6)
        0.005
    """
    return annual_pct_to_decimal(rate_pct) / MONTHS_PER_YEAR


def monthly_interest(balance: float, rate_annual_pct: float) -> float:
    """
    Simple monthly interest on a balance at an annual percentage rate.

    Evaluated as ``balance * rate / 100 / 12`` so that negative rates and
    zero balances flow through without special cases.

    Examples:
        >>> round(monthly_interest(500000, 8.0), 2)
        3333.33
    """
    return balance * rate_annual_pct / PERCENTAGE_TO_DECIMAL / MONTHS_PER_YEAR


def apply_percent_change(amount: float, change_pct: float) -> float:
    """Scale an amount by a percentage change (10 -> x1.10, -5 -> x0.95)."""
    return amount * (1 + change_pct / PERCENTAGE_TO_DECIMAL)
