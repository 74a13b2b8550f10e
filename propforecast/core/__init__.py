"""
Core modules for PropForecast.

This package contains the domain models, constants, and the projection
engine.
"""

from propforecast.core.constants import (
    FactorType,
    APPLY_TO_ALL,
    PROJECTION_IN_MONTH,
    MAX_TIME_HORIZON_MONTHS,
    DEFAULT_TIME_HORIZON_MONTHS,
    DEFAULT_PROJECTION_START,
    DEFAULT_MARGINAL_TAX_RATE,
    CASH_FLOW,
    VALUE,
)

__all__ = [
    "FactorType",
    "APPLY_TO_ALL",
    "PROJECTION_IN_MONTH",
    "MAX_TIME_HORIZON_MONTHS",
    "DEFAULT_TIME_HORIZON_MONTHS",
    "DEFAULT_PROJECTION_START",
    "DEFAULT_MARGINAL_TAX_RATE",
    "CASH_FLOW",
    "VALUE",
]
