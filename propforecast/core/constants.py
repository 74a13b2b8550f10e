"""
Core constants and enumerations for PropForecast.

This module defines the constant values, enumerations, and configuration
parameters used by the projection engine.
"""

from datetime import date
from enum import Enum

# Projection constants
CASH_FLOW = "net_cash_flow"
VALUE = "equity"
PROJECTION_IN_MONTH = 30 * 12  # 30 years
MAX_TIME_HORIZON_MONTHS = PROJECTION_IN_MONTH
DEFAULT_TIME_HORIZON_MONTHS = 5 * 12

# Month 0 of a projection when the caller does not pin a calendar start.
# Fixed so that runs stay reproducible.
DEFAULT_PROJECTION_START = date(2025, 1, 1)

# Interest-rate factors matching every loan use this applyTo value
APPLY_TO_ALL = "all"


class FactorType(str, Enum):
    """Scenario factor kinds."""

    INTEREST_RATE = "interest_rate"
    VACANCY = "vacancy"
    RENT_CHANGE = "rent_change"
    EXPENSE_CHANGE = "expense_change"
    SELL_PROPERTY = "sell_property"
    BUY_PROPERTY = "buy_property"

    @property
    def is_one_shot(self) -> bool:
        """True for factors that permanently change the portfolio once."""
        return self in (FactorType.SELL_PROPERTY, FactorType.BUY_PROPERTY)

    @classmethod
    def from_value(cls, value) -> "FactorType":
        """Look up a FactorType by its string tag, returning None if unknown."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except (ValueError, TypeError):
            return None


# Capital gains tax
DEFAULT_MARGINAL_TAX_RATE = 0.37
CGT_DISCOUNT_RATE = 0.5
CGT_DISCOUNT_HOLDING_MONTHS = 12

# Ids assigned to properties and loans created by buy_property factors
SCENARIO_PROPERTY_PREFIX = "scenario-property"
SCENARIO_LOAN_PREFIX = "scenario-loan"

# Expense category for the part of a property's expenses with no breakdown
UNCATEGORIZED_EXPENSES = "uncategorized"
