"""
PropForecast projection engine.

Modules:
    month_projector: One month of factor application and aggregation
    projection_runner: Full runs, summary metrics and scenario comparison
    capital_gains: Capital gains tax on property sales
"""

from propforecast.core.engine.month_projector import (
    apply_interest_rate_factor,
    apply_vacancy_factor,
    apply_rent_change_factor,
    apply_expense_change_factor,
    apply_sell_property_factor,
    apply_buy_property_factor,
    project_month,
)
from propforecast.core.engine.projection_runner import (
    run_projection,
    run_scenarios,
    summarize,
    compare_scenarios,
)
from propforecast.core.engine.capital_gains import calculate_cgt

__all__ = [
    "apply_interest_rate_factor",
    "apply_vacancy_factor",
    "apply_rent_change_factor",
    "apply_expense_change_factor",
    "apply_sell_property_factor",
    "apply_buy_property_factor",
    "project_month",
    "run_projection",
    "run_scenarios",
    "summarize",
    "compare_scenarios",
    "calculate_cgt",
]
