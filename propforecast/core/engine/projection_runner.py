"""
Projection runner.

Drives ``project_month`` across a time horizon, threading the portfolio
state from one month into the next, and derives summary metrics once all
months are projected. A run is a pure function of its inputs: no
randomness and no wall clock, so identical inputs give identical results.
"""

import logging
from datetime import date
from typing import Dict, Iterator, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from propforecast.core.constants import (
    DEFAULT_PROJECTION_START,
)
from propforecast.core.engine.month_projector import project_month
from propforecast.core.models.factors import ResolvedFactor, resolve_factors
from propforecast.core.models.portfolio import (
    MonthProjection,
    PortfolioState,
    ProjectionResult,
    SummaryMetrics,
)
from propforecast.utils.date_utils import parse_date
from propforecast.utils.error_utils import ProjectionError

logger = logging.getLogger(__name__)


def active_factors(factors: Sequence[ResolvedFactor], month: int) -> list:
    """Factors whose window (or one-shot month) includes ``month``, in list order."""
    return [f for f in factors if f.is_active(month)]


def summarize(monthly_results: Sequence[MonthProjection]) -> SummaryMetrics:
    """
    Aggregate monthly results.

    ``total_net`` is the sum of the monthly net cash flows, and the lowest
    and highest months report the first month reaching the extreme.
    """
    if not monthly_results:
        return SummaryMetrics(
            total_income=0.0,
            total_expenses=0.0,
            total_net=0.0,
            average_monthly_income=0.0,
            average_monthly_expenses=0.0,
            average_monthly_net=0.0,
            months_with_negative_cash_flow=0,
            lowest_month_net=0.0,
            highest_month_net=0.0,
        )

    months = len(monthly_results)
    net_cash_flows = np.array([m.net_cash_flow for m in monthly_results], dtype=float)
    lowest = int(np.argmin(net_cash_flows))
    highest = int(np.argmax(net_cash_flows))

    total_income = sum(m.total_income for m in monthly_results)
    total_expenses = sum(m.total_expenses for m in monthly_results)
    total_net = sum(m.net_cash_flow for m in monthly_results)

    return SummaryMetrics(
        total_income=total_income,
        total_expenses=total_expenses,
        total_net=total_net,
        average_monthly_income=total_income / months,
        average_monthly_expenses=total_expenses / months,
        average_monthly_net=total_net / months,
        months_with_negative_cash_flow=int((net_cash_flows < 0).sum()),
        lowest_month_net=monthly_results[lowest].net_cash_flow,
        lowest_month=monthly_results[lowest].month,
        highest_month_net=monthly_results[highest].net_cash_flow,
        highest_month=monthly_results[highest].month,
        total_capital_cash_flow=sum(m.capital_cash_flow for m in monthly_results),
        final_equity=monthly_results[-1].equity,
    )


def _check_horizon(time_horizon_months) -> None:
    if isinstance(time_horizon_months, bool) or not isinstance(time_horizon_months, int):
        raise ProjectionError(
            f"Time horizon must be a whole number of months, got {time_horizon_months!r}"
        )
    if time_horizon_months < 0:
        raise ProjectionError(
            f"Time horizon cannot be negative, got {time_horizon_months}",
            {"time_horizon_months": time_horizon_months},
        )


def run_projection(
    initial_state,
    factors,
    time_horizon_months: int,
    start_date: Optional[date] = None,
) -> ProjectionResult:
    """
    Run a full scenario projection.

    Args:
        initial_state: PortfolioState (or a dict accepted by it) at month 0
        factors: Scenario factors; ones whose config fails to parse are
            skipped as if absent
        time_horizon_months: Number of months to project; 0 gives an empty
            run with zero summary metrics. Callers bound the upper end (the API
            caps it at MAX_TIME_HORIZON_MONTHS)
        start_date: Calendar date of month 0 (defaults to DEFAULT_PROJECTION_START)

    Returns:
        ProjectionResult with one MonthProjection per month and summary metrics

    Raises:
        ProjectionError: If the time horizon is not a non-negative whole number
    """
    _check_horizon(time_horizon_months)

    state = (
        initial_state
        if isinstance(initial_state, PortfolioState)
        else PortfolioState.model_validate(initial_state)
    )
    start = parse_date(start_date or DEFAULT_PROJECTION_START).date()
    resolved = resolve_factors(factors)

    logger.debug(
        f"Running projection: {len(state.properties)} properties, {len(state.loans)} loans, "
        f"{len(resolved)} factors, {time_horizon_months} months from {start.isoformat()}"
    )

    monthly_results = []
    capital_events = []
    for month in range(time_horizon_months):
        step = project_month(state, active_factors(resolved, month), month, start_date=start)
        state = step.state
        monthly_results.append(step.projection)
        capital_events.extend(step.events)

    summary = summarize(monthly_results)
    logger.debug(
        f"Projection complete: total net {summary.total_net:.2f}, "
        f"{summary.months_with_negative_cash_flow} negative months"
    )

    return ProjectionResult(
        start_date=start,
        monthly_results=tuple(monthly_results),
        summary_metrics=summary,
        capital_events=tuple(capital_events),
    )


def run_scenarios(
    initial_state,
    scenarios: Mapping[str, Sequence],
    time_horizon_months: int,
    start_date: Optional[date] = None,
) -> Iterator[Tuple[str, ProjectionResult]]:
    """Yield (name, result) for each named factor list, in mapping order."""
    state = (
        initial_state
        if isinstance(initial_state, PortfolioState)
        else PortfolioState.model_validate(initial_state)
    )
    for name, factors in scenarios.items():
        yield name, run_projection(state, factors, time_horizon_months, start_date=start_date)


def compare_scenarios(
    initial_state,
    scenarios: Mapping[str, Sequence],
    time_horizon_months: int,
    start_date: Optional[date] = None,
) -> pd.DataFrame:
    """
    Run several named factor lists against the same portfolio.

    Args:
        initial_state: Portfolio shared by every scenario
        scenarios: Scenario name -> list of factors (an empty list is the base case)
        time_horizon_months: Months to project for each scenario
        start_date: Calendar date of month 0

    Returns:
        DataFrame indexed by scenario name with one column per summary metric
    """
    rows: Dict[str, dict] = {}
    for name, result in run_scenarios(initial_state, scenarios, time_horizon_months, start_date):
        rows[name] = result.summary_metrics.model_dump()

    df = pd.DataFrame.from_dict(rows, orient="index")
    df.index.name = "scenario"
    return df
