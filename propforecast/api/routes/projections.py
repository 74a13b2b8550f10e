"""
Projection API endpoints.

Runs scenario projections over a portfolio snapshot supplied in the request.
Nothing is persisted; the caller stores results if it needs them.

A ``ProjectionError`` raised by the engine reaches the app-level
``ForecastError`` handler and is returned as a 400 ``ErrorResponse``.
"""

import logging

from fastapi import APIRouter

from propforecast.api.schemas import (
    ErrorResponse,
    ProjectionRequest,
    ScenarioComparisonRequest,
    ScenarioComparisonResponse,
    ScenarioSummary,
)
from propforecast.core.engine import run_projection, run_scenarios
from propforecast.core.models import ProjectionResult


logger = logging.getLogger(__name__)

router = APIRouter(responses={400: {"model": ErrorResponse}})


@router.post("/run", response_model=ProjectionResult)
def run_scenario_projection(request: ProjectionRequest):
    """
    Run a projection of the supplied portfolio under the supplied factors.

    Factors whose config cannot be parsed are skipped rather than failing
    the request.
    """
    return run_projection(
        request.portfolio,
        request.factors,
        request.time_horizon_months,
        start_date=request.start_date,
    )


@router.post("/compare", response_model=ScenarioComparisonResponse)
def compare_scenario_projections(request: ScenarioComparisonRequest):
    """Run each named scenario against the same portfolio and return their summaries."""
    summaries = [
        ScenarioSummary(name=name, summary_metrics=result.summary_metrics)
        for name, result in run_scenarios(
            request.portfolio,
            request.scenarios,
            request.time_horizon_months,
            start_date=request.start_date,
        )
    ]

    logger.info(f"Compared {len(summaries)} scenarios over {request.time_horizon_months} months")
    return ScenarioComparisonResponse(
        time_horizon_months=request.time_horizon_months,
        scenarios=summaries,
    )
