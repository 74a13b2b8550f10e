"""
Pydantic schemas for API request/response validation.

Projection inputs and outputs reuse the core models directly; this module
only adds the request envelopes and the small response shapes that exist
for the HTTP surface.
"""

from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from propforecast.core.constants import (
    DEFAULT_TIME_HORIZON_MONTHS,
    MAX_TIME_HORIZON_MONTHS,
)
from propforecast.core.models import PortfolioState, ScenarioFactor, SummaryMetrics


# ======================
# Base Schemas
# ======================


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )


# ======================
# Factor Schemas
# ======================


class FactorValidationRequest(BaseSchema):
    """A factor config to check before it is accepted into a scenario."""

    factor_type: str
    config: Dict[str, Any] = Field(default_factory=dict)


class FactorValidationResponse(BaseSchema):
    """Result of a factor config check."""

    factor_type: str
    valid: bool
    errors: List[str] = []


# ======================
# Projection Schemas
# ======================


class ProjectionRequest(BaseSchema):
    """Schema for projection run requests."""

    portfolio: PortfolioState
    factors: List[ScenarioFactor] = []
    time_horizon_months: int = Field(
        default=DEFAULT_TIME_HORIZON_MONTHS, ge=1, le=MAX_TIME_HORIZON_MONTHS
    )
    start_date: Optional[date] = Field(None, description="Calendar month of month 0")


class ScenarioComparisonRequest(BaseSchema):
    """Schema for running several scenarios against one portfolio."""

    portfolio: PortfolioState
    scenarios: Dict[str, List[ScenarioFactor]] = Field(..., min_length=1)
    time_horizon_months: int = Field(
        default=DEFAULT_TIME_HORIZON_MONTHS, ge=1, le=MAX_TIME_HORIZON_MONTHS
    )
    start_date: Optional[date] = None


class ScenarioSummary(BaseSchema):
    """Summary metrics of one scenario in a comparison."""

    name: str
    summary_metrics: SummaryMetrics


class ScenarioComparisonResponse(BaseSchema):
    """Schema for scenario comparison results."""

    time_horizon_months: int
    scenarios: List[ScenarioSummary]


# ======================
# Error Response Schema
# ======================


class ErrorResponse(BaseSchema):
    """Standard error response schema."""

    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Detailed error information")
    type: Optional[str] = Field(None, description="Error type/class")
