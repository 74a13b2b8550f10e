"""
Domain models for PropForecast.

Classes:
    PortfolioState, PropertyState, LoanState: Immutable portfolio snapshot
    MonthProjection, SummaryMetrics, ProjectionResult: Projection outputs
    ScenarioFactor, ResolvedFactor: Scenario factors before/after parsing
    *FactorConfig: Typed config for each factor type
"""

from propforecast.core.models.portfolio import (
    PropertyState,
    LoanState,
    PortfolioState,
    PropertyForSale,
    MonthProjection,
    CapitalEvent,
    SummaryMetrics,
    ProjectionResult,
)
from propforecast.core.models.factors import (
    FactorConfig,
    FACTOR_CONFIG_MODELS,
    InterestRateFactorConfig,
    VacancyFactorConfig,
    RentChangeFactorConfig,
    ExpenseChangeFactorConfig,
    SellPropertyFactorConfig,
    BuyPropertyFactorConfig,
    ScenarioFactor,
    ResolvedFactor,
    parse_factor_config,
    is_valid_factor_config,
    factor_config_errors,
    resolve_factors,
)

__all__ = [
    # Portfolio
    "PropertyState",
    "LoanState",
    "PortfolioState",
    "PropertyForSale",
    "MonthProjection",
    "CapitalEvent",
    "SummaryMetrics",
    "ProjectionResult",
    # Factors
    "FactorConfig",
    "FACTOR_CONFIG_MODELS",
    "InterestRateFactorConfig",
    "VacancyFactorConfig",
    "RentChangeFactorConfig",
    "ExpenseChangeFactorConfig",
    "SellPropertyFactorConfig",
    "BuyPropertyFactorConfig",
    "ScenarioFactor",
    "ResolvedFactor",
    "parse_factor_config",
    "is_valid_factor_config",
    "factor_config_errors",
    "resolve_factors",
]
