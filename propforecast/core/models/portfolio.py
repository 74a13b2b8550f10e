"""
Portfolio state and projection result models.

The portfolio snapshot threaded through a projection is immutable: every
month transition produces a new ``PortfolioState`` instead of mutating the
previous one, so independent scenario runs never share references.

All models serialize with camelCase aliases (``monthlyRent``,
``netCashFlow``) and accept either spelling on input.

Classes:
    PropertyState: A property's recurring rent, expenses and value
    LoanState: A loan's balance, rate and scheduled repayment
    PortfolioState: Properties plus loans at a point in the projection
    PropertyForSale: Acquisition details used for capital gains on sale
    MonthProjection: One simulated month of outputs
    CapitalEvent: One-off cash event from a sale or purchase
    SummaryMetrics: Aggregates over a full run
    ProjectionResult: Ordered monthly results plus summary metrics
"""

from datetime import date
from typing import Dict, List, Optional, Tuple

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from propforecast.core.constants import CASH_FLOW, VALUE, DEFAULT_PROJECTION_START
from propforecast.utils.date_utils import month_series


class PortfolioModel(BaseModel):
    """Base model with camelCase aliases and immutability."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# ======================
# Portfolio state
# ======================


class PropertyState(PortfolioModel):
    """
    Recurring figures for a single property.

    ``expenses_by_category`` optionally breaks ``monthly_expenses`` down so
    that category-targeted expense changes can be applied. Any part of the
    total not covered by the breakdown is treated as uncategorized; the
    breakdown may not add up to more than the total.
    """

    id: str
    monthly_rent: float = 0.0
    monthly_expenses: float = 0.0
    expenses_by_category: Optional[Dict[str, float]] = None
    value: float = 0.0

    @model_validator(mode="after")
    def _check_expense_breakdown(self) -> "PropertyState":
        if self.expenses_by_category:
            categorized = sum(self.expenses_by_category.values())
            # Allow for float noise when the breakdown sums exactly to the total
            if categorized - self.monthly_expenses > 1e-9:
                raise ValueError(
                    f"Expense breakdown of property {self.id} ({categorized}) "
                    f"exceeds its monthly expenses ({self.monthly_expenses})"
                )
        return self


class LoanState(PortfolioModel):
    """A loan secured against a property (or the portfolio when property_id is None)."""

    id: str
    property_id: Optional[str] = None
    current_balance: float
    interest_rate: float = Field(..., description="Annual interest rate as percentage")
    repayment_amount: float = 0.0


class PortfolioState(PortfolioModel):
    """Properties and loans present at one point of a projection."""

    properties: Tuple[PropertyState, ...] = ()
    loans: Tuple[LoanState, ...] = ()

    @model_validator(mode="after")
    def _check_loan_references(self) -> "PortfolioState":
        property_ids = {p.id for p in self.properties}
        if len(property_ids) != len(self.properties):
            raise ValueError("Property ids must be unique")
        for loan in self.loans:
            if loan.property_id is not None and loan.property_id not in property_ids:
                raise ValueError(
                    f"Loan {loan.id} references unknown property {loan.property_id}"
                )
        return self

    def get_property(self, property_id: str) -> Optional[PropertyState]:
        for prop in self.properties:
            if prop.id == property_id:
                return prop
        return None

    def loans_for_property(self, property_id: str) -> List[LoanState]:
        return [loan for loan in self.loans if loan.property_id == property_id]

    @property
    def total_debt(self) -> float:
        return sum(loan.current_balance for loan in self.loans)

    @property
    def total_property_value(self) -> float:
        return sum(prop.value for prop in self.properties)


class PropertyForSale(PortfolioModel):
    """Acquisition history of a property, needed to compute capital gains."""

    id: str
    purchase_price: float = Field(..., ge=0)
    improvements: float = Field(default=0.0, ge=0)
    depreciation_claimed: float = Field(default=0.0, ge=0)
    purchase_date: date


# ======================
# Projection outputs
# ======================


class MonthProjection(PortfolioModel):
    """Outputs of one simulated month. Never modified after creation."""

    month: int
    total_income: float
    total_expenses: float
    net_cash_flow: float
    capital_cash_flow: float = 0.0
    total_interest: float = 0.0
    total_principal: float = 0.0
    income_by_property: Dict[str, float] = Field(default_factory=dict)
    expenses_by_property: Dict[str, float] = Field(default_factory=dict)
    vacant_properties: Tuple[str, ...] = ()
    total_debt: float = 0.0
    total_property_value: float = 0.0
    equity: float = 0.0


class CapitalEvent(PortfolioModel):
    """One-off cash event produced by a sell_property or buy_property factor."""

    month: int
    factor_type: str
    property_id: str
    amount: float
    loan_payoff: float = 0.0
    cgt_payable: float = 0.0


class SummaryMetrics(PortfolioModel):
    """Aggregates derived from a run's monthly results."""

    total_income: float
    total_expenses: float
    total_net: float
    average_monthly_income: float
    average_monthly_expenses: float
    average_monthly_net: float
    months_with_negative_cash_flow: int
    lowest_month_net: float
    lowest_month: Optional[int] = None
    highest_month_net: float
    highest_month: Optional[int] = None
    total_capital_cash_flow: float = 0.0
    final_equity: float = 0.0


class ProjectionResult(PortfolioModel):
    """Output of one full projection run."""

    start_date: date = DEFAULT_PROJECTION_START
    monthly_results: Tuple[MonthProjection, ...]
    summary_metrics: SummaryMetrics
    capital_events: Tuple[CapitalEvent, ...] = ()

    def to_dataframe(self) -> pd.DataFrame:
        """
        Monthly results as a DataFrame, one row per month.

        Returns:
            DataFrame with columns: date, month, total_income, total_expenses,
            net_cash_flow, capital_cash_flow, cumulative_cash_flow,
            total_debt, total_property_value, equity
        """
        df = pd.DataFrame(
            {
                "month": [m.month for m in self.monthly_results],
                "total_income": [m.total_income for m in self.monthly_results],
                "total_expenses": [m.total_expenses for m in self.monthly_results],
                CASH_FLOW: [m.net_cash_flow for m in self.monthly_results],
                "capital_cash_flow": [m.capital_cash_flow for m in self.monthly_results],
                "total_debt": [m.total_debt for m in self.monthly_results],
                "total_property_value": [m.total_property_value for m in self.monthly_results],
                VALUE: [m.equity for m in self.monthly_results],
            }
        )
        df["cumulative_cash_flow"] = (df[CASH_FLOW] + df["capital_cash_flow"]).cumsum()
        df.insert(0, "date", month_series(self.start_date, len(df)))
        return df
