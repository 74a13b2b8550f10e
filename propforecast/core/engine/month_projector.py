"""
Single-month projection for a property portfolio.

``project_month`` takes the portfolio state at the start of a month and the
factors active in it, and returns the month's outputs together with the
state to carry into the next month. Steps run in a fixed order and each
sees the result of the previous one:

1. Structural factors (sell_property, buy_property) change which properties
   and loans exist, from this month onward.
2. Interest-rate factors shift loan rates. Several factors on the same loan
   stack in list order. Rates are not floored at zero.
3. Vacancy factors zero a property's rent inside [start, start + months).
4. Rent and expense changes scale the (possibly vacancy-zeroed) figures.
5. Aggregation into income, expenses (property costs, interest and the
   principal part of scheduled repayments) and net cash flow.

Rent and expense factors are re-applied to the base figures every month;
they never compound across months. Loan balances amortize by the principal
paid, so the returned state differs from the input only in balances and in
whatever structural factors changed.
"""

import logging
from datetime import date
from typing import Dict, Optional, Tuple

import numpy_financial as npf
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from propforecast.core.constants import (
    APPLY_TO_ALL,
    DEFAULT_MARGINAL_TAX_RATE,
    DEFAULT_PROJECTION_START,
    SCENARIO_LOAN_PREFIX,
    SCENARIO_PROPERTY_PREFIX,
    UNCATEGORIZED_EXPENSES,
    FactorType,
)
from propforecast.core.engine.capital_gains import CGTResult, calculate_cgt
from propforecast.core.models.factors import (
    BuyPropertyFactorConfig,
    ExpenseChangeFactorConfig,
    InterestRateFactorConfig,
    RentChangeFactorConfig,
    SellPropertyFactorConfig,
    VacancyFactorConfig,
    resolve_factors,
)
from propforecast.core.models.portfolio import (
    CapitalEvent,
    LoanState,
    MonthProjection,
    PortfolioState,
    PropertyForSale,
    PropertyState,
)
from propforecast.utils.date_utils import month_index_to_date
from propforecast.utils.rate_utils import (
    annual_pct_to_monthly_decimal,
    apply_percent_change,
    monthly_interest,
)

logger = logging.getLogger(__name__)


class StepResult(BaseModel):
    """Base for the immutable results returned by the apply functions."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class InterestRateResult(StepResult):
    loan_id: str
    original_interest: float
    adjusted_interest: float
    adjusted_rate: float


class VacancyResult(StepResult):
    property_id: str
    original_rent: float
    adjusted_rent: float
    is_vacant: bool


class RentChangeResult(StepResult):
    property_id: str
    original_rent: float
    adjusted_rent: float


class ExpenseData(StepResult):
    total: float
    by_category: Dict[str, float]


class ExpenseChangeResult(StepResult):
    original_total: float
    adjusted_total: float
    adjusted_by_category: Dict[str, float]


class SellPropertyResult(StepResult):
    adjusted_portfolio: PortfolioState
    sold: bool
    loan_payoff: float = 0.0
    cgt_result: Optional[CGTResult] = None
    net_proceeds: float = 0.0


class BuyPropertyResult(StepResult):
    adjusted_portfolio: PortfolioState
    new_property: PropertyState
    new_loan: Optional[LoanState] = None
    capital_outlay: float = 0.0


class MonthStep(StepResult):
    """A projected month plus the state to start the next month from."""

    state: PortfolioState
    projection: MonthProjection
    events: Tuple[CapitalEvent, ...] = ()


# ======================
# Per-factor transforms
# ======================


def apply_interest_rate_factor(
    loan: LoanState,
    config: InterestRateFactorConfig,
) -> InterestRateResult:
    """
    Shift a loan's annual rate by ``change_percent`` points if it is targeted.

    Loans not matched by ``apply_to`` come back with adjusted interest equal
    to the original interest.
    """
    original_interest = monthly_interest(loan.current_balance, loan.interest_rate)

    adjusted_rate = loan.interest_rate
    if config.apply_to == APPLY_TO_ALL or config.apply_to == loan.property_id:
        adjusted_rate = loan.interest_rate + config.change_percent

    return InterestRateResult(
        loan_id=loan.id,
        original_interest=original_interest,
        adjusted_interest=monthly_interest(loan.current_balance, adjusted_rate),
        adjusted_rate=adjusted_rate,
    )


def apply_vacancy_factor(
    prop: PropertyState,
    config: VacancyFactorConfig,
    current_month: int,
    start_month: int = 0,
) -> VacancyResult:
    """Zero the rent of the targeted property inside [start_month, start_month + months)."""
    is_vacant = (
        config.property_id == prop.id
        and start_month <= current_month < start_month + config.months
    )
    return VacancyResult(
        property_id=prop.id,
        original_rent=prop.monthly_rent,
        adjusted_rent=0.0 if is_vacant else prop.monthly_rent,
        is_vacant=is_vacant,
    )


def apply_rent_change_factor(
    prop: PropertyState,
    config: RentChangeFactorConfig,
) -> RentChangeResult:
    applies = config.property_id is None or config.property_id == prop.id
    adjusted_rent = apply_percent_change(prop.monthly_rent, config.change_percent) if applies else prop.monthly_rent
    return RentChangeResult(
        property_id=prop.id,
        original_rent=prop.monthly_rent,
        adjusted_rent=adjusted_rent,
    )


def apply_expense_change_factor(
    expenses: ExpenseData,
    config: ExpenseChangeFactorConfig,
) -> ExpenseChangeResult:
    """
    Scale expense categories by ``change_percent``.

    The adjusted total is the sum of the adjusted categories; anything in
    ``expenses.total`` not covered by ``by_category`` is not carried over.
    """
    adjusted_by_category = {}
    adjusted_total = 0.0
    for category, amount in expenses.by_category.items():
        applies = config.category is None or config.category == category
        adjusted_by_category[category] = apply_percent_change(amount, config.change_percent) if applies else amount
        adjusted_total += adjusted_by_category[category]

    return ExpenseChangeResult(
        original_total=expenses.total,
        adjusted_total=adjusted_total,
        adjusted_by_category=adjusted_by_category,
    )


def property_expense_data(prop: PropertyState) -> ExpenseData:
    """Expense breakdown of a property, with any uncovered remainder as uncategorized."""
    by_category = dict(prop.expenses_by_category or {})
    remainder = prop.monthly_expenses - sum(by_category.values())
    if remainder > 0:
        by_category[UNCATEGORIZED_EXPENSES] = by_category.get(UNCATEGORIZED_EXPENSES, 0.0) + remainder
    return ExpenseData(total=sum(by_category.values()), by_category=by_category)


def scheduled_repayment(principal: float, rate_annual_pct: float, term_months: Optional[int] = None) -> float:
    """
    Monthly repayment for a new loan.

    Interest-only when no term is given, otherwise the level payment that
    amortizes the principal over ``term_months``.
    """
    if term_months is None:
        return monthly_interest(principal, rate_annual_pct)
    monthly_rate = annual_pct_to_monthly_decimal(rate_annual_pct)
    if monthly_rate == 0:
        return principal / term_months
    return float(npf.pmt(monthly_rate, term_months, -principal))


def apply_sell_property_factor(
    portfolio: PortfolioState,
    config: SellPropertyFactorConfig,
    property_sale: Optional[PropertyForSale] = None,
    marginal_tax_rate: float = DEFAULT_MARGINAL_TAX_RATE,
    sale_date: Optional[date] = None,
) -> SellPropertyResult:
    """
    Remove a property and its loans, returning the net sale proceeds.

    Net proceeds are sale price less selling costs, the payoff of the
    property's loans and, when acquisition details are supplied, capital
    gains tax. Selling a property that is not in the portfolio (for example
    one already sold) is a no-op with ``sold=False``.
    """
    prop = portfolio.get_property(config.property_id)
    if prop is None:
        logger.info(f"sell_property: {config.property_id} not in portfolio, nothing to sell")
        return SellPropertyResult(adjusted_portfolio=portfolio, sold=False)

    loan_payoff = sum(loan.current_balance for loan in portfolio.loans_for_property(prop.id))

    cgt_result = None
    if property_sale is not None:
        if sale_date is None:
            sale_date = month_index_to_date(DEFAULT_PROJECTION_START, config.settlement_month)
        cgt_result = calculate_cgt(
            property_sale,
            config.sale_price,
            config.selling_costs,
            marginal_tax_rate,
            sale_date,
        )
    cgt_payable = cgt_result.cgt_payable if cgt_result else 0.0

    adjusted_portfolio = PortfolioState(
        properties=tuple(p for p in portfolio.properties if p.id != prop.id),
        loans=tuple(loan for loan in portfolio.loans if loan.property_id != prop.id),
    )

    return SellPropertyResult(
        adjusted_portfolio=adjusted_portfolio,
        sold=True,
        loan_payoff=loan_payoff,
        cgt_result=cgt_result,
        net_proceeds=config.sale_price - config.selling_costs - loan_payoff - cgt_payable,
    )


def _next_scenario_id(prefix: str, month: int, existing) -> str:
    n = 1
    while f"{prefix}-{month}-{n}" in existing:
        n += 1
    return f"{prefix}-{month}-{n}"


def apply_buy_property_factor(
    portfolio: PortfolioState,
    config: BuyPropertyFactorConfig,
) -> BuyPropertyResult:
    """
    Add a purchased property (and its loan, if any) to the portfolio.

    Ids are derived from the purchase month so repeated runs produce the
    same ids. The deposit is reported as the capital outlay.
    """
    property_id = _next_scenario_id(
        SCENARIO_PROPERTY_PREFIX, config.purchase_month, {p.id for p in portfolio.properties}
    )
    new_property = PropertyState(
        id=property_id,
        monthly_rent=config.expected_rent,
        monthly_expenses=config.expected_expenses,
        value=config.purchase_price,
    )

    new_loan = None
    if config.loan_amount > 0:
        new_loan = LoanState(
            id=_next_scenario_id(
                SCENARIO_LOAN_PREFIX, config.purchase_month, {loan.id for loan in portfolio.loans}
            ),
            property_id=property_id,
            current_balance=config.loan_amount,
            interest_rate=config.interest_rate,
            repayment_amount=scheduled_repayment(
                config.loan_amount, config.interest_rate, config.loan_term_months
            ),
        )

    adjusted_portfolio = PortfolioState(
        properties=portfolio.properties + (new_property,),
        loans=portfolio.loans + ((new_loan,) if new_loan else ()),
    )

    return BuyPropertyResult(
        adjusted_portfolio=adjusted_portfolio,
        new_property=new_property,
        new_loan=new_loan,
        capital_outlay=config.deposit,
    )


def _principal_component(loan: LoanState, base_interest: float) -> float:
    # Scheduled repayment less interest at the loan's own rate, never more than is owed
    return max(0.0, min(loan.current_balance, loan.repayment_amount - base_interest))


# ======================
# Month projection
# ======================


def project_month(
    portfolio: PortfolioState,
    factors,
    month: int,
    start_date: Optional[date] = None,
) -> MonthStep:
    """
    Project one month of the portfolio.

    Args:
        portfolio: State at the start of the month
        factors: Factors to consider (ResolvedFactor, ScenarioFactor or dicts);
            those not active in ``month`` are ignored
        month: Month index relative to the projection start
        start_date: Calendar date of month 0, used to date property sales

    Returns:
        MonthStep with the month's projection, capital events and the state
        to carry into the next month
    """
    active = [f for f in resolve_factors(factors) if f.is_active(month)]
    sale_date = month_index_to_date(start_date or DEFAULT_PROJECTION_START, month)

    state = portfolio
    capital_cash_flow = 0.0
    events = []

    # 1. Structural factors
    for factor in active:
        if factor.factor_type == FactorType.SELL_PROPERTY:
            sale = apply_sell_property_factor(
                state,
                factor.config,
                property_sale=factor.property_sale,
                marginal_tax_rate=factor.marginal_tax_rate,
                sale_date=sale_date,
            )
            if not sale.sold:
                continue
            state = sale.adjusted_portfolio
            capital_cash_flow += sale.net_proceeds
            events.append(
                CapitalEvent(
                    month=month,
                    factor_type=factor.factor_type.value,
                    property_id=factor.config.property_id,
                    amount=sale.net_proceeds,
                    loan_payoff=sale.loan_payoff,
                    cgt_payable=sale.cgt_result.cgt_payable if sale.cgt_result else 0.0,
                )
            )
        elif factor.factor_type == FactorType.BUY_PROPERTY:
            purchase = apply_buy_property_factor(state, factor.config)
            state = purchase.adjusted_portfolio
            capital_cash_flow -= purchase.capital_outlay
            events.append(
                CapitalEvent(
                    month=month,
                    factor_type=factor.factor_type.value,
                    property_id=purchase.new_property.id,
                    amount=-purchase.capital_outlay,
                )
            )

    rate_configs = [f.config for f in active if f.factor_type == FactorType.INTEREST_RATE]
    vacancy_factors = [f for f in active if f.factor_type == FactorType.VACANCY]
    rent_configs = [f.config for f in active if f.factor_type == FactorType.RENT_CHANGE]
    expense_configs = [f.config for f in active if f.factor_type == FactorType.EXPENSE_CHANGE]

    # 2. Loans
    total_interest = 0.0
    total_principal = 0.0
    loan_costs_by_property: Dict[str, float] = {}
    next_loans = []
    for loan in state.loans:
        base_interest = monthly_interest(loan.current_balance, loan.interest_rate)
        rate = loan.interest_rate
        interest = base_interest
        for config in rate_configs:
            shifted = apply_interest_rate_factor(loan.model_copy(update={"interest_rate": rate}), config)
            rate = shifted.adjusted_rate
            interest = shifted.adjusted_interest

        principal = _principal_component(loan, base_interest)
        total_interest += interest
        total_principal += principal
        if loan.property_id is not None:
            loan_costs_by_property[loan.property_id] = (
                loan_costs_by_property.get(loan.property_id, 0.0) + interest + principal
            )
        if principal:
            loan = loan.model_copy(update={"current_balance": loan.current_balance - principal})
        next_loans.append(loan)

    # 3-4. Properties
    total_income = 0.0
    total_property_expenses = 0.0
    income_by_property: Dict[str, float] = {}
    expenses_by_property: Dict[str, float] = {}
    vacant = []
    for prop in state.properties:
        rent = prop.monthly_rent
        is_vacant = False
        for factor in vacancy_factors:
            vacancy = apply_vacancy_factor(
                prop.model_copy(update={"monthly_rent": rent}), factor.config, month, factor.start_month
            )
            rent = vacancy.adjusted_rent
            is_vacant = is_vacant or vacancy.is_vacant
        for config in rent_configs:
            rent = apply_rent_change_factor(prop.model_copy(update={"monthly_rent": rent}), config).adjusted_rent

        expenses = property_expense_data(prop)
        for config in expense_configs:
            changed = apply_expense_change_factor(expenses, config)
            expenses = ExpenseData(total=changed.adjusted_total, by_category=changed.adjusted_by_category)

        if is_vacant:
            vacant.append(prop.id)
        income_by_property[prop.id] = rent
        expenses_by_property[prop.id] = expenses.total + loan_costs_by_property.get(prop.id, 0.0)
        total_income += rent
        total_property_expenses += expenses.total

    # 5. Aggregation
    next_state = state.model_copy(update={"loans": tuple(next_loans)})
    total_expenses = total_property_expenses + total_interest + total_principal
    total_debt = next_state.total_debt
    total_property_value = next_state.total_property_value

    projection = MonthProjection(
        month=month,
        total_income=total_income,
        total_expenses=total_expenses,
        net_cash_flow=total_income - total_expenses,
        capital_cash_flow=capital_cash_flow,
        total_interest=total_interest,
        total_principal=total_principal,
        income_by_property=income_by_property,
        expenses_by_property=expenses_by_property,
        vacant_properties=tuple(vacant),
        total_debt=total_debt,
        total_property_value=total_property_value,
        equity=total_property_value - total_debt,
    )

    return MonthStep(state=next_state, projection=projection, events=tuple(events))
