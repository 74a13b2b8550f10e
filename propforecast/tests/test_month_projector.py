"""
Tests for single-month projection and the per-factor transforms.
"""

from datetime import date

import pytest
from pydantic import ValidationError

from propforecast.core.engine.month_projector import (
    ExpenseData,
    apply_interest_rate_factor,
    apply_vacancy_factor,
    apply_rent_change_factor,
    apply_expense_change_factor,
    apply_sell_property_factor,
    apply_buy_property_factor,
    project_month,
    property_expense_data,
    scheduled_repayment,
)
from propforecast.core.models import (
    BuyPropertyFactorConfig,
    ExpenseChangeFactorConfig,
    InterestRateFactorConfig,
    LoanState,
    PortfolioState,
    PropertyForSale,
    PropertyState,
    RentChangeFactorConfig,
    SellPropertyFactorConfig,
    VacancyFactorConfig,
)


@pytest.fixture
def loan():
    return LoanState(
        id="loan-1",
        property_id="prop-1",
        current_balance=500000,
        interest_rate=6.0,
        repayment_amount=3000,
    )


@pytest.fixture
def base_portfolio():
    return PortfolioState(
        properties=[PropertyState(id="prop-1", monthly_rent=2000, monthly_expenses=500, value=600000)],
        loans=[
            LoanState(
                id="loan-1",
                property_id="prop-1",
                current_balance=400000,
                interest_rate=6.0,
                repayment_amount=2500,
            )
        ],
    )


@pytest.fixture
def property_data():
    return PropertyForSale(
        id="prop-1",
        purchase_price=500000,
        improvements=0,
        depreciation_claimed=0,
        purchase_date=date(2020, 1, 1),
    )


class TestInterestRateFactor:
    """Interest-rate shocks on individual loans."""

    def test_rate_rise_increases_interest(self, loan):
        result = apply_interest_rate_factor(loan, InterestRateFactorConfig(change_percent=2.0, apply_to="all"))

        assert result.original_interest == pytest.approx(2500.0)
        assert result.adjusted_interest == pytest.approx(3333.33, abs=0.01)
        assert result.adjusted_rate == pytest.approx(8.0)

    def test_rate_fall_decreases_interest(self, loan):
        result = apply_interest_rate_factor(loan, InterestRateFactorConfig(change_percent=-1.0, apply_to="all"))

        assert result.adjusted_interest == pytest.approx(2083.33, abs=0.01)

    def test_targets_only_matching_property(self, loan):
        result = apply_interest_rate_factor(loan, InterestRateFactorConfig(change_percent=2.0, apply_to="prop-2"))

        assert result.adjusted_interest == result.original_interest
        assert result.adjusted_rate == 6.0

    def test_targets_loan_by_property_id(self, loan):
        result = apply_interest_rate_factor(loan, InterestRateFactorConfig(change_percent=2.0, apply_to="prop-1"))

        assert result.adjusted_interest == pytest.approx(3333.33, abs=0.01)

    def test_negative_rate_is_not_clamped(self):
        low_rate_loan = LoanState(id="l", property_id=None, current_balance=120000, interest_rate=1.0)
        result = apply_interest_rate_factor(low_rate_loan, InterestRateFactorConfig(change_percent=-3.0, apply_to="all"))

        assert result.adjusted_rate == pytest.approx(-2.0)
        assert result.adjusted_interest == pytest.approx(-200.0)

    def test_zero_balance_produces_zero_interest(self):
        paid_off = LoanState(id="l", property_id=None, current_balance=0, interest_rate=6.0)
        result = apply_interest_rate_factor(paid_off, InterestRateFactorConfig(change_percent=2.0, apply_to="all"))

        assert result.adjusted_interest == 0


class TestVacancyFactor:
    """Vacancy windows are half-open: [start, start + months)."""

    def test_window_months(self):
        prop = PropertyState(id="p1", monthly_rent=2000)
        config = VacancyFactorConfig(property_id="p1", months=3)

        vacant = {m: apply_vacancy_factor(prop, config, m, start_month=5).is_vacant for m in range(4, 9)}

        assert vacant == {4: False, 5: True, 6: True, 7: True, 8: False}

    def test_vacant_month_has_zero_rent(self):
        prop = PropertyState(id="prop-1", monthly_rent=2000)
        result = apply_vacancy_factor(prop, VacancyFactorConfig(property_id="prop-1", months=3), 0)

        assert result.adjusted_rent == 0
        assert result.original_rent == 2000

    def test_rent_returns_after_vacancy(self):
        prop = PropertyState(id="prop-1", monthly_rent=2000)
        result = apply_vacancy_factor(prop, VacancyFactorConfig(property_id="prop-1", months=3), 4)

        assert result.adjusted_rent == 2000
        assert result.is_vacant is False

    def test_other_properties_unaffected(self):
        prop = PropertyState(id="prop-2", monthly_rent=2000)
        result = apply_vacancy_factor(prop, VacancyFactorConfig(property_id="prop-1", months=3), 0)

        assert result.adjusted_rent == 2000
        assert result.is_vacant is False


class TestRentAndExpenseFactors:
    """Percentage changes to rent and expenses."""

    def test_rent_increase(self):
        prop = PropertyState(id="prop-1", monthly_rent=2000)
        assert apply_rent_change_factor(prop, RentChangeFactorConfig(change_percent=10)).adjusted_rent == pytest.approx(2200)

    def test_rent_decrease(self):
        prop = PropertyState(id="prop-1", monthly_rent=2000)
        assert apply_rent_change_factor(prop, RentChangeFactorConfig(change_percent=-5)).adjusted_rent == pytest.approx(1900)

    def test_rent_change_targets_property(self):
        prop = PropertyState(id="prop-1", monthly_rent=2000)
        config = RentChangeFactorConfig(change_percent=10, property_id="prop-2")
        assert apply_rent_change_factor(prop, config).adjusted_rent == 2000

    def test_expense_increase_applies_to_categories(self):
        expenses = ExpenseData(total=1000, by_category={"insurance": 200, "repairs": 300})
        result = apply_expense_change_factor(expenses, ExpenseChangeFactorConfig(change_percent=20))

        assert result.adjusted_total == pytest.approx(600)
        assert result.original_total == 1000

    def test_expense_change_targets_category(self):
        expenses = ExpenseData(total=1000, by_category={"insurance": 200, "repairs": 300, "other": 500})
        result = apply_expense_change_factor(
            expenses, ExpenseChangeFactorConfig(change_percent=50, category="repairs")
        )

        assert result.adjusted_total == pytest.approx(1150)
        assert result.adjusted_by_category["repairs"] == pytest.approx(450)
        assert result.adjusted_by_category["insurance"] == 200

    def test_property_expense_data_keeps_uncovered_remainder(self):
        prop = PropertyState(
            id="p1", monthly_expenses=500, expenses_by_category={"insurance": 120, "rates": 80}
        )
        data = property_expense_data(prop)

        assert data.by_category == {"insurance": 120, "rates": 80, "uncategorized": 300}
        assert data.total == pytest.approx(500)

    def test_property_expense_data_without_breakdown(self):
        data = property_expense_data(PropertyState(id="p1", monthly_expenses=500))
        assert data.by_category == {"uncategorized": 500}

    def test_breakdown_matching_total_is_accepted(self):
        prop = PropertyState(
            id="p1", monthly_expenses=0.3, expenses_by_category={"insurance": 0.1, "rates": 0.2}
        )
        assert property_expense_data(prop).total == pytest.approx(0.3)

    def test_breakdown_larger_than_total_is_rejected(self):
        with pytest.raises(ValidationError):
            PropertyState(id="p1", monthly_rent=1000, monthly_expenses=100, expenses_by_category={"a": 300})

    def test_breakdown_without_total_is_rejected(self):
        with pytest.raises(ValidationError):
            PropertyState(id="p1", expenses_by_category={"insurance": 50})


class TestSellPropertyFactor:
    """One-shot property sales."""

    def test_removes_property_and_its_loan(self, property_data):
        portfolio = PortfolioState(
            properties=[
                PropertyState(id="prop-1", monthly_rent=2000, monthly_expenses=500),
                PropertyState(id="prop-2", monthly_rent=2500, monthly_expenses=600),
            ],
            loans=[
                LoanState(id="loan-1", property_id="prop-1", current_balance=400000, interest_rate=6.0, repayment_amount=2500),
            ],
        )
        config = SellPropertyFactorConfig(
            property_id="prop-1", sale_price=700000, selling_costs=20000, settlement_month=6
        )

        result = apply_sell_property_factor(portfolio, config, property_data, 0.37)

        assert result.sold is True
        assert [p.id for p in result.adjusted_portfolio.properties] == ["prop-2"]
        assert result.adjusted_portfolio.loans == ()
        assert result.net_proceeds > 0
        assert result.cgt_result.cgt_payable > 0
        # Input state is untouched
        assert len(portfolio.properties) == 2

    def test_net_proceeds(self, property_data):
        portfolio = PortfolioState(
            properties=[PropertyState(id="prop-1", monthly_rent=2000, monthly_expenses=500)],
            loans=[LoanState(id="loan-1", property_id="prop-1", current_balance=300000, interest_rate=6.0, repayment_amount=2500)],
        )
        config = SellPropertyFactorConfig(
            property_id="prop-1", sale_price=700000, selling_costs=20000, settlement_month=12
        )

        result = apply_sell_property_factor(portfolio, config, property_data, 0.37)

        # Gross gain 180000, discounted to 90000, CGT 33300
        assert result.loan_payoff == 300000
        assert result.cgt_result.cgt_payable == pytest.approx(33300)
        assert result.net_proceeds == pytest.approx(346700)

    def test_net_proceeds_without_acquisition_details(self, base_portfolio):
        config = SellPropertyFactorConfig(
            property_id="prop-1", sale_price=650000, selling_costs=15000, settlement_month=0
        )
        result = apply_sell_property_factor(base_portfolio, config)

        assert result.cgt_result is None
        assert result.net_proceeds == pytest.approx(650000 - 15000 - 400000)

    def test_selling_missing_property_is_noop(self, base_portfolio):
        config = SellPropertyFactorConfig(
            property_id="prop-9", sale_price=500000, selling_costs=0, settlement_month=0
        )
        result = apply_sell_property_factor(base_portfolio, config)

        assert result.sold is False
        assert result.adjusted_portfolio == base_portfolio
        assert result.net_proceeds == 0


class TestBuyPropertyFactor:
    """One-shot property purchases."""

    def _config(self, **overrides):
        fields = dict(
            purchase_price=600000,
            deposit=120000,
            loan_amount=480000,
            interest_rate=6.5,
            expected_rent=2500,
            expected_expenses=600,
            purchase_month=3,
        )
        fields.update(overrides)
        return BuyPropertyFactorConfig(**fields)

    def test_adds_property_and_loan(self):
        portfolio = PortfolioState(properties=[PropertyState(id="prop-1", monthly_rent=2000, monthly_expenses=500)])

        result = apply_buy_property_factor(portfolio, self._config())

        assert len(result.adjusted_portfolio.properties) == 2
        assert len(result.adjusted_portfolio.loans) == 1
        assert result.new_property.monthly_rent == 2500
        assert result.new_property.monthly_expenses == 600
        assert result.new_property.value == 600000
        assert result.new_loan.current_balance == 480000
        assert result.new_loan.interest_rate == 6.5
        assert result.capital_outlay == 120000

    def test_ids_are_deterministic_and_linked(self):
        first = apply_buy_property_factor(PortfolioState(), self._config())
        second = apply_buy_property_factor(first.adjusted_portfolio, self._config())

        assert first.new_property.id == "scenario-property-3-1"
        assert second.new_property.id == "scenario-property-3-2"
        assert first.new_loan.property_id == first.new_property.id
        assert second.new_loan.id != first.new_loan.id

    def test_interest_only_by_default(self):
        result = apply_buy_property_factor(PortfolioState(), self._config(loan_amount=400000, interest_rate=6.0))
        assert result.new_loan.repayment_amount == pytest.approx(2000.0)

    def test_amortizing_loan_with_term(self):
        result = apply_buy_property_factor(
            PortfolioState(), self._config(loan_amount=400000, interest_rate=6.0, loan_term_months=360)
        )
        assert result.new_loan.repayment_amount == pytest.approx(2398.20, abs=0.01)

    def test_cash_purchase_has_no_loan(self):
        result = apply_buy_property_factor(PortfolioState(), self._config(deposit=600000, loan_amount=0))

        assert result.new_loan is None
        assert result.adjusted_portfolio.loans == ()

    def test_scheduled_repayment_zero_rate(self):
        assert scheduled_repayment(120000, 0.0, 120) == pytest.approx(1000.0)


class TestProjectMonth:
    """Combining factors into one month of output."""

    def test_base_case(self, base_portfolio):
        step = project_month(base_portfolio, [], 0)
        month = step.projection

        assert month.total_income == 2000
        # 500 expenses + 2000 interest + 500 principal
        assert month.total_expenses == pytest.approx(3000)
        assert month.net_cash_flow == pytest.approx(-1000)
        assert month.total_interest == pytest.approx(2000)
        assert month.total_principal == pytest.approx(500)
        assert month.expenses_by_property["prop-1"] == pytest.approx(3000)

    def test_amortizes_balance_into_next_state(self, base_portfolio):
        step = project_month(base_portfolio, [], 0)

        assert step.state.loans[0].current_balance == pytest.approx(399500)
        assert step.projection.total_debt == pytest.approx(399500)
        assert step.projection.equity == pytest.approx(600000 - 399500)
        assert base_portfolio.loans[0].current_balance == 400000

    def test_interest_rate_factor_raises_expenses(self, base_portfolio):
        factors = [{"factorType": "interest_rate", "config": {"changePercent": 2.0, "applyTo": "all"}, "startMonth": 0}]

        shocked = project_month(base_portfolio, factors, 0).projection
        base = project_month(base_portfolio, [], 0).projection

        assert shocked.total_expenses > base.total_expenses
        assert shocked.total_interest == pytest.approx(400000 * 0.08 / 12)

    def test_interest_rate_factors_stack(self, base_portfolio):
        two_steps = [
            {"factorType": "interest_rate", "config": {"changePercent": 1.0, "applyTo": "all"}},
            {"factorType": "interest_rate", "config": {"changePercent": 1.0, "applyTo": "all"}},
        ]
        one_step = [{"factorType": "interest_rate", "config": {"changePercent": 2.0, "applyTo": "all"}}]

        stacked = project_month(base_portfolio, two_steps, 0).projection
        single = project_month(base_portfolio, one_step, 0).projection

        assert stacked.total_interest == pytest.approx(single.total_interest)

    def test_vacancy_factor(self, base_portfolio):
        factors = [{"factorType": "vacancy", "config": {"propertyId": "prop-1", "months": 3}, "startMonth": 0}]

        month = project_month(base_portfolio, factors, 1).projection

        assert month.total_income == 0
        assert month.vacant_properties == ("prop-1",)

    def test_inactive_factor_is_ignored(self, base_portfolio):
        factors = [{"factorType": "rent_change", "config": {"changePercent": 50}, "startMonth": 6}]

        assert project_month(base_portfolio, factors, 5).projection.total_income == 2000

    def test_combines_multiple_factors(self, base_portfolio):
        factors = [
            {"factorType": "interest_rate", "config": {"changePercent": 2.0, "applyTo": "all"}, "startMonth": 0},
            {"factorType": "rent_change", "config": {"changePercent": -10}, "startMonth": 0},
        ]

        month = project_month(base_portfolio, factors, 0).projection

        assert month.total_income == pytest.approx(1800)

    def test_rent_change_after_vacancy_stays_zero(self, base_portfolio):
        factors = [
            {"factorType": "vacancy", "config": {"propertyId": "prop-1", "months": 2}},
            {"factorType": "rent_change", "config": {"changePercent": 10}},
        ]

        assert project_month(base_portfolio, factors, 0).projection.total_income == 0
        assert project_month(base_portfolio, factors, 2).projection.total_income == pytest.approx(2200)

    def test_expense_change_by_category(self):
        portfolio = PortfolioState(
            properties=[
                PropertyState(
                    id="p1",
                    monthly_rent=2000,
                    monthly_expenses=500,
                    expenses_by_category={"insurance": 200, "repairs": 300},
                )
            ]
        )
        factors = [{"factorType": "expense_change", "config": {"changePercent": 50, "category": "repairs"}}]

        month = project_month(portfolio, factors, 0).projection

        assert month.total_expenses == pytest.approx(650)

    def test_zero_rent_and_zero_balance_participate(self):
        portfolio = PortfolioState(
            properties=[PropertyState(id="p1", monthly_rent=0, monthly_expenses=0)],
            loans=[LoanState(id="l1", property_id="p1", current_balance=0, interest_rate=6.0, repayment_amount=0)],
        )

        month = project_month(portfolio, [], 0).projection

        assert month.total_income == 0
        assert month.total_expenses == 0
        assert month.net_cash_flow == 0

    def test_sale_in_month_books_capital_event(self, base_portfolio):
        factors = [
            {
                "factorType": "sell_property",
                "config": {"propertyId": "prop-1", "salePrice": 650000, "sellingCosts": 15000, "settlementMonth": 2},
            }
        ]

        step = project_month(base_portfolio, factors, 2)

        assert step.projection.total_income == 0
        assert step.projection.total_expenses == 0
        assert step.projection.capital_cash_flow == pytest.approx(235000)
        assert step.state.properties == ()
        assert len(step.events) == 1
        assert step.events[0].factor_type == "sell_property"
        assert step.events[0].loan_payoff == 400000

    def test_double_sale_is_idempotent(self, base_portfolio):
        sell = {"propertyId": "prop-1", "salePrice": 650000, "sellingCosts": 15000, "settlementMonth": 0}
        factors = [
            {"factorType": "sell_property", "config": sell},
            {"factorType": "sell_property", "config": sell},
        ]

        step = project_month(base_portfolio, factors, 0)

        assert len(step.events) == 1
        assert step.projection.capital_cash_flow == pytest.approx(235000)
