"""
Tests for business income tax: PIT for sole proprietors and partnerships,
and routing by entity type.
"""

from decimal import Decimal

import pytest

from taxengine.core.regime import get_regime
from taxengine.core.tax_rules.business import (
    BusinessExpenses,
    BusinessIncome,
    BusinessPITCalculator,
    BusinessTaxCalculator,
    EntityType,
)
from taxengine.core.tax_rules.cit import CapitalAsset, TaxAdjustments
from taxengine.core.tax_rules.pit import StatutoryDeductions


@pytest.fixture
def calc():
    return BusinessPITCalculator()


@pytest.fixture
def router():
    return BusinessTaxCalculator()


@pytest.fixture
def regime():
    return get_regime(2026)


@pytest.fixture
def trading_year():
    income = BusinessIncome(sales_revenue=8_000_000, service_fees=2_000_000)
    expenses = BusinessExpenses(cost_of_goods_sold=4_000_000, rent_premises=1_000_000, personal_expenses=500_000)
    return income, expenses


class TestBusinessPIT:
    def test_profit_taxed_on_pit_bands(self, calc, regime, trading_year):
        income, expenses = trading_year
        result = calc.calculate(income, expenses, regime)
        assert result.gross_business_income == 10_000_000
        assert result.allowable_expenses == 5_000_000
        assert result.adjusted_profit == 5_000_000
        assert result.total_tax == 690_000
        assert result.effective_rate == Decimal("0.069")

    def test_disallowed_expenses_tracked_not_deducted(self, calc, regime, trading_year):
        income, expenses = trading_year
        result = calc.calculate(income, expenses, regime)
        assert result.disallowed_expenses == 500_000
        assert result.adjusted_profit == income.total - expenses.allowable

    def test_capital_allowance_reduces_profit(self, calc, regime, trading_year):
        income, expenses = trading_year
        assets = [CapitalAsset("Generator", "plant_machinery", 4_000_000, 2026)]
        result = calc.calculate(income, expenses, regime, assets=assets)
        assert result.capital_allowances == 2_000_000
        assert result.adjusted_profit == 3_000_000
        assert result.total_tax == 330_000

    def test_capital_allowance_restricted_to_two_thirds(self, calc, regime, trading_year):
        income, expenses = trading_year
        assets = [CapitalAsset("Plant", "plant_machinery", 20_000_000, 2026)]
        result = calc.calculate(income, expenses, regime, assets=assets)
        assert result.capital_allowances == Decimal("3333333.33")
        assert result.capital_allowance_carried_forward == Decimal("6666666.67")
        assert result.adjusted_profit == Decimal("1666666.67")
        assert result.total_tax == 130_000

    def test_personal_reliefs_apply(self, calc, regime):
        income = BusinessIncome(sales_revenue=5_000_000)
        reliefs = StatutoryDeductions(pension_contribution=400_000, annual_rent_paid=1_000_000)
        result = calc.calculate(income, BusinessExpenses(), regime, reliefs=reliefs)
        assert result.personal_reliefs == 600_000
        assert result.taxable_income == 4_400_000
        # 2.2M at 15% + 1.4M at 18%
        assert result.total_tax == 582_000

    def test_small_business_below_threshold(self, calc, regime):
        income = BusinessIncome(sales_revenue=1_000_000)
        result = calc.calculate(income, BusinessExpenses(utilities=300_000), regime)
        assert result.is_exempt is True
        assert result.total_tax == 0
        assert result.exemption_reason is not None

    def test_loss_pays_nothing(self, calc, regime):
        income = BusinessIncome(sales_revenue=1_000_000)
        result = calc.calculate(income, BusinessExpenses(cost_of_goods_sold=3_000_000), regime)
        assert result.adjusted_profit == 0
        assert result.total_tax == 0

    def test_company_rejected(self, calc, regime, trading_year):
        income, expenses = trading_year
        with pytest.raises(ValueError):
            calc.calculate(income, expenses, regime, entity_type="limited_company")


class TestEntityRouting:
    def test_sole_proprietor_pays_pit_to_state(self, router, regime, trading_year):
        income, expenses = trading_year
        result = router.calculate("sole_proprietorship", income, expenses, regime)
        assert result.taxation_type == "PIT"
        assert result.tax_authority == "SIRS"
        assert result.total_tax == 690_000
        assert result.cit is None

    def test_partnership_pays_pit(self, router, regime, trading_year):
        income, expenses = trading_year
        result = router.calculate(EntityType.PARTNERSHIP, income, expenses, regime)
        assert result.pit.entity_type == EntityType.PARTNERSHIP
        assert result.tax_authority == "SIRS"

    def test_company_pays_cit(self, router, regime):
        income = BusinessIncome(sales_revenue=50_000_000)
        expenses = BusinessExpenses(cost_of_goods_sold=20_000_000, staff_salaries=10_000_000)
        result = router.calculate("limited_company", income, expenses, regime)
        assert result.taxation_type == "CIT"
        assert result.tax_authority == "NRS"
        assert result.cit.company_size == "medium"
        assert result.cit.assessable_profit == 20_000_000
        # 4M CIT + 800K development levy
        assert result.total_tax == 4_800_000
        assert result.pit is None

    def test_company_adjustments(self, router, regime):
        income = BusinessIncome(sales_revenue=50_000_000)
        expenses = BusinessExpenses(cost_of_goods_sold=30_000_000)
        adjustments = TaxAdjustments(depreciation=2_000_000, exempt_income=1_000_000)
        result = router.calculate("limited_company", income, expenses, regime, adjustments=adjustments)
        assert result.cit.assessable_profit == 21_000_000
        assert result.cit.add_backs == 2_000_000
        assert result.total_tax == Decimal("5040000")

    def test_declared_turnover_decides_band(self, router, regime):
        income = BusinessIncome(sales_revenue=50_000_000)
        result = router.calculate(
            "limited_company", income, BusinessExpenses(), regime, annual_turnover=20_000_000
        )
        assert result.cit.company_size == "small"
        assert result.total_tax == 0

    def test_unknown_entity_type(self, router, regime, trading_year):
        income, expenses = trading_year
        with pytest.raises(ValueError):
            router.calculate("cooperative", income, expenses, regime)
