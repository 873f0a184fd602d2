"""
Tests for the Company Income Tax (CIT) Calculator.
Validates turnover bands, development levy and capital allowances.
"""

from decimal import Decimal

import pytest

from taxengine.core.exceptions import InvalidInputError
from taxengine.core.regime import get_regime
from taxengine.core.tax_rules.cit import CapitalAsset, CITCalculator, TaxAdjustments


@pytest.fixture
def calc():
    return CITCalculator()


@pytest.fixture
def regime():
    return get_regime(2026)


class TestCompanyClassification:
    @pytest.mark.parametrize(
        "turnover, expected",
        [
            (0, "small"),
            (20_000_000, "small"),
            (25_000_000, "small"),
            (25_000_001, "medium"),
            (100_000_000, "medium"),
            (150_000_000, "upper_medium"),
            (300_000_000, "large"),
        ],
    )
    def test_band(self, calc, regime, turnover, expected):
        assert calc.classify_company(turnover, regime).category == expected


class TestCITCalculation:
    def test_small_company_exempt(self, calc, regime):
        result = calc.calculate(10_000_000, regime, annual_turnover=20_000_000)
        assert result.company_size == "small"
        assert result.cit_liability == 0
        assert result.development_levy == 0
        assert result.is_exempt is True
        assert result.filing_required is True

    def test_medium_company(self, calc, regime):
        # 20M at 20% = 4M, levy 4% of 20M = 800K
        result = calc.calculate(20_000_000, regime, annual_turnover=50_000_000)
        assert result.cit_rate == Decimal("0.20")
        assert result.cit_liability == 4_000_000
        assert result.development_levy == 800_000
        assert result.total_tax_liability == 4_800_000
        assert result.effective_rate == Decimal("0.24")

    def test_large_company(self, calc, regime):
        result = calc.calculate(100_000_000, regime, annual_turnover=500_000_000)
        assert result.company_size == "large"
        assert result.cit_liability == 30_000_000

    def test_allowable_deductions(self, calc, regime):
        result = calc.calculate(20_000_000, regime, allowable_deductions=5_000_000, annual_turnover=50_000_000)
        assert result.assessable_profit == 15_000_000
        assert result.cit_liability == 3_000_000
        assert result.development_levy == 600_000

    def test_zero_profit(self, calc, regime):
        result = calc.calculate(0, regime, annual_turnover=50_000_000)
        assert result.total_tax_liability == 0
        assert result.effective_rate == 0

    def test_negative_profit_raises(self, calc, regime):
        with pytest.raises(InvalidInputError):
            calc.calculate(-1, regime)


class TestCapitalAllowances:
    def test_initial_allowance_in_year_of_acquisition(self, calc, regime):
        asset = CapitalAsset("Generator", "plant_machinery", 10_000_000, 2026)
        line = calc.asset_allowance(asset, 2026, regime)
        assert line.initial_allowance == 5_000_000
        assert line.annual_allowance == 0
        assert line.written_down_value == 5_000_000

    def test_annual_allowance_after_acquisition(self, calc, regime):
        asset = CapitalAsset("Generator", "plant_machinery", 10_000_000, 2025)
        line = calc.asset_allowance(asset, 2026, regime)
        assert line.initial_allowance == 0
        assert line.annual_allowance == 1_250_000
        assert line.written_down_value == 3_750_000

    def test_unknown_category_uses_other_rates(self, calc, regime):
        asset = CapitalAsset("Signage", "signage", 1_000_000, 2026)
        assert calc.asset_allowance(asset, 2026, regime).initial_allowance == 250_000

    def test_allowance_reduces_taxable_profit(self, calc, regime):
        assets = [CapitalAsset("Generator", "plant_machinery", 10_000_000, 2026)]
        result = calc.calculate(20_000_000, regime, annual_turnover=50_000_000, assets=assets)
        assert result.capital_allowances == 5_000_000
        assert result.taxable_profit == 15_000_000
        assert result.cit_liability == 3_000_000
        # Levy is charged on assessable profit, before allowances
        assert result.development_levy == 800_000

    def test_two_thirds_restriction(self, calc, regime):
        assets = [CapitalAsset("Plant", "plant_machinery", 40_000_000, 2026)]
        result = calc.capital_allowances(assets, Decimal(15_000_000), 2026, regime)
        assert result.total_allowance == 20_000_000
        assert result.max_allowable == 10_000_000
        assert result.allowed_amount == 10_000_000
        assert result.carried_forward == 10_000_000
        assert result.is_restricted is True

    def test_loss_carries_everything_forward(self, calc, regime):
        assets = [CapitalAsset("Plant", "plant_machinery", 4_000_000, 2026)]
        result = calc.capital_allowances(assets, Decimal(0), 2026, regime)
        assert result.allowed_amount == 0
        assert result.carried_forward == 2_000_000


class TestTaxAdjustments:
    def test_add_backs_raise_assessable_profit(self, calc, regime):
        adjustments = TaxAdjustments(depreciation=1_000_000, provisions=500_000, unapproved_donations=500_000)
        result = calc.calculate(18_000_000, regime, annual_turnover=50_000_000, adjustments=adjustments)
        assert result.add_backs == 2_000_000
        assert result.assessable_profit == 20_000_000
        assert result.total_tax_liability == 4_800_000

    def test_exempt_income_is_taken_out(self, calc, regime):
        adjustments = TaxAdjustments(non_deductible_expenses=1_000_000, exempt_income=6_000_000)
        result = calc.calculate(20_000_000, regime, annual_turnover=50_000_000, adjustments=adjustments)
        assert result.exempt_income_deducted == 6_000_000
        assert result.assessable_profit == 15_000_000
        assert result.cit_liability == 3_000_000

    def test_adjusted_loss_is_zero(self, calc):
        assert calc.apply_tax_adjustments(Decimal(-5_000_000), TaxAdjustments(depreciation=1_000_000)) == 0

    def test_no_adjustments_leaves_profit(self, calc, regime):
        result = calc.calculate(20_000_000, regime, annual_turnover=50_000_000, adjustments=TaxAdjustments())
        assert result.assessable_profit == 20_000_000
        assert result.add_backs == 0
