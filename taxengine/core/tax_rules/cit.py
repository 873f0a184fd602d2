"""
Company Income Tax (CIT) Calculator
Based on Nigeria Tax Act 2025, Chapter 2, Part IX

Turnover bands (from the regime):
  - Small (≤ ₦25M): 0%
  - Medium (₦25M to ₦100M): 20%
  - Upper-medium and large (> ₦100M): 30%

Development Levy:
  - 4% on assessable profits of all companies except small companies

Tax adjustments:
  - Depreciation, non-deductible expenses, provisions and unapproved
    donations are added back; exempt income is taken out

Capital allowances:
  - Initial allowance in the year of acquisition, annual allowance after
  - Claim restricted to 2/3 of assessable profit; the excess carries forward
"""

from dataclasses import dataclass, field, fields
from decimal import Decimal

from taxengine.core.amounts import ZERO, money, non_negative, rate, to_decimal
from taxengine.core.exceptions import InvalidInputError
from taxengine.core.regime import CITBand, TaxRegime


@dataclass
class CapitalAsset:
    description: str
    category: str
    cost: Decimal
    year_acquired: int

    def __post_init__(self):
        self.cost = non_negative(self.cost, "asset.cost")


@dataclass
class TaxAdjustments:
    """Adjustments from accounting profit to assessable profit."""

    depreciation: Decimal = ZERO
    non_deductible_expenses: Decimal = ZERO
    provisions: Decimal = ZERO
    unapproved_donations: Decimal = ZERO
    exempt_income: Decimal = ZERO

    def __post_init__(self):
        for f in fields(self):
            setattr(self, f.name, non_negative(getattr(self, f.name), f.name))

    @property
    def add_backs(self) -> Decimal:
        return self.depreciation + self.non_deductible_expenses + self.provisions + self.unapproved_donations


@dataclass
class CapitalAllowanceLine:
    description: str
    category: str
    cost: Decimal
    initial_allowance: Decimal
    annual_allowance: Decimal
    total_allowance: Decimal
    written_down_value: Decimal


@dataclass
class CapitalAllowanceResult:
    total_allowance: Decimal
    allowed_amount: Decimal
    max_allowable: Decimal
    carried_forward: Decimal
    is_restricted: bool
    lines: list[CapitalAllowanceLine] = field(default_factory=list)


@dataclass
class CITResult:
    tax_year: int
    company_size: str
    annual_turnover: Decimal
    gross_profit: Decimal
    allowable_deductions: Decimal
    assessable_profit: Decimal
    capital_allowances: Decimal
    capital_allowance_carried_forward: Decimal
    taxable_profit: Decimal
    cit_rate: Decimal
    cit_liability: Decimal
    development_levy: Decimal
    total_tax_liability: Decimal
    effective_rate: Decimal
    is_exempt: bool
    add_backs: Decimal = ZERO
    exempt_income_deducted: Decimal = ZERO
    filing_required: bool = True
    allowance_lines: list[CapitalAllowanceLine] = field(default_factory=list)


class CITCalculator:
    """
    Deterministic Company Income Tax calculator.
    Filing is always required, even for small companies taxed at 0%.
    """

    def classify_company(self, annual_turnover, regime: TaxRegime) -> CITBand:
        turnover = non_negative(annual_turnover, "annual_turnover")
        for band in regime.cit_bands:
            # Bands are lower-exclusive, upper-inclusive: exactly ₦25M is still small
            above_floor = turnover > band.min_turnover or band.min_turnover == 0
            within_ceiling = band.max_turnover is None or turnover <= band.max_turnover
            if above_floor and within_ceiling:
                return band
        raise InvalidInputError(f"No CIT band covers turnover {turnover}", field="annual_turnover")

    def asset_allowance(self, asset: CapitalAsset, tax_year: int, regime: TaxRegime) -> CapitalAllowanceLine:
        rates = regime.capital_allowance_rates.get(asset.category) or regime.capital_allowance_rates.get("other")
        if rates is None:
            return CapitalAllowanceLine(asset.description, asset.category, asset.cost, ZERO, ZERO, ZERO, asset.cost)

        years_held = tax_year - asset.year_acquired
        initial_amount = asset.cost * rates.initial_rate
        yearly_amount = (asset.cost - initial_amount) * rates.annual_rate

        initial_allowance = ZERO
        annual_allowance = ZERO
        if years_held < 0:
            written_down = asset.cost
        elif years_held == 0:
            initial_allowance = initial_amount
            written_down = asset.cost - initial_amount
        else:
            # Allowances already claimed in the years between acquisition and now
            written_down = max(asset.cost - initial_amount - yearly_amount * (years_held - 1), ZERO)
            annual_allowance = min(yearly_amount, written_down)
            written_down -= annual_allowance

        return CapitalAllowanceLine(
            description=asset.description,
            category=asset.category,
            cost=money(asset.cost),
            initial_allowance=money(initial_allowance),
            annual_allowance=money(annual_allowance),
            total_allowance=money(initial_allowance + annual_allowance),
            written_down_value=money(written_down),
        )

    def capital_allowances(
        self,
        assets: list[CapitalAsset],
        assessable_profit: Decimal,
        tax_year: int,
        regime: TaxRegime,
    ) -> CapitalAllowanceResult:
        lines = [self.asset_allowance(asset, tax_year, regime) for asset in assets]
        total = sum((line.total_allowance for line in lines), ZERO)

        if assessable_profit <= 0:
            return CapitalAllowanceResult(
                total_allowance=total,
                allowed_amount=ZERO,
                max_allowable=ZERO,
                carried_forward=total,
                is_restricted=total > 0,
                lines=lines,
            )

        max_allowable = money(assessable_profit * regime.capital_allowance_restriction)
        allowed = min(total, max_allowable)
        return CapitalAllowanceResult(
            total_allowance=total,
            allowed_amount=allowed,
            max_allowable=max_allowable,
            carried_forward=total - allowed,
            is_restricted=total > allowed,
            lines=lines,
        )

    def apply_tax_adjustments(self, accounting_profit: Decimal, adjustments: TaxAdjustments) -> Decimal:
        """Add back disallowed charges and remove exempt income; a loss gives zero."""
        return max(accounting_profit + adjustments.add_backs - adjustments.exempt_income, ZERO)

    def calculate(
        self,
        gross_profit,
        regime: TaxRegime,
        allowable_deductions=0,
        annual_turnover=0,
        assets: list[CapitalAsset] | None = None,
        adjustments: TaxAdjustments | None = None,
    ) -> CITResult:
        profit = to_decimal(gross_profit, "gross_profit")
        if profit < 0:
            raise InvalidInputError("Gross profit cannot be negative", field="gross_profit")
        deductions = non_negative(allowable_deductions, "allowable_deductions")
        turnover = non_negative(annual_turnover, "annual_turnover")

        band = self.classify_company(turnover, regime)
        adjustments = adjustments or TaxAdjustments()
        assessable_profit = self.apply_tax_adjustments(profit - deductions, adjustments)

        allowances = self.capital_allowances(assets or [], assessable_profit, regime.tax_year, regime)
        taxable_profit = max(assessable_profit - allowances.allowed_amount, ZERO)

        is_exempt = band.rate == 0
        cit_liability = money(taxable_profit * band.rate)
        development_levy = ZERO if is_exempt else money(assessable_profit * regime.development_levy_rate)
        total_tax = cit_liability + development_levy

        effective_rate = rate(total_tax / assessable_profit) if assessable_profit > 0 else ZERO

        return CITResult(
            tax_year=regime.tax_year,
            company_size=band.category,
            annual_turnover=money(turnover),
            gross_profit=money(profit),
            allowable_deductions=money(deductions),
            assessable_profit=money(assessable_profit),
            capital_allowances=allowances.allowed_amount,
            capital_allowance_carried_forward=allowances.carried_forward,
            taxable_profit=money(taxable_profit),
            cit_rate=band.rate,
            cit_liability=cit_liability,
            development_levy=development_levy,
            total_tax_liability=total_tax,
            effective_rate=effective_rate,
            is_exempt=is_exempt,
            add_backs=money(adjustments.add_backs),
            exempt_income_deducted=money(adjustments.exempt_income),
            allowance_lines=allowances.lines,
        )
