"""
Business Income Tax
Based on Nigeria Tax Act 2025

Sole proprietors and partnerships pay Personal Income Tax on business
profit to the State Internal Revenue Service:
  1. Gross business income (sales, fees, commissions, digital income,
     exchange gains, other receipts)
  2. Less allowable expenses (wholly, exclusively, necessarily and
     reasonably incurred). Personal spending, capital expenditure, fines
     and non-business donations are tracked but never deducted.
  3. Less capital allowances, restricted to 2/3 of the profit
  4. Less personal reliefs, then the PIT bands and exemption threshold

Limited companies pay Companies Income Tax to the Nigeria Revenue Service.
"""

from dataclasses import dataclass, field, fields
from decimal import Decimal
from enum import Enum

from taxengine.core.amounts import ZERO, money, non_negative, rate
from taxengine.core.regime import TaxRegime
from taxengine.core.tax_rules.cit import (
    CapitalAllowanceLine,
    CapitalAsset,
    CITCalculator,
    CITResult,
    TaxAdjustments,
)
from taxengine.core.tax_rules.pit import BracketTax, StatutoryDeductions, TaxComputationEngine


class EntityType(str, Enum):
    SOLE_PROPRIETORSHIP = "sole_proprietorship"
    PARTNERSHIP = "partnership"
    LIMITED_COMPANY = "limited_company"


TAX_AUTHORITIES = {
    EntityType.SOLE_PROPRIETORSHIP: "SIRS",
    EntityType.PARTNERSHIP: "SIRS",
    EntityType.LIMITED_COMPANY: "NRS",
}


class _Amounts:
    def __post_init__(self):
        for f in fields(self):
            setattr(self, f.name, non_negative(getattr(self, f.name), f.name))


@dataclass
class BusinessIncome(_Amounts):
    sales_revenue: Decimal = ZERO
    service_fees: Decimal = ZERO
    commissions: Decimal = ZERO
    digital_income: Decimal = ZERO
    exchange_gains: Decimal = ZERO
    other_receipts: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return sum((getattr(self, f.name) for f in fields(self)), ZERO)


ALLOWABLE_EXPENSES = (
    "cost_of_goods_sold",
    "rent_premises",
    "utilities",
    "transport",
    "staff_salaries",
    "repairs_maintenance",
    "professional_fees",
    "internet_software",
    "marketing_advertising",
    "other_allowable",
)

DISALLOWED_EXPENSES = (
    "personal_expenses",
    "capital_expenditure",
    "fines_penalties",
    "non_business_donations",
)


@dataclass
class BusinessExpenses(_Amounts):
    cost_of_goods_sold: Decimal = ZERO
    rent_premises: Decimal = ZERO
    utilities: Decimal = ZERO
    transport: Decimal = ZERO
    staff_salaries: Decimal = ZERO
    repairs_maintenance: Decimal = ZERO
    professional_fees: Decimal = ZERO
    internet_software: Decimal = ZERO
    marketing_advertising: Decimal = ZERO
    other_allowable: Decimal = ZERO
    personal_expenses: Decimal = ZERO
    capital_expenditure: Decimal = ZERO
    fines_penalties: Decimal = ZERO
    non_business_donations: Decimal = ZERO

    @property
    def allowable(self) -> Decimal:
        return sum((getattr(self, name) for name in ALLOWABLE_EXPENSES), ZERO)

    @property
    def disallowed(self) -> Decimal:
        return sum((getattr(self, name) for name in DISALLOWED_EXPENSES), ZERO)


@dataclass
class BusinessPITResult:
    tax_year: int
    entity_type: EntityType
    gross_business_income: Decimal
    allowable_expenses: Decimal
    disallowed_expenses: Decimal
    capital_allowances: Decimal
    capital_allowance_carried_forward: Decimal
    adjusted_profit: Decimal
    personal_reliefs: Decimal
    taxable_income: Decimal
    is_exempt: bool
    exemption_reason: str | None
    total_tax: Decimal
    effective_rate: Decimal
    tax_by_bracket: list[BracketTax] = field(default_factory=list)
    allowance_lines: list[CapitalAllowanceLine] = field(default_factory=list)


@dataclass
class BusinessTaxResult:
    entity_type: EntityType
    tax_authority: str
    taxation_type: str
    total_tax: Decimal
    pit: BusinessPITResult | None = None
    cit: CITResult | None = None


class BusinessPITCalculator:
    """PIT on the profit of an unincorporated business."""

    def __init__(
        self,
        engine: TaxComputationEngine | None = None,
        cit_calculator: CITCalculator | None = None,
    ):
        self.engine = engine or TaxComputationEngine()
        self.cit_calculator = cit_calculator or CITCalculator()

    def calculate(
        self,
        income: BusinessIncome,
        expenses: BusinessExpenses,
        regime: TaxRegime,
        assets: list[CapitalAsset] | None = None,
        reliefs: StatutoryDeductions | None = None,
        entity_type: EntityType | str = EntityType.SOLE_PROPRIETORSHIP,
    ) -> BusinessPITResult:
        entity_type = EntityType(entity_type)
        if entity_type == EntityType.LIMITED_COMPANY:
            raise ValueError("Limited companies pay CIT, not business PIT")

        gross = income.total
        preliminary_profit = gross - expenses.allowable

        allowances = self.cit_calculator.capital_allowances(
            assets or [], preliminary_profit, regime.tax_year, regime
        )
        adjusted_profit = max(preliminary_profit - allowances.allowed_amount, ZERO)

        computation = self.engine.compute(adjusted_profit, reliefs, regime)

        return BusinessPITResult(
            tax_year=regime.tax_year,
            entity_type=entity_type,
            gross_business_income=money(gross),
            allowable_expenses=money(expenses.allowable),
            disallowed_expenses=money(expenses.disallowed),
            capital_allowances=allowances.allowed_amount,
            capital_allowance_carried_forward=allowances.carried_forward,
            adjusted_profit=money(adjusted_profit),
            personal_reliefs=computation.total_deductions,
            taxable_income=computation.taxable_income,
            is_exempt=computation.is_exempt,
            exemption_reason=computation.exemption_reason,
            total_tax=computation.net_tax_payable,
            # Measured against gross business income, not taxable income
            effective_rate=rate(computation.net_tax_payable / gross) if gross > 0 else ZERO,
            tax_by_bracket=computation.tax_by_bracket,
            allowance_lines=allowances.lines,
        )


class BusinessTaxCalculator:
    """Routes a business to PIT or CIT by its entity type."""

    def __init__(
        self,
        pit_calculator: BusinessPITCalculator | None = None,
        cit_calculator: CITCalculator | None = None,
    ):
        self.cit_calculator = cit_calculator or CITCalculator()
        self.pit_calculator = pit_calculator or BusinessPITCalculator(cit_calculator=self.cit_calculator)

    def calculate(
        self,
        entity_type: EntityType | str,
        income: BusinessIncome,
        expenses: BusinessExpenses,
        regime: TaxRegime,
        assets: list[CapitalAsset] | None = None,
        reliefs: StatutoryDeductions | None = None,
        annual_turnover=None,
        adjustments: TaxAdjustments | None = None,
    ) -> BusinessTaxResult:
        entity_type = EntityType(entity_type)

        if entity_type != EntityType.LIMITED_COMPANY:
            result = self.pit_calculator.calculate(income, expenses, regime, assets, reliefs, entity_type)
            return BusinessTaxResult(
                entity_type=entity_type,
                tax_authority=TAX_AUTHORITIES[entity_type],
                taxation_type="PIT",
                total_tax=result.total_tax,
                pit=result,
            )

        # Turnover defaults to the year's gross business income
        turnover = income.total if annual_turnover is None else annual_turnover
        result = self.cit_calculator.calculate(
            gross_profit=income.total,
            regime=regime,
            allowable_deductions=expenses.allowable,
            annual_turnover=turnover,
            assets=assets,
            adjustments=adjustments,
        )
        return BusinessTaxResult(
            entity_type=entity_type,
            tax_authority=TAX_AUTHORITIES[entity_type],
            taxation_type="CIT",
            total_tax=result.total_tax_liability,
            cit=result,
        )
