"""
Personal Income Tax (PIT) Computation Engine
Based on Nigeria Tax Act 2025, Chapter 2, Part IX and the Fourth Schedule.

Computation order:
  1. Exempt income is removed first: gifts, approved pension benefits and
     loss-of-employment compensation up to the regime cap.
  2. Eligible deductions (Section 30):
       - Pension Reform Act contributions
       - National Health Insurance Scheme (NHIS) contributions
       - National Housing Fund (NHF) contributions
       - Life insurance premiums (self or spouse)
       - Interest on owner-occupied residential house loans
       - Rent relief: a share of annual rent paid, capped
  3. Taxable income at or below the exemption threshold pays nothing.
  4. Otherwise the progressive bands apply from the first naira.

All arithmetic is Decimal; money is quantized to the kobo per bracket row
so that the rows always add up to the gross tax.
"""

from dataclasses import dataclass, field, fields
from decimal import Decimal

from taxengine.core.amounts import ZERO, money, non_negative, rate
from taxengine.core.regime import TaxBracket, TaxRegime


@dataclass
class StatutoryDeductions:
    pension_contribution: Decimal = ZERO
    nhis_contribution: Decimal = ZERO
    nhf_contribution: Decimal = ZERO
    life_insurance_premium: Decimal = ZERO
    housing_loan_interest: Decimal = ZERO
    annual_rent_paid: Decimal = ZERO
    employment_compensation: Decimal = ZERO
    gifts_received: Decimal = ZERO
    pension_benefits_received: Decimal = ZERO

    def __post_init__(self):
        for f in fields(self):
            setattr(self, f.name, non_negative(getattr(self, f.name), f.name))

    @classmethod
    def from_mapping(cls, data: dict | None) -> "StatutoryDeductions":
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known and v is not None})

    def replace(self, **changes) -> "StatutoryDeductions":
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values.update(changes)
        return StatutoryDeductions(**values)

    def rent_relief(self, regime: TaxRegime) -> Decimal:
        return min(self.annual_rent_paid * regime.rent_relief_rate, regime.rent_relief_cap)

    def exempt_income(self, regime: TaxRegime) -> Decimal:
        exempt_compensation = min(self.employment_compensation, regime.employment_compensation_exempt_cap)
        return self.gifts_received + self.pension_benefits_received + exempt_compensation

    def breakdown(self, regime: TaxRegime) -> dict[str, Decimal]:
        return {
            "pension": self.pension_contribution,
            "nhis": self.nhis_contribution,
            "nhf": self.nhf_contribution,
            "life_insurance": self.life_insurance_premium,
            "housing_loan_interest": self.housing_loan_interest,
            "rent_relief": money(self.rent_relief(regime)),
        }

    def total(self, regime: TaxRegime) -> Decimal:
        return sum(self.breakdown(regime).values(), ZERO)


@dataclass
class BracketTax:
    bracket: TaxBracket
    income_in_bracket: Decimal
    tax_in_bracket: Decimal


@dataclass
class TaxComputationResult:
    tax_year: int
    gross_income: Decimal
    exempt_income: Decimal
    taxable_gross_income: Decimal
    total_deductions: Decimal
    deduction_breakdown: dict
    taxable_income: Decimal
    is_exempt: bool
    exemption_reason: str | None
    gross_tax: Decimal
    net_tax_payable: Decimal
    effective_rate: Decimal
    tax_by_bracket: list[BracketTax] = field(default_factory=list)


class TaxComputationEngine:
    """
    Deterministic progressive income tax engine.
    The regime is passed on every call so different tax years can be
    computed side by side.
    """

    def compute(
        self,
        gross_income,
        deductions: StatutoryDeductions | None,
        regime: TaxRegime,
    ) -> TaxComputationResult:
        gross = non_negative(gross_income, "gross_income")
        if deductions is None:
            deductions = StatutoryDeductions()

        exempt_income = deductions.exempt_income(regime)
        taxable_gross = max(gross - exempt_income, ZERO)

        deduction_breakdown = deductions.breakdown(regime)
        total_deductions = sum(deduction_breakdown.values(), ZERO)
        taxable_income = money(max(taxable_gross - total_deductions, ZERO))

        is_exempt = taxable_income <= regime.exemption_threshold
        tax_by_bracket = self._calculate_brackets(taxable_income, regime.brackets, apply_rates=not is_exempt)
        gross_tax = sum((row.tax_in_bracket for row in tax_by_bracket), ZERO)

        effective_rate = rate(gross_tax / taxable_income) if taxable_income > 0 else ZERO

        exemption_reason = None
        if is_exempt:
            exemption_reason = (
                f"Annual taxable income (₦{taxable_income:,.2f}) does not exceed the "
                f"₦{regime.exemption_threshold:,.2f} exemption threshold"
            )

        return TaxComputationResult(
            tax_year=regime.tax_year,
            gross_income=money(gross),
            exempt_income=money(exempt_income),
            taxable_gross_income=money(taxable_gross),
            total_deductions=money(total_deductions),
            deduction_breakdown=deduction_breakdown,
            taxable_income=taxable_income,
            is_exempt=is_exempt,
            exemption_reason=exemption_reason,
            gross_tax=gross_tax,
            net_tax_payable=ZERO if is_exempt else gross_tax,
            effective_rate=effective_rate,
            tax_by_bracket=tax_by_bracket,
        )

    def _calculate_brackets(
        self,
        taxable_income: Decimal,
        brackets: tuple[TaxBracket, ...],
        apply_rates: bool = True,
    ) -> list[BracketTax]:
        breakdown = []
        remaining = taxable_income

        for bracket in brackets:
            if remaining <= 0:
                break
            if bracket.width == 0:
                continue

            income_in_bracket = remaining if bracket.is_unbounded else min(remaining, bracket.width)
            # Exempt incomes are still allocated so the rows add up to taxable income
            tax_in_bracket = money(income_in_bracket * bracket.rate) if apply_rates else ZERO

            breakdown.append(
                BracketTax(
                    bracket=bracket,
                    income_in_bracket=income_in_bracket,
                    tax_in_bracket=tax_in_bracket,
                )
            )
            remaining -= income_in_bracket

        return breakdown

    def estimate_monthly_paye(
        self,
        monthly_gross,
        deductions: StatutoryDeductions | None,
        regime: TaxRegime,
    ) -> dict:
        annual_gross = non_negative(monthly_gross, "monthly_gross") * 12
        result = self.compute(annual_gross, deductions, regime)

        return {
            "monthly_gross": money(annual_gross / 12),
            "annual_gross": money(annual_gross),
            "annual_tax": result.net_tax_payable,
            "monthly_paye": money(result.net_tax_payable / 12),
            "effective_rate": result.effective_rate,
        }
