"""
Scenario Modeler ("What-If" Engine)
Compares the tax outcome of two situations side by side.

Examples:
  - "What if I earn ₦5M more next year?"
  - "What if I claim all my deductions?"
  - "What if I register as a company instead of filing as an individual?"
  - "What would the same income cost under next year's rules?"
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from taxengine.core.amounts import ZERO, money, non_negative, rate
from taxengine.core.exceptions import InvalidInputError
from taxengine.core.regime import TaxRegime
from taxengine.core.tax_rules.cit import CITCalculator
from taxengine.core.tax_rules.pit import StatutoryDeductions, TaxComputationEngine


class ScenarioType(str, Enum):
    INCOME_CHANGE = "income_change"
    DEDUCTION_IMPACT = "deduction_impact"
    INDIVIDUAL_VS_COMPANY = "individual_vs_company"
    REGIME_CHANGE = "regime_change"


@dataclass
class ScenarioComparison:
    label: str
    current_tax: Decimal
    projected_tax: Decimal
    difference: Decimal
    relative_change: Decimal
    current_effective_rate: Decimal
    projected_effective_rate: Decimal
    insights: list[str] = field(default_factory=list)


@dataclass
class ScenarioInput:
    scenario_type: ScenarioType
    current_gross_income: Decimal
    current_deductions: StatutoryDeductions | None = None
    projected_gross_income: Decimal | None = None
    projected_deductions: StatutoryDeductions | None = None
    business_expenses: Decimal = ZERO
    projected_regime: TaxRegime | None = None


def _relative_change(current: Decimal, difference: Decimal) -> Decimal:
    return rate(difference / current) if current > 0 else ZERO


class ScenarioModeler:
    """
    Models different financial scenarios and compares tax outcomes.
    Every comparison runs through the same calculators as a real filing.
    """

    def __init__(self):
        self.pit_engine = TaxComputationEngine()
        self.cit_calc = CITCalculator()

    def compare_income_change(
        self,
        current_income,
        projected_income,
        regime: TaxRegime,
        deductions: StatutoryDeductions | None = None,
    ) -> ScenarioComparison:
        current_income = non_negative(current_income, "current_income")
        projected_income = non_negative(projected_income, "projected_income")
        current = self.pit_engine.compute(current_income, deductions, regime)
        projected = self.pit_engine.compute(projected_income, deductions, regime)

        difference = projected.net_tax_payable - current.net_tax_payable

        insights = []
        if difference > 0:
            insights.append(
                f"Increasing your income by ₦{projected_income - current_income:,.2f} "
                f"would increase your tax by ₦{difference:,.2f}."
            )
        elif difference < 0:
            insights.append(
                f"Decreasing your income by ₦{current_income - projected_income:,.2f} "
                f"would save you ₦{abs(difference):,.2f} in taxes."
            )

        if projected.effective_rate > current.effective_rate:
            insights.append(
                f"Your effective tax rate would increase from {current.effective_rate:.2%} "
                f"to {projected.effective_rate:.2%}."
            )

        marginal_income = projected_income - current_income
        if marginal_income > 0:
            marginal_rate = difference / marginal_income
            insights.append(
                f"The marginal tax rate on the additional ₦{marginal_income:,.2f} "
                f"is {marginal_rate:.1%}."
            )

        return ScenarioComparison(
            label="Income Change Scenario",
            current_tax=current.net_tax_payable,
            projected_tax=projected.net_tax_payable,
            difference=difference,
            relative_change=_relative_change(current.net_tax_payable, difference),
            current_effective_rate=current.effective_rate,
            projected_effective_rate=projected.effective_rate,
            insights=insights,
        )

    def compare_deduction_impact(
        self,
        gross_income,
        current_deductions: StatutoryDeductions,
        projected_deductions: StatutoryDeductions,
        regime: TaxRegime,
    ) -> ScenarioComparison:
        current = self.pit_engine.compute(gross_income, current_deductions, regime)
        projected = self.pit_engine.compute(gross_income, projected_deductions, regime)

        difference = projected.net_tax_payable - current.net_tax_payable

        insights = []
        additional_deductions = projected_deductions.total(regime) - current_deductions.total(regime)
        if additional_deductions > 0 and difference < 0:
            insights.append(
                f"Claiming an additional ₦{additional_deductions:,.2f} in deductions "
                f"would save you ₦{abs(difference):,.2f} in taxes."
            )
        elif additional_deductions > 0 and current.is_exempt:
            insights.append("You are already below the exemption threshold; extra deductions change nothing.")

        if current_deductions.annual_rent_paid == 0 and projected_deductions.annual_rent_paid > 0:
            insights.append(
                f"Adding rent relief (₦{money(projected_deductions.rent_relief(regime)):,.2f}) "
                f"contributes to your tax savings."
            )

        if current_deductions.pension_contribution == 0 and projected_deductions.pension_contribution > 0:
            insights.append(
                f"Pension contributions of ₦{projected_deductions.pension_contribution:,.2f} "
                f"are tax-deductible and reduce your liability."
            )

        return ScenarioComparison(
            label="Deduction Impact Scenario",
            current_tax=current.net_tax_payable,
            projected_tax=projected.net_tax_payable,
            difference=difference,
            relative_change=_relative_change(current.net_tax_payable, difference),
            current_effective_rate=current.effective_rate,
            projected_effective_rate=projected.effective_rate,
            insights=insights,
        )

    def compare_individual_vs_company(
        self,
        gross_income,
        regime: TaxRegime,
        deductions: StatutoryDeductions | None = None,
        business_expenses=0,
    ) -> ScenarioComparison:
        gross_income = non_negative(gross_income, "gross_income")
        business_expenses = non_negative(business_expenses, "business_expenses")
        pit_result = self.pit_engine.compute(gross_income, deductions, regime)

        company_profit = max(gross_income - business_expenses, ZERO)
        cit_result = self.cit_calc.calculate(
            gross_profit=company_profit,
            regime=regime,
            annual_turnover=gross_income,
        )

        difference = cit_result.total_tax_liability - pit_result.net_tax_payable

        insights = []
        if cit_result.is_exempt:
            insights.append(
                f"As a {cit_result.company_size} company your CIT rate would be 0%. "
                f"You'd save ₦{abs(difference):,.2f} compared to individual filing."
            )
        elif difference < 0:
            insights.append(
                f"Registering as a company could save you ₦{abs(difference):,.2f} in taxes."
            )
        else:
            insights.append(
                f"Filing as an individual is currently more tax-efficient, "
                f"saving you ₦{difference:,.2f} compared to company filing."
            )

        insights.append(
            f"Individual effective rate: {pit_result.effective_rate:.2%} | "
            f"Company effective rate: {cit_result.effective_rate:.2%}"
        )

        if business_expenses > 0:
            insights.append(
                f"Note: Company calculation accounts for ₦{business_expenses:,.2f} "
                f"in business expenses, reducing assessable profit to ₦{company_profit:,.2f}."
            )

        return ScenarioComparison(
            label="Individual vs Company Scenario",
            current_tax=pit_result.net_tax_payable,
            projected_tax=cit_result.total_tax_liability,
            difference=difference,
            relative_change=_relative_change(pit_result.net_tax_payable, difference),
            current_effective_rate=pit_result.effective_rate,
            projected_effective_rate=cit_result.effective_rate,
            insights=insights,
        )

    def compare_regimes(
        self,
        gross_income,
        current_regime: TaxRegime,
        projected_regime: TaxRegime,
        deductions: StatutoryDeductions | None = None,
    ) -> ScenarioComparison:
        current = self.pit_engine.compute(gross_income, deductions, current_regime)
        projected = self.pit_engine.compute(gross_income, deductions, projected_regime)

        difference = projected.net_tax_payable - current.net_tax_payable

        insights = []
        if difference == 0:
            insights.append(
                f"Your tax is unchanged between {current_regime.tax_year} and {projected_regime.tax_year}."
            )
        else:
            direction = "increase" if difference > 0 else "decrease"
            insights.append(
                f"Under the {projected_regime.tax_year} rules your tax would {direction} "
                f"by ₦{abs(difference):,.2f}."
            )
        if current.is_exempt != projected.is_exempt:
            exempt_year = current_regime.tax_year if current.is_exempt else projected_regime.tax_year
            insights.append(f"You fall under the exemption threshold only in {exempt_year}.")

        return ScenarioComparison(
            label="Regime Change Scenario",
            current_tax=current.net_tax_payable,
            projected_tax=projected.net_tax_payable,
            difference=difference,
            relative_change=_relative_change(current.net_tax_payable, difference),
            current_effective_rate=current.effective_rate,
            projected_effective_rate=projected.effective_rate,
            insights=insights,
        )

    def run_scenario(self, scenario_input: ScenarioInput, regime: TaxRegime) -> ScenarioComparison:
        scenario_type = ScenarioType(scenario_input.scenario_type)
        if scenario_type == ScenarioType.INCOME_CHANGE:
            projected = scenario_input.projected_gross_income
            return self.compare_income_change(
                current_income=scenario_input.current_gross_income,
                projected_income=scenario_input.current_gross_income if projected is None else projected,
                regime=regime,
                deductions=scenario_input.current_deductions,
            )
        elif scenario_type == ScenarioType.DEDUCTION_IMPACT:
            return self.compare_deduction_impact(
                gross_income=scenario_input.current_gross_income,
                current_deductions=scenario_input.current_deductions or StatutoryDeductions(),
                projected_deductions=scenario_input.projected_deductions or StatutoryDeductions(),
                regime=regime,
            )
        elif scenario_type == ScenarioType.INDIVIDUAL_VS_COMPANY:
            return self.compare_individual_vs_company(
                gross_income=scenario_input.current_gross_income,
                regime=regime,
                deductions=scenario_input.current_deductions,
                business_expenses=scenario_input.business_expenses,
            )
        else:
            if scenario_input.projected_regime is None:
                raise InvalidInputError("A regime change scenario needs a projected regime", field="projected_tax_year")
            return self.compare_regimes(
                gross_income=scenario_input.current_gross_income,
                current_regime=regime,
                projected_regime=scenario_input.projected_regime,
                deductions=scenario_input.current_deductions,
            )
