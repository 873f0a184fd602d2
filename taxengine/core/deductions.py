"""
Deduction Inference Engine
Finds deductions a taxpayer is entitled to but has not declared.

Detection levels:
  - high:   the expense category is itself a deduction category
  - medium: a keyword in the description, vendor or notes matches
  - low:    inferred from an aggregate pattern (recurring payments to the
            same payee, salaried income without pension contributions)

Savings are estimated by running the tax computation twice, with and
without the candidate deductions. The headline figure is a single
combined before/after computation: deductions stop being additive once
they move income across a bracket boundary.
"""

import re
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from statistics import median

from taxengine.core.amounts import ZERO, money, non_negative
from taxengine.core.records import (
    EMPLOYMENT_INCOME_CATEGORIES,
    ExpenseCategory,
    ExpenseRecord,
    IncomeRecord,
)
from taxengine.core.regime import TaxRegime
from taxengine.core.tax_rules.pit import StatutoryDeductions, TaxComputationEngine


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


CONFIDENCE_ORDER = (Confidence.HIGH, Confidence.MEDIUM, Confidence.LOW)

# Only these levels count toward total_potential_savings
SAVINGS_CONFIDENCE = (Confidence.HIGH, Confidence.MEDIUM)


class DeductionType(str, Enum):
    PENSION = "pension"
    NHF = "nhf"
    NHIS = "nhis"
    LIFE_INSURANCE = "life_insurance"
    HOUSING_LOAN_INTEREST = "housing_loan_interest"
    RENT_RELIEF = "rent_relief"


DEDUCTION_FIELDS: dict[DeductionType, str] = {
    DeductionType.PENSION: "pension_contribution",
    DeductionType.NHF: "nhf_contribution",
    DeductionType.NHIS: "nhis_contribution",
    DeductionType.LIFE_INSURANCE: "life_insurance_premium",
    DeductionType.HOUSING_LOAN_INTEREST: "housing_loan_interest",
    DeductionType.RENT_RELIEF: "annual_rent_paid",
}

CATEGORY_DEDUCTIONS: dict[ExpenseCategory, DeductionType] = {
    ExpenseCategory.RENT: DeductionType.RENT_RELIEF,
    ExpenseCategory.HOUSING: DeductionType.RENT_RELIEF,
    ExpenseCategory.INSURANCE: DeductionType.LIFE_INSURANCE,
    ExpenseCategory.LIFE_INSURANCE: DeductionType.LIFE_INSURANCE,
    ExpenseCategory.NHIS: DeductionType.NHIS,
    ExpenseCategory.PENSION: DeductionType.PENSION,
    ExpenseCategory.NHF: DeductionType.NHF,
    ExpenseCategory.MORTGAGE: DeductionType.HOUSING_LOAN_INTEREST,
}

# Checked in order; "housing fund" must win over the rent keywords
DEDUCTION_KEYWORDS: list[tuple[DeductionType, tuple[str, ...]]] = [
    (DeductionType.PENSION, ("pension", "retirement savings", "pfa", "rsa", "pencom")),
    (DeductionType.NHF, ("nhf", "housing fund", "national housing")),
    (DeductionType.NHIS, ("nhis", "hmo", "health insurance")),
    (DeductionType.LIFE_INSURANCE, ("life insurance", "life assurance", "annuity", "insurance premium")),
    (DeductionType.HOUSING_LOAN_INTEREST, ("mortgage", "home loan", "housing loan")),
    (DeductionType.RENT_RELIEF, ("rent", "lease", "landlord", "tenancy", "apartment", "accommodation")),
]

KEYWORD_PATTERNS = [
    (deduction_type, re.compile(r"\b(" + "|".join(re.escape(k) for k in keywords) + r")\b"))
    for deduction_type, keywords in DEDUCTION_KEYWORDS
]

RATIONALES = {
    DeductionType.PENSION: "Pension contributions to a registered PFA are fully deductible.",
    DeductionType.NHF: "National Housing Fund contributions are tax-deductible.",
    DeductionType.NHIS: "NHIS contributions are fully deductible.",
    DeductionType.LIFE_INSURANCE: "Life insurance and annuity premiums (self or spouse) are deductible.",
    DeductionType.HOUSING_LOAN_INTEREST: "Interest on a loan for an owner-occupied home is deductible.",
    DeductionType.RENT_RELIEF: "Annual rent paid qualifies for rent relief, subject to the cap.",
}

# Payee categories that may hide rent paid by bank transfer
RECURRING_PAYEE_CATEGORIES = (ExpenseCategory.OTHER, ExpenseCategory.TRANSFER)
RECURRING_MIN_MONTHS = 3
RECURRING_AMOUNT_TOLERANCE = Decimal("0.10")

NHF_TIP_INCOME = Decimal("3000000")
NEAR_THRESHOLD_FACTOR = Decimal("1.5")


@dataclass
class DeductionSuggestion:
    category: DeductionType
    suggested_amount: Decimal
    confidence: Confidence
    rationale: str
    document_required: bool = True
    estimated_savings: Decimal = ZERO
    detected_amount: Decimal = ZERO
    source_count: int = 0


@dataclass
class AutoExemption:
    exemption_type: str
    amount: Decimal
    description: str
    requirement: str
    confidence: Confidence = Confidence.HIGH


@dataclass
class DeductionAnalysis:
    auto_exemptions: list[AutoExemption] = field(default_factory=list)
    detected_deductions: list[DeductionSuggestion] = field(default_factory=list)
    total_potential_savings: Decimal = ZERO
    tax_optimization_tips: list[str] = field(default_factory=list)
    recommended_actions: list[str] = field(default_factory=list)


@dataclass
class _Detection:
    deduction_type: DeductionType
    confidence: Confidence
    amount: Decimal
    note: str


class DeductionInferenceEngine:
    """
    Scans expense records against declared statutory deductions.
    Never lowers a declared field and never exceeds a category cap.
    """

    def __init__(self, engine: TaxComputationEngine | None = None):
        self.engine = engine or TaxComputationEngine()

    def analyze(
        self,
        yearly_income,
        expense_records: list[ExpenseRecord],
        year: int,
        declared_deductions: StatutoryDeductions | None,
        regime: TaxRegime,
        income_records: list[IncomeRecord] | None = None,
    ) -> DeductionAnalysis:
        income = non_negative(yearly_income, "yearly_income")
        declared = declared_deductions or StatutoryDeductions()
        if income == 0:
            return DeductionAnalysis()

        yearly_expenses = [e for e in expense_records if e.date.year == year]
        detections = self.detect(yearly_expenses)
        detections.extend(self._infer_patterns(yearly_expenses, detections, declared, income_records or [], year, regime))

        baseline_tax = self.engine.compute(income, declared, regime).net_tax_payable
        suggestions = self._build_suggestions(income, detections, declared, baseline_tax, regime)

        combined = self._candidate_deductions(income, detections, declared, regime, SAVINGS_CONFIDENCE)
        combined_tax = self.engine.compute(income, combined, regime).net_tax_payable
        total_savings = max(baseline_tax - combined_tax, ZERO)

        return DeductionAnalysis(
            auto_exemptions=self.auto_exemptions(income, declared, regime),
            detected_deductions=suggestions,
            total_potential_savings=total_savings,
            tax_optimization_tips=self.optimization_tips(income, declared, combined, suggestions, regime),
            recommended_actions=self.recommended_actions(declared, combined, suggestions, regime),
        )

    def detect(self, expenses: list[ExpenseRecord]) -> list[_Detection]:
        detections = []
        for expense in expenses:
            if expense.amount == 0:
                continue

            deduction_type = CATEGORY_DEDUCTIONS.get(expense.category)
            if deduction_type is not None:
                detections.append(
                    _Detection(deduction_type, Confidence.HIGH, expense.amount, f"category '{expense.category.value}'")
                )
                continue

            text = expense.search_text
            for deduction_type, pattern in KEYWORD_PATTERNS:
                match = pattern.search(text)
                if match:
                    detections.append(
                        _Detection(deduction_type, Confidence.MEDIUM, expense.amount, f"keyword '{match.group(1)}'")
                    )
                    break
        return detections

    def _infer_patterns(
        self,
        expenses: list[ExpenseRecord],
        detections: list[_Detection],
        declared: StatutoryDeductions,
        income_records: list[IncomeRecord],
        year: int,
        regime: TaxRegime,
    ) -> list[_Detection]:
        inferred = []
        detected_types = {d.deduction_type for d in detections}

        if DeductionType.RENT_RELIEF not in detected_types and declared.annual_rent_paid == 0:
            recurring = self._recurring_payee(expenses)
            if recurring is not None:
                payee, total, months = recurring
                inferred.append(
                    _Detection(
                        DeductionType.RENT_RELIEF,
                        Confidence.LOW,
                        total,
                        f"{months} monthly payments of similar size to '{payee}'",
                    )
                )

        if DeductionType.PENSION not in detected_types and declared.pension_contribution == 0:
            salary = sum(
                (r.amount for r in income_records if r.date.year == year and r.category in EMPLOYMENT_INCOME_CATEGORIES),
                ZERO,
            )
            if salary > 0:
                inferred.append(
                    _Detection(
                        DeductionType.PENSION,
                        Confidence.LOW,
                        money(salary * regime.pension_contribution_rate),
                        "salaried income with no pension contributions recorded",
                    )
                )

        return inferred

    def _recurring_payee(self, expenses: list[ExpenseRecord]):
        by_payee: dict[str, list[ExpenseRecord]] = defaultdict(list)
        for expense in expenses:
            if expense.category in RECURRING_PAYEE_CATEGORIES and expense.vendor.strip():
                by_payee[expense.vendor.strip().lower()].append(expense)

        best = None
        for payee, records in sorted(by_payee.items()):
            months = {r.date.month for r in records}
            if len(months) < RECURRING_MIN_MONTHS:
                continue
            typical = median(r.amount for r in records)
            if typical == 0:
                continue
            if any(abs(r.amount - typical) > typical * RECURRING_AMOUNT_TOLERANCE for r in records):
                continue
            total = sum((r.amount for r in records), ZERO)
            if best is None or total > best[1]:
                best = (payee, total, len(months))
        return best

    def _cap(self, deduction_type: DeductionType, income: Decimal, regime: TaxRegime) -> Decimal | None:
        field_name = DEDUCTION_FIELDS[deduction_type]
        caps = []
        absolute = regime.cap_for(field_name)
        if absolute is not None:
            caps.append(absolute)
        if deduction_type == DeductionType.NHF:
            caps.append(money(income * regime.nhf_contribution_rate))
        return min(caps) if caps else None

    def _field_value(self, declared_value: Decimal, detected: Decimal, cap: Decimal | None) -> Decimal:
        """Declared values are kept as-is; detected amounts only raise a field up to its cap."""
        candidate = detected if cap is None else min(detected, cap)
        return max(declared_value, candidate)

    def _deduction_value(self, deduction_type: DeductionType, field_value: Decimal, regime: TaxRegime) -> Decimal:
        if deduction_type == DeductionType.RENT_RELIEF:
            return min(field_value * regime.rent_relief_rate, regime.rent_relief_cap)
        return field_value

    def _candidate_deductions(
        self,
        income: Decimal,
        detections: list[_Detection],
        declared: StatutoryDeductions,
        regime: TaxRegime,
        levels: tuple[Confidence, ...],
    ) -> StatutoryDeductions:
        detected: dict[DeductionType, Decimal] = defaultdict(lambda: ZERO)
        for d in detections:
            if d.confidence in levels:
                detected[d.deduction_type] += d.amount

        changes = {}
        for deduction_type, amount in detected.items():
            field_name = DEDUCTION_FIELDS[deduction_type]
            cap = self._cap(deduction_type, income, regime)
            changes[field_name] = self._field_value(getattr(declared, field_name), amount, cap)
        return declared.replace(**changes)

    def _build_suggestions(
        self,
        income: Decimal,
        detections: list[_Detection],
        declared: StatutoryDeductions,
        baseline_tax: Decimal,
        regime: TaxRegime,
    ) -> list[DeductionSuggestion]:
        grouped: dict[tuple[DeductionType, Confidence], list[_Detection]] = defaultdict(list)
        for d in detections:
            grouped[(d.deduction_type, d.confidence)].append(d)

        suggestions = []
        for deduction_type in DeductionType:
            field_name = DEDUCTION_FIELDS[deduction_type]
            declared_value = getattr(declared, field_name)
            cap = self._cap(deduction_type, income, regime)
            cumulative = ZERO

            for confidence in CONFIDENCE_ORDER:
                group = grouped.get((deduction_type, confidence))
                if not group:
                    continue

                amount = sum((d.amount for d in group), ZERO)
                before = self._field_value(declared_value, cumulative, cap)
                cumulative += amount
                after = self._field_value(declared_value, cumulative, cap)

                suggested = money(
                    self._deduction_value(deduction_type, after, regime)
                    - self._deduction_value(deduction_type, before, regime)
                )
                if suggested <= 0:
                    continue

                with_candidate = declared.replace(**{field_name: declared_value + (after - before)})
                savings = baseline_tax - self.engine.compute(income, with_candidate, regime).net_tax_payable

                notes = ", ".join(sorted({d.note for d in group}))
                suggestions.append(
                    DeductionSuggestion(
                        category=deduction_type,
                        suggested_amount=suggested,
                        confidence=confidence,
                        rationale=f"{RATIONALES[deduction_type]} Detected from {notes}.",
                        document_required=True,
                        estimated_savings=max(savings, ZERO),
                        detected_amount=money(amount),
                        source_count=len(group),
                    )
                )
        return suggestions

    def auto_exemptions(self, income: Decimal, declared: StatutoryDeductions, regime: TaxRegime) -> list[AutoExemption]:
        exemptions = []

        if income <= regime.exemption_threshold:
            exemptions.append(AutoExemption(
                exemption_type="income_threshold",
                amount=money(income),
                description=f"Full tax exemption for income ≤ ₦{regime.exemption_threshold:,.2f}",
                requirement="No documentation required - automatically applied",
            ))

        if declared.gifts_received > 0:
            exemptions.append(AutoExemption(
                exemption_type="gifts",
                amount=money(declared.gifts_received),
                description="Gifts received are exempt from tax",
                requirement="Documentation of gift source may be required",
            ))

        if declared.pension_benefits_received > 0:
            exemptions.append(AutoExemption(
                exemption_type="pension_benefits",
                amount=money(declared.pension_benefits_received),
                description="Approved pension and retirement benefits are exempt",
                requirement="Pension payout documentation from PFA",
            ))

        if declared.employment_compensation > 0:
            cap = regime.employment_compensation_exempt_cap
            exemptions.append(AutoExemption(
                exemption_type="employment_compensation",
                amount=money(min(declared.employment_compensation, cap)),
                description=f"Loss of employment compensation (up to ₦{cap:,.2f} exempt)",
                requirement="Termination letter and compensation agreement",
            ))

        rent_relief = declared.rent_relief(regime)
        if rent_relief > 0:
            exemptions.append(AutoExemption(
                exemption_type="rent_relief",
                amount=money(rent_relief),
                description=(
                    f"Rent relief at {regime.rent_relief_rate:.0%} of rent paid "
                    f"(max ₦{regime.rent_relief_cap:,.2f})"
                ),
                requirement="Rent receipts or tenancy agreement",
            ))

        for deduction_type in (
            DeductionType.PENSION,
            DeductionType.NHIS,
            DeductionType.NHF,
            DeductionType.LIFE_INSURANCE,
            DeductionType.HOUSING_LOAN_INTEREST,
        ):
            amount = getattr(declared, DEDUCTION_FIELDS[deduction_type])
            if amount > 0:
                exemptions.append(AutoExemption(
                    exemption_type=deduction_type.value,
                    amount=money(amount),
                    description=RATIONALES[deduction_type],
                    requirement="Contribution statements or premium receipts",
                ))

        return exemptions

    def optimization_tips(
        self,
        income: Decimal,
        declared: StatutoryDeductions,
        combined: StatutoryDeductions,
        suggestions: list[DeductionSuggestion],
        regime: TaxRegime,
    ) -> list[str]:
        tips = []
        threshold = regime.exemption_threshold

        if threshold < income <= threshold * NEAR_THRESHOLD_FACTOR:
            tips.append(
                f"Your income is close to the ₦{threshold:,.2f} tax-free threshold. "
                f"Maximizing deductions could reduce your taxable income below this level."
            )

        potential_relief = combined.rent_relief(regime)
        if combined.annual_rent_paid > 0 and potential_relief < regime.rent_relief_cap:
            tips.append(
                f"Your rent relief of ₦{potential_relief:,.2f} is below the "
                f"₦{regime.rent_relief_cap:,.2f} cap. Make sure all rent receipts for the year are recorded."
            )
        elif potential_relief > declared.rent_relief(regime):
            tips.append(
                f"You may be eligible for up to ₦{potential_relief:,.2f} in rent relief. "
                f"Upload rent documentation to claim."
            )

        statutory_pension = money(income * regime.pension_contribution_rate)
        if combined.pension_contribution < statutory_pension:
            tips.append(
                f"Pension contributions of ₦{combined.pension_contribution:,.2f} are below "
                f"{regime.pension_contribution_rate:.0%} of income (₦{statutory_pension:,.2f}). "
                f"Contributions to a registered PFA are fully tax-deductible."
            )

        if combined.nhis_contribution == 0:
            tips.append(
                "Enrolling in the National Health Insurance Scheme (NHIS) provides tax-deductible contributions."
            )

        if combined.life_insurance_premium == 0:
            tips.append(
                "Life insurance and annuity premiums are tax-deductible. "
                "Consider a policy for both protection and tax benefits."
            )

        if income >= NHF_TIP_INCOME and combined.nhf_contribution == 0:
            tips.append(
                "Contributing to the National Housing Fund (NHF) is mandatory for some employees "
                "and provides tax deductions."
            )

        return tips

    def recommended_actions(
        self,
        declared: StatutoryDeductions,
        combined: StatutoryDeductions,
        suggestions: list[DeductionSuggestion],
        regime: TaxRegime,
    ) -> list[str]:
        actions = []

        if any(s.document_required for s in suggestions):
            actions.append("Upload supporting documents for detected deductions")

        unclaimed_relief = combined.rent_relief(regime) - declared.rent_relief(regime)
        if unclaimed_relief > 0:
            actions.append(f"Claim ₦{unclaimed_relief:,.2f} in rent relief")

        if combined.pension_contribution > declared.pension_contribution:
            actions.append("Update pension contribution records")

        return actions
