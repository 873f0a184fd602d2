"""
Pydantic schemas for API request validation.
"""

from datetime import date

from pydantic import BaseModel, Field


# ── Shared Schemas ──

class DeductionsInput(BaseModel):
    pension_contribution: float = Field(default=0, ge=0)
    nhis_contribution: float = Field(default=0, ge=0)
    nhf_contribution: float = Field(default=0, ge=0)
    life_insurance_premium: float = Field(default=0, ge=0)
    housing_loan_interest: float = Field(default=0, ge=0)
    annual_rent_paid: float = Field(default=0, ge=0)
    employment_compensation: float = Field(default=0, ge=0)
    gifts_received: float = Field(default=0, ge=0)
    pension_benefits_received: float = Field(default=0, ge=0)


class ExpenseInput(BaseModel):
    date: date
    amount: float = Field(..., ge=0)
    category: str = "other"
    description: str = ""
    vendor: str = ""
    notes: str | None = None


class IncomeInput(BaseModel):
    date: date
    amount: float = Field(..., ge=0)
    category: str = "other"
    description: str = ""
    source: str = ""


class VATTransactionInput(BaseModel):
    transaction_type: str = Field(..., description="output or input")
    amount: float = Field(..., ge=0)
    year: int = Field(..., ge=2000, le=2100)
    month: int = Field(..., ge=1, le=12)
    category: str = "standard"
    vat_amount: float | None = Field(default=None, ge=0, description="Computed from the regime when omitted")
    is_exempt: bool | None = None
    description: str = ""


class WHTTransactionInput(BaseModel):
    gross_amount: float = Field(..., ge=0)
    payment_date: date
    payment_type: str = "other"
    recipient_type: str = "corporate"
    wht_amount: float | None = Field(default=None, ge=0, description="Computed from the regime when omitted")
    recipient_name: str = ""


class PaymentInput(BaseModel):
    instrument: str = Field(..., description="pit, cit, vat or wht")
    amount: float = Field(..., ge=0)
    confirmation_status: str = "pending"
    period: str | None = Field(default=None, description="YYYY or YYYY-MM")
    payment_date: date | None = None
    reference: str | None = None


class CapitalAssetInput(BaseModel):
    description: str = ""
    category: str = "other"
    cost: float = Field(..., ge=0)
    year_acquired: int


class TaxAdjustmentsInput(BaseModel):
    depreciation: float = Field(default=0, ge=0)
    non_deductible_expenses: float = Field(default=0, ge=0)
    provisions: float = Field(default=0, ge=0)
    unapproved_donations: float = Field(default=0, ge=0)
    exempt_income: float = Field(default=0, ge=0)


class BusinessIncomeInput(BaseModel):
    sales_revenue: float = Field(default=0, ge=0)
    service_fees: float = Field(default=0, ge=0)
    commissions: float = Field(default=0, ge=0)
    digital_income: float = Field(default=0, ge=0)
    exchange_gains: float = Field(default=0, ge=0)
    other_receipts: float = Field(default=0, ge=0)


class BusinessExpensesInput(BaseModel):
    cost_of_goods_sold: float = Field(default=0, ge=0)
    rent_premises: float = Field(default=0, ge=0)
    utilities: float = Field(default=0, ge=0)
    transport: float = Field(default=0, ge=0)
    staff_salaries: float = Field(default=0, ge=0)
    repairs_maintenance: float = Field(default=0, ge=0)
    professional_fees: float = Field(default=0, ge=0)
    internet_software: float = Field(default=0, ge=0)
    marketing_advertising: float = Field(default=0, ge=0)
    other_allowable: float = Field(default=0, ge=0)
    personal_expenses: float = Field(default=0, ge=0)
    capital_expenditure: float = Field(default=0, ge=0)
    fines_penalties: float = Field(default=0, ge=0)
    non_business_donations: float = Field(default=0, ge=0)


# ── Tax Schemas ──

class PITCalculateRequest(BaseModel):
    gross_income: float = Field(..., ge=0)
    deductions: DeductionsInput = Field(default_factory=DeductionsInput)
    tax_year: int | None = None


class PAYEEstimateRequest(BaseModel):
    monthly_gross: float = Field(..., ge=0)
    deductions: DeductionsInput = Field(default_factory=DeductionsInput)
    tax_year: int | None = None


class CITCalculateRequest(BaseModel):
    gross_profit: float = Field(..., ge=0)
    allowable_deductions: float = Field(default=0, ge=0)
    annual_turnover: float = Field(default=0, ge=0)
    assets: list[CapitalAssetInput] = []
    adjustments: TaxAdjustmentsInput | None = None
    tax_year: int | None = None


class VATCalculateRequest(BaseModel):
    amount: float = Field(..., ge=0)
    is_inclusive: bool = False
    tax_year: int | None = None


class WHTCalculateRequest(BaseModel):
    gross_amount: float = Field(..., ge=0)
    payment_type: str = "other"
    recipient_type: str = "corporate"
    tax_year: int | None = None


class DeductionAnalyzeRequest(BaseModel):
    yearly_income: float = Field(..., ge=0)
    year: int
    expenses: list[ExpenseInput] = []
    income_records: list[IncomeInput] = []
    declared_deductions: DeductionsInput = Field(default_factory=DeductionsInput)
    tax_year: int | None = None


class ReconcileRequest(BaseModel):
    period: str = Field(..., description="YYYY or YYYY-MM")
    income_instrument: str = "pit"
    income_records: list[IncomeInput] = []
    deductions: DeductionsInput = Field(default_factory=DeductionsInput)
    vat_transactions: list[VATTransactionInput] = []
    wht_transactions: list[WHTTransactionInput] = []
    payments: list[PaymentInput] = []
    tax_year: int | None = None


class DeadlineStatusInput(BaseModel):
    instrument: str
    period: str
    status: str


class DeadlinesRequest(BaseModel):
    year: int
    instruments: list[str] | None = None
    statuses: list[DeadlineStatusInput] = []
    today: date | None = Field(default=None, description="Defaults to the server date")


class ScenarioRequest(BaseModel):
    scenario_type: str = Field(
        ..., description="income_change, deduction_impact, individual_vs_company or regime_change"
    )
    current_income: float = Field(..., ge=0)
    projected_income: float | None = None
    current_deductions: DeductionsInput | None = None
    projected_deductions: DeductionsInput | None = None
    business_expenses: float = Field(default=0, ge=0)
    tax_year: int | None = None
    projected_tax_year: int | None = None


class BusinessTaxRequest(BaseModel):
    entity_type: str = Field(..., description="sole_proprietorship, partnership or limited_company")
    income: BusinessIncomeInput = Field(default_factory=BusinessIncomeInput)
    expenses: BusinessExpensesInput = Field(default_factory=BusinessExpensesInput)
    assets: list[CapitalAssetInput] = []
    personal_reliefs: DeductionsInput | None = None
    annual_turnover: float | None = Field(default=None, ge=0)
    adjustments: TaxAdjustmentsInput | None = None
    tax_year: int | None = None
