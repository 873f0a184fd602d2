"""
Plain records consumed by the engines.

The engines only read these; storage and ownership belong to the
surrounding application. Enum values are the stable keys exposed to
callers, display labels are left to the presentation layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from taxengine.core.amounts import non_negative, to_decimal
from taxengine.core.exceptions import InvalidInputError
from taxengine.core.periods import TaxPeriod, as_date

if TYPE_CHECKING:
    from taxengine.core.tax_rules.pit import StatutoryDeductions
    from taxengine.core.tax_rules.vat import VATTransaction
    from taxengine.core.tax_rules.wht import WHTTransaction


class TaxInstrument(str, Enum):
    PIT = "pit"
    CIT = "cit"
    VAT = "vat"
    WHT = "wht"


MONTHLY_INSTRUMENTS = (TaxInstrument.VAT, TaxInstrument.WHT)


class ConfirmationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


class ExpenseCategory(str, Enum):
    RENT = "rent"
    HOUSING = "housing"
    INSURANCE = "insurance"
    LIFE_INSURANCE = "life_insurance"
    HEALTHCARE = "healthcare"
    NHIS = "nhis"
    PENSION = "pension"
    NHF = "nhf"
    MORTGAGE = "mortgage"
    UTILITIES = "utilities"
    TRANSPORT = "transport"
    FOOD = "food"
    OFFICE = "office"
    PROFESSIONAL_DEVELOPMENT = "professional_development"
    ENTERTAINMENT = "entertainment"
    TRANSFER = "transfer"
    OTHER = "other"


class IncomeCategory(str, Enum):
    SALARY = "salary"
    EMPLOYMENT = "employment"
    BUSINESS = "business"
    FREELANCE = "freelance"
    INVESTMENT = "investment"
    RENTAL = "rental"
    GIFT = "gift"
    PENSION_BENEFIT = "pension_benefit"
    OTHER = "other"


EMPLOYMENT_INCOME_CATEGORIES = (IncomeCategory.SALARY, IncomeCategory.EMPLOYMENT)


def _coerce_enum(enum_cls, value, default):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        return default


@dataclass
class ExpenseRecord:
    date: date
    amount: Decimal
    category: ExpenseCategory = ExpenseCategory.OTHER
    description: str = ""
    vendor: str = ""
    notes: str | None = None

    def __post_init__(self):
        self.date = as_date(self.date)
        self.amount = non_negative(self.amount, "expense.amount")
        self.category = _coerce_enum(ExpenseCategory, self.category, ExpenseCategory.OTHER)

    @property
    def search_text(self) -> str:
        return " ".join(p for p in (self.description, self.vendor, self.notes or "") if p).lower()


@dataclass
class IncomeRecord:
    date: date
    amount: Decimal
    category: IncomeCategory = IncomeCategory.OTHER
    description: str = ""
    source: str = ""
    notes: str | None = None

    def __post_init__(self):
        self.date = as_date(self.date)
        self.amount = non_negative(self.amount, "income.amount")
        self.category = _coerce_enum(IncomeCategory, self.category, IncomeCategory.OTHER)


@dataclass
class Payment:
    instrument: TaxInstrument
    amount: Decimal
    confirmation_status: ConfirmationStatus = ConfirmationStatus.PENDING
    period: TaxPeriod | None = None
    date: date | None = None
    reference: str | None = None

    def __post_init__(self):
        self.instrument = TaxInstrument(self.instrument)
        self.amount = to_decimal(self.amount, "payment.amount")
        if self.amount < 0:
            raise InvalidInputError(f"payment.amount must not be negative, got {self.amount}", field="payment.amount")
        self.confirmation_status = ConfirmationStatus(self.confirmation_status)
        if isinstance(self.period, str):
            self.period = TaxPeriod.parse(self.period)
        if self.date is not None:
            self.date = as_date(self.date)

    @property
    def is_confirmed(self) -> bool:
        return self.confirmation_status == ConfirmationStatus.CONFIRMED


@dataclass
class LedgerSnapshot:
    """Everything the liability aggregator reads for one taxpayer."""

    income_records: list[IncomeRecord] = field(default_factory=list)
    deductions: StatutoryDeductions | None = None
    vat_transactions: list[VATTransaction] = field(default_factory=list)
    wht_transactions: list[WHTTransaction] = field(default_factory=list)
