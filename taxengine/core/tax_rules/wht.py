"""
Withholding Tax (WHT) Calculator
Based on Nigeria Tax Act 2025

WHT is deducted at source on certain payments. Rates vary by payment type
and whether the recipient is a company, an individual or a non-resident.
The rate table lives on the regime; unknown payment types fall back to
the regime's default rate.

Common WHT Rates:
  - Dividends, interest, rent, royalties: 10%
  - Commission: 5% (10% non-resident)
  - Professional, management, technical and consultancy fees:
    10% (companies), 5% (individuals)
  - Construction: 5%
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from taxengine.core.amounts import ZERO, money, non_negative, to_decimal
from taxengine.core.exceptions import InvalidInputError
from taxengine.core.periods import TaxPeriod, as_date
from taxengine.core.regime import TaxRegime


class RecipientType(str, Enum):
    CORPORATE = "corporate"
    INDIVIDUAL = "individual"
    NON_RESIDENT = "non_resident"


class WHTPaymentType(str, Enum):
    DIVIDEND = "dividend"
    INTEREST = "interest"
    ROYALTY = "royalty"
    RENT = "rent"
    COMMISSION = "commission"
    PROFESSIONAL_FEES = "professional_fees"
    CONSTRUCTION = "construction"
    MANAGEMENT_FEES = "management_fees"
    TECHNICAL_FEES = "technical_fees"
    CONSULTANCY = "consultancy"
    DIRECTORS_FEES = "directors_fees"
    OTHER = "other"


@dataclass
class WHTTransaction:
    gross_amount: Decimal
    wht_amount: Decimal
    payment_date: date
    payment_type: WHTPaymentType = WHTPaymentType.OTHER
    recipient_type: RecipientType = RecipientType.CORPORATE
    wht_rate: Decimal = ZERO
    net_amount: Decimal | None = None
    recipient_name: str = ""
    description: str = ""

    def __post_init__(self):
        self.gross_amount = non_negative(self.gross_amount, "wht.gross_amount")
        self.wht_amount = non_negative(self.wht_amount, "wht.wht_amount")
        self.wht_rate = to_decimal(self.wht_rate, "wht.wht_rate")
        self.payment_date = as_date(self.payment_date)
        self.payment_type = WHTPaymentType(self.payment_type)
        self.recipient_type = RecipientType(self.recipient_type)
        if self.net_amount is None:
            self.net_amount = money(self.gross_amount - self.wht_amount)


@dataclass
class WHTGroupLine:
    key: str
    gross_amount: Decimal
    wht_amount: Decimal
    transaction_count: int


@dataclass
class WHTSummary:
    period: str
    total_gross: Decimal
    total_wht: Decimal
    total_net: Decimal
    by_payment_type: list[WHTGroupLine] = field(default_factory=list)
    by_recipient_type: list[WHTGroupLine] = field(default_factory=list)


class WHTCalculator:
    """
    Deterministic Withholding Tax calculator.
    """

    def get_rate(
        self,
        payment_type: WHTPaymentType,
        recipient_type: RecipientType,
        regime: TaxRegime,
    ) -> Decimal:
        rates = regime.wht_rates.get(WHTPaymentType(payment_type).value)
        if rates is None:
            return regime.wht_default_rate
        if recipient_type == RecipientType.INDIVIDUAL:
            return rates.individual
        if recipient_type == RecipientType.NON_RESIDENT:
            return rates.non_resident
        return rates.corporate

    def create_transaction(
        self,
        gross_amount,
        payment_type: WHTPaymentType,
        recipient_type: RecipientType,
        payment_date,
        regime: TaxRegime,
        recipient_name: str = "",
        description: str = "",
    ) -> WHTTransaction:
        gross = to_decimal(gross_amount, "gross_amount")
        if gross < 0:
            raise InvalidInputError("Gross amount cannot be negative", field="gross_amount")

        rate = self.get_rate(payment_type, recipient_type, regime)
        wht_amount = money(gross * rate)

        return WHTTransaction(
            gross_amount=gross,
            wht_amount=wht_amount,
            payment_date=payment_date,
            payment_type=payment_type,
            recipient_type=recipient_type,
            wht_rate=rate,
            net_amount=money(gross - wht_amount),
            recipient_name=recipient_name,
            description=description,
        )

    def summarize(self, period: TaxPeriod, transactions: list[WHTTransaction]) -> WHTSummary:
        in_period = [t for t in transactions if period.contains(t.payment_date)]

        by_payment: dict[str, WHTGroupLine] = {}
        by_recipient: dict[str, WHTGroupLine] = {}
        total_gross = ZERO
        total_wht = ZERO

        for tx in in_period:
            total_gross += tx.gross_amount
            total_wht += tx.wht_amount
            for groups, key in ((by_payment, tx.payment_type.value), (by_recipient, tx.recipient_type.value)):
                line = groups.setdefault(key, WHTGroupLine(key, ZERO, ZERO, 0))
                line.gross_amount += tx.gross_amount
                line.wht_amount += tx.wht_amount
                line.transaction_count += 1

        return WHTSummary(
            period=period.label,
            total_gross=money(total_gross),
            total_wht=money(total_wht),
            total_net=money(total_gross - total_wht),
            by_payment_type=list(by_payment.values()),
            by_recipient_type=list(by_recipient.values()),
        )

    def credit_summary(self, transactions: list[WHTTransaction]) -> dict:
        """WHT suffered is an advance payment creditable against income tax."""
        by_type: dict[str, Decimal] = {}
        for tx in transactions:
            by_type[tx.payment_type.value] = by_type.get(tx.payment_type.value, ZERO) + tx.wht_amount
        return {
            "total_credit": money(sum(by_type.values(), ZERO)),
            "by_type": {k: money(v) for k, v in by_type.items()},
        }
