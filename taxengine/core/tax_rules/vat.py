"""
Value Added Tax (VAT) Calculator
Based on Nigeria Tax Act 2025, Chapter 6

Key provisions:
  - Section 148: Rate of VAT (7.5%)
  - Section 156: Credit for input tax and remission of VAT
  - Section 186: Exempt supplies

Net VAT for a period is output VAT minus input VAT over non-exempt
transactions. A negative net is a refund position: the payable liability
is floored at zero while the signed figure is kept for refund reporting.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from taxengine.core.amounts import ZERO, money, non_negative
from taxengine.core.periods import TaxPeriod
from taxengine.core.regime import TaxRegime


class VATTransactionType(str, Enum):
    OUTPUT = "output"
    INPUT = "input"


@dataclass
class VATTransaction:
    transaction_type: VATTransactionType
    amount: Decimal
    vat_amount: Decimal
    year: int
    month: int
    category: str = "standard"
    is_exempt: bool = False
    description: str = ""

    def __post_init__(self):
        self.transaction_type = VATTransactionType(self.transaction_type)
        self.amount = non_negative(self.amount, "vat.amount")
        self.vat_amount = non_negative(self.vat_amount, "vat.vat_amount")


@dataclass
class VATCategoryLine:
    category: str
    amount: Decimal
    vat: Decimal


@dataclass
class VATPeriodResult:
    period: str
    total_output_sales: Decimal
    exempt_output_sales: Decimal
    taxable_output_sales: Decimal
    output_vat: Decimal
    total_input_purchases: Decimal
    exempt_input_purchases: Decimal
    taxable_input_purchases: Decimal
    input_vat: Decimal
    net_vat: Decimal
    vat_payable: Decimal
    refund_due: Decimal
    is_refund_due: bool
    output_breakdown: list[VATCategoryLine] = field(default_factory=list)
    input_breakdown: list[VATCategoryLine] = field(default_factory=list)


class VATCalculator:
    """
    Deterministic VAT calculator.
    Rates and exempt categories come from the regime.
    """

    def is_exempt_category(self, category: str, regime: TaxRegime) -> bool:
        return category.lower() in regime.vat_exempt_categories

    def calculate_simple(self, amount, regime: TaxRegime) -> dict:
        net = non_negative(amount)
        vat_amount = money(net * regime.vat_rate)
        return {
            "amount": money(net),
            "vat_rate": regime.vat_rate,
            "vat_amount": vat_amount,
            "total_with_vat": money(net + vat_amount),
        }

    def extract_vat_from_inclusive(self, inclusive_amount, regime: TaxRegime) -> dict:
        gross = non_negative(inclusive_amount)
        amount_before_vat = money(gross / (1 + regime.vat_rate))
        return {
            "inclusive_amount": money(gross),
            "amount_before_vat": amount_before_vat,
            "vat_amount": money(gross - amount_before_vat),
            "vat_rate": regime.vat_rate,
        }

    def create_transaction(
        self,
        transaction_type: VATTransactionType | str,
        amount,
        year: int,
        month: int,
        regime: TaxRegime,
        category: str = "standard",
        description: str = "",
    ) -> VATTransaction:
        is_exempt = self.is_exempt_category(category, regime)
        net = non_negative(amount)
        return VATTransaction(
            transaction_type=transaction_type,
            amount=net,
            vat_amount=ZERO if is_exempt else money(net * regime.vat_rate),
            year=year,
            month=month,
            category=category,
            is_exempt=is_exempt,
            description=description,
        )

    def compute_period(self, period: TaxPeriod, transactions: list[VATTransaction]) -> VATPeriodResult:
        in_period = [t for t in transactions if period.contains_month(t.year, t.month)]

        outputs = [t for t in in_period if t.transaction_type == VATTransactionType.OUTPUT]
        inputs = [t for t in in_period if t.transaction_type == VATTransactionType.INPUT]

        total_output, exempt_output, output_vat, output_breakdown = self._summarize(outputs)
        total_input, exempt_input, input_vat, input_breakdown = self._summarize(inputs)

        net_vat = money(output_vat - input_vat)

        return VATPeriodResult(
            period=period.label,
            total_output_sales=total_output,
            exempt_output_sales=exempt_output,
            taxable_output_sales=money(total_output - exempt_output),
            output_vat=output_vat,
            total_input_purchases=total_input,
            exempt_input_purchases=exempt_input,
            taxable_input_purchases=money(total_input - exempt_input),
            input_vat=input_vat,
            net_vat=net_vat,
            vat_payable=max(net_vat, ZERO),
            refund_due=max(-net_vat, ZERO),
            is_refund_due=net_vat < 0,
            output_breakdown=output_breakdown,
            input_breakdown=input_breakdown,
        )

    def _summarize(self, transactions: list[VATTransaction]):
        total = ZERO
        exempt = ZERO
        vat = ZERO
        by_category: dict[str, VATCategoryLine] = {}

        for tx in transactions:
            total += tx.amount
            if tx.is_exempt:
                exempt += tx.amount
                continue
            vat += tx.vat_amount
            line = by_category.setdefault(tx.category, VATCategoryLine(tx.category, ZERO, ZERO))
            line.amount += tx.amount
            line.vat += tx.vat_amount

        return money(total), money(exempt), money(vat), list(by_category.values())
