"""
Liability Aggregator
Computed liability per tax instrument for one period.

  - PIT / CIT: progressive computation over the income recorded in the period.
    These are annual taxes: for a monthly period the month's income is
    annualised and one twelfth of the annual tax is due, as PAYE is withheld.
  - VAT: output VAT minus input VAT over non-exempt transactions, floored at zero
  - WHT: WHT deducted on payments dated in the period

A negative VAT net is a refund position. It is reported by vat_position()
and never netted against another instrument.
"""

from dataclasses import dataclass
from decimal import Decimal

from taxengine.core.amounts import ZERO, money
from taxengine.core.periods import TaxPeriod
from taxengine.core.records import LedgerSnapshot, TaxInstrument
from taxengine.core.regime import TaxRegime
from taxengine.core.tax_rules.pit import TaxComputationEngine
from taxengine.core.tax_rules.vat import VATCalculator
from taxengine.core.tax_rules.wht import WHTCalculator

MONTHS_PER_YEAR = 12


@dataclass
class VATPosition:
    period: str
    output_vat: Decimal
    input_vat: Decimal
    net_vat: Decimal
    liability: Decimal
    refund_due: Decimal
    is_refund_due: bool


class LiabilityAggregator:
    def __init__(
        self,
        engine: TaxComputationEngine | None = None,
        vat_calculator: VATCalculator | None = None,
        wht_calculator: WHTCalculator | None = None,
    ):
        self.engine = engine or TaxComputationEngine()
        self.vat_calculator = vat_calculator or VATCalculator()
        self.wht_calculator = wht_calculator or WHTCalculator()

    def liability_for(
        self,
        instrument: TaxInstrument | str,
        period: TaxPeriod,
        records: LedgerSnapshot,
        regime: TaxRegime,
    ) -> Decimal:
        instrument = TaxInstrument(instrument)

        if instrument in (TaxInstrument.PIT, TaxInstrument.CIT):
            income = self.period_income(period, records)
            if not period.is_monthly:
                return self.engine.compute(income, records.deductions, regime).net_tax_payable
            annual = self.engine.compute(income * MONTHS_PER_YEAR, records.deductions, regime)
            return money(annual.net_tax_payable / MONTHS_PER_YEAR)

        if instrument == TaxInstrument.VAT:
            return self.vat_position(period, records).liability

        summary = self.wht_calculator.summarize(period, records.wht_transactions)
        return summary.total_wht

    def period_income(self, period: TaxPeriod, records: LedgerSnapshot) -> Decimal:
        return money(sum((r.amount for r in records.income_records if period.contains(r.date)), ZERO))

    def vat_position(self, period: TaxPeriod, records: LedgerSnapshot) -> VATPosition:
        result = self.vat_calculator.compute_period(period, records.vat_transactions)
        return VATPosition(
            period=period.label,
            output_vat=result.output_vat,
            input_vat=result.input_vat,
            net_vat=result.net_vat,
            liability=result.vat_payable,
            refund_due=result.refund_due,
            is_refund_due=result.is_refund_due,
        )

    def liabilities(
        self,
        period: TaxPeriod,
        records: LedgerSnapshot,
        regime: TaxRegime,
        instruments: tuple[TaxInstrument, ...] = tuple(TaxInstrument),
    ) -> dict[TaxInstrument, Decimal]:
        return {i: self.liability_for(i, period, records, regime) for i in instruments}
