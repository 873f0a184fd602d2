"""
Tests for the Liability Aggregator.
"""

from datetime import date, datetime

import pytest

from taxengine.core.liability import LiabilityAggregator
from taxengine.core.periods import TaxPeriod
from taxengine.core.records import IncomeRecord, LedgerSnapshot, TaxInstrument
from taxengine.core.regime import get_regime
from taxengine.core.tax_rules.pit import StatutoryDeductions
from taxengine.core.tax_rules.vat import VATTransaction
from taxengine.core.tax_rules.wht import WHTTransaction


@pytest.fixture
def aggregator():
    return LiabilityAggregator()


@pytest.fixture
def regime():
    return get_regime(2026)


def _vat(transaction_type, vat_amount, month=3, is_exempt=False):
    return VATTransaction(
        transaction_type=transaction_type,
        amount=vat_amount * 10,
        vat_amount=vat_amount,
        year=2026,
        month=month,
        is_exempt=is_exempt,
    )


class TestIncomeTax:
    def test_pit_uses_income_dated_in_period(self, aggregator, regime):
        records = LedgerSnapshot(income_records=[
            IncomeRecord(date=date(2026, 1, 31), amount=600_000, category="salary"),
            IncomeRecord(date=date(2026, 12, 31), amount=400_000, category="freelance"),
            IncomeRecord(date=date(2025, 12, 31), amount=9_000_000, category="salary"),
        ])
        # 1M: 200K above the threshold at 15%
        assert aggregator.liability_for("pit", TaxPeriod.annual(2026), records, regime) == 30_000

    def test_declared_deductions_apply(self, aggregator, regime):
        records = LedgerSnapshot(
            income_records=[IncomeRecord(date=date(2026, 6, 1), amount=1_000_000)],
            deductions=StatutoryDeductions(pension_contribution=200_000),
        )
        assert aggregator.liability_for(TaxInstrument.PIT, TaxPeriod.annual(2026), records, regime) == 0

    def test_cit_uses_same_engine(self, aggregator, regime):
        records = LedgerSnapshot(income_records=[IncomeRecord(date=date(2026, 6, 1), amount=3_000_000)])
        assert aggregator.liability_for("cit", TaxPeriod.annual(2026), records, regime) == 330_000

    def test_monthly_period_takes_share_of_annualised_tax(self, aggregator, regime):
        records = LedgerSnapshot(income_records=[
            IncomeRecord(date=date(2026, month, 25), amount=500_000, category="salary") for month in range(1, 13)
        ])
        monthly = [
            aggregator.liability_for("pit", TaxPeriod.monthly(2026, month), records, regime)
            for month in range(1, 13)
        ]
        # 6M annualised is 870K a year
        assert monthly[0] == 72_500
        assert sum(monthly) == aggregator.liability_for("pit", TaxPeriod.annual(2026), records, regime)
        assert sum(monthly) == 870_000

    def test_empty_records(self, aggregator, regime):
        records = LedgerSnapshot()
        for instrument in TaxInstrument:
            assert aggregator.liability_for(instrument, TaxPeriod.monthly(2026, 3), records, regime) == 0


class TestVATLiability:
    def test_net_of_input_vat(self, aggregator, regime):
        records = LedgerSnapshot(vat_transactions=[_vat("output", 7_500), _vat("input", 2_250)])
        assert aggregator.liability_for("vat", TaxPeriod.monthly(2026, 3), records, regime) == 5_250

    def test_exempt_transactions_ignored(self, aggregator, regime):
        records = LedgerSnapshot(vat_transactions=[
            _vat("output", 7_500),
            _vat("output", 1_000, is_exempt=True),
            _vat("input", 500, is_exempt=True),
        ])
        assert aggregator.liability_for("vat", TaxPeriod.monthly(2026, 3), records, regime) == 7_500

    def test_refund_position_is_never_negative(self, aggregator, regime):
        records = LedgerSnapshot(vat_transactions=[_vat("output", 2_000), _vat("input", 5_000)])
        period = TaxPeriod.monthly(2026, 3)

        assert aggregator.liability_for("vat", period, records, regime) == 0
        position = aggregator.vat_position(period, records)
        assert position.net_vat == -3_000
        assert position.refund_due == 3_000
        assert position.is_refund_due is True

    def test_other_months_excluded(self, aggregator, regime):
        records = LedgerSnapshot(vat_transactions=[_vat("output", 7_500, month=4)])
        assert aggregator.liability_for("vat", TaxPeriod.monthly(2026, 3), records, regime) == 0


class TestWHTLiability:
    def test_period_boundaries_use_calendar_date(self, aggregator, regime):
        records = LedgerSnapshot(wht_transactions=[
            WHTTransaction(gross_amount=100_000, wht_amount=10_000, payment_date=date(2026, 3, 1)),
            WHTTransaction(gross_amount=100_000, wht_amount=10_000, payment_date=datetime(2026, 3, 31, 23, 59, 59)),
            WHTTransaction(gross_amount=100_000, wht_amount=10_000, payment_date=date(2026, 4, 1)),
            WHTTransaction(gross_amount=100_000, wht_amount=10_000, payment_date=date(2026, 2, 28)),
        ])
        assert aggregator.liability_for("wht", TaxPeriod.monthly(2026, 3), records, regime) == 20_000
        assert aggregator.liability_for("wht", TaxPeriod.monthly(2026, 4), records, regime) == 10_000

    def test_liabilities_for_all_instruments(self, aggregator, regime):
        records = LedgerSnapshot(
            income_records=[IncomeRecord(date=date(2026, 3, 25), amount=500_000, category="salary")],
            vat_transactions=[_vat("output", 7_500)],
            wht_transactions=[WHTTransaction(gross_amount=50_000, wht_amount=5_000, payment_date="2026-03-10")],
        )
        result = aggregator.liabilities(TaxPeriod.monthly(2026, 3), records, regime)
        assert result[TaxInstrument.VAT] == 7_500
        assert result[TaxInstrument.WHT] == 5_000
        assert result[TaxInstrument.PIT] == 72_500
