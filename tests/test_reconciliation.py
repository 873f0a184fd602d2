"""
Tests for the Reconciliation Engine.
"""

from datetime import date
from decimal import Decimal

import pytest

from taxengine.core.periods import TaxPeriod
from taxengine.core.reconciliation import ReconciliationEngine, SettlementStatus, settlement_status
from taxengine.core.records import IncomeRecord, LedgerSnapshot, Payment, TaxInstrument
from taxengine.core.regime import get_regime
from taxengine.core.tax_rules.vat import VATTransaction


@pytest.fixture
def engine():
    return ReconciliationEngine()


@pytest.fixture
def regime():
    return get_regime(2026)


@pytest.fixture
def march():
    return TaxPeriod.monthly(2026, 3)


class TestReconcile:
    def test_vat_fully_paid(self, engine, march):
        payments = [Payment("vat", 150_000, "confirmed", period=march)]
        item = engine.reconcile("vat", march, 150_000, payments)
        assert item.status == SettlementStatus.FULLY_PAID
        assert item.balance == 0
        assert item.period == "2026-03"

    def test_pending_payment_excluded(self, engine, march):
        payments = [
            Payment("wht", 50_000, "confirmed", period=march),
            Payment("wht", 40_000, "pending", period=march),
        ]
        item = engine.reconcile("wht", march, 80_000, payments)
        assert item.paid_amount == 50_000
        assert item.status == SettlementStatus.PARTIAL
        assert item.balance == 30_000
        # Pending payments are kept for audit
        assert len(item.payments) == 2

    def test_rejected_payment_excluded(self, engine, march):
        payments = [Payment("vat", 10_000, "rejected", period=march)]
        item = engine.reconcile("vat", march, 10_000, payments)
        assert item.paid_amount == 0
        assert item.status == SettlementStatus.UNPAID
        assert item.payments == payments

    def test_other_instruments_and_periods_ignored(self, engine, march):
        payments = [
            Payment("vat", 10_000, "confirmed", period=march),
            Payment("wht", 99_000, "confirmed", period=march),
            Payment("vat", 99_000, "confirmed", period="2026-04"),
        ]
        item = engine.reconcile(TaxInstrument.VAT, march, 10_000, payments)
        assert item.paid_amount == 10_000
        assert len(item.payments) == 1

    def test_payment_without_period_matches_by_date(self, engine, march):
        payments = [
            Payment("vat", 4_000, "confirmed", date=date(2026, 3, 31)),
            Payment("vat", 6_000, "confirmed", date=date(2026, 4, 1)),
        ]
        item = engine.reconcile("vat", march, 10_000, payments)
        assert item.paid_amount == 4_000
        assert len(item.payments) == 1

    def test_undated_payment_without_period_ignored(self, engine, march):
        item = engine.reconcile("vat", march, 10_000, [Payment("vat", 4_000, "confirmed")])
        assert item.paid_amount == 0
        assert item.payments == []

    def test_one_payment_settles_one_month(self, engine):
        payments = [Payment("vat", 100_000, "confirmed", date=date(2026, 1, 20))]
        january = engine.reconcile("vat", TaxPeriod.monthly(2026, 1), 100_000, payments)
        february = engine.reconcile("vat", TaxPeriod.monthly(2026, 2), 100_000, payments)
        assert january.status == SettlementStatus.FULLY_PAID
        assert february.status == SettlementStatus.UNPAID
        assert february.paid_amount == 0

    def test_overpayment_balance_is_negative(self, engine, march):
        payments = [Payment("vat", 150_000, "confirmed", period=march)]
        item = engine.reconcile("vat", march, 100_000, payments)
        assert item.status == SettlementStatus.OVERPAID
        assert item.balance == -50_000
        assert item.amount_due == 0
        assert item.is_settled is True

    def test_nothing_owed_nothing_paid(self, engine, march):
        item = engine.reconcile("wht", march, 0, [])
        assert item.status == SettlementStatus.FULLY_PAID
        assert item.balance == 0


class TestStatusCompleteness:
    @pytest.mark.parametrize(
        "computed, paid, expected",
        [
            (0, 0, SettlementStatus.FULLY_PAID),
            (0, 10, SettlementStatus.OVERPAID),
            (100, 0, SettlementStatus.UNPAID),
            (100, 1, SettlementStatus.PARTIAL),
            (100, 99.99, SettlementStatus.PARTIAL),
            (100, 100, SettlementStatus.FULLY_PAID),
            (100, 100.01, SettlementStatus.OVERPAID),
        ],
    )
    def test_status(self, computed, paid, expected):
        assert settlement_status(Decimal(str(computed)), Decimal(str(paid))) == expected

    def test_balance_always_computed_minus_paid(self, engine, march):
        for computed in (0, 50, 100):
            for paid in (0, 25, 100, 150):
                payments = [Payment("pit", paid, "confirmed", period=march)] if paid else []
                item = engine.reconcile("pit", march, computed, payments)
                assert item.balance == Decimal(computed) - Decimal(paid)
                assert item.status in SettlementStatus


class TestReconcilePeriod:
    def test_income_tax_always_listed(self, engine, regime):
        items = engine.reconcile_period(TaxPeriod.annual(2026), LedgerSnapshot(), [], regime)
        assert [i.instrument for i in items] == [TaxInstrument.PIT]
        assert items[0].status == SettlementStatus.FULLY_PAID

    def test_vat_and_wht_only_when_relevant(self, engine, regime, march):
        records = LedgerSnapshot(
            vat_transactions=[VATTransaction("output", 100_000, 7_500, 2026, 3)],
        )
        payments = [Payment("wht", 1_000, "confirmed", period=march)]
        items = engine.reconcile_period(march, records, payments, regime)
        instruments = [i.instrument for i in items]
        assert instruments == [TaxInstrument.PIT, TaxInstrument.VAT, TaxInstrument.WHT]
        wht = items[2]
        assert wht.computed_amount == 0
        assert wht.status == SettlementStatus.OVERPAID

    def test_monthly_income_tax_is_owed(self, engine, regime, march):
        records = LedgerSnapshot(income_records=[IncomeRecord(date=date(2026, 3, 25), amount=500_000)])
        [pit] = engine.reconcile_period(march, records, [], regime)
        assert pit.computed_amount == 72_500
        assert pit.status == SettlementStatus.UNPAID

    def test_company_income_instrument(self, engine, regime):
        records = LedgerSnapshot(income_records=[IncomeRecord(date=date(2026, 5, 1), amount=3_000_000)])
        items = engine.reconcile_period(TaxPeriod.annual(2026), records, [], regime, income_instrument="cit")
        assert items[0].instrument == TaxInstrument.CIT
        assert items[0].computed_amount == 330_000

    def test_summary(self, engine, march):
        items = [
            engine.reconcile("vat", march, 100_000, [Payment("vat", 150_000, "confirmed", period=march)]),
            engine.reconcile("wht", march, 100_000, [Payment("wht", 25_000, "confirmed", period=march)]),
        ]
        summary = engine.summarize(items)
        assert summary.total_computed == 200_000
        assert summary.total_paid == 175_000
        # The VAT overpayment is not netted against the WHT balance
        assert summary.total_outstanding == 75_000
        assert summary.progress == Decimal("0.875")
        assert summary.status_counts["overpaid"] == 1
        assert summary.status_counts["partial"] == 1

    def test_summary_of_nothing(self, engine):
        summary = engine.summarize([])
        assert summary.total_computed == 0
        assert summary.progress == 0
