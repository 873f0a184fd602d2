"""
Reconciliation Engine
Matches computed liabilities against the payment ledger.

Status is derived in a fixed order:
  1. nothing computed and nothing paid -> fully_paid
  2. paid > computed                   -> overpaid
  3. paid >= computed                  -> fully_paid
  4. paid > 0                          -> partial
  5. otherwise                         -> unpaid

Only confirmed payments count toward the paid amount. Pending and
rejected payments stay on the item so they can be shown for audit.
A payment without a period is matched by the date it was made; one
with neither is left out.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from taxengine.core.amounts import ZERO, money, non_negative, rate
from taxengine.core.liability import LiabilityAggregator
from taxengine.core.periods import TaxPeriod
from taxengine.core.records import LedgerSnapshot, Payment, TaxInstrument
from taxengine.core.regime import TaxRegime


class SettlementStatus(str, Enum):
    UNPAID = "unpaid"
    PARTIAL = "partial"
    FULLY_PAID = "fully_paid"
    OVERPAID = "overpaid"


SETTLED_STATUSES = (SettlementStatus.FULLY_PAID, SettlementStatus.OVERPAID)


@dataclass
class LiabilityItem:
    instrument: TaxInstrument
    period: str
    computed_amount: Decimal
    paid_amount: Decimal
    balance: Decimal
    status: SettlementStatus
    payments: list[Payment] = field(default_factory=list)

    @property
    def amount_due(self) -> Decimal:
        """Balance clamped at zero; an overpayment is never shown as money owed back."""
        return max(self.balance, ZERO)

    @property
    def is_settled(self) -> bool:
        return self.status in SETTLED_STATUSES


@dataclass
class ReconciliationSummary:
    total_computed: Decimal
    total_paid: Decimal
    total_outstanding: Decimal
    progress: Decimal
    status_counts: dict[str, int] = field(default_factory=dict)


def settlement_status(computed: Decimal, paid: Decimal) -> SettlementStatus:
    if computed == 0 and paid == 0:
        return SettlementStatus.FULLY_PAID
    if paid > computed:
        return SettlementStatus.OVERPAID
    if paid >= computed:
        return SettlementStatus.FULLY_PAID
    if paid > 0:
        return SettlementStatus.PARTIAL
    return SettlementStatus.UNPAID


class ReconciliationEngine:
    def __init__(self, aggregator: LiabilityAggregator | None = None):
        self.aggregator = aggregator or LiabilityAggregator()

    def reconcile(
        self,
        instrument: TaxInstrument | str,
        period: TaxPeriod,
        computed_amount,
        payments: list[Payment],
    ) -> LiabilityItem:
        instrument = TaxInstrument(instrument)
        computed = money(non_negative(computed_amount, "computed_amount"))

        matching = [p for p in payments if self._matches(p, instrument, period)]
        paid = money(sum((p.amount for p in matching if p.is_confirmed), ZERO))

        return LiabilityItem(
            instrument=instrument,
            period=period.label,
            computed_amount=computed,
            paid_amount=paid,
            balance=computed - paid,
            status=settlement_status(computed, paid),
            payments=matching,
        )

    def _matches(self, payment: Payment, instrument: TaxInstrument, period: TaxPeriod) -> bool:
        if payment.instrument != instrument:
            return False
        if payment.period is not None:
            return payment.period == period
        # Without a period a payment belongs to the period it was made in
        return payment.date is not None and period.contains(payment.date)

    def reconcile_period(
        self,
        period: TaxPeriod,
        records: LedgerSnapshot,
        payments: list[Payment],
        regime: TaxRegime,
        income_instrument: TaxInstrument | str = TaxInstrument.PIT,
    ) -> list[LiabilityItem]:
        """Income tax is always listed; VAT and WHT only when something was computed or paid."""
        income_instrument = TaxInstrument(income_instrument)
        items = [
            self.reconcile(
                income_instrument,
                period,
                self.aggregator.liability_for(income_instrument, period, records, regime),
                payments,
            )
        ]

        for instrument in (TaxInstrument.VAT, TaxInstrument.WHT):
            computed = self.aggregator.liability_for(instrument, period, records, regime)
            item = self.reconcile(instrument, period, computed, payments)
            if item.computed_amount > 0 or item.paid_amount > 0:
                items.append(item)

        return items

    def summarize(self, items: list[LiabilityItem]) -> ReconciliationSummary:
        total_computed = sum((i.computed_amount for i in items), ZERO)
        total_paid = sum((i.paid_amount for i in items), ZERO)
        total_outstanding = sum((i.amount_due for i in items), ZERO)

        progress = ZERO
        if total_computed > 0:
            progress = rate(min(total_paid / total_computed, Decimal(1)))

        counts: dict[str, int] = {s.value: 0 for s in SettlementStatus}
        for item in items:
            counts[item.status.value] += 1

        return ReconciliationSummary(
            total_computed=money(total_computed),
            total_paid=money(total_paid),
            total_outstanding=money(total_outstanding),
            progress=progress,
            status_counts=counts,
        )
