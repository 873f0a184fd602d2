"""
Filing Deadline Tracker

Due dates:
  - VAT, WHT: 21 days after the last day of the period
  - PIT: 31 March of the following year
  - CIT: 30 June of the following year

Urgency windows differ by instrument class: 7 days for monthly
obligations, 30 days for annual ones. "Today" comes from an injected
clock so that the rest of the engine stays deterministic.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Callable, Mapping

from taxengine.core.periods import TaxPeriod
from taxengine.core.reconciliation import SETTLED_STATUSES, SettlementStatus
from taxengine.core.records import MONTHLY_INSTRUMENTS, TaxInstrument

MONTHLY_FILING_DAYS = 21

# (month, day) in the year after the assessment year
ANNUAL_DUE_DATES = {
    TaxInstrument.PIT: (3, 31),
    TaxInstrument.CIT: (6, 30),
}


class Urgency(str, Enum):
    OVERDUE = "overdue"
    DUE_SOON = "due_soon"
    UPCOMING = "upcoming"
    SATISFIED = "satisfied"


URGENCY_ORDER = {
    Urgency.OVERDUE: 0,
    Urgency.DUE_SOON: 1,
    Urgency.UPCOMING: 2,
    Urgency.SATISFIED: 3,
}


@dataclass
class FilingDeadline:
    instrument: TaxInstrument
    period: str
    due_date: date
    urgency: Urgency
    days_until_due: int


class FilingDeadlineTracker:
    def __init__(
        self,
        clock: Callable[[], date] = date.today,
        monthly_window: int = 7,
        annual_window: int = 30,
    ):
        self.clock = clock
        self.monthly_window = monthly_window
        self.annual_window = annual_window

    def due_date(self, instrument: TaxInstrument | str, period: TaxPeriod) -> date:
        instrument = TaxInstrument(instrument)
        if instrument in MONTHLY_INSTRUMENTS:
            return period.end_date + timedelta(days=MONTHLY_FILING_DAYS)
        month, day = ANNUAL_DUE_DATES[instrument]
        return date(period.year + 1, month, day)

    def window_for(self, instrument: TaxInstrument) -> int:
        return self.monthly_window if instrument in MONTHLY_INSTRUMENTS else self.annual_window

    def deadline_for(
        self,
        instrument: TaxInstrument | str,
        period: TaxPeriod,
        liability_status: SettlementStatus | str | None = None,
    ) -> FilingDeadline:
        instrument = TaxInstrument(instrument)
        due = self.due_date(instrument, period)
        days_until_due = (due - self.clock()).days

        if liability_status is not None and SettlementStatus(liability_status) in SETTLED_STATUSES:
            urgency = Urgency.SATISFIED
        elif days_until_due < 0:
            urgency = Urgency.OVERDUE
        elif days_until_due <= self.window_for(instrument):
            urgency = Urgency.DUE_SOON
        else:
            urgency = Urgency.UPCOMING

        return FilingDeadline(
            instrument=instrument,
            period=period.label,
            due_date=due,
            urgency=urgency,
            days_until_due=days_until_due,
        )

    def upcoming(
        self,
        year: int,
        instruments: tuple[TaxInstrument, ...] = tuple(TaxInstrument),
        statuses: Mapping[tuple[TaxInstrument, str], SettlementStatus] | None = None,
    ) -> list[FilingDeadline]:
        """Every deadline arising from ``year``, most urgent first.

        ``statuses`` maps (instrument, period label) to the reconciled
        status of that liability.
        """
        statuses = statuses or {}
        deadlines = []
        for instrument in instruments:
            instrument = TaxInstrument(instrument)
            if instrument in MONTHLY_INSTRUMENTS:
                periods = [TaxPeriod.monthly(year, month) for month in range(1, 13)]
            else:
                periods = [TaxPeriod.annual(year)]
            for period in periods:
                status = statuses.get((instrument, period.label))
                deadlines.append(self.deadline_for(instrument, period, status))

        deadlines.sort(key=lambda d: (URGENCY_ORDER[d.urgency], d.due_date, d.instrument.value))
        return deadlines
