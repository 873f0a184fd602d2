"""Tax period values.

A period is either a calendar month (year + month) or a full calendar
year (month is None). Membership is decided on the calendar date alone:
a datetime is reduced to its own date component, never converted to
another timezone first.
"""
import calendar
from dataclasses import dataclass
from datetime import date, datetime

from taxengine.core.exceptions import InvalidInputError


@dataclass(frozen=True)
class TaxPeriod:
    year: int
    month: int | None = None

    def __post_init__(self):
        if not isinstance(self.year, int) or isinstance(self.year, bool) or self.year < 1:
            raise InvalidInputError(f"Invalid tax year: {self.year!r}", field="year")
        if self.month is not None and not (isinstance(self.month, int) and 1 <= self.month <= 12):
            raise InvalidInputError(f"Invalid month: {self.month!r}", field="month")

    @classmethod
    def monthly(cls, year: int, month: int) -> "TaxPeriod":
        return cls(year=year, month=month)

    @classmethod
    def annual(cls, year: int) -> "TaxPeriod":
        return cls(year=year)

    @classmethod
    def parse(cls, label: str) -> "TaxPeriod":
        """Parse ``"2026"`` or ``"2026-03"``."""
        text = str(label).strip()
        try:
            if "-" in text:
                year_part, month_part = text.split("-", 1)
                return cls(year=int(year_part), month=int(month_part))
            return cls(year=int(text))
        except ValueError as e:
            if isinstance(e, InvalidInputError):
                raise
            raise InvalidInputError(f"Invalid period label: {label!r}", field="period") from e

    @property
    def is_monthly(self) -> bool:
        return self.month is not None

    @property
    def label(self) -> str:
        if self.month is None:
            return f"{self.year}"
        return f"{self.year}-{self.month:02d}"

    @property
    def start_date(self) -> date:
        return date(self.year, self.month or 1, 1)

    @property
    def end_date(self) -> date:
        month = self.month or 12
        return date(self.year, month, calendar.monthrange(self.year, month)[1])

    def contains(self, value: date | datetime | str) -> bool:
        day = as_date(value)
        return self.start_date <= day <= self.end_date

    def contains_month(self, year: int, month: int) -> bool:
        if year != self.year:
            return False
        return self.month is None or self.month == month

    def __str__(self) -> str:
        return self.label


def as_date(value: date | datetime | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        # ISO timestamps keep their local date: "2026-03-31T23:30:00+01:00" is 31 March
        return date.fromisoformat(str(value)[:10])
    except ValueError as e:
        raise InvalidInputError(f"Invalid date: {value!r}", field="date") from e
