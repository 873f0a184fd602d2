"""
Tax Regimes
Versioned rate tables, thresholds and caps for one tax year.

A regime is an immutable value passed into every engine call. Rules for
a new year are added as a new regime, never by editing an existing one,
so several years can be computed side by side.

Nigeria Tax Act 2025 (effective 1 January 2026):
  - Fourth Schedule PIT bands: 0% / 15% / 18% / 21% / 23% / 25%
  - Full exemption where annual taxable income ≤ ₦800,000
  - Rent relief: 20% of annual rent paid, max ₦500,000
  - Loss-of-employment compensation exempt up to ₦50,000,000
  - VAT: 7.5%
  - CIT: small companies (turnover ≤ ₦25M) 0%, others per turnover band
  - Development levy: 4% of assessable profit (non-small companies)
  - Capital allowances restricted to 2/3 of assessable profit
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping

from taxengine.core.amounts import ZERO, to_decimal
from taxengine.core.exceptions import ConfigurationError, InvalidInputError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaxBracket:
    lower_bound: Decimal
    upper_bound: Decimal | None
    rate: Decimal

    @property
    def width(self) -> Decimal | None:
        if self.upper_bound is None:
            return None
        return self.upper_bound - self.lower_bound

    @property
    def is_unbounded(self) -> bool:
        return self.upper_bound is None


@dataclass(frozen=True)
class CITBand:
    category: str
    min_turnover: Decimal
    max_turnover: Decimal | None
    rate: Decimal


@dataclass(frozen=True)
class WHTRate:
    corporate: Decimal
    individual: Decimal
    non_resident: Decimal


@dataclass(frozen=True)
class CapitalAllowanceRate:
    initial_rate: Decimal
    annual_rate: Decimal


@dataclass(frozen=True)
class TaxRegime:
    tax_year: int
    brackets: tuple[TaxBracket, ...]
    exemption_threshold: Decimal
    rent_relief_rate: Decimal
    rent_relief_cap: Decimal
    employment_compensation_exempt_cap: Decimal
    pension_contribution_rate: Decimal = Decimal("0.08")
    nhf_contribution_rate: Decimal = Decimal("0.025")
    deduction_caps: Mapping[str, Decimal] = field(default_factory=dict)
    vat_rate: Decimal = Decimal("0.075")
    vat_exempt_categories: frozenset[str] = frozenset()
    wht_rates: Mapping[str, WHTRate] = field(default_factory=dict)
    wht_default_rate: Decimal = Decimal("0.10")
    cit_bands: tuple[CITBand, ...] = ()
    development_levy_rate: Decimal = Decimal("0.04")
    capital_allowance_rates: Mapping[str, CapitalAllowanceRate] = field(default_factory=dict)
    capital_allowance_restriction: Decimal = Decimal(2) / Decimal(3)

    def __post_init__(self):
        object.__setattr__(self, "brackets", tuple(self.brackets))
        object.__setattr__(self, "cit_bands", tuple(self.cit_bands))
        object.__setattr__(self, "vat_exempt_categories", frozenset(self.vat_exempt_categories))
        object.__setattr__(self, "deduction_caps", MappingProxyType(dict(self.deduction_caps)))
        object.__setattr__(self, "wht_rates", MappingProxyType(dict(self.wht_rates)))
        object.__setattr__(
            self, "capital_allowance_rates", MappingProxyType(dict(self.capital_allowance_rates))
        )
        validate_brackets(self.brackets, self.tax_year)

        for name in (
            "exemption_threshold",
            "rent_relief_cap",
            "employment_compensation_exempt_cap",
        ):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} cannot be negative", tax_year=self.tax_year)

        for name in (
            "rent_relief_rate",
            "pension_contribution_rate",
            "nhf_contribution_rate",
            "vat_rate",
            "development_levy_rate",
        ):
            value = getattr(self, name)
            if not ZERO <= value <= 1:
                raise ConfigurationError(f"{name} must be between 0 and 1", tax_year=self.tax_year)

        for key, cap in self.deduction_caps.items():
            if cap < 0:
                raise ConfigurationError(f"Deduction cap for {key} cannot be negative", tax_year=self.tax_year)

    def cap_for(self, deduction_field: str) -> Decimal | None:
        return self.deduction_caps.get(deduction_field)


def validate_brackets(brackets: tuple[TaxBracket, ...], tax_year: int | None = None) -> None:
    if not brackets:
        raise ConfigurationError("Bracket table is empty", tax_year=tax_year)

    if brackets[0].lower_bound != 0:
        raise ConfigurationError("First bracket must start at zero", tax_year=tax_year)

    previous = None
    for index, bracket in enumerate(brackets):
        is_last = index == len(brackets) - 1

        if not ZERO <= bracket.rate <= 1:
            raise ConfigurationError(
                f"Bracket {index} rate {bracket.rate} is outside 0..1", tax_year=tax_year
            )
        if bracket.upper_bound is None and not is_last:
            raise ConfigurationError(
                f"Only the final bracket may be unbounded (bracket {index})", tax_year=tax_year
            )
        if bracket.upper_bound is not None and bracket.upper_bound < bracket.lower_bound:
            raise ConfigurationError(f"Bracket {index} upper bound is below its lower bound", tax_year=tax_year)

        if previous is not None:
            if bracket.lower_bound > previous.upper_bound:
                raise ConfigurationError(f"Gap before bracket {index}", tax_year=tax_year)
            if bracket.lower_bound < previous.upper_bound:
                raise ConfigurationError(f"Bracket {index} overlaps the previous bracket", tax_year=tax_year)
            if bracket.rate < previous.rate:
                raise ConfigurationError(f"Bracket {index} rate decreases", tax_year=tax_year)
        previous = bracket

    if not brackets[-1].is_unbounded:
        raise ConfigurationError("Final bracket must be unbounded", tax_year=tax_year)


def _config_decimal(value, name: str, tax_year) -> Decimal:
    try:
        return to_decimal(value, name)
    except InvalidInputError as e:
        raise ConfigurationError(f"Invalid regime value for {name}: {value!r}", tax_year=tax_year) from e


def regime_from_mapping(data: Mapping) -> TaxRegime:
    """Build and validate a regime from plain configuration data.

    Brackets are given as ``{"min": ..., "max": ..., "rate": ...}`` with
    ``max`` of ``None`` for the unbounded final band.
    """
    tax_year = data.get("tax_year")
    if not isinstance(tax_year, int):
        raise ConfigurationError(f"Regime is missing a tax year: {tax_year!r}")

    def dec(name, default=None):
        if name not in data:
            if default is None:
                raise ConfigurationError(f"Regime is missing {name}", tax_year=tax_year)
            return default
        return _config_decimal(data[name], name, tax_year)

    try:
        brackets = tuple(
            TaxBracket(
                lower_bound=_config_decimal(b["min"], "bracket.min", tax_year),
                upper_bound=None if b.get("max") is None else _config_decimal(b["max"], "bracket.max", tax_year),
                rate=_config_decimal(b["rate"], "bracket.rate", tax_year),
            )
            for b in data.get("brackets", [])
        )
        cit_bands = tuple(
            CITBand(
                category=b["category"],
                min_turnover=_config_decimal(b["min"], "cit_band.min", tax_year),
                max_turnover=None if b.get("max") is None else _config_decimal(b["max"], "cit_band.max", tax_year),
                rate=_config_decimal(b["rate"], "cit_band.rate", tax_year),
            )
            for b in data.get("cit_bands", [])
        )
        wht_rates = {
            key: WHTRate(
                corporate=_config_decimal(r["corporate"], f"wht.{key}", tax_year),
                individual=_config_decimal(r["individual"], f"wht.{key}", tax_year),
                non_resident=_config_decimal(r["non_resident"], f"wht.{key}", tax_year),
            )
            for key, r in data.get("wht_rates", {}).items()
        }
        capital_allowance_rates = {
            key: CapitalAllowanceRate(
                initial_rate=_config_decimal(r["initial"], f"capital_allowance.{key}", tax_year),
                annual_rate=_config_decimal(r["annual"], f"capital_allowance.{key}", tax_year),
            )
            for key, r in data.get("capital_allowance_rates", {}).items()
        }
    except (KeyError, TypeError) as e:
        raise ConfigurationError(f"Malformed regime entry: {e}", tax_year=tax_year) from e

    kwargs = {}
    for optional in (
        "pension_contribution_rate",
        "nhf_contribution_rate",
        "vat_rate",
        "wht_default_rate",
        "development_levy_rate",
        "capital_allowance_restriction",
    ):
        if optional in data:
            kwargs[optional] = dec(optional)

    return TaxRegime(
        tax_year=tax_year,
        brackets=brackets,
        exemption_threshold=dec("exemption_threshold"),
        rent_relief_rate=dec("rent_relief_rate", ZERO),
        rent_relief_cap=dec("rent_relief_cap", ZERO),
        employment_compensation_exempt_cap=dec("employment_compensation_exempt_cap", ZERO),
        deduction_caps={
            key: _config_decimal(value, f"cap.{key}", tax_year)
            for key, value in data.get("deduction_caps", {}).items()
        },
        vat_exempt_categories=frozenset(data.get("vat_exempt_categories", ())),
        wht_rates=wht_rates,
        cit_bands=cit_bands,
        capital_allowance_rates=capital_allowance_rates,
        **kwargs,
    )


NIGERIA_TAX_ACT_2025 = {
    "tax_year": 2026,
    "brackets": [
        {"min": 0, "max": 800_000, "rate": "0"},
        {"min": 800_000, "max": 3_000_000, "rate": "0.15"},
        {"min": 3_000_000, "max": 12_000_000, "rate": "0.18"},
        {"min": 12_000_000, "max": 25_000_000, "rate": "0.21"},
        {"min": 25_000_000, "max": 50_000_000, "rate": "0.23"},
        {"min": 50_000_000, "max": None, "rate": "0.25"},
    ],
    "exemption_threshold": 800_000,
    "rent_relief_rate": "0.20",
    "rent_relief_cap": 500_000,
    "employment_compensation_exempt_cap": 50_000_000,
    "pension_contribution_rate": "0.08",
    "nhf_contribution_rate": "0.025",
    "vat_rate": "0.075",
    "vat_exempt_categories": [
        "medical_pharmaceutical",
        "basic_food_items",
        "books_educational",
        "baby_products",
        "agricultural_inputs",
        "exports",
        "diplomatic_purchases",
        "humanitarian_goods",
    ],
    "wht_default_rate": "0.10",
    "wht_rates": {
        "dividend": {"corporate": "0.10", "individual": "0.10", "non_resident": "0.10"},
        "interest": {"corporate": "0.10", "individual": "0.10", "non_resident": "0.10"},
        "royalty": {"corporate": "0.10", "individual": "0.10", "non_resident": "0.10"},
        "rent": {"corporate": "0.10", "individual": "0.10", "non_resident": "0.10"},
        "commission": {"corporate": "0.05", "individual": "0.05", "non_resident": "0.10"},
        "professional_fees": {"corporate": "0.10", "individual": "0.05", "non_resident": "0.10"},
        "construction": {"corporate": "0.05", "individual": "0.05", "non_resident": "0.05"},
        "management_fees": {"corporate": "0.10", "individual": "0.05", "non_resident": "0.10"},
        "technical_fees": {"corporate": "0.10", "individual": "0.05", "non_resident": "0.10"},
        "consultancy": {"corporate": "0.10", "individual": "0.05", "non_resident": "0.10"},
        "directors_fees": {"corporate": "0.10", "individual": "0.10", "non_resident": "0.10"},
        "other": {"corporate": "0.10", "individual": "0.05", "non_resident": "0.10"},
    },
    "cit_bands": [
        {"category": "small", "min": 0, "max": 25_000_000, "rate": "0"},
        {"category": "medium", "min": 25_000_000, "max": 100_000_000, "rate": "0.20"},
        {"category": "upper_medium", "min": 100_000_000, "max": 250_000_000, "rate": "0.30"},
        {"category": "large", "min": 250_000_000, "max": None, "rate": "0.30"},
    ],
    "development_levy_rate": "0.04",
    "capital_allowance_rates": {
        "plant_machinery": {"initial": "0.50", "annual": "0.25"},
        "motor_vehicles": {"initial": "0.50", "annual": "0.25"},
        "furniture_fittings": {"initial": "0.25", "annual": "0.20"},
        "buildings": {"initial": "0.15", "annual": "0.10"},
        "computers_equipment": {"initial": "0.50", "annual": "0.25"},
        "agricultural_equipment": {"initial": "0.95", "annual": "0"},
        "other": {"initial": "0.25", "annual": "0.20"},
    },
}

REGIME_SOURCES: dict[int, Mapping] = {
    2026: NIGERIA_TAX_ACT_2025,
}


def available_tax_years() -> list[int]:
    return sorted(REGIME_SOURCES)


def get_regime(tax_year: int, sources: Mapping[int, Mapping] | None = None) -> TaxRegime:
    """Build the regime for ``tax_year``.

    There is no fallback to a neighbouring year: computing with the wrong
    year's rules is worse than refusing to compute.
    """
    sources = REGIME_SOURCES if sources is None else sources
    data = sources.get(tax_year)
    if data is None:
        raise ConfigurationError(
            f"No tax regime configured for {tax_year}. Available years: {sorted(sources)}",
            tax_year=tax_year,
        )
    regime = regime_from_mapping(data)
    if regime.tax_year != tax_year:
        raise ConfigurationError(
            f"Regime registered for {tax_year} declares tax year {regime.tax_year}", tax_year=tax_year
        )
    logger.debug("Loaded tax regime for %s with %d brackets", tax_year, len(regime.brackets))
    return regime
