"""
Tax engine error taxonomy.

Only two things can go wrong inside the engines:
  - InvalidInputError: a numeric input is non-finite or malformed
  - ConfigurationError: a tax regime is malformed or missing for a year

Zero income, deductions above income, empty transaction lists and
missing payments are valid states and never raise.
"""


class TaxEngineError(Exception):
    """Base class for all tax engine errors."""


class InvalidInputError(TaxEngineError, ValueError):
    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class ConfigurationError(TaxEngineError):
    def __init__(self, message: str, tax_year: int | None = None):
        super().__init__(message)
        self.tax_year = tax_year
