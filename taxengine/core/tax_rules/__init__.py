from taxengine.core.tax_rules.pit import TaxComputationEngine, StatutoryDeductions
from taxengine.core.tax_rules.cit import CITCalculator
from taxengine.core.tax_rules.vat import VATCalculator
from taxengine.core.tax_rules.wht import WHTCalculator

__all__ = [
    "TaxComputationEngine",
    "StatutoryDeductions",
    "CITCalculator",
    "VATCalculator",
    "WHTCalculator",
]
