"""
Tax engine API routes.
Exposes the computation, inference and reconciliation engines via REST endpoints.
"""

import logging
from dataclasses import asdict
from datetime import date

from fastapi import APIRouter, HTTPException

from taxengine.config import get_settings
from taxengine.core.deadlines import FilingDeadlineTracker
from taxengine.core.deductions import DeductionInferenceEngine
from taxengine.core.exceptions import ConfigurationError
from taxengine.core.periods import TaxPeriod
from taxengine.core.reconciliation import LiabilityItem, ReconciliationEngine, SettlementStatus
from taxengine.core.records import (
    ExpenseRecord,
    IncomeRecord,
    LedgerSnapshot,
    Payment,
    TaxInstrument,
)
from taxengine.core.regime import TaxRegime, get_regime
from taxengine.core.scenario import ScenarioInput, ScenarioModeler, ScenarioType
from taxengine.core.tax_rules.business import BusinessExpenses, BusinessIncome, BusinessTaxCalculator
from taxengine.core.tax_rules.cit import CapitalAsset, CITCalculator, TaxAdjustments
from taxengine.core.tax_rules.pit import StatutoryDeductions, TaxComputationEngine
from taxengine.core.tax_rules.vat import VATCalculator, VATTransaction
from taxengine.core.tax_rules.wht import WHTCalculator, WHTTransaction
from taxengine.schemas.schemas import (
    BusinessTaxRequest,
    CapitalAssetInput,
    CITCalculateRequest,
    DeadlinesRequest,
    DeductionAnalyzeRequest,
    DeductionsInput,
    PAYEEstimateRequest,
    PITCalculateRequest,
    ReconcileRequest,
    ScenarioRequest,
    TaxAdjustmentsInput,
    VATCalculateRequest,
    VATTransactionInput,
    WHTCalculateRequest,
    WHTTransactionInput,
)

logger = logging.getLogger(__name__)

router = APIRouter()

pit_engine = TaxComputationEngine()
cit_calc = CITCalculator()
business_calc = BusinessTaxCalculator(cit_calculator=cit_calc)
vat_calc = VATCalculator()
wht_calc = WHTCalculator()
deduction_engine = DeductionInferenceEngine(pit_engine)
reconciliation_engine = ReconciliationEngine()
scenario_modeler = ScenarioModeler()


def _regime(tax_year: int | None, record_year: int | None = None) -> TaxRegime:
    """Regime for a request.

    When the request itself names a year (an analysis year or a period),
    that year picks the rules. An explicit tax_year that disagrees with it
    is refused rather than silently applied.
    """
    if record_year is not None:
        if tax_year is not None and tax_year != record_year:
            raise ConfigurationError(
                f"tax_year {tax_year} does not match the requested year {record_year}", tax_year=tax_year
            )
        return get_regime(record_year)
    return get_regime(tax_year or get_settings().DEFAULT_TAX_YEAR)


def _deductions(data: DeductionsInput | None) -> StatutoryDeductions:
    if data is None:
        return StatutoryDeductions()
    return StatutoryDeductions.from_mapping(data.model_dump())


def _assets(data: list[CapitalAssetInput]) -> list[CapitalAsset]:
    return [CapitalAsset(a.description, a.category, a.cost, a.year_acquired) for a in data]


def _adjustments(data: TaxAdjustmentsInput | None) -> TaxAdjustments | None:
    return TaxAdjustments(**data.model_dump()) if data else None


def _vat_transaction(tx: VATTransactionInput, regime: TaxRegime) -> VATTransaction:
    if tx.vat_amount is None:
        return vat_calc.create_transaction(
            tx.transaction_type, tx.amount, tx.year, tx.month, regime,
            category=tx.category, description=tx.description,
        )
    is_exempt = tx.is_exempt
    if is_exempt is None:
        is_exempt = vat_calc.is_exempt_category(tx.category, regime)
    return VATTransaction(
        transaction_type=tx.transaction_type,
        amount=tx.amount,
        vat_amount=tx.vat_amount,
        year=tx.year,
        month=tx.month,
        category=tx.category,
        is_exempt=is_exempt,
        description=tx.description,
    )


def _wht_transaction(tx: WHTTransactionInput, regime: TaxRegime) -> WHTTransaction:
    if tx.wht_amount is None:
        return wht_calc.create_transaction(
            tx.gross_amount, tx.payment_type, tx.recipient_type, tx.payment_date, regime,
            recipient_name=tx.recipient_name,
        )
    return WHTTransaction(
        gross_amount=tx.gross_amount,
        wht_amount=tx.wht_amount,
        payment_date=tx.payment_date,
        payment_type=tx.payment_type,
        recipient_type=tx.recipient_type,
        recipient_name=tx.recipient_name,
    )


def _item_dict(item: LiabilityItem) -> dict:
    data = asdict(item)
    data["amount_due"] = item.amount_due
    data["payments"] = [
        {**asdict(p), "period": p.period.label if p.period else None} for p in item.payments
    ]
    return data


@router.post("/pit/calculate")
async def calculate_pit(data: PITCalculateRequest):
    """Calculate Personal Income Tax for the requested tax year."""
    try:
        result = pit_engine.compute(data.gross_income, _deductions(data.deductions), _regime(data.tax_year))
        return asdict(result)
    except ConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/paye/estimate")
async def estimate_paye(data: PAYEEstimateRequest):
    """Estimate monthly PAYE deduction from salary."""
    try:
        return pit_engine.estimate_monthly_paye(
            data.monthly_gross, _deductions(data.deductions), _regime(data.tax_year)
        )
    except ConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/cit/calculate")
async def calculate_cit(data: CITCalculateRequest):
    """Calculate Company Income Tax with capital allowances."""
    try:
        result = cit_calc.calculate(
            gross_profit=data.gross_profit,
            regime=_regime(data.tax_year),
            allowable_deductions=data.allowable_deductions,
            annual_turnover=data.annual_turnover,
            assets=_assets(data.assets),
            adjustments=_adjustments(data.adjustments),
        )
        return asdict(result)
    except ConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/business/calculate")
async def calculate_business_tax(data: BusinessTaxRequest):
    """PIT for sole proprietors and partnerships, CIT for limited companies."""
    try:
        result = business_calc.calculate(
            entity_type=data.entity_type,
            income=BusinessIncome(**data.income.model_dump()),
            expenses=BusinessExpenses(**data.expenses.model_dump()),
            regime=_regime(data.tax_year),
            assets=_assets(data.assets),
            reliefs=_deductions(data.personal_reliefs),
            annual_turnover=data.annual_turnover,
            adjustments=_adjustments(data.adjustments),
        )
        return asdict(result)
    except ConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/vat/calculate")
async def calculate_vat(data: VATCalculateRequest):
    """Calculate VAT on a net amount, or extract it from a VAT-inclusive one."""
    try:
        regime = _regime(data.tax_year)
        if data.is_inclusive:
            return vat_calc.extract_vat_from_inclusive(data.amount, regime)
        return vat_calc.calculate_simple(data.amount, regime)
    except ConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/wht/calculate")
async def calculate_wht(data: WHTCalculateRequest):
    """Calculate Withholding Tax on a single payment."""
    try:
        result = wht_calc.create_transaction(
            gross_amount=data.gross_amount,
            payment_type=data.payment_type,
            recipient_type=data.recipient_type,
            payment_date=date.today(),
            regime=_regime(data.tax_year),
        )
        return asdict(result)
    except ConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/deductions/analyze")
async def analyze_deductions(data: DeductionAnalyzeRequest):
    """Find deductions the expense history supports but the declaration misses."""
    try:
        expenses = [ExpenseRecord(**e.model_dump()) for e in data.expenses]
        income_records = [IncomeRecord(**i.model_dump()) for i in data.income_records]
        analysis = deduction_engine.analyze(
            yearly_income=data.yearly_income,
            expense_records=expenses,
            year=data.year,
            declared_deductions=_deductions(data.declared_deductions),
            regime=_regime(data.tax_year, data.year),
            income_records=income_records,
        )
        logger.info(
            "Deduction analysis for %s: %d suggestions", data.year, len(analysis.detected_deductions)
        )
        return asdict(analysis)
    except ConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/liabilities/reconcile")
async def reconcile_liabilities(data: ReconcileRequest):
    """Reconcile every instrument of a period against the payment ledger."""
    try:
        period = TaxPeriod.parse(data.period)
        regime = _regime(data.tax_year, period.year)
        records = LedgerSnapshot(
            income_records=[IncomeRecord(**i.model_dump()) for i in data.income_records],
            deductions=_deductions(data.deductions),
            vat_transactions=[_vat_transaction(t, regime) for t in data.vat_transactions],
            wht_transactions=[_wht_transaction(t, regime) for t in data.wht_transactions],
        )
        payments = [
            Payment(
                instrument=p.instrument,
                amount=p.amount,
                confirmation_status=p.confirmation_status,
                period=p.period,
                date=p.payment_date,
                reference=p.reference,
            )
            for p in data.payments
        ]

        items = reconciliation_engine.reconcile_period(
            period, records, payments, regime, income_instrument=data.income_instrument
        )
        summary = reconciliation_engine.summarize(items)
        vat_position = reconciliation_engine.aggregator.vat_position(period, records)

        return {
            "period": period.label,
            "items": [_item_dict(item) for item in items],
            "summary": asdict(summary),
            "vat_position": asdict(vat_position),
        }
    except ConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/deadlines")
async def list_deadlines(data: DeadlinesRequest):
    """List the filing deadlines arising from a tax year, most urgent first."""
    settings = get_settings()
    try:
        today = data.today
        tracker = FilingDeadlineTracker(
            clock=(lambda: today) if today else date.today,
            monthly_window=settings.MONTHLY_URGENCY_WINDOW_DAYS,
            annual_window=settings.ANNUAL_URGENCY_WINDOW_DAYS,
        )
        instruments = tuple(TaxInstrument(i) for i in data.instruments) if data.instruments else tuple(TaxInstrument)
        statuses = {
            (TaxInstrument(s.instrument), TaxPeriod.parse(s.period).label): SettlementStatus(s.status)
            for s in data.statuses
        }
        deadlines = tracker.upcoming(data.year, instruments, statuses)
        return {
            "deadlines": [asdict(d) for d in deadlines],
            "total": len(deadlines),
        }
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/scenario")
async def run_scenario(data: ScenarioRequest):
    """Run a what-if tax scenario comparison."""
    try:
        regime = _regime(data.tax_year)
        projected_regime = None
        if data.projected_tax_year is not None:
            projected_regime = get_regime(data.projected_tax_year)

        scenario = ScenarioInput(
            scenario_type=ScenarioType(data.scenario_type),
            current_gross_income=data.current_income,
            current_deductions=_deductions(data.current_deductions),
            projected_gross_income=data.projected_income,
            projected_deductions=_deductions(data.projected_deductions),
            business_expenses=data.business_expenses,
            projected_regime=projected_regime,
        )
        return asdict(scenario_modeler.run_scenario(scenario, regime))
    except ConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
