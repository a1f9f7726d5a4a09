"""Credit study orchestration.

Runs one business/year snapshot end to end:

    expense items -> year totals -> federal credit -> state credit
                  -> compliance report + analytics

Pure: no I/O. Callers that need an audit record pass the result to
``CalculationTraceLogger.write_study_trace``.
"""

from __future__ import annotations

import logging
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .analytics import ExpenseAnalytics, summarize_expenses
from .apportionment import YearTotals, calculate_year_totals
from .compliance import ComplianceReport, build_compliance_report
from .federal_credit import (
    CreditMethod,
    FederalCreditInput,
    FederalCreditResult,
    compute_federal_credit,
)
from .models import Activity, BusinessType, Contractor, Employee, FinancialYear, RoleNode, Supply
from .money import round_half_up, to_decimal
from .state_credit import evaluate_state_credit
from .state_models import EntityType, StateCreditInput, StateCreditOutcome

logger = logging.getLogger(__name__)

DEFAULT_STATE_CODE = "CA"
PRIOR_YEARS = 4


def prior_year_values(
    history: List[FinancialYear],
    year: int,
    count: int = PRIOR_YEARS,
    field: Literal["qre", "gross_receipts"] = "qre",
) -> List[float]:
    """[year-1, ..., year-count]; years missing from the history count as 0."""
    by_year = {h.year: h for h in history}
    return [
        float(getattr(by_year[year - i], field)) if (year - i) in by_year else 0.0
        for i in range(1, count + 1)
    ]


def total_qres(employees: List[Employee], contractors: List[Contractor], supplies: List[Supply]) -> int:
    amounts = [i.applied_amount for i in [*employees, *contractors, *supplies] if i.is_active]
    return round_half_up(sum((to_decimal(a) for a in amounts), to_decimal(0)))


class StudyInput(BaseModel):
    year: int
    business_type: BusinessType = BusinessType.C_CORP
    employees: List[Employee] = Field(default_factory=list)
    contractors: List[Contractor] = Field(default_factory=list)
    supplies: List[Supply] = Field(default_factory=list)
    activities: Optional[List[Activity]] = None
    roles: Optional[List[RoleNode]] = None
    financial_history: List[FinancialYear] = Field(default_factory=list)
    state_code: Optional[str] = None
    employee_count: Optional[int] = None
    gross_receipts: Optional[float] = None
    federal_method: CreditMethod = CreditMethod.ASC
    apply_280c: bool = True
    override_tax_rate: Optional[float] = None


class CreditStudy(BaseModel):
    year: int
    total_qres: int
    year_totals: YearTotals
    federal: FederalCreditResult
    state: StateCreditOutcome
    compliance: ComplianceReport
    analytics: ExpenseAnalytics

    @property
    def combined_credit(self) -> float:
        state_credit = self.state.result.credit if self.state.result else 0
        return self.federal.final_credit + state_credit


def run_credit_study(study: StudyInput) -> CreditStudy:
    qres = total_qres(study.employees, study.contractors, study.supplies)
    totals = calculate_year_totals([*study.employees, *study.contractors, *study.supplies], active_only=True)

    federal = compute_federal_credit(
        FederalCreditInput(
            current_year_qres=qres,
            prior_year_qres=prior_year_values(study.financial_history, study.year, PRIOR_YEARS, "qre"),
            prior_year_gross_receipts=prior_year_values(
                study.financial_history, study.year, PRIOR_YEARS, "gross_receipts"
            ),
            business_type=study.business_type,
            override_tax_rate=study.override_tax_rate,
        ),
        method=study.federal_method,
        apply_280c=study.apply_280c,
    )

    state = evaluate_state_credit(
        StateCreditInput(
            state_code=study.state_code or DEFAULT_STATE_CODE,
            year=study.year,
            calculation_year=study.year,
            federal_credit=federal.final_credit,
            state_qres=qres,
            prior_year_qres=prior_year_values(study.financial_history, study.year, PRIOR_YEARS, "qre"),
            business_type=EntityType.C_CORP if study.business_type == BusinessType.C_CORP else EntityType.LLC,
            employee_count=study.employee_count,
            gross_receipts=study.gross_receipts,
        )
    )

    compliance = build_compliance_report(study.employees, study.contractors, study.supplies, study.activities)
    analytics = summarize_expenses(study.employees, study.contractors, study.supplies, study.roles)

    logger.info(
        "credit study %s: qres=%s federal=%s state=%s",
        study.year,
        qres,
        federal.final_credit,
        state.result.credit if state.result else None,
    )
    return CreditStudy(
        year=study.year,
        total_qres=qres,
        year_totals=totals,
        federal=federal,
        state=state,
        compliance=compliance,
        analytics=analytics,
    )
