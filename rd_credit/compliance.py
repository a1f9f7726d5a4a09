"""Compliance aggregation over apportioned expense items.

Classifies each item as pass/warn/fail, adds portfolio-level warnings, and
rolls everything up into a score and a risk level.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Union

from pydantic import BaseModel, Field

from . import config
from .applied_percentage import current_practice_percent, eligible_activities
from .models import Activity, Contractor, ContractorType, Employee, Supply

logger = logging.getLogger(__name__)


class ComplianceStatus(str, Enum):
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class ItemCompliance(BaseModel):
    item_id: str
    category: str
    name: str
    applied_percentage: float
    status: ComplianceStatus
    reasons: List[str] = Field(default_factory=list)


class PracticeAllocationFlag(BaseModel):
    contractor_id: str
    name: str
    total_practice_percent: float


class ComplianceReport(BaseModel):
    issues: List[ItemCompliance] = Field(default_factory=list)
    warnings: List[ItemCompliance] = Field(default_factory=list)
    passes: List[ItemCompliance] = Field(default_factory=list)
    portfolio_warnings: List[str] = Field(default_factory=list)
    practice_allocation_flags: List[PracticeAllocationFlag] = Field(default_factory=list)
    supply_to_labor_ratio: float = 0.0
    compliance_score: float = 0.0
    risk_level: RiskLevel = RiskLevel.LOW

    @property
    def total_items(self) -> int:
        return len(self.issues) + len(self.warnings) + len(self.passes)


# ============================================================================
# Per-item classification
# ============================================================================

def _missing_name_reasons(item: Union[Employee, Contractor, Supply]) -> List[str]:
    if isinstance(item, Employee):
        missing = [
            label
            for label, v in (("first name", item.first_name), ("last name", item.last_name))
            if not (v or "").strip()
        ]
    elif isinstance(item, Contractor):
        if item.contractor_type == ContractorType.BUSINESS:
            missing = [] if (item.business_name or "").strip() else ["business name"]
        else:
            missing = [
                label
                for label, v in (("first name", item.first_name), ("last name", item.last_name))
                if not (v or "").strip()
            ]
    else:
        missing = [] if item.title.strip() else ["title"]
    return [f"Missing {label}" for label in missing]


def _category(item) -> str:
    if isinstance(item, Employee):
        return "employee"
    if isinstance(item, Contractor):
        return "contractor"
    return "supply"


def classify_item(item: Union[Employee, Contractor, Supply]) -> ItemCompliance:
    """Fail beats warn beats pass; every triggered reason is kept."""
    pct = item.applied_percent_value
    failures = _missing_name_reasons(item)
    if pct > 100:
        failures.append(f"Applied percentage {pct:.2f}% exceeds 100%")

    warnings: List[str] = []
    if not isinstance(item, Supply) and item.role.is_non_rd:
        warnings.append("Assigned to Non-R&D role")
    if pct == 0:
        warnings.append("Applied percentage is 0%")
    elif pct > config.AUDIT_RISK_THRESHOLD and pct <= 100:
        warnings.append(f"Applied percentage {pct:.2f}% exceeds {config.AUDIT_RISK_THRESHOLD:g}% audit-risk threshold")

    if failures:
        status = ComplianceStatus.FAIL
    elif warnings:
        status = ComplianceStatus.WARN
    else:
        status = ComplianceStatus.PASS

    return ItemCompliance(
        item_id=item.id,
        category=_category(item),
        name=item.display_name,
        applied_percentage=pct,
        status=status,
        reasons=failures + warnings,
    )


# ============================================================================
# Portfolio checks
# ============================================================================

def supply_to_labor_ratio(
    employees: Iterable[Employee],
    contractors: Iterable[Contractor],
    supplies: Iterable[Supply],
) -> float:
    labor = sum(e.wage for e in employees) + sum(c.total_amount for c in contractors)
    if labor == 0:
        return 0.0
    return sum(s.total_value for s in supplies) / labor


def check_contractor_practice_allocation(
    contractor: Contractor,
    activities: Iterable[Activity],
) -> Optional[PracticeAllocationFlag]:
    """Flag a contractor whose practice percentages sum past 100%.

    This is a configuration check, unrelated to the 65% contract research limit.
    """
    total = sum(
        current_practice_percent(a, contractor.role, contractor.custom_practice_percentages)
        for a in eligible_activities(contractor.role, activities)
    )
    if total > 100:
        return PracticeAllocationFlag(
            contractor_id=contractor.id,
            name=contractor.display_name,
            total_practice_percent=total,
        )
    return None


def build_compliance_report(
    employees: Sequence[Employee],
    contractors: Sequence[Contractor],
    supplies: Sequence[Supply],
    activities: Optional[Sequence[Activity]] = None,
) -> ComplianceReport:
    report = ComplianceReport()
    buckets = {
        ComplianceStatus.FAIL: report.issues,
        ComplianceStatus.WARN: report.warnings,
        ComplianceStatus.PASS: report.passes,
    }
    for item in [*employees, *contractors, *supplies]:
        result = classify_item(item)
        buckets[result.status].append(result)

    report.supply_to_labor_ratio = supply_to_labor_ratio(employees, contractors, supplies)
    if report.supply_to_labor_ratio > config.SUPPLY_LABOR_RATIO_LIMIT:
        report.portfolio_warnings.append(
            f"Supply-to-labor ratio {report.supply_to_labor_ratio:.2f} exceeds {config.SUPPLY_LABOR_RATIO_LIMIT:.2f}"
        )

    if activities is not None:
        for contractor in contractors:
            flag = check_contractor_practice_allocation(contractor, activities)
            if flag is not None:
                report.practice_allocation_flags.append(flag)
                report.portfolio_warnings.append(
                    f"Contractor {flag.name or flag.contractor_id} practice percentages total "
                    f"{flag.total_practice_percent:.1f}% (over 100%)"
                )

    total = report.total_items
    report.compliance_score = ((len(report.passes) - len(report.issues)) / total * 100) if total else 0.0

    if report.issues:
        report.risk_level = RiskLevel.HIGH
    elif report.warnings or report.portfolio_warnings:
        report.risk_level = RiskLevel.MEDIUM
    else:
        report.risk_level = RiskLevel.LOW

    logger.info(
        "compliance: %s issues, %s warnings, %s passes, risk=%s",
        len(report.issues),
        len(report.warnings),
        len(report.passes),
        report.risk_level.value,
    )
    return report
