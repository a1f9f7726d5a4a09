"""Federal R&D credit (IRC 41) estimate.

This is *not tax advice*. It implements the arithmetic of the two credit
methods offered to the business.

Design principles:
- Deterministic, Decimal-based arithmetic.
- Whole-dollar rounding half up toward +infinity.
- Formulas and intermediate values captured in calculation_notes.
- The standard method silently falls back to ASC when history is too short.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .models import BusinessType
from .money import round_half_up, to_decimal

logger = logging.getLogger(__name__)


ASC_RATE = Decimal("0.14")
ASC_RATE_NO_BASE = Decimal("0.06")
STANDARD_CREDIT_RATE = Decimal("0.20")
DEFAULT_FIXED_BASE = Decimal("0.03")
C_CORP_TAX_RATE = 0.21
PASS_THROUGH_TAX_RATE = 0.37
SECTION_280C_RATE = Decimal("0.79")  # 1 - 21% corporate rate


class CreditMethod(str, Enum):
    ASC = "asc"
    STANDARD = "standard"


class FederalCreditInput(BaseModel):
    current_year_qres: float = Field(..., ge=0)
    prior_year_qres: List[float] = Field(default_factory=list, description="[y-1, y-2, y-3, y-4]")
    prior_year_gross_receipts: List[float] = Field(default_factory=list, description="[y-1, y-2, y-3, y-4]")
    business_type: BusinessType = BusinessType.C_CORP
    override_tax_rate: Optional[float] = None


class FederalCreditResult(BaseModel):
    method: CreditMethod
    apply_280c: bool
    gross_credit: int
    final_credit: int
    federal_tax_rate: float
    standard_method_available: bool
    base_amount: Optional[float] = None
    calculation_notes: Dict[str, Any] = Field(default_factory=dict)


def is_standard_method_available(inp: FederalCreditInput) -> bool:
    return (
        len(inp.prior_year_qres) >= 4
        and len(inp.prior_year_gross_receipts) >= 4
        and all(r > 0 for r in inp.prior_year_gross_receipts)
    )


def resolve_method(inp: FederalCreditInput, requested: CreditMethod) -> CreditMethod:
    if requested == CreditMethod.STANDARD and not is_standard_method_available(inp):
        logger.info("standard method unavailable (insufficient history); using ASC")
        return CreditMethod.ASC
    return requested


def federal_tax_rate(inp: FederalCreditInput) -> float:
    if inp.override_tax_rate:
        return inp.override_tax_rate
    return C_CORP_TAX_RATE if inp.business_type == BusinessType.C_CORP else PASS_THROUGH_TAX_RATE


def _asc_credit(inp: FederalCreditInput, notes: Dict[str, Any]):
    qre = to_decimal(inp.current_year_qres)
    valid = [to_decimal(q) for q in inp.prior_year_qres[:3] if q > 0]
    if len(valid) == 3:
        base = sum(valid, Decimal("0")) / Decimal("3")
        gross = round_half_up(ASC_RATE * (qre - Decimal("0.5") * base))
        notes["asc"] = {
            "formula": "round(0.14 * (qre - 0.5 * avg(prior 3 QREs)))",
            "prior_3_avg": str(base),
        }
        return gross, base

    # Any of the prior 3 years missing or zero: 6% of current QREs
    gross = round_half_up(ASC_RATE_NO_BASE * qre)
    notes["asc"] = {
        "formula": "round(0.06 * qre)",
        "valid_prior_years": len(valid),
    }
    return gross, None


def _standard_credit(inp: FederalCreditInput, notes: Dict[str, Any]):
    qre = to_decimal(inp.current_year_qres)
    receipts = [to_decimal(r) for r in inp.prior_year_gross_receipts[:4]]
    avg_receipts = sum(receipts, Decimal("0")) / Decimal("4")
    base = max(DEFAULT_FIXED_BASE * avg_receipts, Decimal("0.5") * qre)
    gross = round_half_up(STANDARD_CREDIT_RATE * (qre - base))  # may be negative
    notes["standard"] = {
        "formula": "round(0.20 * (qre - max(0.03 * avg receipts, 0.5 * qre)))",
        "avg_gross_receipts": str(avg_receipts),
        "base_amount": str(base),
    }
    return gross, base


def compute_federal_credit(
    inp: FederalCreditInput,
    method: CreditMethod = CreditMethod.ASC,
    apply_280c: bool = True,
) -> FederalCreditResult:
    """Compute gross and final federal credit.

    The final credit is never negative, whatever the method or election.
    """
    notes: Dict[str, Any] = {"requested_method": method.value, "current_year_qres": str(to_decimal(inp.current_year_qres))}
    available = is_standard_method_available(inp)
    used = resolve_method(inp, method)

    if used == CreditMethod.STANDARD:
        gross, base = _standard_credit(inp, notes)
    else:
        gross, base = _asc_credit(inp, notes)

    final = gross
    if apply_280c:
        final = round_half_up(to_decimal(gross) * SECTION_280C_RATE)
        notes["section_280c"] = {"formula": "round(gross * 0.79)", "elected": True}
    final = max(0, final)

    return FederalCreditResult(
        method=used,
        apply_280c=apply_280c,
        gross_credit=gross,
        final_credit=final,
        federal_tax_rate=federal_tax_rate(inp),
        standard_method_available=available,
        base_amount=float(base) if base is not None else None,
        calculation_notes=notes,
    )
