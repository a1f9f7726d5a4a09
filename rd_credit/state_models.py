"""State R&D credit data model.

Goal: represent each state's credit rules as frozen reference data, and the
per-calculation inputs/outputs as validated records.

Design principles:
- Reference data is immutable once loaded.
- camelCase aliases match the reference table's original field names.
- Rendering (breakdown lines) is derived from structured values, never stored.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class EntityType(str, Enum):
    C_CORP = "C-Corp"
    S_CORP = "S-Corp"
    LLC = "LLC"
    PARTNERSHIP = "Partnership"
    SOLE_PROPRIETORSHIP = "SoleProprietorship"
    TRUST = "Trust"
    EXEMPT_ORG = "ExemptOrg"
    ALL = "All"


class CalculationMethod(str, Enum):
    STANDARD = "Standard"
    ASC = "ASC"
    HYBRID = "Hybrid"
    TIERED = "Tiered"
    FEDERAL_BASED = "FederalBased"


class BaseCalculation(str, Enum):
    AVERAGE_3_YEAR = "Average3Year"
    AVERAGE_4_YEAR = "Average4Year"
    FIXED_PERCENTAGE = "FixedPercentage"
    NONE = "None"


class ExcessCalculation(str, Enum):
    SIMPLE = "Simple"
    TIERED = "Tiered"
    FEDERAL_BASED = "FederalBased"


class ReferenceModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class CreditTier(ReferenceModel):
    threshold: float  # may be float("inf")
    rate: float
    description: str = ""


class StateCreditFormula(ReferenceModel):
    base_calculation: Optional[BaseCalculation] = None
    base_percentage: Optional[float] = None
    excess_calculation: ExcessCalculation = ExcessCalculation.SIMPLE
    tiers: Optional[List[CreditTier]] = None
    federal_credit_percentage: Optional[float] = None


class Range(ReferenceModel):
    min: Optional[float] = None
    max: Optional[float] = None


class SpecialRules(ReferenceModel):
    startup_rules: Optional[bool] = None
    small_business_rules: Optional[bool] = None
    industry_specific_rules: Optional[List[str]] = None
    employee_count_limits: Optional[Range] = None
    gross_receipts_limits: Optional[Range] = None
    university_collaboration_bonus: Optional[float] = None
    basic_research_bonus: Optional[float] = None
    statewide_cap: Optional[float] = None
    per_taxpayer_cap: Optional[float] = None


class StateCreditYearConfig(ReferenceModel):
    """Rules for one state and tax year."""

    credit_rate: float
    # Absolute dollars for some states, a fraction of liability for others (MO, SC, UT, WI).
    # Applied as a plain min() clamp either way.
    max_credit: Optional[float] = None
    carry_forward_years: int = 0
    carry_back_years: Optional[int] = None
    refundable: bool = False
    transferable: Optional[bool] = None

    calculation_method: CalculationMethod
    eligible_entities: List[EntityType]

    pre_filing_required: bool = False
    pre_filing_form: Optional[str] = None
    pre_filing_deadline: Optional[str] = None
    certification_required: Optional[bool] = None

    special_rules: Optional[SpecialRules] = None

    effective_date: Optional[date] = None
    sunset_date: Optional[date] = None

    formula: StateCreditFormula

    requires_federal_credit: Optional[bool] = None
    requires_form_6765: Optional[bool] = Field(None, alias="requiresForm6765")
    notes: List[str] = Field(default_factory=list)


class StateCreditConfig(ReferenceModel):
    state_code: str
    state_name: str
    years: Dict[int, StateCreditYearConfig] = Field(default_factory=dict)
    default_config: StateCreditYearConfig


# ============================================================================
# Calculation records
# ============================================================================

class StateCreditInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    state_code: str
    year: int
    calculation_year: Optional[int] = None
    federal_credit: float = 0.0
    state_qres: float = Field(0.0, alias="stateQREs")
    prior_year_qres: List[float] = Field(default_factory=list, alias="priorYearQREs")
    business_type: EntityType = EntityType.C_CORP
    employee_count: Optional[int] = None
    gross_receipts: Optional[float] = None
    university_collaboration: Optional[bool] = None
    basic_research_payments: Optional[float] = None
    is_startup: Optional[bool] = None
    industry: Optional[str] = None


def format_usd(amount: float) -> str:
    """en-US currency string, e.g. -1234.5 -> '-$1,234.50'."""
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


class CreditBreakdown(BaseModel):
    base_amount: float
    excess_qres: float
    credit_rate: float
    credit: float

    def lines(self) -> List[str]:
        return [
            f"Base QREs: {format_usd(self.base_amount)}",
            f"Excess QREs: {format_usd(self.excess_qres)}",
            f"Credit Rate: {self.credit_rate * 100:.1f}%",
            f"Credit Amount: {format_usd(self.credit)}",
        ]


class StateCreditResult(BaseModel):
    credit: float
    base_amount: float
    excess_qres: float
    effective_rate: float
    calculation_method: CalculationMethod
    carry_forward_years: int
    refundable: bool
    transferable: Optional[bool] = None
    max_credit: Optional[float] = None
    notes: List[str] = Field(default_factory=list)
    breakdown: CreditBreakdown


class StateCreditEligibility(BaseModel):
    is_eligible: bool
    reasons: List[str] = Field(default_factory=list)
    requirements: List[str] = Field(default_factory=list)
    pre_filing_required: bool = False
    pre_filing_form: Optional[str] = None
    pre_filing_deadline: Optional[str] = None


class StateCreditOutcome(BaseModel):
    """Config lookup + eligibility + (when eligible) the computed credit."""

    state_code: str
    year: int
    config: Optional[StateCreditYearConfig] = None
    eligibility: StateCreditEligibility
    result: Optional[StateCreditResult] = None
