"""State R&D credit calculator.

Looks up the applicable rules for a state/year, checks eligibility, and
computes the credit.

Design principles:
- Pure functions over the frozen reference table (injectable for tests).
- Missing reference data gives a defined "no credit" outcome; inconsistent
  reference data raises StateConfigError.
- Known quirks of the published formulas (tier accumulation, fractional
  max_credit caps) are reproduced, not corrected. See DESIGN.md.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence

from .money import round_half_up, to_decimal
from .state_configs import STATE_CREDIT_CONFIGS
from .state_models import (
    BaseCalculation,
    CalculationMethod,
    CreditBreakdown,
    EntityType,
    StateCreditConfig,
    StateCreditEligibility,
    StateCreditInput,
    StateCreditOutcome,
    StateCreditResult,
    StateCreditYearConfig,
    format_usd,
)

logger = logging.getLogger(__name__)

NO_CREDIT_REASON = "No credit available for this state and year"


class StateConfigError(ValueError):
    """Reference data cannot support the requested calculation."""


# ============================================================================
# Lookup
# ============================================================================

def _find_state(state_code: str, configs: Sequence[StateCreditConfig]) -> Optional[StateCreditConfig]:
    for config in configs:
        if config.state_code == state_code:
            return config
    return None


def get_applicable_config(
    state_code: str,
    year: int,
    configs: Sequence[StateCreditConfig] = STATE_CREDIT_CONFIGS,
) -> Optional[StateCreditYearConfig]:
    state = _find_state(state_code, configs)
    if state is None:
        return None
    if year in state.years:
        return state.years[year]

    default = state.default_config
    if default.effective_date is None or date(year, 1, 1) >= default.effective_date:
        return default
    return None


def get_state_config(
    state_code: str,
    configs: Sequence[StateCreditConfig] = STATE_CREDIT_CONFIGS,
) -> Optional[StateCreditConfig]:
    return _find_state(state_code, configs)


def get_available_states(configs: Sequence[StateCreditConfig] = STATE_CREDIT_CONFIGS) -> List[str]:
    return sorted(c.state_code for c in configs)


# ============================================================================
# Eligibility
# ============================================================================

def check_eligibility(config: StateCreditYearConfig, inp: StateCreditInput) -> StateCreditEligibility:
    reasons: List[str] = []
    requirements: List[str] = []

    entities = config.eligible_entities
    if EntityType.ALL not in entities and inp.business_type not in entities:
        reasons.append(
            f"Entity type {inp.business_type.value} not eligible for {config.calculation_method.value} method"
        )

    rules = config.special_rules
    if rules and rules.employee_count_limits and inp.employee_count is not None:
        limits = rules.employee_count_limits
        if limits.min is not None and inp.employee_count < limits.min:
            reasons.append(
                f"Minimum employee count not met: {limits.min:g} required, {inp.employee_count} provided"
            )
        if limits.max is not None and inp.employee_count > limits.max:
            reasons.append(
                f"Maximum employee count exceeded: {limits.max:g} allowed, {inp.employee_count} provided"
            )

    if rules and rules.gross_receipts_limits and inp.gross_receipts is not None:
        limits = rules.gross_receipts_limits
        if limits.min is not None and inp.gross_receipts < limits.min:
            reasons.append(f"Minimum gross receipts not met: {format_usd(limits.min)} required")
        if limits.max is not None and inp.gross_receipts > limits.max:
            reasons.append(f"Maximum gross receipts exceeded: {format_usd(limits.max)} allowed")

    if config.pre_filing_required:
        requirements.append(f"Pre-filing required: {config.pre_filing_form or 'Form required'}")
        if config.pre_filing_deadline:
            requirements.append(f"Deadline: {config.pre_filing_deadline}")
    if config.certification_required:
        requirements.append("Certification required")
    if config.requires_federal_credit:
        requirements.append("Federal R&D credit required")
    if config.requires_form_6765:
        requirements.append("Form 6765 required")

    return StateCreditEligibility(
        is_eligible=not reasons,
        reasons=reasons,
        requirements=requirements,
        pre_filing_required=config.pre_filing_required,
        pre_filing_form=config.pre_filing_form,
        pre_filing_deadline=config.pre_filing_deadline,
    )


# ============================================================================
# Calculation
# ============================================================================

def _base_and_excess(config: StateCreditYearConfig, inp: StateCreditInput):
    qre = to_decimal(inp.state_qres)
    formula = config.formula

    if formula.base_calculation == BaseCalculation.AVERAGE_3_YEAR and len(inp.prior_year_qres) >= 3:
        avg = sum((to_decimal(q) for q in inp.prior_year_qres[:3]), Decimal("0")) / Decimal("3")
        base = to_decimal(round_half_up(avg))
        return base, max(Decimal("0"), qre - base)

    if formula.base_calculation == BaseCalculation.FIXED_PERCENTAGE and formula.base_percentage:
        base = to_decimal(round_half_up(qre * to_decimal(formula.base_percentage) / Decimal("100")))
        return base, qre - base  # unclamped

    # None, Average4Year, or not enough history
    return Decimal("0"), qre


def _raw_credit(config: StateCreditYearConfig, inp: StateCreditInput, excess: Decimal) -> int:
    method = config.calculation_method
    formula = config.formula

    if method == CalculationMethod.STANDARD:
        return round_half_up(excess * to_decimal(config.credit_rate))

    if method == CalculationMethod.FEDERAL_BASED:
        if not formula.federal_credit_percentage:
            raise StateConfigError("FederalBased calculation requires federal_credit_percentage")
        return round_half_up(to_decimal(inp.federal_credit) * to_decimal(formula.federal_credit_percentage) / Decimal("100"))

    if method == CalculationMethod.TIERED:
        if not formula.tiers:
            raise StateConfigError("Tiered calculation requires at least one tier")
        # Each tier takes min(excess, threshold); thresholds are not cumulative.
        total = sum(
            (min(excess, to_decimal(tier.threshold)) * to_decimal(tier.rate) for tier in formula.tiers),
            Decimal("0"),
        )
        return round_half_up(total)

    raise StateConfigError(f"No credit formula for calculation method {method.value}")


def calculate_state_credit(config: StateCreditYearConfig, inp: StateCreditInput) -> StateCreditResult:
    base, excess = _base_and_excess(config, inp)
    credit: float = _raw_credit(config, inp, excess)

    # max_credit may be a fraction of liability for some states; clamped as-is.
    if config.max_credit is not None:
        credit = min(credit, config.max_credit)
    if config.special_rules and config.special_rules.per_taxpayer_cap:
        credit = min(credit, config.special_rules.per_taxpayer_cap)

    breakdown = CreditBreakdown(
        base_amount=float(base),
        excess_qres=float(excess),
        credit_rate=config.credit_rate,
        credit=credit,
    )
    logger.debug("state credit %s: base=%s excess=%s credit=%s", inp.state_code, base, excess, credit)

    return StateCreditResult(
        credit=credit,
        base_amount=float(base),
        excess_qres=float(excess),
        effective_rate=config.credit_rate,
        calculation_method=config.calculation_method,
        carry_forward_years=config.carry_forward_years,
        refundable=config.refundable,
        transferable=config.transferable,
        max_credit=config.max_credit,
        notes=list(config.notes),
        breakdown=breakdown,
    )


def evaluate_state_credit(
    inp: StateCreditInput,
    configs: Sequence[StateCreditConfig] = STATE_CREDIT_CONFIGS,
) -> StateCreditOutcome:
    """Lookup, eligibility, then calculation when eligible."""
    config = get_applicable_config(inp.state_code, inp.year, configs)
    if config is None:
        logger.info("no state credit config for %s/%s", inp.state_code, inp.year)
        return StateCreditOutcome(
            state_code=inp.state_code,
            year=inp.year,
            eligibility=StateCreditEligibility(is_eligible=False, reasons=[NO_CREDIT_REASON]),
        )

    eligibility = check_eligibility(config, inp)
    result = calculate_state_credit(config, inp) if eligibility.is_eligible else None
    return StateCreditOutcome(
        state_code=inp.state_code,
        year=inp.year,
        config=config,
        eligibility=eligibility,
        result=result,
    )
