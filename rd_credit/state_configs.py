"""State R&D credit reference table.

One entry per supported state. Every state's year entries are identical to its
default config, so each state shares a single frozen StateCreditYearConfig.
Values are reproduced as published by the product team; see DESIGN.md for the
known ambiguities (fractional max_credit caps, FixedPercentage base_percentage
units, tier accumulation).
"""

from __future__ import annotations

from typing import Iterable, List

from .state_models import (
    BaseCalculation as B,
    CalculationMethod as M,
    CreditTier,
    EntityType as E,
    ExcessCalculation as X,
    Range,
    SpecialRules,
    StateCreditConfig,
    StateCreditFormula,
    StateCreditYearConfig,
)

INF = float("inf")

_STANDARD_ENTITIES = [E.C_CORP, E.S_CORP, E.LLC, E.PARTNERSHIP]


def _state(code: str, name: str, years: Iterable[int], config: StateCreditYearConfig) -> StateCreditConfig:
    return StateCreditConfig(
        state_code=code,
        state_name=name,
        years={year: config for year in years},
        default_config=config,
    )


def _simple(base: B, base_percentage=None) -> StateCreditFormula:
    return StateCreditFormula(base_calculation=base, base_percentage=base_percentage, excess_calculation=X.SIMPLE)


def _tiered(base: B, tiers, base_percentage=None) -> StateCreditFormula:
    return StateCreditFormula(
        base_calculation=base,
        base_percentage=base_percentage,
        excess_calculation=X.TIERED,
        tiers=[CreditTier(threshold=t, rate=r, description=d) for t, r, d in tiers],
    )


STATE_CREDIT_CONFIGS: List[StateCreditConfig] = [
    _state("CA", "California", range(2020, 2026), StateCreditYearConfig(
        credit_rate=0.15,
        carry_forward_years=0,
        refundable=False,
        calculation_method=M.STANDARD,
        eligible_entities=_STANDARD_ENTITIES,
        pre_filing_required=False,
        effective_date="2020-01-01",
        formula=_simple(B.AVERAGE_3_YEAR),
        requires_federal_credit=True,
        requires_form_6765=True,
        notes=["15% credit on excess QREs", "Indefinite carryforward", "No carryback", "Must claim federal credit"],
    )),
    _state("MO", "Missouri", [2025], StateCreditYearConfig(
        credit_rate=0.10,
        max_credit=0.50,  # 50% of liability
        carry_forward_years=10,
        refundable=False,
        calculation_method=M.STANDARD,
        eligible_entities=_STANDARD_ENTITIES,
        pre_filing_required=True,
        pre_filing_form="Form TC-18",
        special_rules=SpecialRules(per_taxpayer_cap=0.50),
        effective_date="2025-01-01",
        formula=_simple(B.AVERAGE_3_YEAR),
        requires_federal_credit=True,
        notes=["Credit begins in 2025", "50% of liability cap", "10-year carryforward"],
    )),
    _state("NY", "New York", [2025], StateCreditYearConfig(
        credit_rate=0.06,
        carry_forward_years=0,
        refundable=True,
        calculation_method=M.FEDERAL_BASED,
        eligible_entities=_STANDARD_ENTITIES,
        pre_filing_required=False,
        special_rules=SpecialRules(university_collaboration_bonus=0.08),
        effective_date="2025-01-01",
        formula=StateCreditFormula(excess_calculation=X.FEDERAL_BASED, federal_credit_percentage=0.50),
        notes=["Excelsior R&D Component", "6% on 50% of Federal R&D Credit", "8% for green projects"],
    )),
    _state("NJ", "New Jersey", [2025], StateCreditYearConfig(
        credit_rate=0.10,
        carry_forward_years=7,
        refundable=False,
        calculation_method=M.STANDARD,
        eligible_entities=[E.C_CORP, E.S_CORP],
        pre_filing_required=True,
        pre_filing_form="Form 306 with CBT-100",
        pre_filing_deadline="Due with tax return",
        special_rules=SpecialRules(basic_research_bonus=0.10),
        effective_date="2025-01-01",
        formula=_simple(B.AVERAGE_4_YEAR),
        requires_federal_credit=True,
        requires_form_6765=True,
        notes=[
            "S-corps credit limited to entity tax liability",
            "Pass-through not allowed",
            "15 years for targeted industries",
        ],
    )),
    _state("OH", "Ohio", [2020], StateCreditYearConfig(
        credit_rate=0.07,
        carry_forward_years=7,
        refundable=False,
        calculation_method=M.STANDARD,
        eligible_entities=[E.C_CORP, E.S_CORP, E.LLC],
        pre_filing_required=False,
        effective_date="2020-01-01",
        formula=_simple(B.AVERAGE_3_YEAR),
        requires_federal_credit=True,
        requires_form_6765=True,
        notes=["Claim on CAT return", "CAT audit may follow"],
    )),
    _state("ID", "Idaho", [2020], StateCreditYearConfig(
        credit_rate=0.05,
        carry_forward_years=14,
        carry_back_years=1,
        refundable=False,
        calculation_method=M.STANDARD,
        eligible_entities=[E.C_CORP, E.S_CORP, E.LLC],
        pre_filing_required=True,
        pre_filing_form="Idaho Form 67",
        pre_filing_deadline="Filed with corporate return",
        special_rules=SpecialRules(basic_research_bonus=0.05),
        effective_date="2020-01-01",
        formula=_simple(B.AVERAGE_3_YEAR),
        requires_federal_credit=True,
        requires_form_6765=True,
        notes=["+5% for payments to qualified orgs", "Keep records, include Form TC-40R"],
    )),
    _state("IL", "Illinois", [2020], StateCreditYearConfig(
        credit_rate=0.065,
        carry_forward_years=5,
        refundable=False,
        calculation_method=M.STANDARD,
        eligible_entities=[E.C_CORP, E.TRUST, E.EXEMPT_ORG],
        pre_filing_required=True,
        pre_filing_form="Schedule 1299-D",
        pre_filing_deadline="With IL-1120, IL-1041, or IL-990-T",
        effective_date="2020-01-01",
        formula=_simple(B.AVERAGE_3_YEAR),
        notes=["Available to corporations, trusts, exempt orgs"],
    )),
    _state("IN", "Indiana", [2020], StateCreditYearConfig(
        credit_rate=0.15,
        carry_forward_years=10,
        refundable=False,
        calculation_method=M.TIERED,
        eligible_entities=_STANDARD_ENTITIES,
        pre_filing_required=True,
        pre_filing_form="Form IT-20 + Schedule IN-RC",
        effective_date="2020-01-01",
        formula=_tiered(B.AVERAGE_3_YEAR, [
            (1_000_000, 0.15, "First $1M excess"),
            (INF, 0.10, "Excess over $1M"),
        ]),
        notes=["Pass-throughs via substitution"],
    )),
    _state("IA", "Iowa", [2020], StateCreditYearConfig(
        credit_rate=0.10,
        carry_forward_years=0,
        refundable=True,
        calculation_method=M.STANDARD,
        eligible_entities=_STANDARD_ENTITIES,
        pre_filing_required=True,
        pre_filing_form="Form IA-128",
        special_rules=SpecialRules(industry_specific_rules=[
            "Excludes agriculture",
            "Excludes finance",
            "Excludes real estate",
            "Excludes retail",
        ]),
        effective_date="2020-01-01",
        formula=_simple(B.AVERAGE_3_YEAR),
        notes=["Refundable credit", "Excludes certain industries"],
    )),
    _state("KS", "Kansas", [2020], StateCreditYearConfig(
        credit_rate=0.10,
        carry_forward_years=4,
        refundable=False,
        transferable=True,
        calculation_method=M.STANDARD,
        eligible_entities=[E.C_CORP],
        pre_filing_required=True,
        pre_filing_form="Schedule K-53",
        effective_date="2020-01-01",
        formula=_simple(B.AVERAGE_3_YEAR),
        notes=["Only C-Corps eligible", "Transferable once"],
    )),
    _state("LA", "Louisiana", [2020], StateCreditYearConfig(
        credit_rate=0.05,
        carry_forward_years=10,
        refundable=False,
        calculation_method=M.TIERED,
        eligible_entities=_STANDARD_ENTITIES + [E.SOLE_PROPRIETORSHIP],
        pre_filing_required=True,
        pre_filing_form="Form R-620",
        pre_filing_deadline="Certification required within 1 year",
        certification_required=True,
        special_rules=SpecialRules(employee_count_limits=Range(max=99), per_taxpayer_cap=300_000),
        effective_date="2020-01-01",
        formula=_tiered(B.FIXED_PERCENTAGE, [
            (50, 0.30, "<50 employees"),
            (99, 0.10, "50-99 employees"),
            (INF, 0.05, "100+ employees"),
        ], base_percentage=0.80),
        notes=["Excludes pro services w/o IP", "Base = 80% avg QRE (or 50% if <50 emps)"],
    )),
    _state("ME", "Maine", [2020], StateCreditYearConfig(
        credit_rate=0.05,
        carry_forward_years=15,
        refundable=False,
        calculation_method=M.STANDARD,
        eligible_entities=_STANDARD_ENTITIES,
        pre_filing_required=True,
        pre_filing_form="Form 1040RC",
        special_rules=SpecialRules(basic_research_bonus=0.075),
        effective_date="2020-01-01",
        formula=_simple(B.AVERAGE_3_YEAR),
        notes=["+7.5% for basic research payments"],
    )),
    _state("NH", "New Hampshire", [2020], StateCreditYearConfig(
        credit_rate=0.10,
        max_credit=50_000,
        carry_forward_years=5,
        refundable=False,
        calculation_method=M.STANDARD,
        eligible_entities=[E.ALL],
        pre_filing_required=True,
        pre_filing_form="Form DP-165",
        pre_filing_deadline="Via DRA before June 30",
        special_rules=SpecialRules(statewide_cap=7_000_000),
        effective_date="2020-01-01",
        formula=_simple(B.NONE),
        notes=["Cap $50k/company", "$7M statewide cap", "Based on wages"],
    )),
    _state("ND", "North Dakota", [2020], StateCreditYearConfig(
        credit_rate=0.25,
        carry_forward_years=15,
        carry_back_years=3,
        refundable=False,
        calculation_method=M.TIERED,
        eligible_entities=[E.ALL],
        pre_filing_required=True,
        pre_filing_form="Form 40",
        special_rules=SpecialRules(gross_receipts_limits=Range(max=750_000), per_taxpayer_cap=100_000),
        effective_date="2020-01-01",
        formula=_tiered(B.AVERAGE_3_YEAR, [
            (100_000, 0.25, "First $100k excess"),
            (INF, 0.08, "Thereafter"),
        ]),
        notes=["Refundable for < $750k gross receipts", "Choose method annually"],
    )),
    _state("PA", "Pennsylvania", [2020], StateCreditYearConfig(
        credit_rate=0.10,
        carry_forward_years=15,
        refundable=False,
        transferable=True,
        calculation_method=M.STANDARD,
        eligible_entities=[E.C_CORP, E.SOLE_PROPRIETORSHIP],
        pre_filing_required=True,
        pre_filing_form="PA Schedule RC",
        pre_filing_deadline="Application due Sept 15",
        special_rules=SpecialRules(gross_receipts_limits=Range(max=5_000_000), small_business_rules=True),
        effective_date="2020-01-01",
        formula=_simple(B.AVERAGE_3_YEAR),
        notes=["20% for small ≤$5M gross receipts", "Transferable credit"],
    )),
    _state("RI", "Rhode Island", [2020], StateCreditYearConfig(
        credit_rate=0.225,
        carry_forward_years=7,
        refundable=False,
        calculation_method=M.TIERED,
        eligible_entities=_STANDARD_ENTITIES,
        pre_filing_required=True,
        pre_filing_form="Form RI-7690",
        special_rules=SpecialRules(per_taxpayer_cap=111_111),
        effective_date="2020-01-01",
        formula=_tiered(B.NONE, [
            (111_111, 0.225, "First $111,111"),
            (INF, 0.169, "Thereafter"),
        ]),
        notes=["Cannot reduce below minimum tax"],
    )),
    _state("SC", "South Carolina", [2020], StateCreditYearConfig(
        credit_rate=0.05,
        max_credit=0.50,  # 50% of liability
        carry_forward_years=10,
        refundable=False,
        calculation_method=M.STANDARD,
        eligible_entities=[E.ALL],
        pre_filing_required=True,
        pre_filing_form="Form TC-18",
        special_rules=SpecialRules(per_taxpayer_cap=0.50),
        effective_date="2020-01-01",
        formula=_simple(B.NONE),
        requires_federal_credit=True,
        notes=["Max 50% of liability"],
    )),
    _state("TX", "Texas", [2020], StateCreditYearConfig(
        credit_rate=0.05,
        carry_forward_years=20,
        refundable=False,
        calculation_method=M.STANDARD,
        eligible_entities=_STANDARD_ENTITIES,
        pre_filing_required=True,
        pre_filing_form="Form 05-178 for franchise credit",
        special_rules=SpecialRules(university_collaboration_bonus=0.0625),
        effective_date="2020-01-01",
        formula=_simple(B.AVERAGE_3_YEAR),
        notes=["6.25% when partnered with Texas college"],
    )),
    _state("UT", "Utah", [2020], StateCreditYearConfig(
        credit_rate=0.06,
        max_credit=0.25,
        carry_forward_years=15,
        refundable=True,
        calculation_method=M.STANDARD,
        eligible_entities=_STANDARD_ENTITIES,
        pre_filing_required=True,
        pre_filing_form="Form TC-18",
        special_rules=SpecialRules(university_collaboration_bonus=0.115, per_taxpayer_cap=0.25),
        effective_date="2020-01-01",
        formula=_simple(B.AVERAGE_3_YEAR),
        requires_federal_credit=True,
        notes=["Credit begins in 2020", "25% refundable", "University collaboration bonus available"],
    )),
    _state("VT", "Vermont", [2020], StateCreditYearConfig(
        credit_rate=0.27,
        carry_forward_years=10,
        refundable=False,
        calculation_method=M.FEDERAL_BASED,
        eligible_entities=[E.ALL],
        pre_filing_required=True,
        pre_filing_form="Form BA-404",
        effective_date="2020-01-01",
        formula=StateCreditFormula(excess_calculation=X.FEDERAL_BASED, federal_credit_percentage=1.0),
        requires_federal_credit=True,
        notes=["27% of Federal Credit"],
    )),
    _state("VA", "Virginia", [2020], StateCreditYearConfig(
        credit_rate=0.15,
        carry_forward_years=10,
        refundable=False,
        calculation_method=M.TIERED,
        eligible_entities=[E.ALL],
        pre_filing_required=True,
        pre_filing_form="April 1 application via Dept of Taxation",
        pre_filing_deadline="April 1",
        special_rules=SpecialRules(
            gross_receipts_limits=Range(max=300_000),
            university_collaboration_bonus=0.20,
            per_taxpayer_cap=300_000,
        ),
        effective_date="2020-01-01",
        formula=_tiered(B.FIXED_PERCENTAGE, [
            (300_000, 0.15, "Minor: ≤$300k QRE"),
            (INF, 0.10, "Major: >$300k QRE"),
        ], base_percentage=0.50),
        notes=["Minor: Refundable; Major: Non-refundable", "+20% if with university"],
    )),
    _state("WI", "Wisconsin", [2020], StateCreditYearConfig(
        credit_rate=0.0575,
        max_credit=0.25,
        carry_forward_years=0,
        refundable=True,
        calculation_method=M.STANDARD,
        eligible_entities=[E.ALL],
        pre_filing_required=True,
        pre_filing_form="Schedule R",
        special_rules=SpecialRules(university_collaboration_bonus=0.115),
        effective_date="2020-01-01",
        formula=_simple(B.AVERAGE_3_YEAR),
        notes=["Partially refundable (up to 25%)", "11.5% for energy/engine research", "Rest indefinite carryforward"],
    )),
]
