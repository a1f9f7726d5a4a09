"""Reference table sanity checks."""

from datetime import date

import pytest

from rd_credit.state_configs import STATE_CREDIT_CONFIGS
from rd_credit.state_models import CalculationMethod, EntityType

EXPECTED_STATES = {
    "CA", "MO", "NY", "NJ", "OH", "ID", "IL", "IN", "IA", "KS", "LA",
    "ME", "NH", "ND", "PA", "RI", "SC", "TX", "UT", "VT", "VA", "WI",
}

BY_CODE = {c.state_code: c for c in STATE_CREDIT_CONFIGS}


class TestTable:
    def test_all_states_present_once(self):
        codes = [c.state_code for c in STATE_CREDIT_CONFIGS]
        assert len(codes) == len(set(codes))
        assert set(codes) == EXPECTED_STATES

    def test_year_entries_match_default(self):
        for state in STATE_CREDIT_CONFIGS:
            for year_config in state.years.values():
                assert year_config == state.default_config

    def test_configs_are_frozen(self):
        with pytest.raises(Exception):
            BY_CODE["CA"].default_config.credit_rate = 0.5

    @pytest.mark.parametrize("state", sorted(EXPECTED_STATES))
    def test_formula_consistent_with_method(self, state):
        config = BY_CODE[state].default_config
        if config.calculation_method == CalculationMethod.TIERED:
            assert config.formula.tiers
            assert config.formula.tiers[-1].threshold == float("inf")
        if config.calculation_method == CalculationMethod.FEDERAL_BASED:
            assert config.formula.federal_credit_percentage


class TestSelectedStates:
    def test_california(self):
        ca = BY_CODE["CA"]
        assert sorted(ca.years) == [2020, 2021, 2022, 2023, 2024, 2025]
        assert ca.default_config.effective_date == date(2020, 1, 1)
        assert ca.default_config.requires_form_6765

    def test_missouri_starts_2025(self):
        mo = BY_CODE["MO"]
        assert list(mo.years) == [2025]
        assert mo.default_config.effective_date == date(2025, 1, 1)
        assert mo.default_config.max_credit == 0.5

    def test_louisiana(self):
        la = BY_CODE["LA"].default_config
        assert la.certification_required
        assert la.special_rules.employee_count_limits.max == 99
        assert la.formula.base_percentage == 0.8
        assert [t.rate for t in la.formula.tiers] == [0.30, 0.10, 0.05]

    def test_kansas_c_corp_only(self):
        assert BY_CODE["KS"].default_config.eligible_entities == [EntityType.C_CORP]
        assert BY_CODE["KS"].default_config.transferable
