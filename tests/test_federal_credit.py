"""Federal credit tests: ASC, standard method, 280C election and tax rate."""

import itertools

import pytest

from rd_credit.federal_credit import (
    CreditMethod,
    FederalCreditInput,
    compute_federal_credit,
    is_standard_method_available,
    resolve_method,
)
from rd_credit.models import BusinessType
from rd_credit.money import round_half_up


def _input(**kwargs):
    data = dict(current_year_qres=0, prior_year_qres=[], prior_year_gross_receipts=[])
    data.update(kwargs)
    return FederalCreditInput(**data)


class TestRounding:
    @pytest.mark.parametrize("value,expected", [("2.5", 3), ("2.4", 2), ("-2.5", -2), ("-2.6", -3)])
    def test_half_up_toward_positive_infinity(self, value, expected):
        from decimal import Decimal

        assert round_half_up(Decimal(value)) == expected


class TestASC:
    def test_three_valid_prior_years(self):
        inp = _input(current_year_qres=400, prior_year_qres=[100, 200, 300])
        result = compute_federal_credit(inp, CreditMethod.ASC, apply_280c=False)
        assert result.gross_credit == 42
        assert result.base_amount == pytest.approx(200)

    def test_missing_prior_year_uses_six_percent(self):
        inp = _input(current_year_qres=1000, prior_year_qres=[100, 0, 300])
        result = compute_federal_credit(inp, CreditMethod.ASC, apply_280c=False)
        assert result.gross_credit == 60
        assert result.base_amount is None

    def test_only_first_three_years_count(self):
        inp = _input(current_year_qres=400, prior_year_qres=[100, 200, 300, 0])
        assert compute_federal_credit(inp, apply_280c=False).gross_credit == 42


class TestStandard:
    def setup_method(self):
        self.inp = _input(
            current_year_qres=40_000,
            prior_year_qres=[10_000, 10_000, 10_000, 10_000],
            prior_year_gross_receipts=[1_000_000] * 4,
        )

    def test_base_is_larger_of_fixed_base_and_half_qre(self):
        result = compute_federal_credit(self.inp, CreditMethod.STANDARD, apply_280c=False)
        assert result.method == CreditMethod.STANDARD
        assert result.base_amount == pytest.approx(30_000)
        assert result.gross_credit == 2000

    def test_negative_gross_is_reported_but_final_is_zero(self):
        inp = self.inp.model_copy(update={"prior_year_gross_receipts": [10_000_000] * 4})
        result = compute_federal_credit(inp, CreditMethod.STANDARD, apply_280c=False)
        assert result.gross_credit < 0
        assert result.final_credit == 0

    def test_availability(self):
        assert is_standard_method_available(self.inp)
        assert not is_standard_method_available(self.inp.model_copy(update={"prior_year_qres": [1, 2, 3]}))
        assert not is_standard_method_available(
            self.inp.model_copy(update={"prior_year_gross_receipts": [1, 1, 0, 1]})
        )

    def test_unavailable_standard_falls_back_to_asc(self):
        inp = _input(current_year_qres=1000)
        assert resolve_method(inp, CreditMethod.STANDARD) == CreditMethod.ASC
        result = compute_federal_credit(inp, CreditMethod.STANDARD, apply_280c=False)
        assert result.method == CreditMethod.ASC
        assert result.gross_credit == 60
        assert not result.standard_method_available


class TestSection280C:
    def test_reduced_credit(self):
        # 0.06 * 16,667 = 1000.02 -> 1000
        inp = _input(current_year_qres=16_667)
        assert compute_federal_credit(inp, apply_280c=False).final_credit == 1000
        assert compute_federal_credit(inp, apply_280c=True).final_credit == 790

    @pytest.mark.parametrize(
        "method,apply_280c", list(itertools.product(list(CreditMethod), [True, False]))
    )
    def test_final_credit_never_negative(self, method, apply_280c):
        inp = _input(
            current_year_qres=100,
            prior_year_qres=[10_000, 10_000, 10_000, 10_000],
            prior_year_gross_receipts=[10_000_000] * 4,
        )
        result = compute_federal_credit(inp, method, apply_280c)
        assert result.gross_credit < 0
        assert result.final_credit == 0


class TestTaxRate:
    def test_business_type_rates(self):
        assert compute_federal_credit(_input(business_type=BusinessType.C_CORP)).federal_tax_rate == 0.21
        assert compute_federal_credit(_input(business_type=BusinessType.PASS_THROUGH)).federal_tax_rate == 0.37

    def test_override_only_when_truthy(self):
        assert compute_federal_credit(_input(override_tax_rate=0.3)).federal_tax_rate == 0.3
        assert compute_federal_credit(_input(override_tax_rate=0)).federal_tax_rate == 0.21

    def test_notes_record_formula(self):
        result = compute_federal_credit(_input(current_year_qres=400, prior_year_qres=[100, 200, 300]))
        assert "asc" in result.calculation_notes
        assert result.calculation_notes["section_280c"]["elected"] is True
