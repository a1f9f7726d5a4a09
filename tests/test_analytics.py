"""Expense analytics tests (pandas-backed summaries)."""

import pytest

from rd_credit.analytics import COLUMNS, expense_frame, summarize_expenses
from rd_credit.models import Computed


class TestExpenseFrame:
    def test_one_row_per_item(self, developer, tester, contractor, supply, role_tree):
        df = expense_frame([developer, tester], [contractor], [supply], role_tree)
        assert list(df.columns) == COLUMNS
        assert len(df) == 4
        assert df.loc[df["id"] == "e1", "role"].iloc[0] == "Developer"
        assert df.loc[df["id"] == "c1", "name"].iloc[0] == "Acme Labs"

    def test_empty(self):
        df = expense_frame([], [], [])
        assert df.empty
        assert list(df.columns) == COLUMNS


class TestSummarize:
    def setup_method(self):
        self.update = lambda item, pct, amount, **kw: item.model_copy(
            update={"applied_percentage": Computed(value=pct), "applied_amount": amount, **kw}
        )

    def test_category_summaries(self, developer, tester, contractor, supply, role_tree):
        employees = [self.update(developer, 10, 10_000), self.update(tester, 30, 24_000)]
        contractors = [self.update(contractor, 10, 6_500)]
        supplies = [self.update(supply, 50, 500)]

        summary = summarize_expenses(employees, contractors, supplies, role_tree)

        emp = summary.categories["employee"]
        assert emp.count == 2
        assert emp.base_total == 180_000
        assert emp.applied_total == 34_000
        assert emp.average_applied_percentage == pytest.approx(20)
        assert emp.max_applied_percentage == 30

        assert summary.total_qres == pytest.approx(41_000)
        assert summary.categories["supply"].share_of_qres == pytest.approx(500 / 41_000 * 100)
        assert summary.applied_by_role == pytest.approx({"Developer": 16_500, "QA Engineer": 24_000})
        assert summary.effective_qre_rate == pytest.approx(41_000 / 281_000)

    def test_inactive_items_excluded_by_default(self, developer, tester):
        employees = [self.update(developer, 10, 10_000), self.update(tester, 30, 24_000, is_active=False)]
        assert summarize_expenses(employees, [], []).total_qres == 10_000
        assert summarize_expenses(employees, [], [], active_only=False).total_qres == 34_000

    def test_empty_gives_zeros(self):
        summary = summarize_expenses([], [], [])
        assert summary.total_qres == 0
        assert summary.effective_qre_rate == 0
        assert summary.categories["contractor"].count == 0
        assert summary.applied_by_role == {}
