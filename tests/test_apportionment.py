"""
Expense apportionment tests.

The custom-override round trip is the critical one: a reload followed by a
recalculation pass must never clobber a user's saved configuration.
"""

import pytest

from rd_credit.apportionment import (
    CONTRACTOR_QRE_RATE,
    apply_custom_configuration,
    apply_supply_allocation,
    applied_amount,
    calculate_year_totals,
    has_custom_configuration,
    recalculate_item,
    recalculate_items,
)
from rd_credit.models import Computed, Contractor, Employee, Overridden, Supply
from rd_credit.supply_allocation import set_activity_percentage, toggle_subcomponent


def _persisted_supply():
    return {
        "id": "s7",
        "title": "Boards",
        "totalValue": 1_000,
        "appliedPercentage": 40,
        "appliedAmount": 400,
        "allocation": {
            "activityPercentages": {"Prototype Development": 10, "Testing": 0},
            "selectedSubcomponents": {"Prototype Development": ["s1", "s2"]},
        },
    }


class TestAppliedAmount:
    def test_employee(self, developer):
        assert applied_amount(developer, 11) == pytest.approx(11_000)

    def test_contractor_limited_to_65_percent(self):
        contractor = Contractor(id="c", first_name="A", last_name="B", total_amount=100_000, role="dev")
        assert CONTRACTOR_QRE_RATE == 0.65
        assert applied_amount(contractor, 50) == pytest.approx(32_500)

    def test_supply(self, supply):
        assert applied_amount(supply, 40) == pytest.approx(400)

    def test_uses_stored_percentage_by_default(self):
        emp = Employee(id="e", wage=50_000, role="dev", applied_percentage=Computed(value=10))
        assert applied_amount(emp) == pytest.approx(5_000)


class TestRecalculation:
    def setup_method(self):
        self.persisted = {
            "id": "e9",
            "firstName": "Ada",
            "lastName": "Lovelace",
            "wage": 100_000,
            "roleId": "dev",
            "appliedPercentage": 33,
            "appliedAmount": 33_000,
        }

    def test_computed_item_is_refreshed(self, activities):
        emp = Employee.model_validate(self.persisted)
        assert isinstance(emp.applied_percentage, Computed)

        updated = recalculate_item(emp, activities)
        assert updated.applied_percent_value == pytest.approx(11.0)
        assert updated.applied_amount == pytest.approx(11_000)
        assert emp.applied_percent_value == 33  # input not mutated

    def test_custom_configuration_survives_reload_and_recalculation(self, activities):
        data = dict(self.persisted, customPracticePercentages={"Prototype Development": 100})
        emp = Employee.model_validate(data)

        assert has_custom_configuration(emp)
        assert isinstance(emp.applied_percentage, Overridden)

        [after] = recalculate_items([emp], activities)
        assert after.applied_percent_value == 33
        assert after.applied_amount == 33_000

    def test_locked_item_is_left_alone(self, developer, activities):
        locked = developer.model_copy(update={"is_locked": True, "applied_percentage": Computed(value=99)})
        assert recalculate_item(locked, activities) is locked

    def test_supply_recalculated_from_allocation(self, activities):
        supply = Supply(id="s", title="Boards", total_value=1_000)
        assert recalculate_item(supply, activities).applied_amount == 0

    def test_persisted_supply_with_allocation_is_refreshed(self, activities):
        """A stored percentage that drifted from its allocation is re-derived on load."""
        supply = Supply.model_validate(_persisted_supply())
        assert isinstance(supply.applied_percentage, Computed)

        updated = recalculate_item(supply, activities)
        assert updated.applied_percent_value == pytest.approx(10.0)
        assert updated.applied_amount == pytest.approx(100)


class TestSupplyAllocation:
    def setup_method(self):
        self.supply = Supply.model_validate(_persisted_supply())

    def test_activity_change_and_toggle_redistribute(self):
        allocation = set_activity_percentage(self.supply.allocation, "Testing", 15)
        allocation = toggle_subcomponent(allocation, "Testing", "t1")

        updated = apply_supply_allocation(self.supply, allocation)
        assert isinstance(updated.applied_percentage, Overridden)
        assert updated.applied_percent_value == pytest.approx(25.0)
        assert updated.applied_amount == pytest.approx(250)
        assert updated.allocation.selected_subcomponents["Testing"] == ["t1"]
        assert self.supply.applied_percent_value == 40  # input not mutated

    def test_deselecting_every_subcomponent_drops_the_activity(self):
        allocation = toggle_subcomponent(self.supply.allocation, "Prototype Development", "s1")
        updated = apply_supply_allocation(self.supply, allocation)
        assert updated.applied_percent_value == pytest.approx(10.0)

        allocation = toggle_subcomponent(allocation, "Prototype Development", "s2")
        updated = apply_supply_allocation(updated, allocation)
        assert updated.applied_percent_value == 0
        assert updated.applied_amount == 0

    def test_applied_allocation_survives_recalculation(self, activities):
        allocation = set_activity_percentage(self.supply.allocation, "Prototype Development", 30)
        updated = apply_supply_allocation(self.supply, allocation)
        assert recalculate_item(updated, activities) is updated
        assert updated.applied_amount == pytest.approx(300)


class TestCustomConfiguration:
    def test_apply_marks_overridden_and_locks(self, developer, activities):
        configured = apply_custom_configuration(
            developer,
            activities,
            practice_overrides={"Prototype Development": 100},
            time_overrides={"Testing": {"t1": 100}},
        )
        # Prototype 12 + Testing 10
        assert configured.applied_percent_value == pytest.approx(22.0)
        assert isinstance(configured.applied_percentage, Overridden)
        assert configured.is_locked
        assert configured.applied_amount == pytest.approx(22_000)
        assert configured.custom_time_percentages == {"Testing": {"t1": 100.0}}

        # a later recalculation keeps the override
        assert recalculate_item(configured, activities).applied_percent_value == pytest.approx(22.0)

    def test_contractor_custom_amount_applies_65_percent(self, contractor, activities):
        configured = apply_custom_configuration(contractor, activities, practice_overrides={"Testing": 40})
        # Prototype 6 + Testing 40*50*100*50/1e6 = 10
        assert configured.applied_percent_value == pytest.approx(16.0)
        assert configured.applied_amount == pytest.approx(100_000 * 0.16 * 0.65)

    def test_supply_rejected(self, supply, activities):
        with pytest.raises(TypeError):
            apply_custom_configuration(supply, activities)


class TestYearTotals:
    def test_totals_and_counts(self, developer, tester, contractor, supply):
        owner = Employee(
            id="e3", first_name="O", last_name="Wner", wage=200_000, role="dev",
            is_business_owner=True, applied_amount=20_000,
        )
        items = [
            developer.model_copy(update={"applied_amount": 11_000}),
            tester.model_copy(update={"applied_amount": 4_000, "is_active": False}),
            owner,
            contractor.model_copy(update={"applied_amount": 7_150}),
            supply.model_copy(update={"applied_amount": 400}),
        ]

        totals = calculate_year_totals(items)
        assert totals.total_wages == 380_000
        assert totals.total_applied_wages == 35_000
        assert totals.employee_count == 2
        assert totals.business_owner_count == 1
        assert totals.contractor_count == 1
        assert totals.supply_count == 1
        assert totals.total_qres == pytest.approx(35_000 + 7_150 + 400)

        active = calculate_year_totals(items, active_only=True)
        assert active.employee_count == 1
        assert active.total_applied_wages == 31_000

    def test_empty(self):
        totals = calculate_year_totals([])
        assert totals.total_qres == 0
        assert totals.employee_count == 0
