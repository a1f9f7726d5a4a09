"""Shared fixtures: a small QRA configuration with two active activities,
one inactive activity, and a two-level role tree."""

import pytest

from rd_credit.models import (
    Activity,
    Contractor,
    Employee,
    FinancialYear,
    RoleNode,
    Subcomponent,
    Supply,
)


@pytest.fixture
def prototype_activity():
    return Activity(
        id="act-1",
        name="Prototype Development",
        selected_roles=["dev"],
        practice_percent=50,
        subcomponents=[
            # 50 * 40 * 30 * 100 / 1e6 = 6.0 for dev
            Subcomponent(id="s1", subcomponent="Design", frequency_percent=30, year_percent=100, time_percent=40),
            # only QA is listed at subcomponent level
            Subcomponent(
                id="s2",
                subcomponent="Validation",
                frequency_percent=50,
                year_percent=100,
                time_percent=20,
                selected_roles=["qa"],
            ),
            Subcomponent(
                id="s3",
                subcomponent="Admin",
                frequency_percent=100,
                year_percent=100,
                time_percent=100,
                is_non_rd=True,
            ),
        ],
    )


@pytest.fixture
def testing_activity():
    return Activity(
        id="act-2",
        name="Testing",
        selected_roles=["dev", "qa"],
        practice_percent=20,
        subcomponents=[
            # 20 * 50 * 100 * 50 / 1e6 = 5.0
            Subcomponent(id="t1", subcomponent="Regression", frequency_percent=100, year_percent=50, time_percent=50),
        ],
    )


@pytest.fixture
def inactive_activity():
    return Activity(
        id="act-3",
        name="Legacy",
        active=False,
        selected_roles=["dev"],
        practice_percent=100,
        subcomponents=[
            Subcomponent(id="l1", frequency_percent=100, year_percent=100, time_percent=100),
        ],
    )


@pytest.fixture
def activities(prototype_activity, testing_activity, inactive_activity):
    return [prototype_activity, testing_activity, inactive_activity]


@pytest.fixture
def role_tree():
    return [
        RoleNode(
            id="eng",
            name="Engineering",
            children=[
                RoleNode(id="dev", name="Developer", parent_id="eng"),
                RoleNode(id="qa", name="QA Engineer", parent_id="eng"),
            ],
        )
    ]


@pytest.fixture
def developer():
    return Employee(id="e1", first_name="Ada", last_name="Lovelace", wage=100_000, role="dev")


@pytest.fixture
def tester():
    return Employee(id="e2", first_name="Grace", last_name="Hopper", wage=80_000, role="qa")


@pytest.fixture
def contractor():
    return Contractor(
        id="c1",
        contractor_type="business",
        business_name="Acme Labs",
        total_amount=100_000,
        role="dev",
    )


@pytest.fixture
def supply():
    return Supply(id="s1", title="Test fixtures", total_value=1_000)


@pytest.fixture
def financial_history():
    return [
        FinancialYear(year=2022, gross_receipts=1_000_000, qre=300_000),
        FinancialYear(year=2021, gross_receipts=1_000_000, qre=280_000),
        FinancialYear(year=2020, gross_receipts=1_000_000, qre=260_000),
        FinancialYear(year=2019, gross_receipts=1_000_000, qre=240_000),
    ]
