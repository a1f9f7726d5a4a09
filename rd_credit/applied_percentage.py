"""Applied-percentage calculator.

Turns practice/time/frequency/year factors into the share of an employee's or
contractor's cost attributable to R&D.

Per subcomponent:

    applied% = practice% x time% x frequency% x year% / 1,000,000

An item's applied percentage is the sum over every activity its role is
eligible for. Practice and time percentages can be overridden per item;
frequency and year percentages never are.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional

from .models import (
    Activity,
    Contractor,
    Employee,
    NON_RD_ROLE,
    OTHER_ROLE,
    Role,
    RoleAssignment,
    RoleNode,
    Subcomponent,
)

logger = logging.getLogger(__name__)

QRA_DIVISOR = 1_000_000
OTHER_ROLE_PRACTICE_PERCENT = 100.0

PracticeOverrides = Mapping[str, float]                 # activity name -> practice %
TimeOverrides = Mapping[str, Mapping[str, float]]       # activity name -> subcomponent id -> time %


def subcomponent_contribution(practice: float, time: float, frequency: float, year: float) -> float:
    return (practice * time * frequency * year) / QRA_DIVISOR


# ============================================================================
# Eligibility
# ============================================================================

def activity_applies_to(activity: Activity, role: RoleAssignment) -> bool:
    """OTHER sees every active activity; hierarchical roles only those that list them."""
    if not activity.active or role.is_non_rd:
        return False
    if role.is_other:
        return True
    return role.id in activity.selected_roles


def subcomponent_applies_to(subcomponent: Subcomponent, role: Optional[RoleAssignment]) -> bool:
    # Empty selection inherits the activity-level decision.
    if role is None or role.is_other or not subcomponent.selected_roles:
        return True
    return role.id in subcomponent.selected_roles


def eligible_activities(role: RoleAssignment, activities: Iterable[Activity]) -> List[Activity]:
    return [a for a in activities if activity_applies_to(a, role)]


def current_practice_percent(
    activity: Activity,
    role: Optional[RoleAssignment] = None,
    practice_overrides: Optional[PracticeOverrides] = None,
) -> float:
    practice_overrides = practice_overrides or {}
    if activity.name in practice_overrides:
        return float(practice_overrides[activity.name])
    if role is not None and role.is_other:
        return OTHER_ROLE_PRACTICE_PERCENT
    return float(activity.practice_percent)


# ============================================================================
# Core calculation
# ============================================================================

def calculate_activity_applied_percentage(
    activity: Activity,
    practice_overrides: Optional[PracticeOverrides] = None,
    time_overrides: Optional[TimeOverrides] = None,
    role: Optional[RoleAssignment] = None,
) -> float:
    """Applied percentage one activity contributes to an item.

    Without subcomponent data the persisted QRA total is used instead; that
    means the activity was never configured in the QRA builder.
    """
    if not activity.subcomponents:
        logger.warning(
            "activity %s has no subcomponent data; using persisted baseline %s",
            activity.name,
            activity.total_applied_percent,
        )
        return float(activity.total_applied_percent or 0.0)

    practice = current_practice_percent(activity, role, practice_overrides)
    activity_times = (time_overrides or {}).get(activity.name, {})

    total = 0.0
    for sub in activity.subcomponents:
        if sub.is_non_rd or not subcomponent_applies_to(sub, role):
            continue
        time = activity_times.get(sub.id, sub.time_percent)
        total += subcomponent_contribution(practice, time, sub.frequency_percent, sub.year_percent)
    return total


def _sum_over_eligible(
    role: RoleAssignment,
    activities: Iterable[Activity],
    practice_overrides: Optional[PracticeOverrides],
    time_overrides: Optional[TimeOverrides],
) -> float:
    return sum(
        calculate_activity_applied_percentage(a, practice_overrides, time_overrides, role=role)
        for a in eligible_activities(role, activities)
    )


def calculate_employee_applied_percentage(
    employee: Employee,
    activities: Iterable[Activity],
    practice_overrides: Optional[PracticeOverrides] = None,
    time_overrides: Optional[TimeOverrides] = None,
) -> float:
    return _sum_over_eligible(employee.role, activities, practice_overrides, time_overrides)


def calculate_contractor_applied_percentage(
    contractor: Contractor,
    activities: Iterable[Activity],
    practice_overrides: Optional[PracticeOverrides] = None,
    time_overrides: Optional[TimeOverrides] = None,
) -> float:
    # The 65% limitation applies to the dollar amount, not to this percentage.
    return _sum_over_eligible(contractor.role, activities, practice_overrides, time_overrides)


# ============================================================================
# Roles
# ============================================================================

def flatten_roles(nodes: Iterable[RoleNode]) -> List[RoleNode]:
    """Depth-first, parents before children."""
    result: List[RoleNode] = []
    for node in nodes:
        result.append(node)
        result.extend(flatten_roles(node.children))
    return result


def activity_qra_total(activity: Activity) -> float:
    if activity.total_applied_percent is not None:
        return float(activity.total_applied_percent)
    return calculate_activity_applied_percentage(activity)


def calculate_role_applied_percentage(role_id: str, activities: Iterable[Activity]) -> float:
    participating = [a for a in activities if a.active and role_id in a.selected_roles]
    if not participating:
        return 0.0
    return sum(activity_qra_total(a) for a in participating) / len(participating)


def calculate_role_applied_percentages(
    nodes: Iterable[RoleNode],
    activities: Iterable[Activity],
) -> List[Role]:
    activities = list(activities)
    roles = []
    for node in flatten_roles(nodes):
        data = node.model_dump(exclude={"children"})
        data.pop("applied_percentage", None)
        roles.append(
            Role(**data, applied_percentage=calculate_role_applied_percentage(node.id, activities))
        )
    return roles


def role_name(
    role: RoleAssignment,
    roles: Optional[Iterable[RoleNode]] = None,
    custom_role_name: Optional[str] = None,
) -> str:
    if role.is_non_rd:
        return NON_RD_ROLE.name
    if role.is_other:
        return custom_role_name or OTHER_ROLE.name
    by_id: Dict[str, RoleNode] = {r.id: r for r in flatten_roles(roles or [])}
    if role.id in by_id:
        return by_id[role.id].name
    return "Unknown Role"
