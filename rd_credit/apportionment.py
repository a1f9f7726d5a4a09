"""Expense apportionment.

Applies an item's applied percentage to its base cost and aggregates the
results per year.

Design principles:
- Contractor payments count at 65% (IRC 41(b)(3)); the rate is statutory.
- Items whose applied percentage is Overridden, or which are locked, are never
  touched by automatic recalculation.
- Every operation returns new models; inputs are not mutated.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Union

from pydantic import BaseModel

from .applied_percentage import (
    PracticeOverrides,
    TimeOverrides,
    calculate_contractor_applied_percentage,
    calculate_employee_applied_percentage,
)
from .models import Activity, Computed, Contractor, Employee, Overridden, Supply, SupplyAllocation
from .supply_allocation import calculate_supply_applied_percentage

logger = logging.getLogger(__name__)

CONTRACTOR_QRE_RATE = 0.65

ExpenseLike = Union[Employee, Contractor, Supply]


def applied_amount(item: ExpenseLike, applied_percentage: Optional[float] = None) -> float:
    pct = item.applied_percent_value if applied_percentage is None else applied_percentage
    if isinstance(item, Employee):
        return item.wage * pct / 100
    if isinstance(item, Contractor):
        return item.total_amount * pct / 100 * CONTRACTOR_QRE_RATE
    if isinstance(item, Supply):
        return item.total_value * pct / 100
    raise TypeError(f"Unsupported expense item type: {type(item).__name__}")


def has_custom_configuration(item: ExpenseLike) -> bool:
    if isinstance(item, Supply):
        return False
    return item.has_custom_configuration


def _computed_percentage(item: ExpenseLike, activities: List[Activity]) -> float:
    if isinstance(item, Employee):
        return calculate_employee_applied_percentage(item, activities)
    if isinstance(item, Contractor):
        return calculate_contractor_applied_percentage(item, activities)
    return calculate_supply_applied_percentage(item)


def recalculate_item(item: ExpenseLike, activities: Iterable[Activity]) -> ExpenseLike:
    """Refresh a Computed percentage from current activity data.

    Overridden or locked items come back unchanged.
    """
    if isinstance(item.applied_percentage, Overridden) or item.is_locked:
        return item
    pct = _computed_percentage(item, list(activities))
    return item.model_copy(
        update={
            "applied_percentage": Computed(value=pct),
            "applied_amount": applied_amount(item, pct),
        }
    )


def recalculate_items(items: Iterable[ExpenseLike], activities: Iterable[Activity]) -> List[ExpenseLike]:
    activities = list(activities)
    result = [recalculate_item(item, activities) for item in items]
    logger.info("recalculated %s expense items", len(result))
    return result


def apply_custom_configuration(
    item: Union[Employee, Contractor],
    activities: Iterable[Activity],
    practice_overrides: Optional[PracticeOverrides] = None,
    time_overrides: Optional[TimeOverrides] = None,
) -> Union[Employee, Contractor]:
    """Save a custom practice/time configuration onto an item.

    The result is Overridden and locked so later recalculation leaves it alone.
    """
    practice = {k: float(v) for k, v in (practice_overrides or {}).items()}
    time = {a: {s: float(p) for s, p in subs.items()} for a, subs in (time_overrides or {}).items()}

    activities = list(activities)
    if isinstance(item, Employee):
        pct = calculate_employee_applied_percentage(item, activities, practice, time)
    elif isinstance(item, Contractor):
        pct = calculate_contractor_applied_percentage(item, activities, practice, time)
    else:
        raise TypeError(f"Custom configuration is not supported for {type(item).__name__}")

    return item.model_copy(
        update={
            "custom_practice_percentages": practice,
            "custom_time_percentages": time,
            "applied_percentage": Overridden(value=pct),
            "applied_amount": applied_amount(item, pct),
            "is_locked": True,
        }
    )


def apply_supply_allocation(supply: Supply, allocation: SupplyAllocation) -> Supply:
    """Save an edited allocation onto a supply and re-derive its percentage and amount.

    Called after every subcomponent toggle or activity percentage change so the
    stored values always match the full redistribution.
    """
    updated = supply.model_copy(update={"allocation": allocation})
    pct = calculate_supply_applied_percentage(updated)
    logger.debug("supply %s allocation applied: %.4f%%", supply.id, pct)
    return updated.model_copy(
        update={
            "applied_percentage": Overridden(value=pct),
            "applied_amount": applied_amount(updated, pct),
        }
    )


# ============================================================================
# Year totals
# ============================================================================

class YearTotals(BaseModel):
    total_wages: float = 0.0
    total_applied_wages: float = 0.0
    total_contractor_amounts: float = 0.0
    total_applied_contractor_amounts: float = 0.0
    total_supply_values: float = 0.0
    total_applied_supply_values: float = 0.0
    total_qres: float = 0.0
    employee_count: int = 0
    business_owner_count: int = 0
    contractor_count: int = 0
    supply_count: int = 0


def calculate_year_totals(
    items: Iterable[ExpenseLike],
    active_only: bool = False,
) -> YearTotals:
    t = YearTotals()
    for item in items:
        if active_only and not item.is_active:
            continue
        if isinstance(item, Employee):
            t.total_wages += item.wage
            t.total_applied_wages += item.applied_amount
            if item.is_business_owner:
                t.business_owner_count += 1
            else:
                t.employee_count += 1
        elif isinstance(item, Contractor):
            t.total_contractor_amounts += item.total_amount
            t.total_applied_contractor_amounts += item.applied_amount
            t.contractor_count += 1
        elif isinstance(item, Supply):
            t.total_supply_values += item.total_value
            t.total_applied_supply_values += item.applied_amount
            t.supply_count += 1
        else:
            raise TypeError(f"Unsupported expense item type: {type(item).__name__}")

    t.total_qres = t.total_applied_wages + t.total_applied_contractor_amounts + t.total_applied_supply_values
    return t
