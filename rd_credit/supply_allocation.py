"""Supply allocation: a supply's share per activity, split pro rata across the
subcomponents the user selected for that activity."""

from __future__ import annotations

from typing import Dict, Iterable, List

from .models import Supply, SupplyAllocation


def distribute_activity_percentage(activity_percentage: float, selected_ids: Iterable[str]) -> Dict[str, float]:
    selected = list(selected_ids)
    if not selected:
        return {}
    share = activity_percentage / len(selected)
    return {sub_id: share for sub_id in selected}


def subcomponent_percentages(allocation: SupplyAllocation) -> Dict[str, Dict[str, float]]:
    """activity name -> subcomponent id -> percent, redistributed on every read."""
    result: Dict[str, Dict[str, float]] = {}
    for activity_name, percentage in allocation.activity_percentages.items():
        split = distribute_activity_percentage(
            percentage, allocation.selected_subcomponents.get(activity_name, [])
        )
        if split:
            result[activity_name] = split
    return result


def toggle_subcomponent(allocation: SupplyAllocation, activity_name: str, subcomponent_id: str) -> SupplyAllocation:
    selected: List[str] = list(allocation.selected_subcomponents.get(activity_name, []))
    if subcomponent_id in selected:
        selected.remove(subcomponent_id)
    else:
        selected.append(subcomponent_id)

    subs = dict(allocation.selected_subcomponents)
    subs[activity_name] = selected
    return allocation.model_copy(update={"selected_subcomponents": subs})


def set_activity_percentage(allocation: SupplyAllocation, activity_name: str, percentage: float) -> SupplyAllocation:
    if percentage < 0:
        raise ValueError(f"activity percentage must be non-negative, got {percentage}")
    pcts = dict(allocation.activity_percentages)
    pcts[activity_name] = float(percentage)
    return allocation.model_copy(update={"activity_percentages": pcts})


def total_activity_percentage(allocation: SupplyAllocation) -> float:
    return sum(allocation.activity_percentages.values())


def calculate_supply_applied_percentage(supply: Supply) -> float:
    if supply.allocation is None:
        return supply.applied_percent_value
    return sum(
        pct
        for split in subcomponent_percentages(supply.allocation).values()
        for pct in split.values()
    )
