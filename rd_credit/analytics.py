"""Expense analytics: per-category and per-role summary statistics, built on a
pandas frame with one row per expense item."""

from __future__ import annotations

from typing import Dict, Iterable, Optional, Sequence

import pandas as pd
from pydantic import BaseModel, Field

from .applied_percentage import role_name
from .models import Contractor, Employee, RoleNode, Supply

COLUMNS = [
    "id",
    "category",
    "name",
    "role",
    "is_active",
    "base_amount",
    "applied_percentage",
    "applied_amount",
]

CATEGORIES = ("employee", "contractor", "supply")


class CategorySummary(BaseModel):
    count: int = 0
    base_total: float = 0.0
    applied_total: float = 0.0
    average_applied_percentage: float = 0.0
    max_applied_percentage: float = 0.0
    share_of_qres: float = 0.0


class ExpenseAnalytics(BaseModel):
    categories: Dict[str, CategorySummary] = Field(default_factory=dict)
    applied_by_role: Dict[str, float] = Field(default_factory=dict)
    total_base: float = 0.0
    total_qres: float = 0.0
    effective_qre_rate: float = 0.0  # total_qres / total_base


def expense_frame(
    employees: Iterable[Employee],
    contractors: Iterable[Contractor],
    supplies: Iterable[Supply],
    roles: Optional[Sequence[RoleNode]] = None,
) -> pd.DataFrame:
    rows = []
    for category, items in (("employee", employees), ("contractor", contractors)):
        for item in items:
            rows.append({
                "id": item.id,
                "category": category,
                "name": item.display_name,
                "role": role_name(item.role, roles, item.custom_role_name),
                "is_active": item.is_active,
                "base_amount": item.base_amount,
                "applied_percentage": item.applied_percent_value,
                "applied_amount": item.applied_amount,
            })
    for s in supplies:
        rows.append({
            "id": s.id,
            "category": "supply",
            "name": s.display_name,
            "role": None,
            "is_active": s.is_active,
            "base_amount": s.base_amount,
            "applied_percentage": s.applied_percent_value,
            "applied_amount": s.applied_amount,
        })
    return pd.DataFrame(rows, columns=COLUMNS)


def summarize_expenses(
    employees: Iterable[Employee],
    contractors: Iterable[Contractor],
    supplies: Iterable[Supply],
    roles: Optional[Sequence[RoleNode]] = None,
    active_only: bool = True,
) -> ExpenseAnalytics:
    df = expense_frame(employees, contractors, supplies, roles)
    if active_only and not df.empty:
        df = df[df["is_active"].astype(bool)]

    total_base = float(df["base_amount"].sum()) if not df.empty else 0.0
    total_qres = float(df["applied_amount"].sum()) if not df.empty else 0.0

    categories: Dict[str, CategorySummary] = {c: CategorySummary() for c in CATEGORIES}
    if not df.empty:
        grouped = df.groupby("category").agg(
            count=("id", "count"),
            base_total=("base_amount", "sum"),
            applied_total=("applied_amount", "sum"),
            average_applied_percentage=("applied_percentage", "mean"),
            max_applied_percentage=("applied_percentage", "max"),
        )
        for category, row in grouped.iterrows():
            applied_total = float(row["applied_total"])
            categories[category] = CategorySummary(
                count=int(row["count"]),
                base_total=float(row["base_total"]),
                applied_total=applied_total,
                average_applied_percentage=float(row["average_applied_percentage"]),
                max_applied_percentage=float(row["max_applied_percentage"]),
                share_of_qres=(applied_total / total_qres * 100) if total_qres else 0.0,
            )

    applied_by_role: Dict[str, float] = {}
    labor = df[df["role"].notna()] if not df.empty else df
    if not labor.empty:
        applied_by_role = {
            str(role): float(amount)
            for role, amount in labor.groupby("role")["applied_amount"].sum().items()
        }

    return ExpenseAnalytics(
        categories=categories,
        applied_by_role=applied_by_role,
        total_base=total_base,
        total_qres=total_qres,
        effective_qre_rate=(total_qres / total_base) if total_base else 0.0,
    )
