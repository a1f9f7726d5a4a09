"""Data contracts for QRE apportionment.

Goal: represent activities, roles and expense items in strict, typed structures
so nothing loosely-shaped reaches the calculators.

Design principles:
- External records (camelCase JSON from the surrounding app) are validated here,
  at the boundary, through field aliases.
- Sentinel roles are a closed variant, not magic strings.
- A persisted applied percentage is tagged Computed or Overridden so automatic
  recalculation can never clobber a user's custom configuration.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


Percent = Annotated[float, Field(ge=0, le=100)]


class RecordModel(BaseModel):
    """Accepts camelCase keys from the app and snake_case from Python callers."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Activities & QRA configuration
# ============================================================================

class Subcomponent(RecordModel):
    """One step-level subcomponent of a research activity."""

    id: str
    step: str = ""
    subcomponent: str = ""
    phase: str = ""
    frequency_percent: Percent = 0
    year_percent: Percent = 0
    time_percent: Percent = 0
    start_year: Optional[int] = None
    selected_roles: List[str] = Field(default_factory=list)
    is_non_rd: bool = Field(False, alias="isNonRD")


class Activity(RecordModel):
    """A research activity for one business/year, read-only to this package."""

    id: str
    name: str
    active: bool = True
    selected_roles: List[str] = Field(default_factory=list)
    practice_percent: Percent = 0
    subcomponents: List[Subcomponent] = Field(default_factory=list)
    # QRA totalAppliedPercent persisted by the activities workflow
    total_applied_percent: Optional[float] = None


# ============================================================================
# Roles
# ============================================================================

NON_RD_ROLE_ID = "non-rd"
OTHER_ROLE_ID = "other"


class RoleKind(str, Enum):
    HIERARCHICAL = "hierarchical"
    NON_RD = "non_rd"     # contributes 0%, participates in nothing
    OTHER = "other"       # every active activity at 100% practice


class RoleAssignment(BaseModel):
    """Role carried by an employee or contractor."""

    model_config = ConfigDict(frozen=True)

    kind: RoleKind
    role_id: Optional[str] = None

    @model_validator(mode="after")
    def _check_role_id(self) -> "RoleAssignment":
        if self.kind == RoleKind.HIERARCHICAL and not self.role_id:
            raise ValueError("hierarchical role assignments need a role_id")
        return self

    @classmethod
    def from_role_id(cls, role_id: str) -> "RoleAssignment":
        if role_id == NON_RD_ROLE_ID:
            return cls(kind=RoleKind.NON_RD)
        if role_id == OTHER_ROLE_ID:
            return cls(kind=RoleKind.OTHER)
        return cls(kind=RoleKind.HIERARCHICAL, role_id=role_id)

    @property
    def id(self) -> str:
        if self.kind == RoleKind.NON_RD:
            return NON_RD_ROLE_ID
        if self.kind == RoleKind.OTHER:
            return OTHER_ROLE_ID
        return self.role_id or ""

    @property
    def is_non_rd(self) -> bool:
        return self.kind == RoleKind.NON_RD

    @property
    def is_other(self) -> bool:
        return self.kind == RoleKind.OTHER


class RoleNode(RecordModel):
    id: str
    name: str
    color: Optional[str] = None
    participates_in_rd: bool = Field(True, alias="participatesInRD")
    parent_id: Optional[str] = None
    children: List["RoleNode"] = Field(default_factory=list)


class Role(RoleNode):
    """RoleNode plus the derived share of time spent on R&D."""

    applied_percentage: float = 0.0
    description: Optional[str] = None


NON_RD_ROLE = Role(
    id=NON_RD_ROLE_ID,
    name="Non-R&D",
    participates_in_rd=False,
    applied_percentage=0,
    description="Employee does not participate in R&D activities",
)

OTHER_ROLE = Role(
    id=OTHER_ROLE_ID,
    name="Other",
    applied_percentage=100,
    description="Custom role with access to all activities at full percentages",
)


# ============================================================================
# Applied percentage (tagged)
# ============================================================================

class Computed(BaseModel):
    """Derived from current activity/role data; safe to recalculate."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["computed"] = "computed"
    value: float = 0.0


class Overridden(BaseModel):
    """Produced from a user's custom configuration; authoritative."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["overridden"] = "overridden"
    value: float = 0.0


AppliedPercentage = Annotated[Union[Computed, Overridden], Field(discriminator="kind")]


# ============================================================================
# Expense items
# ============================================================================

class ContractorType(str, Enum):
    INDIVIDUAL = "individual"
    BUSINESS = "business"


class ExpenseItem(RecordModel):
    id: str
    is_active: bool = True
    is_locked: bool = False
    applied_percentage: AppliedPercentage = Field(default_factory=Computed)
    applied_amount: float = 0.0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def applied_percent_value(self) -> float:
        return self.applied_percentage.value


class RoleBasedItem(ExpenseItem):
    """Shared shape of employees and contractors."""

    role: RoleAssignment = Field(alias="roleId")
    custom_role_name: Optional[str] = None
    custom_practice_percentages: Dict[str, float] = Field(default_factory=dict)
    custom_time_percentages: Dict[str, Dict[str, float]] = Field(default_factory=dict)

    @field_validator("role", mode="before")
    @classmethod
    def _coerce_role(cls, value):
        if isinstance(value, str):
            return RoleAssignment.from_role_id(value)
        return value

    @model_validator(mode="before")
    @classmethod
    def _tag_persisted_percentage(cls, data):
        # A bare number read back from storage is only authoritative when the
        # item carries custom overrides.
        if not isinstance(data, dict):
            return data
        for key in ("applied_percentage", "appliedPercentage"):
            raw = data.get(key)
            if isinstance(raw, (int, float)) and not isinstance(raw, bool):
                custom = any(
                    data.get(name)
                    for name in (
                        "custom_practice_percentages",
                        "customPracticePercentages",
                        "custom_time_percentages",
                        "customTimePercentages",
                    )
                )
                data = dict(data)
                data[key] = {"kind": "overridden" if custom else "computed", "value": float(raw)}
        return data

    @property
    def has_custom_configuration(self) -> bool:
        return bool(self.custom_practice_percentages) or bool(self.custom_time_percentages)


class Employee(RoleBasedItem):
    kind: Literal["employee"] = "employee"
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    wage: float = Field(0, ge=0)
    is_business_owner: bool = False

    @property
    def display_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    @property
    def base_amount(self) -> float:
        return self.wage


class Contractor(RoleBasedItem):
    kind: Literal["contractor"] = "contractor"
    contractor_type: ContractorType = ContractorType.INDIVIDUAL
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    business_name: Optional[str] = None
    total_amount: float = Field(0, ge=0)

    @property
    def display_name(self) -> str:
        if self.contractor_type == ContractorType.BUSINESS:
            return (self.business_name or "").strip()
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    @property
    def base_amount(self) -> float:
        return self.total_amount


class SupplyAllocation(RecordModel):
    """User-configured share of a supply per activity and selected subcomponents."""

    activity_percentages: Dict[str, float] = Field(default_factory=dict)
    selected_subcomponents: Dict[str, List[str]] = Field(default_factory=dict)


class Supply(ExpenseItem):
    kind: Literal["supply"] = "supply"
    title: str = ""
    description: str = ""
    total_value: float = Field(0, ge=0)
    category: str = ""
    allocation: Optional[SupplyAllocation] = None

    @model_validator(mode="before")
    @classmethod
    def _tag_persisted_percentage(cls, data):
        # with an allocation the stored number is derived; without one it is user-entered
        if not isinstance(data, dict):
            return data
        kind = "computed" if data.get("allocation") is not None else "overridden"
        for key in ("applied_percentage", "appliedPercentage"):
            raw = data.get(key)
            if isinstance(raw, (int, float)) and not isinstance(raw, bool):
                data = dict(data)
                data[key] = {"kind": kind, "value": float(raw)}
        return data

    @property
    def display_name(self) -> str:
        return self.title.strip()

    @property
    def base_amount(self) -> float:
        return self.total_value


AnyExpenseItem = Annotated[Union[Employee, Contractor, Supply], Field(discriminator="kind")]


# ============================================================================
# Business history
# ============================================================================

class BusinessType(str, Enum):
    C_CORP = "C-Corp"
    PASS_THROUGH = "Pass-Through"


class FinancialYear(RecordModel):
    year: int = Field(..., ge=1900, le=2100)
    gross_receipts: float = 0.0
    qre: float = 0.0
