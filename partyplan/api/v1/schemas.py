from enum import Enum
from pydantic import BaseModel, Field
from typing import Any


class CallerStateSchema(str, Enum):
    anonymous = "anonymous"
    has_localplan = "has-localplan"
    has_account = "has-account"
    conflict = "conflict"


class SlotSchema(str, Enum):
    morning = "morning"
    afternoon = "afternoon"


class AddonSchema(BaseModel):
    id: str
    name: str
    price: float = Field(default=0.0, ge=0)
    supplier_id: str | None = None
    supplier_type: str | None = None
    attached_to: str | None = None


class PackageSchema(BaseModel):
    id: str
    name: str
    price: float | None = None
    features: list[str] = Field(default_factory=list)
    duration: str | None = None
    description: str | None = None
    total_price: float | None = None
    quantity: int | None = None


class AvailabilityResponseSchema(BaseModel):
    supplier_id: str
    date: str | None
    available: bool
    slots: list[SlotSchema]
    status: str


class CalendarDaySchema(BaseModel):
    date: str
    status: str
    slots: list[SlotSchema] = Field(default_factory=list)


class CalendarResponseSchema(BaseModel):
    supplier_id: str
    year: int
    month: int
    days: list[CalendarDaySchema]


class AddToPlanRequestSchema(BaseModel):
    supplier_id: str
    package_id: str | None = None
    caller_state: CallerStateSchema = CallerStateSchema.anonymous
    date: str | None = None
    time_slot: SlotSchema | None = None
    addons: list[AddonSchema] | None = None
    enquiry_acknowledged: bool = False


class BuildPlanRequestSchema(BaseModel):
    supplier_id: str
    package_id: str | None = None
    date: str
    time_slot: SlotSchema | None = None
    guest_count: int | None = Field(default=None, ge=1)
    addons: list[AddonSchema] | None = None


class DecisionSchema(BaseModel):
    kind: str
    reason: str | None = None
    date: str | None = None
    slot: SlotSchema | None = None
    available_slots: list[SlotSchema] = Field(default_factory=list)
    pending_count: int | None = None
    occupant_name: str | None = None
    addons: list[AddonSchema] = Field(default_factory=list)


class CommitResultSchema(BaseModel):
    success: bool
    message: str
    redirect_url: str | None = None
    category: str | None = None
    enquiry_sent: bool = False
    retryable: bool = False


class AddToPlanResponseSchema(BaseModel):
    decision: DecisionSchema
    result: CommitResultSchema | None = None


class PlanSlotSchema(BaseModel):
    supplier_id: str
    supplier_name: str
    package: PackageSchema | None = None
    booking_date: str | None = None
    booking_time_slot: str | None = None
    price: float
    total_price: float


class PlanResponseSchema(BaseModel):
    session_id: str
    plan_id: str | None = None
    slots: dict[str, PlanSlotSchema] = Field(default_factory=dict)
    addons: list[AddonSchema] = Field(default_factory=list)
    total: float


class PartyDetailsSchema(BaseModel):
    date: str | None = None
    time: str | None = None
    time_slot: SlotSchema | None = None
    guest_count: int | None = Field(default=None, ge=1)
    theme: str | None = None
    duration_hours: float | None = Field(default=None, gt=0)


class ReplacementEnterRequestSchema(BaseModel):
    origin: str | None = None
    return_url: str | None = None
    supplier_id: str | None = None


class ReplacementPackageRequestSchema(BaseModel):
    supplier_id: str
    package_id: str


class ReplacementContextSchema(BaseModel):
    is_replacement: bool = False
    return_url: str | None = None
    current_supplier_data: dict[str, Any] | None = None
    selected_supplier_data: dict[str, Any] | None = None
    selected_package_data: dict[str, Any] | None = None
    ready_for_booking: bool = False


class ReplacementResponseSchema(BaseModel):
    context: ReplacementContextSchema | None = None
    should_restore_modal: bool = False
    show_upgrade: bool = False


class CompleteReplacementRequestSchema(BaseModel):
    caller_state: CallerStateSchema = CallerStateSchema.has_account


class ToastResponseSchema(BaseModel):
    toast: dict[str, Any] | None = None
