from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from partyplan.application.use_cases.pricing import PriceQuote
from partyplan.domain.entities.availability import Slot
from partyplan.domain.entities.party_details import PartyDetails
from partyplan.domain.entities.party_plan import PartyPlan
from partyplan.domain.entities.replacement_context import ReplacementContext
from partyplan.domain.entities.supplier import Addon, Package, Supplier


class CallerState(str, Enum):
    ANONYMOUS = "anonymous"
    HAS_LOCALPLAN = "has-localplan"
    HAS_ACCOUNT = "has-account"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class BookingRequest:
    supplier: Supplier | None
    package: Package | None
    caller_state: CallerState | str = CallerState.ANONYMOUS
    plan: PartyPlan = field(default_factory=PartyPlan)
    chosen_date: str | None = None
    chosen_slot: str | None = None
    party_details: PartyDetails | None = None
    pending_enquiries: int = 0
    replacement: ReplacementContext | None = None
    addons: tuple[Addon, ...] | None = None  # None = not asked yet, () = explicitly none
    enquiry_acknowledged: bool = False


@dataclass(frozen=True)
class EnrichedPackage:
    supplier: Supplier
    package: Package  # price already includes weekend premium and extra hours
    category: str | None  # main slot key, None for the add-on route
    booking_date: str | None
    booking_time_slot: Slot | None
    delivery_type: str  # "lead_time" | "time_slot"
    quote: PriceQuote
    addons: tuple[Addon, ...] = ()
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_addon(self) -> bool:
        return self.category is None


@dataclass(frozen=True)
class NeedDate:
    kind: str = "need_date"


@dataclass(frozen=True)
class NeedSlot:
    available_slots: tuple[Slot, ...]
    kind: str = "need_slot"


@dataclass(frozen=True)
class Unavailable:
    date: str
    slot: Slot | None
    available_slots: tuple[Slot, ...] = ()
    kind: str = "unavailable"


@dataclass(frozen=True)
class NeedEnquiryAck:
    pending_count: int
    kind: str = "need_enquiry_ack"


@dataclass(frozen=True)
class NeedAddonChoice:
    addons: tuple[Addon, ...]
    kind: str = "need_addon_choice"


@dataclass(frozen=True)
class CategoryOccupied:
    occupant_name: str
    category: str | None = None
    kind: str = "category_occupied"


@dataclass(frozen=True)
class BuildNewPlan:
    date: str
    slot: Slot | None
    kind: str = "build_new_plan"


@dataclass(frozen=True)
class ReadyToCommit:
    enriched_package: EnrichedPackage
    kind: str = "ready_to_commit"


@dataclass(frozen=True)
class DecisionError:
    reason: str
    kind: str = "error"


Decision = Union[
    NeedDate,
    NeedSlot,
    Unavailable,
    NeedEnquiryAck,
    NeedAddonChoice,
    CategoryOccupied,
    BuildNewPlan,
    ReadyToCommit,
    DecisionError,
]


@dataclass(frozen=True)
class CommitResult:
    success: bool
    message: str
    redirect_url: str | None = None
    category: str | None = None
    enquiry_sent: bool = False
    retryable: bool = False
    plan: PartyPlan | None = None


@dataclass(frozen=True)
class AddToPlanOutcome:
    decision: Decision
    result: CommitResult | None = None
