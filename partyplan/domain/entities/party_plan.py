from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from partyplan.domain.entities.party_details import PartyDetails
from partyplan.domain.entities.supplier import Addon, Package, Supplier

# Single lookup from supplier category display names to plan slot keys.
CATEGORY_SLOT_KEYS: dict[str, str] = {
    "entertainment": "entertainment",
    "entertainer": "entertainment",
    "venues": "venue",
    "venue": "venue",
    "catering": "catering",
    "decorations": "decorations",
    "decoration": "decorations",
    "party bags": "partyBags",
    "party bag": "partyBags",
    "partybags": "partyBags",
    "photography": "photography",
    "activities": "activities",
    "activity": "activities",
    "face painting": "facePainting",
    "facepainting": "facePainting",
    "cakes": "cakes",
    "cake": "cakes",
    "balloons": "balloons",
    "balloon": "balloons",
}

MAIN_SLOT_KEYS: tuple[str, ...] = (
    "venue",
    "entertainment",
    "catering",
    "cakes",
    "facePainting",
    "activities",
    "partyBags",
    "decorations",
    "balloons",
)

# Prepared in advance and delivered, so booked by date only.
LEAD_TIME_SLOT_KEYS: frozenset[str] = frozenset({"cakes", "partyBags", "decorations"})


def slot_key_for_category(category: str | None) -> str | None:
    if not category:
        return None
    return CATEGORY_SLOT_KEYS.get(category.lower().strip())


def is_main_slot(slot_key: str | None) -> bool:
    return slot_key in MAIN_SLOT_KEYS


class PlanMutationError(ValueError):
    """Raised when an aggregate operation cannot be applied to the plan."""


class UnknownCategoryError(PlanMutationError):
    pass


class DuplicateAddonError(PlanMutationError):
    pass


class AddonNotFoundError(PlanMutationError):
    pass


@dataclass(frozen=True)
class PlanSlot:
    supplier: Supplier
    package: Package | None = None
    booking_date: str | None = None  # YYYY-MM-DD
    booking_time_slot: str | None = None  # "morning" | "afternoon", None for lead-time suppliers
    metadata: dict[str, Any] = field(default_factory=dict)
    added_at: float | None = None


@dataclass(frozen=True)
class PartyPlan:
    plan_id: str | None = None
    slots: dict[str, PlanSlot] = field(default_factory=dict)
    addons: tuple[Addon, ...] = ()

    def occupant(self, category: str) -> PlanSlot | None:
        return self.slots.get(category)

    def is_occupied(self, category: str) -> bool:
        return category in self.slots

    def occupy(
        self,
        category: str,
        supplier: Supplier,
        package: Package | None,
        booking_date: str | None = None,
        booking_time_slot: str | None = None,
        metadata: dict[str, Any] | None = None,
        added_at: float | None = None,
    ) -> PartyPlan:
        """Place supplier in category, replacing any occupant and its attached add-ons."""
        if not is_main_slot(category):
            raise UnknownCategoryError(f"Unknown plan category: {category}")

        slots = dict(self.slots)
        slots[category] = PlanSlot(
            supplier=supplier,
            package=package,
            booking_date=booking_date,
            booking_time_slot=booking_time_slot,
            metadata=dict(metadata or {}),
            added_at=added_at,
        )
        addons = tuple(addon for addon in self.addons if addon.attached_to != category)
        return replace(self, slots=slots, addons=addons)

    def attach_addon(self, addon: Addon) -> PartyPlan:
        if any(existing.id == addon.id for existing in self.addons):
            raise DuplicateAddonError(f"Add-on already in party plan: {addon.id}")
        return replace(self, addons=self.addons + (addon,))

    def remove(self, category: str) -> PartyPlan:
        slots = {key: value for key, value in self.slots.items() if key != category}
        addons = tuple(addon for addon in self.addons if addon.attached_to != category)
        return replace(self, slots=slots, addons=addons)

    def remove_addon(self, addon_id: str) -> PartyPlan:
        remaining = tuple(addon for addon in self.addons if addon.id != addon_id)
        if len(remaining) == len(self.addons):
            raise AddonNotFoundError(f"Add-on not found in party plan: {addon_id}")
        return replace(self, addons=remaining)

    def has_addon(self, addon_id: str) -> bool:
        return any(addon.id == addon_id for addon in self.addons)

    def attached_addons(self, category: str) -> tuple[Addon, ...]:
        return tuple(addon for addon in self.addons if addon.attached_to == category)

    def standalone_addons(self) -> tuple[Addon, ...]:
        """Add-ons not priced through an occupied slot."""
        return tuple(
            addon for addon in self.addons if addon.attached_to is None or addon.attached_to not in self.slots
        )

    def to_total(self, party_details: PartyDetails | None = None) -> float:
        from partyplan.application.use_cases.pricing import plan_total

        return plan_total(self, party_details)
