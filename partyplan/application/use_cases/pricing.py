from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

from partyplan.application.utils.date_utils import is_weekend
from partyplan.domain.entities.party_details import PartyDetails
from partyplan.domain.entities.party_plan import PartyPlan, PlanSlot, slot_key_for_category
from partyplan.domain.entities.supplier import Addon, Package, Supplier

PARTY_BAGS_KEY = "partyBags"
DEFAULT_GUEST_COUNT = 10
STANDARD_PARTY_HOURS = 2.0
DEFAULT_PRICE_PER_BAG = 5.0
DEFAULT_PRICE_FROM = 100.0

# Prepared in advance at a fixed price: no weekend premium, no extra hours.
FIXED_PRICE_SLOT_KEYS = frozenset({"partyBags", "cakes", "decorations", "balloons", "photography"})

DEFAULT_PACKAGE_TIERS = (
    ("basic", "Basic Package", 1.0, ("Standard service", "Up to 15 children", "Basic setup"), "Basic"),
    ("premium", "Premium Package", 1.5, ("Enhanced service", "Professional setup", "Up to 25 children"), "Enhanced"),
    ("deluxe", "Deluxe Package", 2.0, ("Premium service", "Full setup & cleanup", "Up to 35 children"), "Complete"),
)


@dataclass(frozen=True)
class DisplayPrice:
    base_price: float
    total_price: float


@dataclass(frozen=True)
class PriceQuote:
    base_price: float
    weekend_premium: float = 0.0
    extra_hours: float = 0.0
    extra_hour_cost: float = 0.0
    addons_total: float = 0.0
    guest_count: int | None = None
    is_fixed_price: bool = False

    @property
    def package_price(self) -> float:
        """Price stored on the plan line; add-ons are priced separately."""
        return self.base_price + self.weekend_premium + self.extra_hour_cost

    @property
    def final_price(self) -> float:
        return self.package_price + self.addons_total


def _first_number(*values: object) -> float | None:
    for value in values:
        if value is None or isinstance(value, bool):
            continue
        if isinstance(value, (int, float)):
            return float(value)
    return None


def _round_half_up(value: float) -> float:
    return float(math.floor(value + 0.5))


def guest_count_for(party_details: PartyDetails | None, default: int = DEFAULT_GUEST_COUNT) -> int:
    if party_details and party_details.guest_count and party_details.guest_count > 0:
        return party_details.guest_count
    return default


def _party_bags_base(slot: PlanSlot, party_details: PartyDetails | None) -> float:
    package = slot.package
    supplier = slot.supplier

    quantity = package.quantity if package else None
    if quantity is None and party_details and party_details.guest_count:
        quantity = party_details.guest_count

    by_quantity = None
    if package and package.price is not None and quantity:
        by_quantity = package.price * quantity

    base = _first_number(
        slot.metadata.get("total_price"),
        package.total_price if package else None,
        by_quantity,
        supplier.price,
        supplier.price_from,
    )
    return base if base is not None else 0.0


def display_price(
    slot: PlanSlot,
    party_details: PartyDetails | None = None,
    attached_addons: Iterable[Addon] = (),
) -> DisplayPrice:
    """Price of one occupied category slot, including the add-ons attached to it.

    Party bags resolve their base from the precomputed bag total first; every
    other category uses the package price and falls back to the supplier price.
    """
    if slot_key_for_category(slot.supplier.category) == PARTY_BAGS_KEY:
        base = _party_bags_base(slot, party_details)
    else:
        base = _first_number(slot.package.price if slot.package else None, slot.supplier.price)
        base = base if base is not None else 0.0

    addons_total = sum(addon.price or 0.0 for addon in attached_addons)
    return DisplayPrice(base_price=base, total_price=base + addons_total)


def plan_total(plan: PartyPlan, party_details: PartyDetails | None = None) -> float:
    total = 0.0
    for category, slot in plan.slots.items():
        total += display_price(slot, party_details, plan.attached_addons(category)).total_price
    total += sum(addon.price or 0.0 for addon in plan.standalone_addons())
    return total


def quote_package(
    supplier: Supplier,
    package: Package,
    booking_date: str | None = None,
    party_details: PartyDetails | None = None,
    addons: Iterable[Addon] = (),
    standard_hours: float = STANDARD_PARTY_HOURS,
    default_guest_count: int = DEFAULT_GUEST_COUNT,
) -> PriceQuote:
    """Full price of a package for a given party.

    Weekend premium and extra-hour charges apply only to suppliers booked by
    time slot. Party bags without an explicit quantity are priced per guest.
    """
    slot_key = slot_key_for_category(supplier.category)
    fixed_price = slot_key in FIXED_PRICE_SLOT_KEYS
    addons_total = sum(addon.price or 0.0 for addon in addons)

    if slot_key == PARTY_BAGS_KEY:
        if package.quantity:
            base = _first_number(package.total_price, (package.price or 0.0) * package.quantity) or 0.0
            guests = package.quantity
        else:
            per_bag = _first_number(package.price, supplier.price, supplier.price_from) or DEFAULT_PRICE_PER_BAG
            guests = guest_count_for(party_details, default_guest_count)
            base = per_bag * guests
        return PriceQuote(base_price=base, addons_total=addons_total, guest_count=guests, is_fixed_price=True)

    base = _first_number(package.price, supplier.price, supplier.price_from) or 0.0
    if fixed_price:
        return PriceQuote(base_price=base, addons_total=addons_total, is_fixed_price=True)

    weekend_premium = 0.0
    premium = supplier.weekend_premium
    party_date = booking_date or (party_details.date if party_details else None)
    if premium and premium.enabled and is_weekend(party_date):
        if premium.type == "fixed":
            weekend_premium = premium.amount or 0.0
        elif premium.type == "percentage":
            weekend_premium = _round_half_up(base * (premium.percentage or 0.0) / 100)

    extra_hours = 0.0
    extra_hour_cost = 0.0
    duration = party_details.duration_hours if party_details and party_details.duration_hours else standard_hours
    rate = supplier.extra_hour_rate or 0.0
    if duration > standard_hours and rate > 0:
        extra_hours = duration - standard_hours
        extra_hour_cost = extra_hours * rate

    return PriceQuote(
        base_price=base,
        weekend_premium=weekend_premium,
        extra_hours=extra_hours,
        extra_hour_cost=extra_hour_cost,
        addons_total=addons_total,
    )


def generate_default_packages(supplier: Supplier) -> tuple[Package, ...]:
    """Authored packages, or a Basic/Premium/Deluxe set scaled from price_from."""
    if supplier.packages:
        return supplier.packages

    base_price = supplier.price_from or DEFAULT_PRICE_FROM
    duration = supplier.price_unit or "per event"
    service_name = (supplier.category or "service").lower()
    return tuple(
        Package(
            id=package_id,
            name=name,
            price=_round_half_up(base_price * multiplier),
            features=features,
            duration=duration,
            description=f"{label} {service_name} package",
        )
        for package_id, name, multiplier, features, label in DEFAULT_PACKAGE_TIERS
    )
