"""
Conversion between raw supplier/plan payloads and domain entities.

Supplier records arrive in several historical shapes (camelCase from the web
client, snake_case from newer services, legacy whole-day exception lists).
Everything is normalized here, once, so the availability engine only ever sees
one profile shape.
"""

from __future__ import annotations

import logging
from typing import Any

from partyplan.application.utils.date_utils import WEEKDAY_NAMES, to_comparable_date_string
from partyplan.domain.entities.availability import (
    ALL_SLOTS,
    AvailabilityProfile,
    DateException,
    DaySchedule,
    Slot,
    SlotWindow,
)
from partyplan.domain.entities.party_details import PartyDetails
from partyplan.domain.entities.party_plan import PartyPlan, PlanSlot, is_main_slot
from partyplan.domain.entities.supplier import Addon, Package, Supplier, WeekendPremium

logger = logging.getLogger(__name__)

DEFAULT_MORNING_END = "13:00"
DEFAULT_DAY_START = "09:00"
DEFAULT_DAY_END = "17:00"


def _pick(payload: dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return default


def _to_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _parse_slot(value: Any) -> Slot | None:
    try:
        return Slot(str(value).lower().strip())
    except ValueError:
        return None


def build_day_schedule(raw: Any) -> DaySchedule:
    if raw is False:
        return DaySchedule(active=False, slots={slot: SlotWindow(False) for slot in ALL_SLOTS})
    if raw is True or not isinstance(raw, dict):
        return DaySchedule()

    active = bool(_pick(raw, "active", "enabled", default=True))
    slot_payload = _pick(raw, "slots", "timeSlots", "time_slots")

    if isinstance(slot_payload, dict):
        slots: dict[Slot, SlotWindow] = {}
        for slot in ALL_SLOTS:
            window = slot_payload.get(slot.value)
            if isinstance(window, dict):
                slots[slot] = SlotWindow(
                    available=bool(window.get("available", False)),
                    start=_pick(window, "start", "startTime"),
                    end=_pick(window, "end", "endTime"),
                )
            else:
                slots[slot] = SlotWindow(available=False)
        return DaySchedule(active=active, slots=slots)

    # Legacy {active, start, end}: both halves follow the day flag
    start = _pick(raw, "start", "startTime", default=DEFAULT_DAY_START)
    end = _pick(raw, "end", "endTime", default=DEFAULT_DAY_END)
    return DaySchedule(
        active=active,
        slots={
            Slot.MORNING: SlotWindow(active, start, DEFAULT_MORNING_END),
            Slot.AFTERNOON: SlotWindow(active, DEFAULT_MORNING_END, end),
        },
    )


def build_date_exceptions(raw_items: Any) -> tuple[DateException, ...]:
    if not isinstance(raw_items, (list, tuple)):
        return ()

    exceptions: list[DateException] = []
    for item in raw_items:
        if isinstance(item, dict):
            date_str = to_comparable_date_string(item.get("date"))
            raw_slots = _pick(item, "slots", "timeSlots", "time_slots")
        else:
            date_str = to_comparable_date_string(item)
            raw_slots = None

        if date_str is None:
            logger.debug("Dropping unparsable date exception", extra={"reason": repr(item)})
            continue

        if raw_slots is None:
            # Legacy whole-day form
            exceptions.append(DateException(date=date_str, slots=ALL_SLOTS))
            continue

        slots = tuple(slot for slot in ALL_SLOTS if slot in {_parse_slot(value) for value in raw_slots})
        if slots:
            exceptions.append(DateException(date=date_str, slots=slots))

    return tuple(exceptions)


def build_availability_profile(payload: dict[str, Any]) -> AvailabilityProfile:
    raw_hours = _pick(payload, "workingHours", "working_hours")
    working_hours: dict[str, DaySchedule] = {}
    if isinstance(raw_hours, dict):
        for day, raw in raw_hours.items():
            day_key = str(day).lower().strip()
            if day_key in WEEKDAY_NAMES:
                working_hours[day_key] = build_day_schedule(raw)

    return AvailabilityProfile(
        working_hours=working_hours,
        unavailable_dates=build_date_exceptions(_pick(payload, "unavailableDates", "unavailable_dates")),
        busy_dates=build_date_exceptions(_pick(payload, "busyDates", "busy_dates")),
        advance_booking_days=_to_int(_pick(payload, "advanceBookingDays", "advance_booking_days"), 0),
        max_booking_days=_to_int(_pick(payload, "maxBookingDays", "max_booking_days"), 365),
    )


def build_package(payload: dict[str, Any], index: int = 0) -> Package:
    features = _pick(payload, "features", "whatsIncluded", default=())
    quantity = _pick(payload, "quantity", "partyBagsQuantity")
    return Package(
        id=str(_pick(payload, "id", default=f"real-{index}")),
        name=str(_pick(payload, "name", default="Package")),
        price=_to_float(payload.get("price")),
        features=tuple(str(feature) for feature in features),
        duration=payload.get("duration"),
        description=payload.get("description"),
        original_price=_to_float(_pick(payload, "originalPrice", "original_price")),
        total_price=_to_float(_pick(payload, "totalPrice", "total_price")),
        quantity=_to_int(quantity, 0) if quantity is not None else None,
    )


def build_addon(payload: dict[str, Any], index: int = 0) -> Addon:
    return Addon(
        id=str(_pick(payload, "id", default=f"addon-{index}")),
        name=str(_pick(payload, "name", default="Add-on")),
        price=_to_float(payload.get("price")) or 0.0,
        supplier_id=_pick(payload, "supplierId", "supplier_id"),
        supplier_type=_pick(payload, "supplierType", "supplier_type"),
        attached_to=_pick(payload, "attachedTo", "attached_to", "attachedToSupplier"),
        package_id=_pick(payload, "packageId", "package_id"),
    )


def build_weekend_premium(raw: Any) -> WeekendPremium | None:
    if not isinstance(raw, dict):
        return None
    return WeekendPremium(
        enabled=bool(raw.get("enabled", False)),
        type=str(raw.get("type", "fixed")),
        amount=_to_float(raw.get("amount")) or 0.0,
        percentage=_to_float(raw.get("percentage")) or 0.0,
    )


def build_supplier(payload: dict[str, Any]) -> Supplier:
    service_details = _pick(payload, "serviceDetails", "service_details", default={}) or {}
    raw_addons = _pick(payload, "addonServices", "addon_services") or service_details.get("addOnServices") or []
    raw_packages = payload.get("packages") or []

    return Supplier(
        id=str(payload["id"]),
        name=str(_pick(payload, "name", default="Supplier")),
        category=str(_pick(payload, "category", default="")),
        price=_to_float(payload.get("price")),
        price_from=_to_float(_pick(payload, "priceFrom", "price_from")),
        price_unit=_pick(payload, "priceUnit", "price_unit"),
        packages=tuple(build_package(raw, index) for index, raw in enumerate(raw_packages) if isinstance(raw, dict)),
        addon_services=tuple(build_addon(raw, index) for index, raw in enumerate(raw_addons) if isinstance(raw, dict)),
        availability=build_availability_profile(payload),
        weekend_premium=build_weekend_premium(_pick(payload, "weekendPremium", "weekend_premium")),
        extra_hour_rate=_to_float(
            _pick(payload, "extraHourRate", "extra_hour_rate") or service_details.get("extraHourRate")
        ),
        description=payload.get("description"),
    )


def package_to_payload(package: Package) -> dict[str, Any]:
    return {
        "id": package.id,
        "name": package.name,
        "price": package.price,
        "features": list(package.features),
        "duration": package.duration,
        "description": package.description,
        "original_price": package.original_price,
        "total_price": package.total_price,
        "quantity": package.quantity,
    }


def addon_to_payload(addon: Addon) -> dict[str, Any]:
    return {
        "id": addon.id,
        "name": addon.name,
        "price": addon.price,
        "supplier_id": addon.supplier_id,
        "supplier_type": addon.supplier_type,
        "attached_to": addon.attached_to,
        "package_id": addon.package_id,
    }


def _exceptions_to_payload(items: tuple[DateException, ...]) -> list[dict[str, Any]]:
    return [{"date": item.date, "slots": [slot.value for slot in item.slots]} for item in items]


def supplier_to_payload(supplier: Supplier) -> dict[str, Any]:
    profile = supplier.availability
    premium = supplier.weekend_premium
    return {
        "id": supplier.id,
        "name": supplier.name,
        "category": supplier.category,
        "price": supplier.price,
        "price_from": supplier.price_from,
        "price_unit": supplier.price_unit,
        "description": supplier.description,
        "packages": [package_to_payload(package) for package in supplier.packages],
        "addon_services": [addon_to_payload(addon) for addon in supplier.addon_services],
        "working_hours": {
            day: {
                "active": schedule.active,
                "slots": {
                    slot.value: {"available": window.available, "start": window.start, "end": window.end}
                    for slot, window in schedule.slots.items()
                },
            }
            for day, schedule in profile.working_hours.items()
        },
        "unavailable_dates": _exceptions_to_payload(profile.unavailable_dates),
        "busy_dates": _exceptions_to_payload(profile.busy_dates),
        "advance_booking_days": profile.advance_booking_days,
        "max_booking_days": profile.max_booking_days,
        "weekend_premium": (
            {
                "enabled": premium.enabled,
                "type": premium.type,
                "amount": premium.amount,
                "percentage": premium.percentage,
            }
            if premium
            else None
        ),
        "extra_hour_rate": supplier.extra_hour_rate,
    }


def plan_slot_to_payload(slot: PlanSlot) -> dict[str, Any]:
    return {
        "supplier": supplier_to_payload(slot.supplier),
        "package": package_to_payload(slot.package) if slot.package else None,
        "booking_date": slot.booking_date,
        "booking_time_slot": slot.booking_time_slot,
        "metadata": dict(slot.metadata),
        "added_at": slot.added_at,
    }


def plan_to_payload(plan: PartyPlan) -> dict[str, Any]:
    return {
        "plan_id": plan.plan_id,
        "slots": {category: plan_slot_to_payload(slot) for category, slot in plan.slots.items()},
        "addons": [addon_to_payload(addon) for addon in plan.addons],
    }


def build_plan(payload: dict[str, Any] | None) -> PartyPlan:
    if not payload:
        return PartyPlan()

    slots: dict[str, PlanSlot] = {}
    for category, raw in (payload.get("slots") or {}).items():
        if not is_main_slot(category) or not isinstance(raw, dict) or not raw.get("supplier"):
            logger.debug("Dropping unknown plan slot", extra={"category": category})
            continue
        package = raw.get("package")
        slots[category] = PlanSlot(
            supplier=build_supplier(raw["supplier"]),
            package=build_package(package) if isinstance(package, dict) else None,
            booking_date=raw.get("booking_date"),
            booking_time_slot=raw.get("booking_time_slot"),
            metadata=dict(raw.get("metadata") or {}),
            added_at=raw.get("added_at"),
        )

    addons = tuple(
        build_addon(raw, index) for index, raw in enumerate(payload.get("addons") or []) if isinstance(raw, dict)
    )
    return PartyPlan(plan_id=payload.get("plan_id"), slots=slots, addons=addons)


def party_details_to_payload(details: PartyDetails) -> dict[str, Any]:
    return {
        "date": details.date,
        "time": details.time,
        "time_slot": details.time_slot,
        "guest_count": details.guest_count,
        "theme": details.theme,
        "duration_hours": details.duration_hours,
    }


def build_party_details(payload: dict[str, Any] | None) -> PartyDetails | None:
    if not payload:
        return None
    guest_count = _pick(payload, "guest_count", "guestCount")
    return PartyDetails(
        date=payload.get("date"),
        time=payload.get("time"),
        time_slot=_pick(payload, "time_slot", "timeSlot"),
        guest_count=_to_int(guest_count, 0) or None,
        theme=payload.get("theme"),
        duration_hours=_to_float(_pick(payload, "duration_hours", "duration")),
    )
