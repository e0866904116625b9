from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Slot(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"


ALL_SLOTS: tuple[Slot, ...] = (Slot.MORNING, Slot.AFTERNOON)


class DateStatus(str, Enum):
    PAST = "past"
    OUTSIDE_WINDOW = "outside-window"
    UNAVAILABLE = "unavailable"
    BUSY = "busy"
    CLOSED = "closed"
    PARTIALLY_AVAILABLE = "partially-available"
    AVAILABLE = "available"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class SlotWindow:
    available: bool = True
    start: str | None = None  # HH:MM
    end: str | None = None  # HH:MM


@dataclass(frozen=True)
class DaySchedule:
    active: bool = True
    slots: dict[Slot, SlotWindow] = field(
        default_factory=lambda: {
            Slot.MORNING: SlotWindow(True, "09:00", "13:00"),
            Slot.AFTERNOON: SlotWindow(True, "13:00", "17:00"),
        }
    )

    def slot_open(self, slot: Slot) -> bool:
        window = self.slots.get(slot)
        return bool(window and window.available)


@dataclass(frozen=True)
class DateException:
    date: str  # YYYY-MM-DD
    slots: tuple[Slot, ...] = ALL_SLOTS  # whole day when both are listed

    @property
    def whole_day(self) -> bool:
        return all(slot in self.slots for slot in ALL_SLOTS)


@dataclass(frozen=True)
class AvailabilityProfile:
    working_hours: dict[str, DaySchedule] = field(default_factory=dict)  # keyed by lowercase weekday
    unavailable_dates: tuple[DateException, ...] = ()
    busy_dates: tuple[DateException, ...] = ()
    advance_booking_days: int = 0
    max_booking_days: int = 365

    def schedule_for(self, weekday: str) -> DaySchedule:
        # Absent weekday entries are treated as open.
        return self.working_hours.get(weekday, DaySchedule())


@dataclass(frozen=True)
class AvailabilityResult:
    available: bool
    slots: tuple[Slot, ...] = ()


@dataclass(frozen=True)
class CalendarDay:
    date: str
    status: DateStatus
    slots: tuple[Slot, ...] = ()
