from __future__ import annotations

import calendar
import logging
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from partyplan.application.exceptions import SupplierNotFoundError
from partyplan.application.ports.supplier_directory import SupplierDirectoryPort
from partyplan.application.utils.date_utils import parse_flexible_date, to_comparable_date_string, weekday_name
from partyplan.domain.entities.availability import (
    ALL_SLOTS,
    AvailabilityProfile,
    AvailabilityResult,
    CalendarDay,
    DateException,
    DateStatus,
    Slot,
)

logger = logging.getLogger(__name__)

# What an unparsable or missing date means for availability lookups.
# Plan mutations never rely on this: they block on a missing package instead.
FAIL_OPEN_ON_UNPARSABLE_DATE = True


def _blocked_by(exceptions: tuple[DateException, ...], date_str: str, slot: Slot) -> bool:
    return any(item.date == date_str and slot in item.slots for item in exceptions)


def is_slot_available(profile: AvailabilityProfile, value: object, slot: Slot | str) -> bool:
    date_str = to_comparable_date_string(value)
    day = weekday_name(value)
    if date_str is None or day is None:
        return FAIL_OPEN_ON_UNPARSABLE_DATE

    slot = Slot(slot)
    schedule = profile.schedule_for(day)
    if not schedule.active:
        return False
    if not schedule.slot_open(slot):
        return False
    if _blocked_by(profile.unavailable_dates, date_str, slot):
        return False
    if _blocked_by(profile.busy_dates, date_str, slot):
        return False
    return True


def available_slots(profile: AvailabilityProfile, value: object) -> list[Slot]:
    return [slot for slot in ALL_SLOTS if is_slot_available(profile, value, slot)]


def date_status(profile: AvailabilityProfile, value: object, today: date | None = None) -> DateStatus:
    """Day-level status for the calendar.

    Window checks run before slot checks, so a blocked day outside the booking
    window still reports outside-window.
    """
    target = parse_flexible_date(value)
    if target is None:
        return DateStatus.UNKNOWN

    today = today or date.today()
    if target < today:
        return DateStatus.PAST
    if target < today + timedelta(days=profile.advance_booking_days):
        return DateStatus.OUTSIDE_WINDOW
    if target > today + timedelta(days=profile.max_booking_days):
        return DateStatus.OUTSIDE_WINDOW

    slots = available_slots(profile, target)
    if not slots:
        return DateStatus.UNAVAILABLE
    if len(slots) == 1:
        return DateStatus.PARTIALLY_AVAILABLE
    return DateStatus.AVAILABLE


def unavailability_reason(profile: AvailabilityProfile, value: object) -> DateStatus:
    """Why a day with no open slot is blocked.

    closed and busy overlap: a busy whole day on an inactive weekday reports
    closed, since the weekly schedule is checked first.
    """
    date_str = to_comparable_date_string(value)
    day = weekday_name(value)
    if date_str is None or day is None:
        return DateStatus.UNKNOWN

    if not profile.schedule_for(day).active:
        return DateStatus.CLOSED

    busy_slots = {slot for item in profile.busy_dates if item.date == date_str for slot in item.slots}
    if all(slot in busy_slots for slot in ALL_SLOTS):
        return DateStatus.BUSY
    return DateStatus.UNAVAILABLE


def check_availability(
    profile: AvailabilityProfile,
    value: object,
    requested_slot: Slot | str | None = None,
) -> AvailabilityResult:
    if to_comparable_date_string(value) is None:
        if FAIL_OPEN_ON_UNPARSABLE_DATE:
            return AvailabilityResult(available=True, slots=ALL_SLOTS)
        return AvailabilityResult(available=False, slots=())

    if requested_slot is not None:
        try:
            slot = Slot(requested_slot)
        except ValueError:
            logger.debug("Unknown slot requested", extra={"reason": str(requested_slot)})
            return AvailabilityResult(available=False, slots=())
        available = is_slot_available(profile, value, slot)
        return AvailabilityResult(available=available, slots=(slot,) if available else ())

    slots = tuple(available_slots(profile, value))
    return AvailabilityResult(available=bool(slots), slots=slots)


def month_calendar(
    profile: AvailabilityProfile,
    year: int,
    month: int,
    today: date | None = None,
) -> list[CalendarDay]:
    days: list[CalendarDay] = []
    _, last_day = calendar.monthrange(year, month)
    for day_number in range(1, last_day + 1):
        current = date(year, month, day_number)
        status = date_status(profile, current, today)
        if status == DateStatus.UNAVAILABLE:
            status = unavailability_reason(profile, current)
        if status in (DateStatus.AVAILABLE, DateStatus.PARTIALLY_AVAILABLE):
            slots = tuple(available_slots(profile, current))
        else:
            slots = ()
        days.append(CalendarDay(date=current.isoformat(), status=status, slots=slots))
    return days


class SupplierAvailabilityUseCase:
    def __init__(self, directory: SupplierDirectoryPort, timezone: ZoneInfo) -> None:
        self._directory = directory
        self._timezone = timezone
        self._logger = logging.getLogger(__name__)

    def today(self) -> date:
        return datetime.now(self._timezone).date()

    def _profile(self, supplier_id: str) -> AvailabilityProfile:
        supplier = self._directory.fetch_supplier_by_id(supplier_id)
        if supplier is None:
            raise SupplierNotFoundError(f"Supplier not found: {supplier_id}")
        return supplier.availability

    def check(
        self,
        supplier_id: str,
        value: str | None,
        slot: str | None = None,
    ) -> tuple[AvailabilityResult, DateStatus]:
        profile = self._profile(supplier_id)
        result = check_availability(profile, value, slot)
        status = date_status(profile, value, self.today())
        self._logger.debug(
            "Availability checked",
            extra={"supplier_id": supplier_id, "reason": status.value},
        )
        return result, status

    def calendar(self, supplier_id: str, year: int, month: int) -> list[CalendarDay]:
        return month_calendar(self._profile(supplier_id), year, month, self.today())
