from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PartyDetails:
    date: str | None = None  # YYYY-MM-DD, or legacy free text from older clients
    time: str | None = None  # free text, e.g. "2pm" or "14:00"
    time_slot: str | None = None  # "morning" | "afternoon"
    guest_count: int | None = None
    theme: str | None = None
    duration_hours: float | None = None
