from __future__ import annotations

from dataclasses import dataclass, field

from partyplan.domain.entities.availability import AvailabilityProfile


@dataclass(frozen=True)
class Package:
    id: str
    name: str
    price: float | None = None
    features: tuple[str, ...] = ()
    duration: str | None = None
    description: str | None = None
    original_price: float | None = None
    total_price: float | None = None  # party bags: precomputed bag total
    quantity: int | None = None  # party bags: number of bags


@dataclass(frozen=True)
class Addon:
    id: str
    name: str
    price: float = 0.0
    supplier_id: str | None = None
    supplier_type: str | None = None
    attached_to: str | None = None  # category key of the owning main slot, None = standalone
    package_id: str | None = None


@dataclass(frozen=True)
class WeekendPremium:
    enabled: bool = False
    type: str = "fixed"  # "fixed" | "percentage"
    amount: float = 0.0
    percentage: float = 0.0


@dataclass(frozen=True)
class Supplier:
    id: str
    name: str
    category: str  # display name, e.g. "Party Bags"
    price: float | None = None
    price_from: float | None = None
    price_unit: str | None = None
    packages: tuple[Package, ...] = ()
    addon_services: tuple[Addon, ...] = ()
    availability: AvailabilityProfile = field(default_factory=AvailabilityProfile)
    weekend_premium: WeekendPremium | None = None
    extra_hour_rate: float | None = None
    description: str | None = None
