from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class EnquiryStatusType(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"


@dataclass(frozen=True)
class Enquiry:
    id: str
    plan_id: str
    supplier_id: str
    status: EnquiryStatusType = EnquiryStatusType.PENDING
    reason: str | None = None
    package_id: str | None = None
    created_at: float | None = None


@dataclass(frozen=True)
class EnquiryStatus:
    is_awaiting: bool = False
    pending_count: int = 0
    enquiries: tuple[Enquiry, ...] = ()
