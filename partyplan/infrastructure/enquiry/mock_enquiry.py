from __future__ import annotations

import itertools
import logging
import threading
import time
from dataclasses import replace

from partyplan.application.exceptions import EnquiryDispatchError
from partyplan.application.ports.enquiry import EnquiryPort
from partyplan.domain.entities.enquiry import Enquiry, EnquiryStatus, EnquiryStatusType
from partyplan.domain.entities.supplier import Package, Supplier


class MockEnquiryService(EnquiryPort):
    def __init__(self, fail_sends: bool = False) -> None:
        self._enquiries: dict[str, Enquiry] = {}
        self._fail_sends = fail_sends
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def send_enquiry(
        self,
        plan_id: str,
        supplier: Supplier,
        package: Package | None,
        reason: str | None = None,
    ) -> str:
        if self._fail_sends:
            raise EnquiryDispatchError(f"Mock enquiry to {supplier.id} failed")

        with self._lock:
            enquiry_id = f"mock_enquiry_{next(self._ids)}"
            self._enquiries[enquiry_id] = Enquiry(
                id=enquiry_id,
                plan_id=plan_id,
                supplier_id=supplier.id,
                reason=reason,
                package_id=package.id if package else None,
                created_at=time.time(),
            )
        self._logger.info(
            "Mock enquiry sent",
            extra={"supplier_id": supplier.id, "reason": reason},
        )
        return enquiry_id

    def is_awaiting_responses(self, plan_id: str) -> EnquiryStatus:
        with self._lock:
            enquiries = tuple(enquiry for enquiry in self._enquiries.values() if enquiry.plan_id == plan_id)
        pending = sum(1 for enquiry in enquiries if enquiry.status == EnquiryStatusType.PENDING)
        return EnquiryStatus(is_awaiting=pending > 0, pending_count=pending, enquiries=enquiries)

    def respond(self, enquiry_id: str, status: EnquiryStatusType) -> bool:
        with self._lock:
            enquiry = self._enquiries.get(enquiry_id)
            if enquiry is None:
                return False
            self._enquiries[enquiry_id] = replace(enquiry, status=status)
        self._logger.info("Mock enquiry answered", extra={"supplier_id": enquiry.supplier_id, "reason": status.value})
        return True
