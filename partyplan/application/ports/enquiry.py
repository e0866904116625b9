from __future__ import annotations

from abc import ABC, abstractmethod

from partyplan.domain.entities.enquiry import EnquiryStatus
from partyplan.domain.entities.supplier import Package, Supplier


class EnquiryPort(ABC):
    @abstractmethod
    def send_enquiry(
        self,
        plan_id: str,
        supplier: Supplier,
        package: Package | None,
        reason: str | None = None,
    ) -> str:
        """Send enquiry to supplier. Returns enquiry_id, raises EnquiryDispatchError."""
        raise NotImplementedError

    @abstractmethod
    def is_awaiting_responses(self, plan_id: str) -> EnquiryStatus:
        """Check whether any enquiries for the plan are still pending."""
        raise NotImplementedError
