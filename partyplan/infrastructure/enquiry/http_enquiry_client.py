from __future__ import annotations

import logging
from datetime import datetime

import httpx

from partyplan.application.exceptions import EnquiryDispatchError
from partyplan.application.ports.enquiry import EnquiryPort
from partyplan.core.config import settings
from partyplan.domain.entities.enquiry import Enquiry, EnquiryStatus, EnquiryStatusType
from partyplan.domain.entities.supplier import Package, Supplier


class HttpEnquiryClient(EnquiryPort):
    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._api_key = api_key or settings.ENQUIRY_API_KEY
        self._base_url = (base_url or settings.ENQUIRY_API_BASE_URL).rstrip("/")
        self._client = client or httpx.Client(timeout=timeout or settings.HTTP_TIMEOUT_SECONDS)
        self._logger = logging.getLogger(__name__)

        if not self._api_key:
            raise ValueError("ENQUIRY_API_KEY is required for the enquiry API")

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._api_key}", "Content-Type": "application/json"}

    def send_enquiry(
        self,
        plan_id: str,
        supplier: Supplier,
        package: Package | None,
        reason: str | None = None,
    ) -> str:
        payload = {
            "partyId": plan_id,
            "supplierId": supplier.id,
            "supplierCategory": supplier.category,
            "packageId": package.id if package else None,
            "packageName": package.name if package else None,
            "price": package.price if package else supplier.price,
            "reason": reason or "",
        }
        try:
            response = self._client.post(f"{self._base_url}/enquiries", json=payload, headers=self._headers())
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            self._logger.error(
                "Error sending enquiry",
                extra={"supplier_id": supplier.id, "error": str(e)},
            )
            raise EnquiryDispatchError(f"Enquiry to {supplier.id} failed: {e}") from e

        enquiry_id = data.get("id") or data.get("enquiryId")
        if not enquiry_id:
            raise EnquiryDispatchError("No enquiry ID returned from enquiry API")

        self._logger.info("Enquiry sent", extra={"supplier_id": supplier.id, "reason": reason})
        return str(enquiry_id)

    def is_awaiting_responses(self, plan_id: str) -> EnquiryStatus:
        try:
            response = self._client.get(
                f"{self._base_url}/parties/{plan_id}/enquiries",
                params={"status": EnquiryStatusType.PENDING.value},
                headers=self._headers(),
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            self._logger.error("Error checking enquiry status", extra={"reason": plan_id, "error": str(e)})
            raise EnquiryDispatchError(f"Enquiry status for {plan_id} unavailable: {e}") from e

        enquiries: list[Enquiry] = []
        for item in data.get("enquiries", []):
            try:
                status = EnquiryStatusType(item.get("status", EnquiryStatusType.PENDING.value))
            except ValueError:
                continue
            created = item.get("createdAt")
            try:
                created_at = datetime.fromisoformat(created.replace("Z", "+00:00")).timestamp() if created else None
            except (ValueError, AttributeError):
                created_at = None
            enquiries.append(
                Enquiry(
                    id=str(item.get("id")),
                    plan_id=plan_id,
                    supplier_id=str(item.get("supplierId")),
                    status=status,
                    reason=item.get("reason"),
                    package_id=item.get("packageId"),
                    created_at=created_at,
                )
            )

        pending = sum(1 for enquiry in enquiries if enquiry.status == EnquiryStatusType.PENDING)
        return EnquiryStatus(is_awaiting=pending > 0, pending_count=pending, enquiries=tuple(enquiries))
