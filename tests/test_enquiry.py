"""
Tests for the enquiry adapters.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import httpx
import pytest

from partyplan.application.exceptions import EnquiryDispatchError
from partyplan.domain.entities.enquiry import EnquiryStatusType
from partyplan.domain.entities.supplier import Package, Supplier
from partyplan.infrastructure.enquiry.http_enquiry_client import HttpEnquiryClient
from partyplan.infrastructure.enquiry.mock_enquiry import MockEnquiryService

SUPPLIER = Supplier(id="venue-a", name="Village Hall", category="Venues", price_from=200.0)
PACKAGE = Package(id="basic", name="Basic Package", price=200.0)


def _client(handler) -> HttpEnquiryClient:
    transport = httpx.MockTransport(handler)
    return HttpEnquiryClient(
        api_key="test-key",
        base_url="https://enquiries.test/api/",
        client=httpx.Client(transport=transport),
    )


def test_http_send_enquiry_posts_payload():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = request.read()
        return httpx.Response(201, json={"id": "enq-42"})

    enquiry_id = _client(handler).send_enquiry("plan-1", SUPPLIER, PACKAGE, "Added to expand party team")

    assert enquiry_id == "enq-42"
    assert seen["url"] == "https://enquiries.test/api/enquiries"
    assert seen["auth"] == "Bearer test-key"
    assert b'"partyId":"plan-1"' in seen["body"].replace(b" ", b"")


def test_http_send_enquiry_failure_raises_dispatch_error():
    client = _client(lambda request: httpx.Response(503, json={"error": "down"}))

    with pytest.raises(EnquiryDispatchError):
        client.send_enquiry("plan-1", SUPPLIER, PACKAGE)


def test_http_send_enquiry_without_id_raises_dispatch_error():
    client = _client(lambda request: httpx.Response(200, json={}))

    with pytest.raises(EnquiryDispatchError):
        client.send_enquiry("plan-1", SUPPLIER, PACKAGE)


def test_http_pending_status_counts_pending_only():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["status"] == "pending"
        return httpx.Response(
            200,
            json={
                "enquiries": [
                    {"id": "1", "supplierId": "venue-a", "status": "pending", "createdAt": "2025-06-01T10:00:00Z"},
                    {"id": "2", "supplierId": "cake-1", "status": "accepted"},
                    {"id": "3", "supplierId": "bags-1", "status": "lost-in-post"},
                ]
            },
        )

    status = _client(handler).is_awaiting_responses("plan-1")

    assert status.is_awaiting
    assert status.pending_count == 1
    assert [e.id for e in status.enquiries] == ["1", "2"]
    assert status.enquiries[0].created_at is not None


def test_http_client_requires_api_key(monkeypatch):
    monkeypatch.setattr("partyplan.infrastructure.enquiry.http_enquiry_client.settings.ENQUIRY_API_KEY", None)

    with pytest.raises(ValueError):
        HttpEnquiryClient(api_key=None, client=httpx.Client())


def test_mock_enquiry_responses_clear_pending():
    service = MockEnquiryService()
    first = service.send_enquiry("plan-1", SUPPLIER, PACKAGE)
    service.send_enquiry("plan-2", SUPPLIER, PACKAGE)

    assert service.is_awaiting_responses("plan-1").pending_count == 1
    assert service.respond(first, EnquiryStatusType.ACCEPTED)
    assert not service.is_awaiting_responses("plan-1").is_awaiting
    assert not service.respond("missing", EnquiryStatusType.DECLINED)


def test_mock_enquiry_ids_unique_across_threads():
    service = MockEnquiryService()

    with ThreadPoolExecutor(max_workers=8) as pool:
        ids = list(pool.map(lambda i: service.send_enquiry(f"plan-{i % 3}", SUPPLIER, PACKAGE), range(200)))

    assert len(set(ids)) == 200
    assert sum(service.is_awaiting_responses(f"plan-{i}").pending_count for i in range(3)) == 200
