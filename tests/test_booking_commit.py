"""
Tests for committing decisions to the stored plan.
"""

from __future__ import annotations

from partyplan.application.dto.decision import (
    BookingRequest,
    CallerState,
    CategoryOccupied,
    NeedAddonChoice,
    NeedSlot,
    ReadyToCommit,
)
from partyplan.application.exceptions import PlanPersistenceError
from partyplan.application.use_cases.booking import TOAST_KEY, BookingUseCase, MutationGuard, decide
from partyplan.application.use_cases.pricing import plan_total
from partyplan.domain.entities.enquiry import EnquiryStatus
from partyplan.domain.entities.party_details import PartyDetails
from partyplan.domain.entities.party_plan import PartyPlan
from partyplan.domain.entities.supplier import Addon, Package
from partyplan.infrastructure.directory.json_supplier_directory import JsonSupplierDirectory
from partyplan.infrastructure.enquiry.mock_enquiry import MockEnquiryService
from partyplan.infrastructure.store.memory_store import MemoryPlanStore, MemorySessionStore

SUPPLIERS = [
    {"id": "venue-a", "name": "Village Hall", "category": "Venues", "priceFrom": 200},
    {"id": "venue-b", "name": "Scout Hut", "category": "Venues", "priceFrom": 150},
    {
        "id": "ent-1",
        "name": "Magic Max",
        "category": "Entertainment",
        "packages": [{"id": "show", "name": "Magic Show", "price": 120}],
        "serviceDetails": {"addOnServices": [{"id": "balloons", "name": "Balloon modelling", "price": 15}]},
    },
    {"id": "photo-1", "name": "Snap Happy", "category": "Photography", "priceFrom": 80},
    {"id": "bags-1", "name": "Bag It Up", "category": "Party Bags", "packages": [{"id": "std", "name": "Standard", "price": 4}]},
]


class InterleavingEnquiryService(MockEnquiryService):
    """Runs another caller's request while the first one is checking enquiry status."""

    def __init__(self, other_request) -> None:
        super().__init__()
        self._other_request = other_request
        self.other_outcome = None

    def is_awaiting_responses(self, plan_id: str) -> EnquiryStatus:
        if self._other_request is not None:
            request, self._other_request = self._other_request, None
            self.other_outcome = request()
        return super().is_awaiting_responses(plan_id)


class FailingDetailsStore(MemoryPlanStore):
    def persist_party_details(self, session_id: str, details: PartyDetails) -> None:
        raise PlanPersistenceError("disk full")


class FailingPlanStore(MemoryPlanStore):
    def persist_plan(self, session_id: str, plan: PartyPlan) -> None:
        raise PlanPersistenceError("disk full")


def _use_case(enquiries=None, plans=None, sessions=None, guard=None):
    return BookingUseCase(
        directory=JsonSupplierDirectory(records=SUPPLIERS),
        plans=plans or MemoryPlanStore(),
        enquiries=enquiries or MockEnquiryService(),
        sessions=sessions or MemorySessionStore(),
        guard=guard,
    )


def test_local_plan_commit_updates_plan_without_enquiry():
    sessions = MemorySessionStore()
    uc = _use_case(sessions=sessions)

    outcome = uc.add_to_plan("s1", "venue-a", "basic", CallerState.HAS_LOCALPLAN, "2025-06-14", "morning")

    assert isinstance(outcome.decision, ReadyToCommit)
    assert outcome.result.success
    assert not outcome.result.enquiry_sent
    assert outcome.result.message == "Village Hall added to your party for morning!"
    assert outcome.result.redirect_url == "/dashboard?scrollTo=venue&action=supplier-added&from=supplier-detail"

    plan, total = uc.get_plan("s1")
    assert plan.occupant("venue").supplier.id == "venue-a"
    assert plan.occupant("venue").booking_time_slot == "morning"
    assert plan.occupant("venue").booking_date == "2025-06-14"
    assert total == 200.0
    assert sessions.get("s1", TOAST_KEY)["message"] == outcome.result.message


def test_account_commit_sends_enquiry():
    enquiries = MockEnquiryService()
    uc = _use_case(enquiries=enquiries)

    outcome = uc.add_to_plan("s1", "venue-a", "premium", CallerState.HAS_ACCOUNT)

    assert outcome.result.success
    assert outcome.result.enquiry_sent
    assert outcome.result.message.endswith("and enquiry sent!")
    assert enquiries.is_awaiting_responses("s1").pending_count == 1


def test_pending_enquiries_need_ack_then_commit():
    enquiries = MockEnquiryService()
    uc = _use_case(enquiries=enquiries)
    uc.add_to_plan("s1", "venue-a", "basic", CallerState.HAS_ACCOUNT)

    blocked = uc.add_to_plan("s1", "photo-1", "basic", CallerState.HAS_ACCOUNT)
    assert blocked.decision.kind == "need_enquiry_ack"
    assert blocked.result is None

    acked = uc.add_to_plan("s1", "photo-1", "basic", CallerState.HAS_ACCOUNT, enquiry_acknowledged=True)
    assert acked.result.success
    assert enquiries.is_awaiting_responses("s1").pending_count == 2


def test_duplicate_commit_overwrites_instead_of_appending():
    plans = MemoryPlanStore()
    uc = _use_case(plans=plans)
    supplier = uc._directory.fetch_supplier_by_id("ent-1")
    request = BookingRequest(
        supplier=supplier,
        package=supplier.packages[0],
        caller_state=CallerState.HAS_LOCALPLAN,
        addons=(Addon(id="balloons", name="Balloon modelling", price=15.0),),
    )
    decision = decide(request)
    assert isinstance(decision, ReadyToCommit)

    first = uc.commit("s1", request, decision)
    total_after_first = plan_total(plans.load_plan("s1"))
    second = uc.commit("s1", request, decision)

    assert first.success and second.success
    plan = plans.load_plan("s1")
    assert plan_total(plan) == total_after_first == 135.0
    assert len(plan.addons) == 1


def test_concurrent_commit_is_rejected_as_retryable():
    guard = MutationGuard()
    plans = MemoryPlanStore()
    uc = _use_case(plans=plans, guard=guard)
    supplier = uc._directory.fetch_supplier_by_id("venue-a")
    request = BookingRequest(supplier=supplier, package=Package(id="basic", name="Basic", price=200.0), caller_state="has-localplan")
    decision = decide(request)

    with guard.hold("s1"):
        result = uc.commit("s1", request, decision)

    assert not result.success
    assert result.retryable
    assert plans.load_plan("s1").slots == {}
    assert not guard.is_active("s1")
    assert uc.commit("s1", request, decision).success


def test_failed_enquiry_restores_previous_plan():
    plans = MemoryPlanStore()
    sessions = MemorySessionStore()
    uc = _use_case(enquiries=MockEnquiryService(fail_sends=True), plans=plans, sessions=sessions)
    uc.add_to_plan("s1", "venue-a", "basic", CallerState.HAS_LOCALPLAN)
    before = plans.load_plan("s1")

    outcome = uc.add_to_plan("s1", "photo-1", "basic", CallerState.HAS_ACCOUNT)

    assert not outcome.result.success
    assert outcome.result.retryable
    assert plans.load_plan("s1") == before
    assert sessions.get("s1", TOAST_KEY)["message"].startswith("Village Hall")


def test_failed_persist_reports_retryable_failure():
    uc = _use_case(plans=FailingPlanStore())
    outcome = uc.add_to_plan("s1", "venue-a", "basic", CallerState.HAS_LOCALPLAN)

    assert not outcome.result.success
    assert outcome.result.retryable


def test_account_holder_cannot_overwrite_occupied_category():
    uc = _use_case()
    uc.add_to_plan("s1", "venue-a", "basic", CallerState.HAS_LOCALPLAN)

    outcome = uc.add_to_plan("s1", "venue-b", "basic", CallerState.HAS_ACCOUNT)

    assert isinstance(outcome.decision, CategoryOccupied)
    assert outcome.decision.occupant_name == "Village Hall"
    plan, _ = uc.get_plan("s1")
    assert plan.occupant("venue").supplier.id == "venue-a"


def test_entertainment_addons_attach_to_category():
    uc = _use_case()
    asked = uc.add_to_plan("s1", "ent-1", "show", CallerState.HAS_LOCALPLAN)
    assert isinstance(asked.decision, NeedAddonChoice)

    outcome = uc.add_to_plan(
        "s1",
        "ent-1",
        "show",
        CallerState.HAS_LOCALPLAN,
        addons=(Addon(id="balloons", name="Balloon modelling", price=15.0),),
    )

    assert outcome.result.success
    assert outcome.result.message == "Magic Max added to your party with 1 add-on!"
    plan, total = uc.get_plan("s1")
    assert plan.attached_addons("entertainment")[0].id == "balloons"
    assert total == 135.0

    removed = uc.remove_supplier("s1", "entertainment")
    assert removed.success
    plan, total = uc.get_plan("s1")
    assert plan.addons == ()
    assert total == 0.0


def test_addon_category_supplier_is_added_as_standalone_addon():
    uc = _use_case()
    outcome = uc.add_to_plan("s1", "photo-1", "premium", CallerState.HAS_LOCALPLAN)

    assert outcome.result.success
    assert outcome.result.category is None
    plan, total = uc.get_plan("s1")
    assert plan.has_addon("photo-1")
    assert total == 120.0

    again = uc.add_to_plan("s1", "photo-1", "basic", CallerState.HAS_LOCALPLAN)
    assert again.result.success
    plan, total = uc.get_plan("s1")
    assert len(plan.addons) == 1
    assert total == 80.0

    assert uc.remove_addon("s1", "photo-1").success
    assert not uc.remove_addon("s1", "photo-1").success


def test_party_bags_commit_uses_guest_count():
    plans = MemoryPlanStore()
    plans.persist_party_details("s1", PartyDetails(guest_count=12))
    uc = _use_case(plans=plans)

    outcome = uc.add_to_plan("s1", "bags-1", "std", CallerState.HAS_LOCALPLAN)

    assert outcome.result.success
    plan, total = uc.get_plan("s1")
    assert plan.occupant("partyBags").metadata["total_price"] == 48.0
    assert total == 48.0


def test_build_plan_creates_party_details_and_fresh_plan():
    plans = MemoryPlanStore()
    uc = _use_case(plans=plans)

    needs_slot = uc.build_plan("s1", "venue-a", "basic", "2025-06-14")
    assert isinstance(needs_slot.decision, NeedSlot)

    outcome = uc.build_plan("s1", "venue-a", "basic", "2025-06-14", "afternoon", guest_count=15)

    assert outcome.result.success
    assert outcome.result.redirect_url.endswith("action=party-created&source=ala-carte&timeSlot=afternoon")
    details = plans.load_party_details("s1")
    assert details.date == "2025-06-14"
    assert details.time_slot == "afternoon"
    assert details.guest_count == 15
    assert plans.load_plan("s1").occupant("venue").booking_time_slot == "afternoon"


def test_unknown_supplier_and_package_are_decision_errors():
    uc = _use_case()
    assert uc.add_to_plan("s1", "nope", "basic", CallerState.HAS_LOCALPLAN).decision.kind == "error"
    assert uc.add_to_plan("s1", "venue-a", "platinum", CallerState.HAS_LOCALPLAN).decision.kind == "error"


def test_pop_toast_is_one_shot():
    uc = _use_case()
    uc.add_to_plan("s1", "venue-a", "basic", CallerState.HAS_LOCALPLAN)

    assert uc.pop_toast("s1")["type"] == "success"
    assert uc.pop_toast("s1") is None


def test_second_caller_cannot_commit_while_decision_is_in_flight():
    plans = MemoryPlanStore()
    uc = None

    def other_caller():
        return uc.add_to_plan("s1", "venue-a", "basic", CallerState.HAS_LOCALPLAN)

    enquiries = InterleavingEnquiryService(other_caller)
    uc = _use_case(enquiries=enquiries, plans=plans)

    outcome = uc.add_to_plan("s1", "venue-b", "basic", CallerState.HAS_ACCOUNT, enquiry_acknowledged=True)

    assert enquiries.other_outcome.result.retryable
    assert not enquiries.other_outcome.result.success
    assert outcome.result.success
    assert plans.load_plan("s1").occupant("venue").supplier.id == "venue-b"


def test_stale_decision_does_not_replace_new_occupant():
    plans = MemoryPlanStore()
    uc = _use_case(plans=plans)
    venue_b = uc._directory.fetch_supplier_by_id("venue-b")
    stale_request = BookingRequest(
        supplier=venue_b,
        package=uc.find_package(venue_b, "basic"),
        caller_state=CallerState.HAS_ACCOUNT,
        plan=plans.load_plan("s1"),
    )
    stale_decision = decide(stale_request)
    assert isinstance(stale_decision, ReadyToCommit)

    uc.add_to_plan("s1", "venue-a", "basic", CallerState.HAS_LOCALPLAN)
    result = uc.commit("s1", stale_request, stale_decision)

    assert not result.success
    assert result.message == "Village Hall is already booked for this category"
    assert plans.load_plan("s1").occupant("venue").supplier.id == "venue-a"


def test_build_plan_failed_save_stores_no_party_details():
    plans = FailingPlanStore()
    uc = _use_case(plans=plans)

    outcome = uc.build_plan("s2", "venue-a", "basic", "2025-06-14", "morning")

    assert not outcome.result.success
    assert outcome.result.retryable
    assert plans.load_party_details("s2") is None


def test_failed_party_details_save_restores_plan():
    plans = FailingDetailsStore()
    uc = _use_case(plans=plans)

    outcome = uc.build_plan("s2", "venue-a", "basic", "2025-06-14", "morning")

    assert not outcome.result.success
    assert plans.load_plan("s2").slots == {}


def test_failed_enquiry_restores_party_details():
    plans = MemoryPlanStore()
    previous_details = PartyDetails(date="2025-06-21", guest_count=8)
    plans.persist_party_details("s1", previous_details)
    uc = _use_case(enquiries=MockEnquiryService(fail_sends=True), plans=plans)
    supplier = uc._directory.fetch_supplier_by_id("venue-a")
    request = BookingRequest(supplier=supplier, package=uc.find_package(supplier, "basic"), caller_state="has-account")

    result = uc.commit("s1", request, decide(request), party_details=PartyDetails(date="2025-06-14", guest_count=20))

    assert not result.success
    assert plans.load_party_details("s1") == previous_details
    assert plans.load_plan("s1").slots == {}


def test_failed_enquiry_clears_party_details_that_did_not_exist():
    plans = MemoryPlanStore()
    uc = _use_case(enquiries=MockEnquiryService(fail_sends=True), plans=plans)
    supplier = uc._directory.fetch_supplier_by_id("venue-a")
    request = BookingRequest(supplier=supplier, package=uc.find_package(supplier, "basic"), caller_state="has-account")

    result = uc.commit("s1", request, decide(request), party_details=PartyDetails(date="2025-06-14"))

    assert not result.success
    assert plans.load_party_details("s1") is None


def test_busy_guard_blocks_add_build_and_replacement():
    guard = MutationGuard()
    uc = _use_case(guard=guard)

    with guard.hold("s1"):
        added = uc.add_to_plan("s1", "venue-a", "basic", CallerState.HAS_LOCALPLAN)
        built = uc.build_plan("s1", "venue-a", "basic", "2025-06-14", "morning")
        replaced = uc.complete_replacement("s1")

    assert added.decision.kind == "error"
    assert added.result.retryable
    assert built.result.retryable
    assert replaced.retryable
