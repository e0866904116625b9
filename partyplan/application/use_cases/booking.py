from __future__ import annotations

import logging
import math
import threading
import time
from contextlib import contextmanager
from dataclasses import replace
from datetime import date
from typing import Iterator

from partyplan.application.dto.decision import (
    AddToPlanOutcome,
    BookingRequest,
    BuildNewPlan,
    CallerState,
    CategoryOccupied,
    CommitResult,
    Decision,
    DecisionError,
    EnrichedPackage,
    NeedAddonChoice,
    NeedDate,
    NeedEnquiryAck,
    NeedSlot,
    ReadyToCommit,
    Unavailable,
)
from partyplan.application.exceptions import (
    EnquiryDispatchError,
    MutationInProgressError,
    PlanPersistenceError,
)
from partyplan.application.ports.enquiry import EnquiryPort
from partyplan.application.ports.plan_store import PlanStorePort
from partyplan.application.ports.session_store import SessionStorePort
from partyplan.application.ports.supplier_directory import SupplierDirectoryPort
from partyplan.application.use_cases.availability import available_slots, check_availability, is_slot_available
from partyplan.application.use_cases.pricing import (
    PARTY_BAGS_KEY,
    STANDARD_PARTY_HOURS,
    DEFAULT_GUEST_COUNT,
    generate_default_packages,
    plan_total,
    quote_package,
)
from partyplan.application.use_cases.replacement import ReplacementFlow
from partyplan.application.utils.date_utils import infer_slot_from_time, to_comparable_date_string
from partyplan.application.utils.payloads import build_package
from partyplan.domain.entities.availability import Slot
from partyplan.domain.entities.party_details import PartyDetails
from partyplan.domain.entities.party_plan import (
    LEAD_TIME_SLOT_KEYS,
    PartyPlan,
    PlanMutationError,
    PlanSlot,
    is_main_slot,
    slot_key_for_category,
)
from partyplan.domain.entities.supplier import Addon, Package, Supplier

logger = logging.getLogger(__name__)

TOAST_KEY = "lastActionToast"

# Categories that offer their add-on services before the supplier is committed.
ADDON_PROMPT_SLOT_KEYS = frozenset({"entertainment"})

ACCOUNT_STATES = frozenset({CallerState.HAS_ACCOUNT, CallerState.CONFLICT})
KNOWN_PLAN_STATES = frozenset({CallerState.HAS_LOCALPLAN, CallerState.HAS_ACCOUNT, CallerState.CONFLICT})

RETRY_MESSAGE = "Something went wrong updating your party plan. Please try again."
BUSY_MESSAGE = "Another change to your party plan is still in progress. Please try again."


def _caller_state(value: CallerState | str) -> CallerState | None:
    try:
        return CallerState(value)
    except ValueError:
        return None


def _resolve_slot(
    supplier: Supplier,
    target_date: str,
    explicit_slot: str | None,
    party_details: PartyDetails | None,
    lead_time: bool,
) -> tuple[Slot | None, Decision | None]:
    """Resolve the effective slot for target_date, or the decision that stops the flow."""
    profile = supplier.availability

    if lead_time:
        result = check_availability(profile, target_date)
        if not result.available:
            return None, Unavailable(date=target_date, slot=None, available_slots=())
        return None, None

    slot: Slot | None = None
    if explicit_slot:
        try:
            slot = Slot(explicit_slot)
        except ValueError:
            return None, DecisionError(reason=f"Unknown time slot: {explicit_slot}")
    elif party_details and party_details.time_slot:
        try:
            slot = Slot(party_details.time_slot)
        except ValueError:
            slot = None
    if slot is None and not explicit_slot and party_details:
        slot = infer_slot_from_time(party_details.time)

    open_slots = tuple(available_slots(profile, target_date))
    if slot is not None:
        if not is_slot_available(profile, target_date, slot):
            return None, Unavailable(date=target_date, slot=slot, available_slots=open_slots)
        return slot, None

    if not open_slots:
        return None, Unavailable(date=target_date, slot=None, available_slots=())
    if len(open_slots) > 1:
        return None, NeedSlot(available_slots=open_slots)
    return open_slots[0], None


def _is_intentional_swap(request: BookingRequest, category: str) -> bool:
    context = request.replacement
    if not context or not context.is_replacement:
        return False
    current = context.current_category
    if current is None:
        # Unscoped replacement unlocks nothing
        logger.warning("Replacement context without a current supplier", extra={"category": category})
        return False
    return current == category or slot_key_for_category(current) == category


def _blocking_occupant(plan: PartyPlan, request: BookingRequest, category: str) -> PlanSlot | None:
    """Occupant of category that the request may not overwrite, if any."""
    occupant = plan.occupant(category)
    if occupant and occupant.supplier.id != request.supplier.id and not _is_intentional_swap(request, category):
        return occupant
    return None


def _price_is_valid(package: Package) -> bool:
    price = package.price
    if price is None:
        return True
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        return False
    return not math.isnan(price) and price >= 0


def _enrich(
    request: BookingRequest,
    supplier: Supplier,
    package: Package,
    category: str | None,
    booking_date: str | None,
    slot: Slot | None,
    standard_hours: float,
    default_guest_count: int,
) -> EnrichedPackage:
    target = category or slot_key_for_category(supplier.category)
    addons = tuple(
        replace(addon, attached_to=category, supplier_id=addon.supplier_id or supplier.id)
        for addon in (request.addons or ())
    )
    quote = quote_package(
        supplier,
        package,
        booking_date,
        request.party_details,
        addons,
        standard_hours=standard_hours,
        default_guest_count=default_guest_count,
    )

    metadata: dict = {}
    if target == PARTY_BAGS_KEY:
        priced = replace(
            package,
            original_price=package.original_price or package.price,
            total_price=quote.base_price,
            quantity=quote.guest_count,
        )
        metadata = {"total_price": quote.base_price, "quantity": quote.guest_count}
    else:
        priced = replace(
            package,
            original_price=package.original_price or package.price,
            price=quote.package_price,
        )

    return EnrichedPackage(
        supplier=supplier,
        package=priced,
        category=category,
        booking_date=booking_date,
        booking_time_slot=slot,
        delivery_type="lead_time" if target in LEAD_TIME_SLOT_KEYS else "time_slot",
        quote=quote,
        addons=addons,
        metadata=metadata,
    )


def decide(
    request: BookingRequest,
    today: date | None = None,
    standard_hours: float = STANDARD_PARTY_HOURS,
    default_guest_count: int = DEFAULT_GUEST_COUNT,
) -> Decision:
    """Decide what the caller must do next to add a supplier to the plan.

    Pure: reads only the request and returns one Decision. Each step
    short-circuits, in this order: malformed input, missing date, slot
    resolution for the chosen date, then for the party date, anonymous
    routing, category occupancy, pending enquiries, add-on choice.
    """
    supplier = request.supplier
    package = request.package

    if supplier is None:
        return DecisionError(reason="Supplier not found")
    if package is None:
        return DecisionError(reason="Please select a package first")
    if not _price_is_valid(package):
        return DecisionError(reason=f"Package {package.id} has an invalid price")
    if not supplier.category:
        return DecisionError(reason="Supplier category not found")

    slot_key = slot_key_for_category(supplier.category)
    category = slot_key if is_main_slot(slot_key) else None
    lead_time = slot_key in LEAD_TIME_SLOT_KEYS
    caller = _caller_state(request.caller_state)

    chosen_date = None
    if request.chosen_date:
        chosen_date = to_comparable_date_string(request.chosen_date)
        if chosen_date is None:
            return DecisionError(reason=f"Could not read the date {request.chosen_date!r}")
    if today is not None and chosen_date and chosen_date < today.isoformat():
        return Unavailable(date=chosen_date, slot=None, available_slots=())

    if caller not in KNOWN_PLAN_STATES and chosen_date is None:
        return NeedDate()

    booking_date = chosen_date
    booking_slot: Slot | None = None
    if chosen_date:
        booking_slot, stop = _resolve_slot(supplier, chosen_date, request.chosen_slot, request.party_details, lead_time)
        if stop is not None:
            return stop

    party_date = to_comparable_date_string(request.party_details.date) if request.party_details else None
    if party_date and party_date != chosen_date:
        explicit = request.chosen_slot if chosen_date is None else None
        party_slot, stop = _resolve_slot(supplier, party_date, explicit, request.party_details, lead_time)
        if stop is not None:
            return stop
        if booking_date is None:
            booking_date, booking_slot = party_date, party_slot

    if caller not in KNOWN_PLAN_STATES:
        return BuildNewPlan(date=booking_date, slot=booking_slot)

    if category is not None and caller in ACCOUNT_STATES:
        occupant = _blocking_occupant(request.plan, request, category)
        if occupant:
            return CategoryOccupied(occupant_name=occupant.supplier.name, category=category)

    if request.pending_enquiries > 0 and caller in ACCOUNT_STATES and not request.enquiry_acknowledged:
        return NeedEnquiryAck(pending_count=request.pending_enquiries)

    if slot_key in ADDON_PROMPT_SLOT_KEYS and supplier.addon_services and request.addons is None:
        return NeedAddonChoice(addons=supplier.addon_services)

    return ReadyToCommit(
        enriched_package=_enrich(
            request,
            supplier,
            package,
            category,
            booking_date,
            booking_slot,
            standard_hours,
            default_guest_count,
        )
    )


class MutationGuard:
    """Allows one outstanding mutation per plan; a second one is rejected, not queued."""

    def __init__(self) -> None:
        self._active: set[str] = set()
        self._lock = threading.Lock()

    @contextmanager
    def hold(self, plan_key: str) -> Iterator[None]:
        with self._lock:
            if plan_key in self._active:
                raise MutationInProgressError(f"Mutation already in progress for {plan_key}")
            self._active.add(plan_key)
        try:
            yield
        finally:
            with self._lock:
                self._active.discard(plan_key)

    def is_active(self, plan_key: str) -> bool:
        with self._lock:
            return plan_key in self._active


def _enquiry_reason(supplier: Supplier, pending: int) -> str:
    if pending > 0:
        plural = "" if pending == 1 else "s"
        return f"Added to party plan while managing {pending} other pending enquiry{plural}"
    return f"Added to expand party team for your {supplier.category.lower()} needs"


def _success_message(enriched: EnrichedPackage, enquiry_sent: bool) -> str:
    message = f"{enriched.supplier.name} added to your party"
    if enriched.booking_time_slot:
        message += f" for {enriched.booking_time_slot.value}"
    if enriched.quote.weekend_premium > 0:
        message += f" (weekend premium applied: +£{enriched.quote.weekend_premium:g})"
    if enriched.addons:
        count = len(enriched.addons)
        message += f" with {count} add-on{'s' if count > 1 else ''}"
    return message + (" and enquiry sent!" if enquiry_sent else "!")


class BookingUseCase:
    def __init__(
        self,
        directory: SupplierDirectoryPort,
        plans: PlanStorePort,
        enquiries: EnquiryPort,
        sessions: SessionStorePort,
        replacement: ReplacementFlow | None = None,
        guard: MutationGuard | None = None,
        standard_hours: float = STANDARD_PARTY_HOURS,
        default_guest_count: int = DEFAULT_GUEST_COUNT,
    ) -> None:
        self._directory = directory
        self._plans = plans
        self._enquiries = enquiries
        self._sessions = sessions
        self._replacement = replacement or ReplacementFlow(sessions)
        self._guard = guard or MutationGuard()
        self._standard_hours = standard_hours
        self._default_guest_count = default_guest_count
        self._logger = logging.getLogger(__name__)

    # Reads

    def get_plan(self, session_id: str) -> tuple[PartyPlan, float]:
        plan = self._plans.load_plan(session_id)
        return plan, plan_total(plan, self._plans.load_party_details(session_id))

    def get_party_details(self, session_id: str) -> PartyDetails | None:
        return self._plans.load_party_details(session_id)

    def update_party_details(self, session_id: str, details: PartyDetails) -> PartyDetails:
        normalized = to_comparable_date_string(details.date) if details.date else None
        details = replace(details, date=normalized or details.date)
        self._plans.persist_party_details(session_id, details)
        return details

    def pop_toast(self, session_id: str) -> dict | None:
        toast = self._sessions.get(session_id, TOAST_KEY)
        if toast is not None:
            self._sessions.delete(session_id, TOAST_KEY)
        return toast

    def find_package(self, supplier: Supplier, package_id: str | None) -> Package | None:
        if not package_id:
            return None
        for package in generate_default_packages(supplier):
            if package.id == package_id:
                return package
        return None

    # Decisions

    def decide(self, request: BookingRequest) -> Decision:
        return decide(
            request,
            standard_hours=self._standard_hours,
            default_guest_count=self._default_guest_count,
        )

    def add_to_plan(
        self,
        session_id: str,
        supplier_id: str,
        package_id: str | None,
        caller_state: CallerState | str,
        chosen_date: str | None = None,
        chosen_slot: str | None = None,
        addons: tuple[Addon, ...] | None = None,
        enquiry_acknowledged: bool = False,
    ) -> AddToPlanOutcome:
        """Decide and, when ready, commit. The plan read, decision and write share one guard hold."""
        try:
            with self._guard.hold(session_id):
                return self._add_to_plan_locked(
                    session_id,
                    supplier_id,
                    package_id,
                    caller_state,
                    chosen_date,
                    chosen_slot,
                    addons,
                    enquiry_acknowledged,
                )
        except MutationInProgressError:
            self._logger.warning("Concurrent add to plan rejected", extra={"session_id": session_id})
            return _busy_outcome()

    def _add_to_plan_locked(
        self,
        session_id: str,
        supplier_id: str,
        package_id: str | None,
        caller_state: CallerState | str,
        chosen_date: str | None,
        chosen_slot: str | None,
        addons: tuple[Addon, ...] | None,
        enquiry_acknowledged: bool,
    ) -> AddToPlanOutcome:
        supplier = self._directory.fetch_supplier_by_id(supplier_id)
        package = self.find_package(supplier, package_id) if supplier else None
        plan = self._plans.load_plan(session_id)
        pending = self._pending_enquiries(plan.plan_id or session_id)

        request = BookingRequest(
            supplier=supplier,
            package=package,
            caller_state=caller_state,
            plan=plan,
            chosen_date=chosen_date,
            chosen_slot=chosen_slot,
            party_details=self._plans.load_party_details(session_id),
            pending_enquiries=pending,
            replacement=self._replacement.current(session_id),
            addons=addons,
            enquiry_acknowledged=enquiry_acknowledged,
        )
        decision = self.decide(request)
        self._logger.info(
            "Add to plan decided",
            extra={"session_id": session_id, "supplier_id": supplier_id, "decision": decision.kind},
        )

        if isinstance(decision, ReadyToCommit):
            result = self._commit_locked(session_id, request, decision.enriched_package)
            if result.success and request.replacement and request.replacement.is_replacement:
                self._replacement.clear(session_id)
            return AddToPlanOutcome(decision=decision, result=result)
        return AddToPlanOutcome(decision=decision)

    def build_plan(
        self,
        session_id: str,
        supplier_id: str,
        package_id: str | None,
        chosen_date: str | None,
        chosen_slot: str | None = None,
        addons: tuple[Addon, ...] | None = None,
        guest_count: int | None = None,
    ) -> AddToPlanOutcome:
        """Start a plan from scratch for a caller without one, booked on the chosen date."""
        try:
            with self._guard.hold(session_id):
                return self._build_plan_locked(
                    session_id, supplier_id, package_id, chosen_date, chosen_slot, addons, guest_count
                )
        except MutationInProgressError:
            self._logger.warning("Concurrent plan build rejected", extra={"session_id": session_id})
            return _busy_outcome()

    def _build_plan_locked(
        self,
        session_id: str,
        supplier_id: str,
        package_id: str | None,
        chosen_date: str | None,
        chosen_slot: str | None,
        addons: tuple[Addon, ...] | None,
        guest_count: int | None,
    ) -> AddToPlanOutcome:
        supplier = self._directory.fetch_supplier_by_id(supplier_id)
        package = self.find_package(supplier, package_id) if supplier else None
        base = BookingRequest(
            supplier=supplier,
            package=package,
            caller_state=CallerState.ANONYMOUS,
            chosen_date=chosen_date,
            chosen_slot=chosen_slot,
            addons=addons,
        )
        decision = self.decide(base)
        if not isinstance(decision, BuildNewPlan):
            return AddToPlanOutcome(decision=decision)

        details = PartyDetails(
            date=decision.date,
            time_slot=decision.slot.value if decision.slot else None,
            guest_count=guest_count,
        )
        request = replace(
            base,
            caller_state=CallerState.HAS_LOCALPLAN,
            plan=PartyPlan(plan_id=session_id),
            party_details=details,
            chosen_slot=details.time_slot,
            addons=addons if addons is not None else (),
        )
        ready = self.decide(request)
        if not isinstance(ready, ReadyToCommit):
            return AddToPlanOutcome(decision=ready)

        result = self._commit_locked(
            session_id, request, ready.enriched_package, start_fresh=True, party_details=details
        )
        if result.success:
            result = replace(
                result,
                redirect_url=(
                    f"/dashboard?scrollTo={result.category or 'addons'}&action=party-created"
                    f"&source=ala-carte&timeSlot={details.time_slot or ''}"
                ),
            )
        return AddToPlanOutcome(decision=ready, result=result)

    # Mutations

    def commit(
        self,
        session_id: str,
        request: BookingRequest,
        decision: ReadyToCommit,
        start_fresh: bool = False,
        party_details: PartyDetails | None = None,
    ) -> CommitResult:
        try:
            with self._guard.hold(session_id):
                return self._commit_locked(session_id, request, decision.enriched_package, start_fresh, party_details)
        except MutationInProgressError:
            self._logger.warning("Concurrent commit rejected", extra={"session_id": session_id})
            return CommitResult(success=False, message=BUSY_MESSAGE, retryable=True)

    def _commit_locked(
        self,
        session_id: str,
        request: BookingRequest,
        enriched: EnrichedPackage,
        start_fresh: bool = False,
        party_details: PartyDetails | None = None,
    ) -> CommitResult:
        """Apply a ready decision. Caller must hold the guard for session_id.

        Either the plan, the party details and the enquiry all land, or the
        stored plan and details are put back as they were.
        """
        supplier = enriched.supplier
        caller = _caller_state(request.caller_state)
        log_extra = {"session_id": session_id, "supplier_id": supplier.id, "category": enriched.category}

        try:
            previous = self._plans.load_plan(session_id)
            previous_details = self._plans.load_party_details(session_id)
            base = PartyPlan(plan_id=previous.plan_id or session_id) if start_fresh else previous
            if base.plan_id is None:
                base = replace(base, plan_id=session_id)

            # The decision may have been made against an older plan
            if enriched.category is not None and caller in ACCOUNT_STATES:
                occupant = _blocking_occupant(base, request, enriched.category)
                if occupant:
                    self._logger.info("Category taken since decision", extra=log_extra)
                    return CommitResult(
                        success=False,
                        message=f"{occupant.supplier.name} is already booked for this category",
                        category=enriched.category,
                    )

            updated = self._apply(base, enriched)
        except PlanMutationError as e:
            self._logger.warning("Plan mutation refused", extra={**log_extra, "error": str(e)})
            return CommitResult(success=False, message=str(e), category=enriched.category)
        except PlanPersistenceError as e:
            self._logger.error("Could not load party plan", extra={**log_extra, "error": str(e)})
            return CommitResult(success=False, message=RETRY_MESSAGE, retryable=True)

        try:
            self._plans.persist_plan(session_id, updated)
        except PlanPersistenceError as e:
            self._logger.error("Could not save party plan", extra={**log_extra, "error": str(e)})
            return CommitResult(success=False, message=RETRY_MESSAGE, retryable=True)

        if party_details is not None:
            try:
                self._plans.persist_party_details(session_id, party_details)
            except PlanPersistenceError as e:
                self._logger.error("Could not save party details, restoring plan", extra={**log_extra, "error": str(e)})
                self._restore(session_id, previous, previous_details, log_extra)
                return CommitResult(success=False, message=RETRY_MESSAGE, retryable=True)

        enquiry_sent = False
        if caller in ACCOUNT_STATES or request.pending_enquiries > 0:
            try:
                self._enquiries.send_enquiry(
                    updated.plan_id,
                    supplier,
                    enriched.package,
                    _enquiry_reason(supplier, request.pending_enquiries),
                )
                enquiry_sent = True
            except EnquiryDispatchError as e:
                self._logger.error("Enquiry failed, restoring plan", extra={**log_extra, "error": str(e)})
                self._restore(
                    session_id, previous, previous_details, log_extra, restore_details=party_details is not None
                )
                return CommitResult(success=False, message=RETRY_MESSAGE, retryable=True)

        message = _success_message(enriched, enquiry_sent)
        category = enriched.category
        redirect = f"/dashboard?scrollTo={category or 'addons'}&action=supplier-added&from=supplier-detail"
        if enquiry_sent:
            redirect += "&enquiry_sent=true"

        self._sessions.set(
            session_id,
            TOAST_KEY,
            {"type": "success", "title": "Supplier Added Successfully", "message": message, "timestamp": time.time()},
        )
        self._logger.info("Supplier committed to plan", extra=log_extra)
        return CommitResult(
            success=True,
            message=message,
            redirect_url=redirect,
            category=category,
            enquiry_sent=enquiry_sent,
            plan=updated,
        )

    def _apply(self, plan: PartyPlan, enriched: EnrichedPackage) -> PartyPlan:
        supplier = enriched.supplier
        if enriched.is_addon:
            addon = Addon(
                id=supplier.id,
                name=supplier.name,
                price=enriched.quote.final_price,
                supplier_id=supplier.id,
                supplier_type=supplier.category,
                package_id=enriched.package.id,
            )
            # Re-adding the same supplier overwrites its add-on line
            if plan.has_addon(addon.id):
                plan = plan.remove_addon(addon.id)
            return plan.attach_addon(addon)

        # A supplier moving from a standalone add-on into its main slot
        if plan.has_addon(supplier.id):
            plan = plan.remove_addon(supplier.id)

        plan = plan.occupy(
            enriched.category,
            supplier,
            enriched.package,
            booking_date=enriched.booking_date,
            booking_time_slot=enriched.booking_time_slot.value if enriched.booking_time_slot else None,
            metadata={**enriched.metadata, "delivery_type": enriched.delivery_type},
            added_at=time.time(),
        )
        for addon in enriched.addons:
            plan = plan.attach_addon(addon)
        return plan

    def _restore(
        self,
        session_id: str,
        previous: PartyPlan,
        previous_details: PartyDetails | None,
        log_extra: dict,
        restore_details: bool = False,
    ) -> None:
        try:
            self._plans.persist_plan(session_id, previous)
            if restore_details:
                if previous_details is None:
                    self._plans.clear_party_details(session_id)
                else:
                    self._plans.persist_party_details(session_id, previous_details)
        except PlanPersistenceError as e:
            self._logger.exception("Could not restore party plan", extra={**log_extra, "error": str(e)})

    def remove_supplier(self, session_id: str, category: str) -> CommitResult:
        def mutate(plan: PartyPlan) -> PartyPlan:
            if not plan.is_occupied(category):
                raise PlanMutationError(f"Nothing booked for {category}")
            return plan.remove(category)

        return self._mutate(session_id, mutate, f"Removed {category} from your party", category)

    def remove_addon(self, session_id: str, addon_id: str) -> CommitResult:
        return self._mutate(session_id, lambda plan: plan.remove_addon(addon_id), "Add-on removed from your party")

    def _mutate(self, session_id: str, mutate, message: str, category: str | None = None) -> CommitResult:
        try:
            with self._guard.hold(session_id):
                plan = mutate(self._plans.load_plan(session_id))
                self._plans.persist_plan(session_id, plan)
        except MutationInProgressError:
            return CommitResult(success=False, message=BUSY_MESSAGE, retryable=True)
        except PlanMutationError as e:
            return CommitResult(success=False, message=str(e), category=category)
        except PlanPersistenceError as e:
            self._logger.error("Could not save party plan", extra={"session_id": session_id, "error": str(e)})
            return CommitResult(success=False, message=RETRY_MESSAGE, retryable=True)
        self._logger.info("Party plan updated", extra={"session_id": session_id, "category": category})
        return CommitResult(success=True, message=message, category=category, plan=plan)

    def complete_replacement(
        self,
        session_id: str,
        caller_state: CallerState | str = CallerState.HAS_ACCOUNT,
    ) -> CommitResult:
        try:
            with self._guard.hold(session_id):
                return self._complete_replacement_locked(session_id, caller_state)
        except MutationInProgressError:
            self._logger.warning("Concurrent replacement rejected", extra={"session_id": session_id})
            return CommitResult(success=False, message=BUSY_MESSAGE, retryable=True)

    def _complete_replacement_locked(self, session_id: str, caller_state: CallerState | str) -> CommitResult:
        context = self._replacement.current(session_id)
        if not context or not context.ready_for_booking or not context.selected_supplier_data:
            return CommitResult(success=False, message="No replacement is ready to book")

        supplier_id = str(context.selected_supplier_data.get("id"))
        supplier = self._directory.fetch_supplier_by_id(supplier_id)
        if supplier is None:
            return CommitResult(success=False, message="Supplier not found")

        package_data = context.selected_package_data or {}
        package = self.find_package(supplier, package_data.get("id"))
        if package is None and package_data:
            package = build_package(package_data)

        party_details = self._plans.load_party_details(session_id)
        request = BookingRequest(
            supplier=supplier,
            package=package,
            caller_state=caller_state,
            plan=self._plans.load_plan(session_id),
            party_details=party_details,
            replacement=context,
            addons=(),
            enquiry_acknowledged=True,
        )
        decision = self.decide(request)
        if not isinstance(decision, ReadyToCommit):
            self._logger.info(
                "Replacement not committed",
                extra={"session_id": session_id, "supplier_id": supplier_id, "decision": decision.kind},
            )
            return CommitResult(success=False, message=_decision_message(decision))

        result = self._commit_locked(session_id, request, decision.enriched_package)
        if result.success:
            self._replacement.consume(session_id)
            result = replace(result, redirect_url=context.return_url or "/dashboard")
        return result

    def _pending_enquiries(self, plan_id: str) -> int:
        try:
            status = self._enquiries.is_awaiting_responses(plan_id)
        except EnquiryDispatchError as e:
            # Treated as no pending enquiries; the commit step still sends for account holders
            self._logger.warning("Enquiry status unavailable", extra={"reason": plan_id, "error": str(e)})
            return 0
        return status.pending_count if status.is_awaiting else 0


def _decision_message(decision: Decision) -> str:
    if isinstance(decision, DecisionError):
        return decision.reason
    if isinstance(decision, Unavailable):
        return f"Not available on {decision.date}"
    if isinstance(decision, NeedSlot):
        return "Please choose a time slot"
    if isinstance(decision, NeedDate):
        return "Please choose a date"
    if isinstance(decision, CategoryOccupied):
        return f"{decision.occupant_name} is already booked for this category"
    if isinstance(decision, NeedEnquiryAck):
        return f"You have {decision.pending_count} pending enquiries"
    if isinstance(decision, NeedAddonChoice):
        return "Please choose add-ons"
    return "Cannot complete this booking"


def _busy_outcome() -> AddToPlanOutcome:
    return AddToPlanOutcome(
        decision=DecisionError(reason=BUSY_MESSAGE),
        result=CommitResult(success=False, message=BUSY_MESSAGE, retryable=True),
    )
