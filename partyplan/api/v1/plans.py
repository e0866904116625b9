from fastapi import APIRouter, Depends, HTTPException

from partyplan.api.v1.schemas import (
    AddonSchema,
    AddToPlanRequestSchema,
    AddToPlanResponseSchema,
    BuildPlanRequestSchema,
    CommitResultSchema,
    DecisionSchema,
    PackageSchema,
    PartyDetailsSchema,
    PlanResponseSchema,
    PlanSlotSchema,
    SlotSchema,
    ToastResponseSchema,
)
from partyplan.application.dto.decision import (
    AddToPlanOutcome,
    BuildNewPlan,
    CategoryOccupied,
    CommitResult,
    Decision,
    DecisionError,
    NeedAddonChoice,
    NeedEnquiryAck,
    NeedSlot,
    Unavailable,
)
from partyplan.application.use_cases.booking import BookingUseCase
from partyplan.application.use_cases.pricing import display_price
from partyplan.domain.entities.party_details import PartyDetails
from partyplan.domain.entities.party_plan import PartyPlan
from partyplan.domain.entities.supplier import Addon, Package
from partyplan.wiring.dependencies import get_booking_use_case

router = APIRouter()


def _addon_schema(addon: Addon) -> AddonSchema:
    return AddonSchema(
        id=addon.id,
        name=addon.name,
        price=addon.price,
        supplier_id=addon.supplier_id,
        supplier_type=addon.supplier_type,
        attached_to=addon.attached_to,
    )


def _to_addons(items: list[AddonSchema] | None) -> tuple[Addon, ...] | None:
    if items is None:
        return None
    return tuple(
        Addon(id=a.id, name=a.name, price=a.price, supplier_id=a.supplier_id, supplier_type=a.supplier_type)
        for a in items
    )


def _package_schema(package: Package | None) -> PackageSchema | None:
    if package is None:
        return None
    return PackageSchema(
        id=package.id,
        name=package.name,
        price=package.price,
        features=list(package.features),
        duration=package.duration,
        description=package.description,
        total_price=package.total_price,
        quantity=package.quantity,
    )


def decision_schema(decision: Decision) -> DecisionSchema:
    schema = DecisionSchema(kind=decision.kind)
    if isinstance(decision, NeedSlot):
        schema.available_slots = [SlotSchema(s.value) for s in decision.available_slots]
    elif isinstance(decision, Unavailable):
        schema.date = decision.date
        schema.slot = SlotSchema(decision.slot.value) if decision.slot else None
        schema.available_slots = [SlotSchema(s.value) for s in decision.available_slots]
    elif isinstance(decision, NeedEnquiryAck):
        schema.pending_count = decision.pending_count
    elif isinstance(decision, NeedAddonChoice):
        schema.addons = [_addon_schema(a) for a in decision.addons]
    elif isinstance(decision, CategoryOccupied):
        schema.occupant_name = decision.occupant_name
    elif isinstance(decision, BuildNewPlan):
        schema.date = decision.date
        schema.slot = SlotSchema(decision.slot.value) if decision.slot else None
    elif isinstance(decision, DecisionError):
        schema.reason = decision.reason
    return schema


def commit_result_schema(result: CommitResult) -> CommitResultSchema:
    return CommitResultSchema(
        success=result.success,
        message=result.message,
        redirect_url=result.redirect_url,
        category=result.category,
        enquiry_sent=result.enquiry_sent,
        retryable=result.retryable,
    )


def _outcome_schema(outcome: AddToPlanOutcome) -> AddToPlanResponseSchema:
    return AddToPlanResponseSchema(
        decision=decision_schema(outcome.decision),
        result=commit_result_schema(outcome.result) if outcome.result else None,
    )


def _plan_schema(
    session_id: str, plan: PartyPlan, total: float, details: PartyDetails | None
) -> PlanResponseSchema:
    slots: dict[str, PlanSlotSchema] = {}
    for category, slot in plan.slots.items():
        price = display_price(slot, details, plan.attached_addons(category))
        slots[category] = PlanSlotSchema(
            supplier_id=slot.supplier.id,
            supplier_name=slot.supplier.name,
            package=_package_schema(slot.package),
            booking_date=slot.booking_date,
            booking_time_slot=slot.booking_time_slot,
            price=price.base_price,
            total_price=price.total_price,
        )
    return PlanResponseSchema(
        session_id=session_id,
        plan_id=plan.plan_id,
        slots=slots,
        addons=[_addon_schema(a) for a in plan.addons],
        total=total,
    )


def _details_schema(details: PartyDetails | None) -> PartyDetailsSchema:
    if details is None:
        return PartyDetailsSchema()
    return PartyDetailsSchema(
        date=details.date,
        time=details.time,
        time_slot=SlotSchema(details.time_slot) if details.time_slot in ("morning", "afternoon") else None,
        guest_count=details.guest_count,
        theme=details.theme,
        duration_hours=details.duration_hours,
    )


@router.get("/plans/{session_id}", response_model=PlanResponseSchema)
def get_plan(session_id: str, uc: BookingUseCase = Depends(get_booking_use_case)):
    plan, total = uc.get_plan(session_id)
    return _plan_schema(session_id, plan, total, uc.get_party_details(session_id))


@router.post("/plans/{session_id}/add", response_model=AddToPlanResponseSchema)
def add_to_plan(
    session_id: str,
    req: AddToPlanRequestSchema,
    uc: BookingUseCase = Depends(get_booking_use_case),
):
    try:
        outcome = uc.add_to_plan(
            session_id=session_id,
            supplier_id=req.supplier_id,
            package_id=req.package_id,
            caller_state=req.caller_state.value,
            chosen_date=req.date,
            chosen_slot=req.time_slot.value if req.time_slot else None,
            addons=_to_addons(req.addons),
            enquiry_acknowledged=req.enquiry_acknowledged,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _outcome_schema(outcome)


@router.post("/plans/{session_id}/build", response_model=AddToPlanResponseSchema)
def build_plan(
    session_id: str,
    req: BuildPlanRequestSchema,
    uc: BookingUseCase = Depends(get_booking_use_case),
):
    try:
        outcome = uc.build_plan(
            session_id=session_id,
            supplier_id=req.supplier_id,
            package_id=req.package_id,
            chosen_date=req.date,
            chosen_slot=req.time_slot.value if req.time_slot else None,
            addons=_to_addons(req.addons),
            guest_count=req.guest_count,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _outcome_schema(outcome)


@router.delete("/plans/{session_id}/slots/{category}", response_model=CommitResultSchema)
def remove_supplier(session_id: str, category: str, uc: BookingUseCase = Depends(get_booking_use_case)):
    return commit_result_schema(uc.remove_supplier(session_id, category))


@router.delete("/plans/{session_id}/addons/{addon_id}", response_model=CommitResultSchema)
def remove_addon(session_id: str, addon_id: str, uc: BookingUseCase = Depends(get_booking_use_case)):
    return commit_result_schema(uc.remove_addon(session_id, addon_id))


@router.get("/plans/{session_id}/party-details", response_model=PartyDetailsSchema)
def get_party_details(session_id: str, uc: BookingUseCase = Depends(get_booking_use_case)):
    return _details_schema(uc.get_party_details(session_id))


@router.put("/plans/{session_id}/party-details", response_model=PartyDetailsSchema)
def put_party_details(
    session_id: str,
    req: PartyDetailsSchema,
    uc: BookingUseCase = Depends(get_booking_use_case),
):
    details = PartyDetails(
        date=req.date,
        time=req.time,
        time_slot=req.time_slot.value if req.time_slot else None,
        guest_count=req.guest_count,
        theme=req.theme,
        duration_hours=req.duration_hours,
    )
    return _details_schema(uc.update_party_details(session_id, details))


@router.get("/plans/{session_id}/toast", response_model=ToastResponseSchema)
def pop_toast(session_id: str, uc: BookingUseCase = Depends(get_booking_use_case)):
    return ToastResponseSchema(toast=uc.pop_toast(session_id))
