from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException

from partyplan.api.v1.plans import commit_result_schema
from partyplan.api.v1.schemas import (
    CommitResultSchema,
    CompleteReplacementRequestSchema,
    ReplacementContextSchema,
    ReplacementEnterRequestSchema,
    ReplacementPackageRequestSchema,
    ReplacementResponseSchema,
)
from partyplan.application.ports.supplier_directory import SupplierDirectoryPort
from partyplan.application.use_cases.booking import BookingUseCase
from partyplan.application.use_cases.replacement import ReplacementFlow
from partyplan.domain.entities.replacement_context import ReplacementContext
from partyplan.wiring.dependencies import get_booking_use_case, get_replacement_flow, get_supplier_directory

router = APIRouter()


def _response(flow: ReplacementFlow, session_id: str, context: ReplacementContext | None) -> ReplacementResponseSchema:
    data = asdict(context) if context else None
    if data:
        data.pop("updated_at", None)
    return ReplacementResponseSchema(
        context=ReplacementContextSchema(**data) if data else None,
        should_restore_modal=flow.should_restore_modal(session_id),
        show_upgrade=flow.should_show_upgrade(session_id),
    )


@router.post("/replacement/{session_id}/enter", response_model=ReplacementResponseSchema)
def enter_replacement(
    session_id: str,
    req: ReplacementEnterRequestSchema,
    flow: ReplacementFlow = Depends(get_replacement_flow),
    directory: SupplierDirectoryPort = Depends(get_supplier_directory),
):
    context = flow.enter(session_id, req.origin, req.return_url)
    if context and req.supplier_id:
        supplier = directory.fetch_supplier_by_id(req.supplier_id)
        if supplier is None:
            raise HTTPException(status_code=404, detail=f"Supplier not found: {req.supplier_id}")
        context = flow.store_current_supplier(session_id, supplier)
    return _response(flow, session_id, context)


@router.post("/replacement/{session_id}/package", response_model=ReplacementResponseSchema)
def select_replacement_package(
    session_id: str,
    req: ReplacementPackageRequestSchema,
    flow: ReplacementFlow = Depends(get_replacement_flow),
    directory: SupplierDirectoryPort = Depends(get_supplier_directory),
    uc: BookingUseCase = Depends(get_booking_use_case),
):
    supplier = directory.fetch_supplier_by_id(req.supplier_id)
    if supplier is None:
        raise HTTPException(status_code=404, detail=f"Supplier not found: {req.supplier_id}")
    package = uc.find_package(supplier, req.package_id)
    if package is None:
        raise HTTPException(status_code=400, detail=f"Unknown package: {req.package_id}")
    try:
        context = flow.select_package(session_id, supplier, package)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _response(flow, session_id, context)


@router.post("/replacement/{session_id}/complete", response_model=CommitResultSchema)
def complete_replacement(
    session_id: str,
    req: CompleteReplacementRequestSchema,
    uc: BookingUseCase = Depends(get_booking_use_case),
):
    return commit_result_schema(uc.complete_replacement(session_id, req.caller_state.value))
