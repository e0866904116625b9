from fastapi import APIRouter, Depends, HTTPException, Query

from partyplan.api.v1.schemas import (
    AvailabilityResponseSchema,
    CalendarDaySchema,
    CalendarResponseSchema,
    SlotSchema,
)
from partyplan.application.exceptions import SupplierNotFoundError
from partyplan.application.use_cases.availability import SupplierAvailabilityUseCase
from partyplan.wiring.dependencies import get_availability_use_case

router = APIRouter()


@router.get("/suppliers/{supplier_id}/availability", response_model=AvailabilityResponseSchema)
def supplier_availability(
    supplier_id: str,
    date: str | None = Query(None),
    slot: SlotSchema | None = Query(None),
    uc: SupplierAvailabilityUseCase = Depends(get_availability_use_case),
):
    try:
        result, status = uc.check(supplier_id, date, slot.value if slot else None)
    except SupplierNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return AvailabilityResponseSchema(
        supplier_id=supplier_id,
        date=date,
        available=result.available,
        slots=[SlotSchema(s.value) for s in result.slots],
        status=status.value,
    )


@router.get("/suppliers/{supplier_id}/calendar", response_model=CalendarResponseSchema)
def supplier_calendar(
    supplier_id: str,
    year: int = Query(..., ge=1970, le=9999),
    month: int = Query(..., ge=1, le=12),
    uc: SupplierAvailabilityUseCase = Depends(get_availability_use_case),
):
    try:
        days = uc.calendar(supplier_id, year, month)
    except SupplierNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return CalendarResponseSchema(
        supplier_id=supplier_id,
        year=year,
        month=month,
        days=[
            CalendarDaySchema(date=d.date, status=d.status.value, slots=[SlotSchema(s.value) for s in d.slots])
            for d in days
        ],
    )
