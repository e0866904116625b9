from functools import lru_cache
import logging
from zoneinfo import ZoneInfo

from partyplan.core.config import settings
from partyplan.application.ports.enquiry import EnquiryPort
from partyplan.application.ports.plan_store import PlanStorePort
from partyplan.application.ports.session_store import SessionStorePort
from partyplan.application.ports.supplier_directory import SupplierDirectoryPort
from partyplan.application.use_cases.availability import SupplierAvailabilityUseCase
from partyplan.application.use_cases.booking import BookingUseCase, MutationGuard
from partyplan.application.use_cases.replacement import ReplacementFlow
from partyplan.infrastructure.directory.json_supplier_directory import JsonSupplierDirectory
from partyplan.infrastructure.enquiry.http_enquiry_client import HttpEnquiryClient
from partyplan.infrastructure.enquiry.mock_enquiry import MockEnquiryService
from partyplan.infrastructure.store.json_store import JsonPlanStore
from partyplan.infrastructure.store.memory_store import MemoryPlanStore, MemorySessionStore


_plan_store: PlanStorePort | None = None


def get_plan_store() -> PlanStorePort:
    global _plan_store
    if _plan_store is None:
        if settings.ENV.lower() in {"dev", "local"}:
            _plan_store = JsonPlanStore(data_dir=settings.PLAN_STORE_DIR)
        else:
            _plan_store = MemoryPlanStore()
    return _plan_store


@lru_cache
def get_session_store() -> SessionStorePort:
    return MemorySessionStore()


@lru_cache
def get_supplier_directory() -> SupplierDirectoryPort:
    return JsonSupplierDirectory(data_file=settings.SUPPLIER_DATA_FILE)


@lru_cache
def get_enquiry_service() -> EnquiryPort:
    logger = logging.getLogger(__name__)
    if not settings.ENQUIRY_API_KEY:
        logger.info("Using MockEnquiryService (ENQUIRY_API_KEY missing)")
        return MockEnquiryService()
    logger.info("Using HttpEnquiryClient")
    return HttpEnquiryClient()


@lru_cache
def get_mutation_guard() -> MutationGuard:
    return MutationGuard()


def get_replacement_flow() -> ReplacementFlow:
    return ReplacementFlow(get_session_store())


def get_booking_use_case() -> BookingUseCase:
    return BookingUseCase(
        directory=get_supplier_directory(),
        plans=get_plan_store(),
        enquiries=get_enquiry_service(),
        sessions=get_session_store(),
        replacement=get_replacement_flow(),
        guard=get_mutation_guard(),
        standard_hours=settings.STANDARD_PARTY_HOURS,
        default_guest_count=settings.DEFAULT_GUEST_COUNT,
    )


def get_availability_use_case() -> SupplierAvailabilityUseCase:
    return SupplierAvailabilityUseCase(
        directory=get_supplier_directory(),
        timezone=ZoneInfo(settings.BUSINESS_TIMEZONE),
    )
