from __future__ import annotations

import logging
import time
from dataclasses import asdict, replace
from typing import Any

from partyplan.application.ports.session_store import SessionStorePort
from partyplan.domain.entities.replacement_context import ReplacementContext
from partyplan.domain.entities.supplier import Package, Supplier

REPLACEMENT_CONTEXT_KEY = "replacementContext"
RESTORE_MODAL_KEY = "shouldRestoreReplacementModal"
SHOW_UPGRADE_KEY = "modalShowUpgrade"
REPLACEMENT_KEYS = (REPLACEMENT_CONTEXT_KEY, RESTORE_MODAL_KEY, SHOW_UPGRADE_KEY)

ORIGIN_BROWSE = "browse"
ORIGIN_REPLACEMENT = "replacement"
DEFAULT_RETURN_URL = "/dashboard"


def _supplier_snapshot(supplier: Supplier, price: float | None = None) -> dict[str, Any]:
    return {
        "id": supplier.id,
        "name": supplier.name,
        "category": supplier.category,
        "description": supplier.description,
        "price": price if price is not None else supplier.price_from,
        "price_from": supplier.price_from,
    }


def _package_snapshot(package: Package) -> dict[str, Any]:
    return {
        "id": package.id,
        "name": package.name,
        "price": package.price,
        "duration": package.duration,
        "features": list(package.features),
        "description": package.description or f"{package.name} package",
        "original_price": package.original_price or package.price,
    }


class ReplacementFlow:
    """Session-scoped state for swapping the occupant of a filled category.

    The context survives navigation between the plan page and supplier pages
    and is cleared once consumed or when the caller arrives from browsing.
    """

    def __init__(self, session_store: SessionStorePort) -> None:
        self._sessions = session_store
        self._logger = logging.getLogger(__name__)

    def current(self, session_id: str) -> ReplacementContext | None:
        raw = self._sessions.get(session_id, REPLACEMENT_CONTEXT_KEY)
        if not raw:
            return None
        if not isinstance(raw, dict):
            self._logger.warning("Discarding malformed replacement context", extra={"session_id": session_id})
            self._sessions.delete(session_id, REPLACEMENT_CONTEXT_KEY)
            return None
        try:
            return ReplacementContext(**raw)
        except TypeError as e:
            self._logger.warning(
                "Discarding malformed replacement context",
                extra={"session_id": session_id, "error": str(e)},
            )
            self._sessions.delete(session_id, REPLACEMENT_CONTEXT_KEY)
            return None

    def _save(self, session_id: str, context: ReplacementContext) -> ReplacementContext:
        context = replace(context, updated_at=time.time())
        self._sessions.set(session_id, REPLACEMENT_CONTEXT_KEY, asdict(context))
        return context

    def enter(self, session_id: str, origin: str | None, return_url: str | None = None) -> ReplacementContext | None:
        if origin == ORIGIN_BROWSE:
            self.clear(session_id)
            return None

        existing = self.current(session_id)
        if origin == ORIGIN_REPLACEMENT:
            if existing and existing.is_replacement:
                return existing
            self._logger.info("Replacement flow started", extra={"session_id": session_id})
            return self._save(
                session_id,
                ReplacementContext(is_replacement=True, return_url=return_url or DEFAULT_RETURN_URL),
            )
        return existing

    def store_current_supplier(self, session_id: str, supplier: Supplier) -> ReplacementContext | None:
        context = self.current(session_id)
        if not context or not context.is_replacement or not supplier.category:
            return context
        return self._save(session_id, replace(context, current_supplier_data=_supplier_snapshot(supplier)))

    def select_package(self, session_id: str, supplier: Supplier, package: Package) -> ReplacementContext:
        if not supplier.category:
            raise ValueError("Supplier category not found")

        context = self.current(session_id) or ReplacementContext(is_replacement=True)
        context = replace(
            context,
            current_supplier_data=context.current_supplier_data or _supplier_snapshot(supplier),
            selected_supplier_data=_supplier_snapshot(supplier, package.price),
            selected_package_data=_package_snapshot(package),
            ready_for_booking=True,
            return_url=DEFAULT_RETURN_URL,
        )
        self._sessions.set(session_id, RESTORE_MODAL_KEY, True)
        self._sessions.set(session_id, SHOW_UPGRADE_KEY, True)
        self._logger.info(
            "Replacement package selected",
            extra={"session_id": session_id, "supplier_id": supplier.id},
        )
        return self._save(session_id, context)

    def should_restore_modal(self, session_id: str) -> bool:
        return bool(self._sessions.get(session_id, RESTORE_MODAL_KEY))

    def should_show_upgrade(self, session_id: str) -> bool:
        return bool(self._sessions.get(session_id, SHOW_UPGRADE_KEY))

    def consume(self, session_id: str) -> ReplacementContext | None:
        context = self.current(session_id)
        self.clear(session_id)
        return context

    def clear(self, session_id: str) -> None:
        for key in REPLACEMENT_KEYS:
            self._sessions.delete(session_id, key)
