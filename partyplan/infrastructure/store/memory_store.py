from __future__ import annotations

import threading
from typing import Any

from partyplan.application.ports.plan_store import PlanStorePort
from partyplan.application.ports.session_store import SessionStorePort
from partyplan.domain.entities.party_details import PartyDetails
from partyplan.domain.entities.party_plan import PartyPlan


class MemoryPlanStore(PlanStorePort):
    def __init__(self) -> None:
        self._plans: dict[str, PartyPlan] = {}
        self._details: dict[str, PartyDetails] = {}

    def load_plan(self, session_id: str) -> PartyPlan:
        return self._plans.get(session_id, PartyPlan())

    def persist_plan(self, session_id: str, plan: PartyPlan) -> None:
        self._plans[session_id] = plan

    def load_party_details(self, session_id: str) -> PartyDetails | None:
        return self._details.get(session_id)

    def persist_party_details(self, session_id: str, details: PartyDetails) -> None:
        self._details[session_id] = details

    def clear_party_details(self, session_id: str) -> None:
        self._details.pop(session_id, None)


class MemorySessionStore(SessionStorePort):
    def __init__(self) -> None:
        self._sessions: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str, key: str) -> Any | None:
        with self._lock:
            return self._sessions.get(session_id, {}).get(key)

    def set(self, session_id: str, key: str, value: Any) -> None:
        with self._lock:
            self._sessions.setdefault(session_id, {})[key] = value

    def delete(self, session_id: str, key: str) -> None:
        with self._lock:
            values = self._sessions.get(session_id)
            if values is not None:
                values.pop(key, None)
                if not values:
                    del self._sessions[session_id]
