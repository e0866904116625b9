from __future__ import annotations

from abc import ABC, abstractmethod

from partyplan.domain.entities.party_details import PartyDetails
from partyplan.domain.entities.party_plan import PartyPlan


class PlanStorePort(ABC):
    @abstractmethod
    def load_plan(self, session_id: str) -> PartyPlan:
        """Load the plan for a session. Returns an empty plan if none is stored."""
        raise NotImplementedError

    @abstractmethod
    def persist_plan(self, session_id: str, plan: PartyPlan) -> None:
        """Save the plan. Raises PlanPersistenceError on failure."""
        raise NotImplementedError

    @abstractmethod
    def load_party_details(self, session_id: str) -> PartyDetails | None:
        raise NotImplementedError

    @abstractmethod
    def persist_party_details(self, session_id: str, details: PartyDetails) -> None:
        raise NotImplementedError

    @abstractmethod
    def clear_party_details(self, session_id: str) -> None:
        raise NotImplementedError
