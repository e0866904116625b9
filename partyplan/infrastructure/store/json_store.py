from __future__ import annotations

import hashlib
import json
import logging
import re
import threading
from pathlib import Path
from typing import Any

from partyplan.application.exceptions import PlanPersistenceError
from partyplan.application.ports.plan_store import PlanStorePort
from partyplan.application.utils.payloads import (
    build_party_details,
    build_plan,
    party_details_to_payload,
    plan_to_payload,
)
from partyplan.domain.entities.party_details import PartyDetails
from partyplan.domain.entities.party_plan import PartyPlan

# Any other id is stored under "_" + its sha256 hex digest
_PLAIN_KEY = re.compile(r"[A-Za-z0-9-]{1,128}")


class JsonPlanStore(PlanStorePort):
    def __init__(self, data_dir: str = "./data/plans") -> None:
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._locks: dict[str, threading.Lock] = {}
        self._lock_lock = threading.Lock()  # Lock for managing locks dict
        self._logger = logging.getLogger(__name__)

    def _get_lock(self, session_id: str) -> threading.Lock:
        """Get or create a lock for a session_id."""
        with self._lock_lock:
            if session_id not in self._locks:
                self._locks[session_id] = threading.Lock()
            return self._locks[session_id]

    def _get_file_path(self, session_id: str) -> Path:
        """Get the file path for a session_id."""
        if _PLAIN_KEY.fullmatch(session_id):
            safe_key = session_id
        else:
            safe_key = "_" + hashlib.sha256(session_id.encode("utf-8")).hexdigest()
        return self._data_dir / f"{safe_key}.json"

    def _default_data(self, session_id: str) -> dict[str, Any]:
        return {"session_id": session_id, "plan": None, "party_details": None, "version": 1}

    def _load_session_data(self, session_id: str) -> dict[str, Any]:
        """Load session data from JSON file, return default if missing."""
        file_path = self._get_file_path(session_id)
        if not file_path.exists():
            return self._default_data(session_id)

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            # Corrupt file: start from an empty plan rather than blocking the session
            self._logger.error(
                "Corrupt plan file, using empty plan",
                extra={"session_id": session_id, "error": str(e)},
            )
            return self._default_data(session_id)
        except OSError as e:
            raise PlanPersistenceError(f"Could not read plan for {session_id}: {e}") from e

        if "version" not in data:
            data["version"] = 1
        return data

    def _save_session_data(self, session_id: str, data: dict[str, Any]) -> None:
        """Save session data to JSON file atomically."""
        file_path = self._get_file_path(session_id)
        temp_path = file_path.with_suffix(".json.tmp")

        try:
            # Write to temp file
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            # Atomic rename
            temp_path.replace(file_path)
        except (OSError, TypeError, ValueError) as e:
            # Clean up temp file on error
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)
            raise PlanPersistenceError(f"Could not save plan for {session_id}: {e}") from e

    def load_plan(self, session_id: str) -> PartyPlan:
        with self._get_lock(session_id):
            data = self._load_session_data(session_id)
            return build_plan(data.get("plan"))

    def persist_plan(self, session_id: str, plan: PartyPlan) -> None:
        with self._get_lock(session_id):
            data = self._load_session_data(session_id)
            data["plan"] = plan_to_payload(plan)
            self._save_session_data(session_id, data)

    def load_party_details(self, session_id: str) -> PartyDetails | None:
        with self._get_lock(session_id):
            data = self._load_session_data(session_id)
            return build_party_details(data.get("party_details"))

    def persist_party_details(self, session_id: str, details: PartyDetails) -> None:
        with self._get_lock(session_id):
            data = self._load_session_data(session_id)
            data["party_details"] = party_details_to_payload(details)
            self._save_session_data(session_id, data)

    def clear_party_details(self, session_id: str) -> None:
        with self._get_lock(session_id):
            data = self._load_session_data(session_id)
            data["party_details"] = None
            self._save_session_data(session_id, data)
