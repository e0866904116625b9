from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from partyplan.application.ports.supplier_directory import SupplierDirectoryPort
from partyplan.application.utils.payloads import build_supplier
from partyplan.domain.entities.supplier import Supplier


class JsonSupplierDirectory(SupplierDirectoryPort):
    """Supplier records from a JSON file holding a list of payloads (or {"suppliers": [...]})."""

    def __init__(self, data_file: str | None = None, records: list[dict[str, Any]] | None = None) -> None:
        self._logger = logging.getLogger(__name__)
        self._suppliers: dict[str, Supplier] = {}
        if records is None and data_file:
            records = self._read(Path(data_file))
        for record in records or []:
            self.add(record)

    def _read(self, path: Path) -> list[dict[str, Any]]:
        if not path.exists():
            self._logger.warning("Supplier data file not found", extra={"reason": str(path)})
            return []
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get("suppliers", [])
        return [record for record in data if isinstance(record, dict)]

    def add(self, record: dict[str, Any]) -> Supplier | None:
        if not record.get("id"):
            self._logger.debug("Skipping supplier record without id")
            return None
        supplier = build_supplier(record)
        self._suppliers[supplier.id] = supplier
        return supplier

    def fetch_supplier_by_id(self, supplier_id: str) -> Supplier | None:
        return self._suppliers.get(str(supplier_id).strip())
