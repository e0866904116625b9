from __future__ import annotations

from abc import ABC, abstractmethod

from partyplan.domain.entities.supplier import Supplier


class SupplierDirectoryPort(ABC):
    @abstractmethod
    def fetch_supplier_by_id(self, supplier_id: str) -> Supplier | None:
        """Get supplier by id. Returns None if not found."""
        raise NotImplementedError
