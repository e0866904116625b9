from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ReplacementContext:
    is_replacement: bool = False
    return_url: str | None = None
    # Snapshots are plain dicts so they survive the session store unchanged
    current_supplier_data: dict[str, Any] | None = None
    selected_supplier_data: dict[str, Any] | None = None
    selected_package_data: dict[str, Any] | None = None
    ready_for_booking: bool = False
    updated_at: float | None = None

    @property
    def current_category(self) -> str | None:
        if not self.current_supplier_data:
            return None
        return self.current_supplier_data.get("category")
