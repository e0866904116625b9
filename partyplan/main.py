import logging

from fastapi import FastAPI

from partyplan.api.v1.plans import router as plans_router
from partyplan.api.v1.replacement import router as replacement_router
from partyplan.api.v1.suppliers import router as suppliers_router
from partyplan.core.config import settings


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("session_id", "supplier_id", "category", "decision", "reason", "error"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)

app = FastAPI(title="Party Plan Booking Engine", version="1.0.0")

app.include_router(suppliers_router, prefix="/api/v1", tags=["suppliers"])
app.include_router(plans_router, prefix="/api/v1", tags=["plans"])
app.include_router(replacement_router, prefix="/api/v1", tags=["replacement"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
