from app.services import ledger, transfers
from app.services.audit import audit_event
from app.services.errors import LedgerError, LedgerNotFound

__all__ = [
    "audit_event",
    "ledger",
    "transfers",
    "LedgerError",
    "LedgerNotFound",
]
