"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the expense ledger models used by ``statement_ingest``.
"""

from .expenses import AuditLogEntry, Base, ExpenseRecord

__all__ = [
    "AuditLogEntry",
    "Base",
    "ExpenseRecord",
]
