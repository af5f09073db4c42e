# ruff: noqa: I001
"""Persistence of ingested expenses with content-hash deduplication.

Functions here write to the shared database owned by ``libs/db`` through the
ORM models in ``db.models.expenses`` and sessions from ``db.client``.

Scope:
- Compute the content hash that identifies one logical expense.
- Insert a batch of expenses, skipping hashes already stored or already seen
  earlier in the same batch.
- Append audit log entries.

The batch functions only ``flush``; the caller's transaction scope commits
once or rolls everything back. :class:`ExpenseRepository` provides that scope.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.client import session_scope
from db.models.expenses import AuditLogEntry, ExpenseRecord
from .logging_setup import get_logger
from .models import BatchResult, ExpenseInput, PersistedExpense

_HASH_LOOKUP_CHUNK = 500
_WHITESPACE_RE = re.compile(r"\s+")

_logger = get_logger("statement_ingest.persistence")


def compute_content_hash(amount: Decimal | str | float, shop: str, date: str, user: str) -> str:
    """Return the dedup key for one logical expense.

    Built from the two-decimal amount, the lower-cased shop with whitespace
    runs replaced by ``_``, the ``YYYY-MM-DD`` date, and the lower-cased user,
    joined with ``_``. Category, description, and source do not participate,
    so the same purchase entered through different channels collides.
    """

    amt = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    parts = [
        f"{amt:.2f}",
        _WHITESPACE_RE.sub("_", shop.strip().lower()),
        date.strip(),
        user.strip().lower(),
    ]
    return "_".join(parts)


def _hash_for(item: ExpenseInput) -> str:
    return compute_content_hash(item.amount, item.shop, item.date, item.user)


def _existing_hashes(session: Session, hashes: Iterable[str]) -> set[str]:
    """Return the subset of ``hashes`` already stored, in any status."""

    wanted = list(dict.fromkeys(hashes))
    found: set[str] = set()
    for i in range(0, len(wanted), _HASH_LOOKUP_CHUNK):
        chunk = wanted[i : i + _HASH_LOOKUP_CHUNK]
        stmt = select(ExpenseRecord.content_hash).where(ExpenseRecord.content_hash.in_(chunk))
        found.update(session.scalars(stmt))
    return found


def create_expenses_batch(session: Session, inputs: Sequence[ExpenseInput]) -> BatchResult:
    """Insert ``inputs`` that are not duplicates and return created vs. duplicates.

    Duplicates are detected against stored rows (soft-deleted rows included)
    and against earlier items of the same batch.
    """

    hashes = [_hash_for(item) for item in inputs]
    seen = _existing_hashes(session, hashes)

    duplicates: list[str] = []
    pending: list[tuple[ExpenseRecord, str]] = []
    for item, content_hash in zip(inputs, hashes, strict=True):
        if content_hash in seen:
            duplicates.append(content_hash)
            continue
        record = ExpenseRecord(
            date=item.date_value,
            amount=item.amount,
            category=item.category,
            shop=item.shop,
            user_name=item.user,
            description=item.description,
            source=item.source,
            raw_input=item.raw_input,
            status="active",
            content_hash=content_hash,
        )
        session.add(record)
        pending.append((record, content_hash))
        seen.add(content_hash)

    session.flush()

    created = tuple(
        PersistedExpense(
            id=record.id,
            content_hash=content_hash,
            amount=record.amount,
            category=record.category,
            shop=record.shop,
            date=record.date.isoformat(),
        )
        for record, content_hash in pending
    )
    _logger.info(
        "persist:batch_done inputs=%d created=%d duplicates=%d",
        len(inputs),
        len(created),
        len(duplicates),
    )
    return BatchResult(created=created, duplicates=tuple(duplicates))


def create_audit_log(
    session: Session,
    action: str,
    details: Mapping[str, Any],
    user_id: str | None,
    subject_id: str | None = None,
) -> AuditLogEntry:
    entry = AuditLogEntry(
        action=action,
        details=dict(details),
        user_id=user_id,
        subject_id=subject_id,
    )
    session.add(entry)
    session.flush()
    return entry


class ExpenseRepository:
    """Persistence collaborator: each call runs in its own transaction."""

    def __init__(self, database_url: str | None = None) -> None:
        self.database_url = database_url

    def create_expenses_batch(self, inputs: Sequence[ExpenseInput]) -> BatchResult:
        with session_scope(database_url=self.database_url) as session:
            return create_expenses_batch(session, inputs)

    def create_audit_log(
        self,
        action: str,
        details: Mapping[str, Any],
        user_id: str | None,
        subject_id: str | None = None,
    ) -> None:
        with session_scope(database_url=self.database_url) as session:
            create_audit_log(session, action, details, user_id, subject_id)


__all__ = [
    "ExpenseRepository",
    "compute_content_hash",
    "create_audit_log",
    "create_expenses_batch",
]
