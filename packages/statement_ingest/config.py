"""Runtime settings for the ingestion pipeline.

Values default to the production constants and can be overridden through
``STATEMENT_INGEST_*`` environment variables (a local ``.env`` is loaded by the
CLI). Invalid overrides are ignored rather than failing the upload.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024
BATCH_SIZE: int = 50
CONCURRENCY: int = 3
PROGRESS_INTERVAL_SEC: float = 30.0
CSV_SOURCE_TAG: str = "telegram_csv"
CATEGORIZER_MODEL: str = "gpt-5-mini"

# Upper bound for concurrent categorization calls, whatever the env says.
_MAX_CONCURRENCY: int = 8


def _env_int(name: str, default: int, *, minimum: int = 1) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= minimum else default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value >= 0 else default


@dataclass(frozen=True, slots=True)
class IngestSettings:
    """Tunables for a single upload."""

    max_upload_bytes: int = MAX_UPLOAD_BYTES
    batch_size: int = BATCH_SIZE
    concurrency: int = CONCURRENCY
    progress_interval_sec: float = PROGRESS_INTERVAL_SEC
    source_tag: str = CSV_SOURCE_TAG
    categorizer_model: str = CATEGORIZER_MODEL

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("batch_size must be a positive integer")
        if self.concurrency < 1:
            raise ValueError("concurrency must be a positive integer")
        if self.max_upload_bytes < 1:
            raise ValueError("max_upload_bytes must be a positive integer")

    @classmethod
    def from_env(cls) -> IngestSettings:
        concurrency = _env_int("STATEMENT_INGEST_CONCURRENCY", CONCURRENCY)
        return cls(
            max_upload_bytes=_env_int("STATEMENT_INGEST_MAX_UPLOAD_BYTES", MAX_UPLOAD_BYTES),
            batch_size=_env_int("STATEMENT_INGEST_BATCH_SIZE", BATCH_SIZE),
            concurrency=min(concurrency, _MAX_CONCURRENCY),
            progress_interval_sec=_env_float(
                "STATEMENT_INGEST_PROGRESS_INTERVAL_SEC", PROGRESS_INTERVAL_SEC
            ),
            source_tag=os.getenv("STATEMENT_INGEST_SOURCE_TAG") or CSV_SOURCE_TAG,
            categorizer_model=os.getenv("STATEMENT_INGEST_MODEL") or CATEGORIZER_MODEL,
        )


__all__ = ["IngestSettings"]
