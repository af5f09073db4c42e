from __future__ import annotations

import pytest

from statement_ingest.config import (
    BATCH_SIZE,
    CONCURRENCY,
    CSV_SOURCE_TAG,
    MAX_UPLOAD_BYTES,
    IngestSettings,
)

_ENV_VARS = (
    "STATEMENT_INGEST_MAX_UPLOAD_BYTES",
    "STATEMENT_INGEST_BATCH_SIZE",
    "STATEMENT_INGEST_CONCURRENCY",
    "STATEMENT_INGEST_PROGRESS_INTERVAL_SEC",
    "STATEMENT_INGEST_SOURCE_TAG",
    "STATEMENT_INGEST_MODEL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    settings = IngestSettings.from_env()

    assert settings == IngestSettings()
    assert settings.max_upload_bytes == MAX_UPLOAD_BYTES == 5 * 1024 * 1024
    assert settings.batch_size == BATCH_SIZE == 50
    assert settings.concurrency == CONCURRENCY == 3
    assert settings.progress_interval_sec == 30.0
    assert settings.source_tag == CSV_SOURCE_TAG


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STATEMENT_INGEST_BATCH_SIZE", "20")
    monkeypatch.setenv("STATEMENT_INGEST_CONCURRENCY", "5")
    monkeypatch.setenv("STATEMENT_INGEST_PROGRESS_INTERVAL_SEC", "2.5")
    monkeypatch.setenv("STATEMENT_INGEST_SOURCE_TAG", "cli_csv")
    monkeypatch.setenv("STATEMENT_INGEST_MODEL", "gpt-test")

    settings = IngestSettings.from_env()

    assert settings.batch_size == 20
    assert settings.concurrency == 5
    assert settings.progress_interval_sec == 2.5
    assert settings.source_tag == "cli_csv"
    assert settings.categorizer_model == "gpt-test"


@pytest.mark.parametrize("raw", ["abc", "0", "-3", ""])
def test_invalid_values_fall_back_to_defaults(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("STATEMENT_INGEST_BATCH_SIZE", raw)
    monkeypatch.setenv("STATEMENT_INGEST_CONCURRENCY", raw)

    settings = IngestSettings.from_env()

    assert settings.batch_size == BATCH_SIZE
    assert settings.concurrency == CONCURRENCY


def test_concurrency_is_capped(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STATEMENT_INGEST_CONCURRENCY", "64")

    assert IngestSettings.from_env().concurrency == 8


def test_direct_construction_is_validated() -> None:
    with pytest.raises(ValueError):
        IngestSettings(batch_size=0)
    with pytest.raises(ValueError):
        IngestSettings(concurrency=0)
    with pytest.raises(ValueError):
        IngestSettings(max_upload_bytes=0)
