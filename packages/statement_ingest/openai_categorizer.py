"""Batch categorization collaborator backed by the OpenAI Responses API.

Importing this module has no side effects; the client is created on the first
batch and shared afterwards. Rate limits, server errors and transport
failures are retried with jittered exponential backoff. Output that does not
match the requested schema is terminal and raises ``ValueError``; the
orchestrator then falls back for that batch only.
"""

from __future__ import annotations

import json
import random
import threading
import time
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from openai import APIConnectionError, OpenAI
from openai.types.responses import ResponseTextConfigParam

from . import prompting
from .config import CATEGORIZER_MODEL
from .logging_setup import get_logger
from .models import BatchItem, CategorizedItem

MAX_ATTEMPTS = 3
BACKOFF_BASE_SEC = 0.5
BACKOFF_CAP_SEC = 4.0

_logger = get_logger("statement_ingest.openai_categorizer")


def _response_text(resp: Any) -> str | None:
    text = getattr(resp, "output_text", None)
    if text:
        return text
    # Older SDKs only expose output[0].content[0].text (a str or an object with .value).
    for message in getattr(resp, "output", None) or ():
        for part in getattr(message, "content", None) or ():
            value = getattr(part, "text", None)
            value = getattr(value, "value", value)
            if isinstance(value, str) and value:
                return value
    return None


def _extract_response_json_mapping(resp: Any) -> Mapping[str, Any]:
    text = _response_text(resp)
    if not isinstance(text, str):
        raise ValueError("Responses API result carries no text output")
    try:
        decoded = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError("categorizer output is not valid JSON") from e
    if not isinstance(decoded, Mapping):
        raise ValueError(f"categorizer output must be a JSON object, got {type(decoded).__name__}")
    return decoded


def parse_batch_results(body: Mapping[str, Any]) -> list[CategorizedItem]:
    """Validate the ``results`` array of a decoded response."""

    results = body.get("results")
    if not isinstance(results, list):
        raise ValueError("categorizer output has no 'results' list")
    return [CategorizedItem.model_validate(item) for item in results]


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, APIConnectionError):
        return True
    status = getattr(exc, "status_code", None)
    return isinstance(status, int) and (status in (408, 429) or status >= 500)


def _sleep_backoff(attempt_no: int) -> None:
    delay = min(BACKOFF_CAP_SEC, BACKOFF_BASE_SEC * 4 ** (attempt_no - 1))
    time.sleep(delay * random.uniform(0.8, 1.2))


class OpenAIBatchCategorizer:
    """Categorize batches against the closed category set.

    ``client_factory`` defaults to ``openai.OpenAI``, which reads
    ``OPENAI_API_KEY`` from the environment.
    """

    def __init__(
        self,
        *,
        model: str = CATEGORIZER_MODEL,
        client_factory: Callable[[], OpenAI] | None = None,
    ) -> None:
        self.model = model
        self._client_factory = client_factory
        self._client: OpenAI | None = None
        self._client_lock = threading.Lock()
        self._instructions = prompting.build_system_instructions()
        self._text_cfg = ResponseTextConfigParam(format=prompting.build_response_format())

    @property
    def client(self) -> OpenAI:
        with self._client_lock:
            if self._client is None:
                self._client = (self._client_factory or OpenAI)()
            return self._client

    def _request(self, user_content: str) -> list[CategorizedItem]:
        resp = self.client.responses.create(
            model=self.model,
            instructions=self._instructions,
            input=user_content,
            text=self._text_cfg,
        )
        return parse_batch_results(_extract_response_json_mapping(resp))

    def categorize_batch(self, items: Sequence[BatchItem]) -> list[CategorizedItem]:
        if not items:
            return []
        user_content = prompting.build_user_content(prompting.serialize_batch_to_json(items))

        for attempt in range(1, MAX_ATTEMPTS + 1):
            started = time.perf_counter()
            try:
                out = self._request(user_content)
            except Exception as e:
                elapsed_ms = (time.perf_counter() - started) * 1000.0
                final = attempt == MAX_ATTEMPTS or not _is_retryable(e)
                (_logger.error if final else _logger.warning)(
                    "openai_categorizer:%s items=%d attempt=%d latency_ms=%.2f error=%s",
                    "batch_failed" if final else "batch_retry",
                    len(items),
                    attempt,
                    elapsed_ms,
                    type(e).__name__,
                )
                if final:
                    raise
                _sleep_backoff(attempt)
                continue
            _logger.info(
                "openai_categorizer:batch_done items=%d results=%d attempt=%d latency_ms=%.2f",
                len(items),
                len(out),
                attempt,
                (time.perf_counter() - started) * 1000.0,
            )
            return out
        raise AssertionError("unreachable")  # pragma: no cover


__all__ = ["OpenAIBatchCategorizer", "parse_batch_results"]
