from __future__ import annotations

import json
from decimal import Decimal
from types import SimpleNamespace

import pytest

import statement_ingest.openai_categorizer as oc
from statement_ingest import prompting
from statement_ingest.categories import ALL_CATEGORIES
from statement_ingest.models import BatchItem

from tests.helpers.openai_stub import OpenAIStub, StatusError, extract_batch

# ---- Helpers ----------------------------------------------------------------


def _items(n: int = 2) -> list[BatchItem]:
    return [BatchItem(idx=i, text=f"Shop {i} {i + 1}.50", date="2024-01-15") for i in range(n)]


@pytest.fixture
def no_sleep(monkeypatch: pytest.MonkeyPatch) -> list[int]:
    attempts: list[int] = []
    monkeypatch.setattr(oc, "_sleep_backoff", attempts.append)
    return attempts


# ---- Requests and parsing ----------------------------------------------------


def test_categorize_batch_round_trip() -> None:
    stub = OpenAIStub(decide=lambda item: {"category": "Restauracje", "confidence": 0.8})
    categorizer = oc.OpenAIBatchCategorizer(model="gpt-test", client_factory=lambda: stub)

    out = categorizer.categorize_batch(_items())

    assert [(r.idx, r.shop, r.category, r.amount) for r in out] == [
        (0, "Shop 0", "Restauracje", Decimal("1.50")),
        (1, "Shop 1", "Restauracje", Decimal("2.50")),
    ]
    call = stub.calls[0]
    assert call["model"] == "gpt-test"
    assert call["text"]["format"]["name"] == "categorized_transactions"
    assert call["text"]["format"]["strict"] is True
    assert [i["idx"] for i in extract_batch(call["input"])] == [0, 1]


def test_module_level_client_is_used_by_default(monkeypatch: pytest.MonkeyPatch) -> None:
    stub = OpenAIStub()
    monkeypatch.setattr(oc, "OpenAI", lambda: stub)

    categorizer = oc.OpenAIBatchCategorizer()
    categorizer.categorize_batch(_items(1))
    categorizer.categorize_batch(_items(1))

    assert len(stub.calls) == 2


def test_empty_batch_makes_no_call() -> None:
    def factory():
        raise AssertionError("client must not be created")

    assert oc.OpenAIBatchCategorizer(client_factory=factory).categorize_batch([]) == []


def test_falls_back_to_output_content_text() -> None:
    body = json.dumps({"results": [{"idx": 0, "category": "Dom", "confidence": 1}]})
    resp = SimpleNamespace(
        output_text=None,
        output=[SimpleNamespace(content=[SimpleNamespace(text=SimpleNamespace(value=body))])],
    )

    assert oc._extract_response_json_mapping(resp) == json.loads(body)


# ---- Retries -----------------------------------------------------------------


def test_retries_rate_limits_then_succeeds(no_sleep: list[int]) -> None:
    stub = OpenAIStub(script=[StatusError(429), StatusError(503)])
    categorizer = oc.OpenAIBatchCategorizer(client_factory=lambda: stub)

    out = categorizer.categorize_batch(_items(1))

    assert len(out) == 1
    assert len(stub.calls) == 3
    assert no_sleep == [1, 2]


def test_gives_up_after_max_attempts(no_sleep: list[int]) -> None:
    stub = OpenAIStub(script=[StatusError(500)] * 3)
    categorizer = oc.OpenAIBatchCategorizer(client_factory=lambda: stub)

    with pytest.raises(StatusError):
        categorizer.categorize_batch(_items(1))

    assert len(stub.calls) == 3


@pytest.mark.parametrize("error", [StatusError(400), RuntimeError("network down")])
def test_non_retryable_errors_fail_fast(no_sleep: list[int], error: Exception) -> None:
    stub = OpenAIStub(script=[error])

    with pytest.raises(type(error)):
        oc.OpenAIBatchCategorizer(client_factory=lambda: stub).categorize_batch(_items(1))

    assert len(stub.calls) == 1
    assert no_sleep == []


@pytest.mark.parametrize(
    "raw",
    ["not json", json.dumps([1, 2]), json.dumps({"results": "x"}), ""],
)
def test_malformed_output_is_terminal(no_sleep: list[int], raw: str) -> None:
    stub = OpenAIStub(script=[raw])

    with pytest.raises(ValueError):
        oc.OpenAIBatchCategorizer(client_factory=lambda: stub).categorize_batch(_items(1))

    assert len(stub.calls) == 1


# ---- Prompting ---------------------------------------------------------------


def test_serialized_batch_has_fixed_field_order() -> None:
    payload = prompting.serialize_batch_to_json([BatchItem(idx=3, text="Żabka 15.50", date="2024-01-15")])

    assert payload == '[{"idx": 3, "text": "Żabka 15.50", "date": "2024-01-15", "source": "csv"}]'


def test_response_format_enumerates_categories() -> None:
    fmt = prompting.build_response_format()
    item_schema = fmt["schema"]["properties"]["results"]["items"]

    assert item_schema["properties"]["category"]["enum"] == list(ALL_CATEGORIES)
    assert set(item_schema["required"]) == {"idx", "shop", "category", "amount", "confidence"}


def test_response_format_requires_categories() -> None:
    with pytest.raises(ValueError):
        prompting.build_response_format(["  ", ""])


def test_user_content_lists_categories_and_batch() -> None:
    content = prompting.build_user_content('[{"idx": 0}]', categories=["Dom", "Inne"])

    assert "  - Dom\n  - Inne" in content
    assert extract_batch(content) == [{"idx": 0}]


def test_user_content_carries_merchant_hints() -> None:
    content = prompting.build_user_content("[]")

    assert "Merchant hints:\n" in content
    assert "  Inwestycje: xtb, xtb.com\n" in content
    assert "  Zakupy spozywcze: biedronka, lidl, zabka" in content
    assert content.index("Merchant hints:") < content.index("BEGIN_TRANSACTIONS")


def test_merchant_hints_follow_the_offered_categories() -> None:
    content = prompting.build_user_content("[]", categories=["Paliwo", "Inne"])

    assert "  Paliwo: orlen, bp, shell" in content
    assert "Zakupy spozywcze:" not in content

    assert "Merchant hints:" not in prompting.build_user_content("[]", categories=["Inne"])
