"""Prompt construction and batch serialization for transaction categorization.

This module builds:
- A deterministic JSON serialization of batch items with a fixed field order.
- The system and user prompts for the categorization task.
- The strict ``response_format`` (JSON Schema) object for the OpenAI
  Responses API, with the category enum taken from the closed category set.
"""

from __future__ import annotations

import json
from collections.abc import Sequence

from openai.types.responses.response_format_text_json_schema_config_param import (
    ResponseFormatTextJSONSchemaConfigParam,
)

from .categories import ALL_CATEGORIES, FALLBACK_CATEGORY, MERCHANT_HINTS
from .models import BatchItem

BATCH_FIELD_ORDER: tuple[str, ...] = ("idx", "text", "date", "source")


def serialize_batch_to_json(items: Sequence[BatchItem]) -> str:
    """Serialize batch items to a JSON array with a fixed field order."""

    arr: list[dict[str, object]] = []
    for item in items:
        payload = item.to_payload()
        arr.append({key: payload.get(key) for key in BATCH_FIELD_ORDER})
    return json.dumps(arr, ensure_ascii=False)


def build_system_instructions() -> str:
    return (
        "You categorize Polish bank card transactions. Each input has a text made of the "
        "merchant name and the amount in PLN. Choose exactly one category per transaction "
        "from the provided list and never invent categories. Return a short, clean shop name. "
        "Output JSON only that conforms to the specified schema."
    )


def _merchant_hint_lines(categories: Sequence[str]) -> str:
    offered = set(categories)
    return "\n".join(
        f"  {category.value}: {', '.join(names)}"
        for category, names in MERCHANT_HINTS.items()
        if category.value in offered
    )


def build_user_content(batch_json: str, categories: Sequence[str] = ALL_CATEGORIES) -> str:
    """Build the user message: categories, merchant hints, rules and the delimited batch.

    Hints are only listed for categories that are offered.
    """

    category_lines = "\n".join(f"  - {c}" for c in categories)
    hint_lines = _merchant_hint_lines(categories)
    hints = f"Merchant hints:\n{hint_lines}\n\n" if hint_lines else ""
    return (
        "Categories:\n"
        f"{category_lines}\n\n"
        f"{hints}"
        "Rules:\n"
        "- Echo each input `idx` unchanged; return one result per input.\n"
        "- `shop`: the merchant's common name, without legal suffixes or card numbers.\n"
        "- `amount`: the amount from the text as a positive number.\n"
        "- `confidence`: between 0 and 1.\n"
        "- `alab` is a medical lab (Zdrowie), not a shop.\n"
        "- `bolt food` or `food.bolt` is Delivery; other `bolt` payments are Transport.\n"
        "- XTB and `xtb.com` are Inwestycje.\n"
        "- Revolut top-ups and payments to private persons are Przelewy.\n"
        f"- When nothing fits, use `{FALLBACK_CATEGORY.value}`.\n\n"
        "BEGIN_TRANSACTIONS\n"
        f"{batch_json}\n"
        "END_TRANSACTIONS\n"
    )


def build_response_format(
    categories: Sequence[str] = ALL_CATEGORIES,
) -> ResponseFormatTextJSONSchemaConfigParam:
    """Return the strict JSON Schema response_format for a categorized batch.

    Schema shape::

        {"results": [{"idx": int, "shop": str, "category": enum,
                      "amount": number, "confidence": number}]}
    """

    codes = [c for c in dict.fromkeys(s.strip() for s in categories) if c]
    if not codes:
        raise ValueError("categories must contain at least one non-blank value")

    result: ResponseFormatTextJSONSchemaConfigParam = {
        "type": "json_schema",
        "name": "categorized_transactions",
        "schema": {
            "type": "object",
            "properties": {
                "results": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "idx": {"type": "integer"},
                            "shop": {"type": "string"},
                            "category": {"type": "string", "enum": codes},
                            "amount": {"type": "number"},
                            "confidence": {"type": "number", "minimum": 0, "maximum": 1},
                        },
                        "required": ["idx", "shop", "category", "amount", "confidence"],
                        "additionalProperties": False,
                    },
                }
            },
            "required": ["results"],
            "additionalProperties": False,
        },
        "strict": True,
    }
    return result


__all__ = [
    "build_response_format",
    "build_system_instructions",
    "build_user_content",
    "serialize_batch_to_json",
]
