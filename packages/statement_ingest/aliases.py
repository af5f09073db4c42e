"""Static merchant alias table mapping name variants to canonical display names.

Keys are lower-case. The table is read-only; parsers receive it as a parameter
so tests can inject their own mapping.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

MERCHANT_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        # Streaming
        "spotify ab": "Spotify",
        "spotify technology": "Spotify",
        "spotify": "Spotify",
        "netflix": "Netflix",
        "hbo": "HBO Max",
        "hbo max": "HBO Max",
        "disney": "Disney+",
        "disney+": "Disney+",
        # Transport
        "freenow": "FreeNow",
        "free now": "FreeNow",
        "bolt": "Bolt",
        "uber": "Uber",
        "uber eats": "Uber Eats",
        "uber *eats": "Uber Eats",
        # Food delivery
        "glovo": "Glovo",
        "wolt": "Wolt",
        "pyszne": "Pyszne.pl",
        "pyszne.pl": "Pyszne.pl",
        # Fuel
        "orlen": "Orlen",
        "bp": "BP",
        "shell": "Shell",
        "circle k": "Circle K",
        # Groceries
        "biedronka": "Biedronka",
        "lidl": "Lidl",
        "zabka": "Żabka",
        "żabka": "Żabka",
        "auchan": "Auchan",
        "carrefour": "Carrefour",
        "kaufland": "Kaufland",
        # Fast food
        "mcdonalds": "McDonald's",
        "mcdonald's": "McDonald's",
        "kfc": "KFC",
        "burger king": "Burger King",
        "subway": "Subway",
        # Electronics
        "x-kom": "x-kom",
        "xkom": "x-kom",
        "media expert": "Media Expert",
        "mediaexpert": "Media Expert",
        "rtv euro agd": "RTV Euro AGD",
        "mediamarkt": "MediaMarkt",
        "media markt": "MediaMarkt",
        # Fashion
        "zalando": "Zalando",
        "hm": "H&M",
        "h&m": "H&M",
        "zara": "Zara",
        "reserved": "Reserved",
        # Online shopping
        "amazon": "Amazon",
        "allegro": "Allegro",
        "aliexpress": "AliExpress",
        # Pharmacies
        "rossmann": "Rossmann",
        "hebe": "Hebe",
        "super-pharm": "Super-Pharm",
        "superpharm": "Super-Pharm",
        # Home improvement
        "ikea": "IKEA",
        "castorama": "Castorama",
        "leroy merlin": "Leroy Merlin",
        "obi": "OBI",
    }
)


def resolve_alias(name: str, aliases: Mapping[str, str] = MERCHANT_ALIASES) -> str:
    """Return the canonical name for ``name`` or ``name`` itself when unknown."""

    key = " ".join(name.split()).lower()
    return aliases.get(key, name)


__all__ = ["MERCHANT_ALIASES", "resolve_alias"]
