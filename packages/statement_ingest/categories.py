"""Expense categories recognized by the ledger.

The category names are the product's Polish display names and are stored
verbatim in ``expenses.category``. ``Inne`` is the catch-all used whenever a
transaction cannot be categorized.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from types import MappingProxyType


class ExpenseCategory(StrEnum):
    GROCERIES = "Zakupy spozywcze"
    RESTAURANTS = "Restauracje"
    DELIVERY = "Delivery"
    CAFES = "Kawiarnie"
    TRANSPORT = "Transport"
    FUEL = "Paliwo"
    CAR = "Auto"
    HOME = "Dom"
    HEALTH = "Zdrowie"
    BEAUTY = "Uroda"
    ENTERTAINMENT = "Rozrywka"
    SPORT = "Sport"
    HOBBY = "Hobby"
    CLOTHING = "Ubrania"
    ELECTRONICS = "Elektronika"
    SUBSCRIPTIONS = "Subskrypcje"
    EDUCATION = "Edukacja"
    PETS = "Zwierzeta"
    KIDS = "Dzieci"
    GIFTS = "Prezenty"
    INVESTMENTS = "Inwestycje"
    TRANSFERS = "Przelewy"
    HOTELS = "Hotele"
    ADMIN_FEES = "Oplaty administracyjne"
    OTHER = "Inne"


FALLBACK_CATEGORY: ExpenseCategory = ExpenseCategory.OTHER

ALL_CATEGORIES: tuple[str, ...] = tuple(c.value for c in ExpenseCategory)

# Well-known Polish merchants per category, rendered into the categorization prompt.
MERCHANT_HINTS: Mapping[ExpenseCategory, tuple[str, ...]] = MappingProxyType(
    {
        ExpenseCategory.GROCERIES: (
            "biedronka", "lidl", "zabka", "carrefour", "auchan", "kaufland", "netto",
            "dino", "stokrotka", "lewiatan", "aldi", "makro", "selgros",
        ),
        ExpenseCategory.RESTAURANTS: (
            "mcdonalds", "kfc", "burger king", "pizza hut", "dominos", "subway",
            "telepizza", "north fish",
        ),
        ExpenseCategory.DELIVERY: (
            "pyszne", "glovo", "wolt", "uber eats", "bolt food", "food.bolt",
        ),
        ExpenseCategory.CAFES: ("starbucks", "costa", "coffeeheaven", "green caffe"),
        ExpenseCategory.TRANSPORT: (
            "uber", "bolt", "freenow", "itaxi", "mpk", "ztm", "koleje", "pkp", "flixbus",
        ),
        ExpenseCategory.FUEL: (
            "orlen", "bp", "shell", "circle k", "lotos", "amic", "moya", "stacja paliw",
        ),
        ExpenseCategory.HOME: (
            "ikea", "leroy merlin", "castorama", "obi", "bricoman", "jysk", "pepco",
            "action", "tedi",
        ),
        ExpenseCategory.HEALTH: (
            "apteka", "gemini", "doz", "super-pharm", "alab", "diagnostyka", "luxmed",
            "medicover", "enel-med",
        ),
        ExpenseCategory.BEAUTY: (
            "rossmann", "hebe", "douglas", "sephora", "inglot", "fryzjer", "barber",
        ),
        ExpenseCategory.ENTERTAINMENT: ("cinema city", "multikino", "helios", "empik"),
        ExpenseCategory.SUBSCRIPTIONS: ("spotify", "netflix", "hbo", "disney", "amazon prime"),
        ExpenseCategory.SPORT: (
            "decathlon", "intersport", "go sport", "silownia", "fitness", "gym",
        ),
        ExpenseCategory.ELECTRONICS: (
            "media expert", "media markt", "rtv euro agd", "komputronik", "x-kom", "morele",
            "apple",
        ),
        ExpenseCategory.CLOTHING: (
            "zara", "h&m", "reserved", "cropp", "house", "sinsay", "mohito", "ccc", "deichmann",
        ),
        ExpenseCategory.INVESTMENTS: ("xtb", "xtb.com"),
        ExpenseCategory.TRANSFERS: ("revolut", "wise", "paypal"),
        ExpenseCategory.PETS: ("maxi zoo", "kakadu", "zooplus", "weterynarz", "vet"),
    }
)


def coerce_category(raw: str | None) -> ExpenseCategory:
    """Return the matching category, or the catch-all for unknown names.

    Matching ignores case and surrounding whitespace so that collaborator
    output such as ``"inwestycje "`` still lands on a real category.
    """

    if raw is None:
        return FALLBACK_CATEGORY
    key = raw.strip().casefold()
    for category in ExpenseCategory:
        if category.value.casefold() == key:
            return category
    return FALLBACK_CATEGORY


__all__ = [
    "ALL_CATEGORIES",
    "FALLBACK_CATEGORY",
    "MERCHANT_HINTS",
    "ExpenseCategory",
    "coerce_category",
]
