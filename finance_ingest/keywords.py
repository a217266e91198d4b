"""Static classification data: keyword tables and exchange asset codes.

Everything here is plain data so it can be unit-tested and extended without
touching control flow. Keywords are lowercase and matched as substrings of the
lowercased description; declaration order is evaluation order.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from .models import Category

TRANSFER_KEYWORDS: tuple[str, ...] = (
    "transfer",
    "xfer",
    "trnsfr",
    "zelle",
    "venmo",
    "paypal",
    "wire",
    "ach transfer",
    "between accounts",
    "internal",
    "savings",
    "checking",
    "brokerage",
    "mobile deposit",
    "online banking transfer",
)

INCOME_KEYWORDS: tuple[str, ...] = (
    "payroll",
    "direct dep",
    "salary",
    "wage",
    "employer",
    "ach credit",
    "tax refund",
    "irs treas",
    "interest earned",
)

CATEGORY_KEYWORDS: Mapping[Category, tuple[str, ...]] = MappingProxyType(
    {
        Category.HOUSING: ("rent", "mortgage", "hoa", "property tax", "lease"),
        Category.UTILITIES: (
            "electric",
            "gas bill",
            "water bill",
            "internet",
            "comcast",
            "xfinity",
            "verizon",
            "at&t",
            "t-mobile",
            "sprint",
            "pg&e",
            "power",
        ),
        Category.GROCERIES: (
            "trader joe",
            "whole foods",
            "safeway",
            "kroger",
            "costco",
            "aldi",
            "publix",
            "sprouts",
            "grocery",
            "wegmans",
        ),
        Category.DINING: (
            "restaurant",
            "mcdonald",
            "starbucks",
            "chipotle",
            "doordash",
            "uber eats",
            "grubhub",
            "pizza",
            "burger",
            "cafe",
            "coffee",
            "sushi",
            "taco",
            "panda express",
            "chick-fil-a",
            "panera",
            "sweetgreen",
        ),
        Category.TRANSPORTATION: (
            "gas station",
            "shell",
            "chevron",
            "bp ",
            "exxon",
            "uber trip",
            "lyft",
            "parking",
            "toll",
            "metro",
            "transit",
            "fuel",
        ),
        Category.AUTO: (
            "car wash",
            "jiffy lube",
            "autozone",
            "geico",
            "progressive",
            "state farm",
            "car payment",
            "dmv",
            "auto insurance",
        ),
        Category.SHOPPING: (
            "amazon",
            "target",
            "walmart",
            "best buy",
            "apple.com",
            "ebay",
            "etsy",
            "nordstrom",
            "macys",
            "nike",
            "home depot",
            "lowes",
            "ikea",
        ),
        Category.ENTERTAINMENT: (
            "netflix",
            "spotify",
            "hulu",
            "disney",
            "hbo",
            "movie",
            "theater",
            "concert",
            "ticketmaster",
            "steam",
            "playstation",
            "xbox",
            "youtube premium",
        ),
        Category.HEALTH: (
            "pharmacy",
            "cvs",
            "walgreens",
            "doctor",
            "hospital",
            "dentist",
            "medical",
            "copay",
            "urgent care",
        ),
        Category.SUBSCRIPTIONS: (
            "subscription",
            "membership",
            "adobe",
            "microsoft 365",
            "dropbox",
            "icloud",
            "openai",
            "github",
            "notion",
        ),
        Category.INSURANCE: ("insurance", "allstate", "liberty mutual", "usaa", "aflac"),
        Category.EDUCATION: ("tuition", "school", "university", "coursera", "udemy"),
        Category.PERSONAL_CARE: (
            "salon",
            "barber",
            "spa",
            "gym",
            "fitness",
            "planet fitness",
            "equinox",
        ),
        Category.FEES_AND_CHARGES: (
            "overdraft",
            "atm fee",
            "service charge",
            "late fee",
            "interest charge",
            "annual fee",
        ),
    }
)

# Exchange-specific asset codes mapped to common tickers.
ASSET_CODES: Mapping[str, str] = MappingProxyType(
    {
        "XXBT": "BTC",
        "XBT": "BTC",
        "XETH": "ETH",
        "XLTC": "LTC",
        "XXRP": "XRP",
        "XADA": "ADA",
        "XDOT": "DOT",
        "XXLM": "XLM",
        "ZUSD": "USD",
        "ZEUR": "EUR",
        "ZGBP": "GBP",
        "ZCAD": "CAD",
        "ZJPY": "JPY",
    }
)

FIAT_ASSETS: frozenset[str] = frozenset({"USD", "EUR", "GBP", "CAD", "JPY", "AUD"})


__all__ = [
    "ASSET_CODES",
    "CATEGORY_KEYWORDS",
    "FIAT_ASSETS",
    "INCOME_KEYWORDS",
    "TRANSFER_KEYWORDS",
]
