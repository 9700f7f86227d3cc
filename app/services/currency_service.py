"""
TrackMyStartup - Currency Service

Display currency for a startup: its own setting, then the founder's profile
setting, then the currency of its country, then the configured default.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional

from app.config import settings


COUNTRY_CURRENCIES = {
    "United States": "USD",
    "India": "INR",
    "Bhutan": "BTN",
    "Armenia": "AMD",
    "Belarus": "BYN",
    "Georgia": "GEL",
    "Israel": "ILS",
    "Jordan": "JOD",
    "Nigeria": "NGN",
    "Philippines": "PHP",
    "Russia": "RUB",
    "Singapore": "SGD",
    "Sri Lanka": "LKR",
    "United Kingdom": "GBP",
    "Austria": "EUR",
    "Germany": "EUR",
    "Hong Kong": "HKD",
    "Serbia": "RSD",
    "Brazil": "BRL",
    "Greece": "EUR",
    "Vietnam": "VND",
    "Myanmar": "MMK",
    "Azerbaijan": "AZN",
    "Finland": "EUR",
    "Netherlands": "EUR",
    "Monaco": "EUR",
    "Pakistan": "PKR",
}

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "INR": "₹",
    "CAD": "C$",
    "AUD": "A$",
    "JPY": "¥",
    "SGD": "S$",
    "BTN": "Nu.",
    "AMD": "֏",
    "BYN": "Br",
    "GEL": "₾",
    "ILS": "₪",
    "JOD": "د.ا",
    "NGN": "₦",
    "PHP": "₱",
    "RUB": "₽",
    "LKR": "₨",
    "BRL": "R$",
    "VND": "₫",
    "MMK": "K",
    "AZN": "₼",
    "RSD": "дин.",
    "HKD": "HK$",
    "PKR": "₨",
}


def get_currency_for_country(country: Optional[str]) -> Optional[str]:
    """Currency of a country, or None when the country is not mapped."""
    if not country:
        return None
    return COUNTRY_CURRENCIES.get(country.strip())


def resolve_currency(startup: Any = None, profile: Any = None) -> str:
    """
    Pick the display currency.

    Args:
        startup: object with optional `currency` and `country`
        profile: the founder's user record, with optional `currency`
    """
    for candidate in (
        getattr(startup, "currency", None),
        getattr(profile, "currency", None),
        get_currency_for_country(getattr(startup, "country", None)),
    ):
        if candidate:
            return candidate.upper()
    return settings.default_currency


def get_currency_symbol(currency: str) -> str:
    return CURRENCY_SYMBOLS.get(currency, currency)


def format_currency(amount: Any, currency: str = "USD") -> str:
    """Render an amount as e.g. "$1,234.50" or "-₹2,000.00"."""
    value = Decimal(str(amount or 0)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    return f"{sign}{get_currency_symbol(currency)}{abs(value):,.2f}"
