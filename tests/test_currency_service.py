"""
TrackMyStartup - Currency Service Tests
"""

from types import SimpleNamespace

from app.config import settings
from app.services.currency_service import (
    format_currency,
    get_currency_for_country,
    get_currency_symbol,
    resolve_currency,
)


class TestResolveCurrency:
    """Startup setting, then profile, then country, then default."""

    def test_startup_currency_first(self):
        startup = SimpleNamespace(currency="eur", country="India")
        profile = SimpleNamespace(currency="GBP")

        assert resolve_currency(startup, profile) == "EUR"

    def test_profile_currency_second(self):
        startup = SimpleNamespace(currency=None, country="India")
        profile = SimpleNamespace(currency="gbp")

        assert resolve_currency(startup, profile) == "GBP"

    def test_country_currency_third(self):
        startup = SimpleNamespace(currency=None, country="India")
        assert resolve_currency(startup, None) == "INR"

    def test_default_when_nothing_known(self):
        startup = SimpleNamespace(currency=None, country="Atlantis")
        assert resolve_currency(startup) == settings.default_currency
        assert resolve_currency() == settings.default_currency

    def test_country_lookup_trims_whitespace(self):
        assert get_currency_for_country("  Singapore ") == "SGD"
        assert get_currency_for_country(None) is None


class TestFormatCurrency:

    def test_symbol_and_grouping(self):
        assert format_currency(1234.5, "USD") == "$1,234.50"

    def test_negative_amount(self):
        assert format_currency(-2000, "INR") == "-₹2,000.00"

    def test_unknown_currency_uses_code(self):
        assert get_currency_symbol("XYZ") == "XYZ"
        assert format_currency(10, "XYZ") == "XYZ10.00"

    def test_none_amount(self):
        assert format_currency(None, "EUR") == "€0.00"
