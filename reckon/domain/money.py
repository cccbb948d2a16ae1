"""Exact monetary values in integer minor units.

Amounts never pass through binary floating point: arithmetic is on integer
minor units (cents, pence) and parsing goes through Decimal.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from reckon.domain.errors import CurrencyMismatch
from reckon.domain.models import CurrencyCode

_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")

# Currencies without a minor unit; everything else uses two decimals
_ZERO_DECIMAL_CURRENCIES = frozenset({"JPY", "KRW", "VND", "CLP", "ISK"})

_CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "GBP": "£",
    "EUR": "€",
    "JPY": "¥",
}

# locale -> (group separator, decimal separator, symbol goes before amount)
_LOCALE_FORMATS: dict[str, tuple[str, str, bool]] = {
    "en_US": (",", ".", True),
    "en_GB": (",", ".", True),
    "de_DE": (".", ",", False),
    "fr_FR": (" ", ",", False),
}

DEFAULT_LOCALE = "en_US"


@dataclass(frozen=True)
class Money:
    """Immutable amount of money in minor units of one currency."""

    minor_units: int
    currency: CurrencyCode

    def __post_init__(self) -> None:
        if isinstance(self.minor_units, bool) or not isinstance(self.minor_units, int):
            raise TypeError(f"minor_units must be an int, got {type(self.minor_units).__name__}")
        if not isinstance(self.currency, str) or not _CURRENCY_RE.match(self.currency):
            raise ValueError(f"Invalid currency code: {self.currency!r}")


def currency_exponent(currency: str) -> int:
    """Number of decimal places used by a currency."""
    return 0 if currency in _ZERO_DECIMAL_CURRENCIES else 2


def create(minor_units: int, currency: str) -> Money:
    """Create a Money value.

    Args:
        minor_units: Amount in minor units (e.g., cents).
        currency: ISO-4217 currency code, any case.

    Returns:
        Money value.
    """
    return Money(minor_units, CurrencyCode(currency.upper()))


def zero(currency: str) -> Money:
    """Zero amount in the given currency."""
    return create(0, currency)


def add(a: Money, b: Money) -> Money:
    """Add two amounts of the same currency.

    Raises:
        CurrencyMismatch: If the currencies differ.
    """
    if a.currency != b.currency:
        raise CurrencyMismatch(f"Cannot add {a.currency} to {b.currency}", field="currency")
    return Money(a.minor_units + b.minor_units, a.currency)


def multiply(money: Money, quantity: int) -> Money:
    """Multiply an amount by a non-negative integer quantity."""
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise TypeError(f"quantity must be an int, got {type(quantity).__name__}")
    if quantity < 0:
        raise ValueError(f"quantity must be non-negative, got {quantity}")
    return Money(money.minor_units * quantity, money.currency)


def sum_money(amounts: Iterable[Money], currency: str) -> Money:
    """Sum amounts, starting from zero in ``currency``.

    Raises:
        CurrencyMismatch: If any amount is in a different currency.
    """
    total = zero(currency)
    for amount in amounts:
        total = add(total, amount)
    return total


def parse_amount(text: str, currency: str) -> Money:
    """Parse a decimal string (e.g., "25.99" or "$1,250.00") into Money.

    Args:
        text: Amount in major units.
        currency: Currency code for the result.

    Returns:
        Money value.

    Raises:
        ValueError: If the text is not a number or has more precision than the currency allows.
    """
    cleaned = text.strip()
    for symbol in _CURRENCY_SYMBOLS.values():
        cleaned = cleaned.replace(symbol, "")
    cleaned = cleaned.replace(",", "").strip()

    try:
        value = Decimal(cleaned)
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {text!r}") from e

    if not value.is_finite():
        raise ValueError(f"Invalid amount: {text!r}")

    scaled = value.scaleb(currency_exponent(currency.upper()))
    if scaled != scaled.to_integral_value():
        raise ValueError(f"Amount {text!r} has more precision than {currency.upper()} allows")

    return create(int(scaled), currency)


def to_decimal(money: Money) -> Decimal:
    """Amount in major units as a Decimal (for export only)."""
    return Decimal(money.minor_units).scaleb(-currency_exponent(money.currency))


def to_display_string(money: Money, locale: str = DEFAULT_LOCALE) -> str:
    """Format money for display.

    Presentation only; never parse this back for computation.

    Args:
        money: Amount to format.
        locale: Locale name such as "en_US" or "de_DE". Unknown locales use en_US.

    Returns:
        Formatted string (e.g., "$1,234.56" or "1.234,56 €").
    """
    group_sep, decimal_sep, symbol_first = _LOCALE_FORMATS.get(locale, _LOCALE_FORMATS[DEFAULT_LOCALE])
    exponent = currency_exponent(money.currency)

    whole, fraction = divmod(abs(money.minor_units), 10**exponent)
    number = f"{whole:,}".replace(",", group_sep)
    if exponent:
        number = f"{number}{decimal_sep}{fraction:0{exponent}d}"

    symbol = _CURRENCY_SYMBOLS.get(money.currency)
    sign = "-" if money.minor_units < 0 else ""

    if symbol_first:
        if symbol:
            return f"{sign}{symbol}{number}"
        return f"{sign}{money.currency} {number}"
    return f"{sign}{number} {symbol or money.currency}"
