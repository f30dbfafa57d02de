"""Exact fixed-point helpers for base-unit balances.

Balances arrive from the ledger as integers denominated in base units (one
display unit is ``BASE_UNITS`` of them). The helpers here never route the
integer part through floating point: grouping is delegated to Babel's CLDR
data on the exact integer, and the fractional digits are derived with integer
arithmetic and capped at ``MAX_FRACTION_DIGITS``.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, localcontext
from typing import Union

from babel import Locale, UnknownLocaleError
from babel.core import default_locale
from babel.numbers import format_decimal, get_decimal_symbol

# Nano-units per display unit.
BASE_UNITS: int = 1_000_000_000

MAX_FRACTION_DIGITS: int = 10
FALLBACK_LOCALE = "en_US"

DisplayAmount = Union[int, float, str, Decimal]


class AmountError(ValueError):
    """Raised when an amount or locale cannot be interpreted."""


def resolve_locale(tag: str | None) -> Locale:
    """Return the Babel locale for a BCP 47 or POSIX style *tag*.

    ``None`` selects the process default locale, falling back to
    ``FALLBACK_LOCALE`` when the environment does not define one.
    """

    if tag is None:
        tag = default_locale() or FALLBACK_LOCALE
    normalized = str(tag).strip().replace("-", "_")
    if not normalized:
        raise AmountError("Locale tag must not be empty")
    try:
        return Locale.parse(normalized)
    except (UnknownLocaleError, ValueError) as exc:
        raise AmountError(f"Unknown locale: {tag}") from exc


def _truncated_divmod(amount: int, base: int) -> tuple[int, int]:
    # Python's divmod floors; balances are split toward zero instead.
    quotient = abs(amount) // base
    if amount < 0:
        quotient = -quotient
    return quotient, amount - quotient * base


def _fraction_digits(fractional_units: int, base: int) -> str:
    """Return up to ``MAX_FRACTION_DIGITS`` digits of ``fractional_units / base``.

    Rounds half-up and strips trailing zeros. An empty string means the
    fraction is zero at this precision, or rounding carried into the integer
    part, which is never rewritten.
    """

    scale = 10 ** MAX_FRACTION_DIGITS
    digits, rest = divmod(fractional_units * scale, base)
    if rest * 2 >= base:
        digits += 1
    if digits == 0 or digits >= scale:
        return ""
    return str(digits).rjust(MAX_FRACTION_DIGITS, "0").rstrip("0")


def format_amount(amount: int, base: int = BASE_UNITS, locale: str | None = None) -> str:
    """Render a base-unit *amount* as locale-formatted display units.

    >>> format_amount(0x4563918243faa410, 10**9, "en")
    '4,999,999,999.983658'
    >>> format_amount(0, 10**9, "ru")
    '0'
    """

    if base <= 0:
        raise ValueError(f"Denomination base must be positive, got {base}")

    babel_locale = resolve_locale(locale)
    integer_part, remainder = _truncated_divmod(int(amount), base)
    fractional_units = (remainder + base) % base

    # Babel quantizes through the active decimal context; widen it so very
    # large integers survive exactly.
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(str(abs(integer_part))) + MAX_FRACTION_DIGITS)
        integer_text = format_decimal(integer_part, locale=babel_locale)

    digits = _fraction_digits(fractional_units, base)
    if not digits:
        return integer_text
    return f"{integer_text}{get_decimal_symbol(babel_locale)}{digits}"


def parse_amount(text: str | int) -> int:
    """Parse integer amount text such as ``"1_000_000"`` or ``"0x4563918243faa410"``."""

    if isinstance(text, bool):
        raise AmountError(f"Invalid amount: {text!r}")
    if isinstance(text, int):
        return text
    cleaned = str(text).strip()
    if not cleaned:
        raise AmountError("Amount must not be empty")
    try:
        return int(cleaned, 0)
    except ValueError:
        pass
    # int(..., 0) refuses leading zeros in decimal literals.
    try:
        return int(cleaned, 10)
    except ValueError as exc:
        raise AmountError(f"Invalid amount: {text!r}") from exc


def to_base_units(display: DisplayAmount, base: int = BASE_UNITS) -> int:
    """Convert a display amount (``0.03``) to base units, truncating sub-units."""

    if base <= 0:
        raise ValueError(f"Denomination base must be positive, got {base}")
    if isinstance(display, bool):
        raise AmountError(f"Invalid display amount: {display!r}")
    try:
        value = Decimal(str(display).strip().replace("_", ""))
    except InvalidOperation as exc:
        raise AmountError(f"Invalid display amount: {display!r}") from exc
    if not value.is_finite():
        raise AmountError(f"Invalid display amount: {display!r}")
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(value.as_tuple().digits) + len(str(base)) + 2)
        return int(value * base)
