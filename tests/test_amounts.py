from __future__ import annotations

from decimal import Decimal

import pytest

from deploykit.amounts import (
    BASE_UNITS,
    AmountError,
    format_amount,
    parse_amount,
    resolve_locale,
    to_base_units,
)


def test_regression_balance_in_english() -> None:
    assert format_amount(0x4563918243FAA410, 10**9, "en") == "4,999,999,999.983658"


@pytest.mark.parametrize("locale", ["en", "EN", "ru", "de_DE", "en-US", None])
def test_zero_has_no_fraction(locale: str | None) -> None:
    assert format_amount(0, BASE_UNITS, locale) == "0"


def test_locale_decimal_and_group_symbols() -> None:
    assert format_amount(1_234_567_500_000_000, BASE_UNITS, "de") == "1.234.567,5"
    assert format_amount(1_500_000_000, BASE_UNITS, "ru") == "1,5"


def test_whole_amounts_render_without_fraction() -> None:
    assert format_amount(30 * BASE_UNITS, BASE_UNITS, "en") == "30"


def test_integer_part_is_exact_for_huge_values() -> None:
    amount = 10**40 + 500_000_000
    assert format_amount(amount, BASE_UNITS, "en") == f"{10**31:,}.5"


def test_integer_part_is_truncated_quotient() -> None:
    samples = [1, 999_999_999, 10**9, 12_345_678_901_234, 0x4563918243FAA410, 7 * 10**25 + 3]
    for amount in samples:
        text = format_amount(amount, BASE_UNITS, "en")
        integer_text = text.split(".")[0].replace(",", "")
        assert int(integer_text) == amount // BASE_UNITS


def test_fraction_is_capped_and_rounded_half_up() -> None:
    base = 10**12
    assert format_amount(123_456_789_012_345, base, "en") == "123.4567890123"
    assert format_amount(123_456_789_012_350, base, "en") == "123.4567890124"


def test_sub_cap_fraction_rounds_to_nothing() -> None:
    assert format_amount(1, 10**12, "en") == "0"


def test_rounding_carry_never_changes_integer_part() -> None:
    assert format_amount(10**12 - 1, 10**12, "en") == "0"


def test_negative_amounts_truncate_toward_zero() -> None:
    assert format_amount(-1_500_000_000, BASE_UNITS, "en") == "-1.5"
    # The remainder is normalised into [0, base) before rendering.
    assert format_amount(-300_000_000, BASE_UNITS, "en") == "0.7"


def test_non_positive_base_fails_fast() -> None:
    with pytest.raises(ValueError):
        format_amount(1, 0, "en")
    with pytest.raises(ValueError):
        format_amount(1, -10, "en")


def test_unknown_locale_is_rejected() -> None:
    with pytest.raises(AmountError):
        resolve_locale("qq")


@pytest.mark.parametrize(
    "text, expected",
    [
        ("1000", 1000),
        ("1_000_000_000", 1_000_000_000),
        ("0x4563918243faa410", 4_999_999_999_983_658_000),
        ("0x0", 0),
        ("007", 7),
        (" 42 ", 42),
        (15, 15),
    ],
)
def test_parse_amount(text, expected) -> None:
    assert parse_amount(text) == expected


@pytest.mark.parametrize("text", ["", "abc", "1.5", "0xZZ", True])
def test_parse_amount_rejects_malformed_text(text) -> None:
    with pytest.raises(AmountError):
        parse_amount(text)


def test_to_base_units_is_exact() -> None:
    assert to_base_units(0.03) == 30_000_000
    assert to_base_units("0.000001") == 1_000
    assert to_base_units(Decimal("0.02")) == 20_000_000
    assert to_base_units("1_000") == 1_000 * BASE_UNITS
    assert to_base_units("0.0000000019") == 1


def test_to_base_units_rejects_garbage() -> None:
    with pytest.raises(AmountError):
        to_base_units("lots")
    with pytest.raises(AmountError):
        to_base_units("NaN")
