import pytest

from domain.models import Locale, Unit
from services.locale_format import (
    cm_to_inches,
    decimal_separator,
    detect_locale,
    format_number,
    inches_to_cm,
    parse_locale_number,
    thousands_separator,
    to_display,
)


@pytest.mark.parametrize(
    "text,locale,expected",
    [
        ("30", Locale.DE, 30.0),
        ("30,5", Locale.DE, 30.5),
        ("30.5", Locale.DE, 30.5),
        ("30.5", Locale.EN, 30.5),
        ("30,5", Locale.EN, 30.5),
        ("1 234,5", Locale.DE, 1234.5),
        ("1 234.5", Locale.EN, 1234.5),
        (" 128 ", Locale.EN, 128.0),
    ],
)
def test_parse_locale_number(text, locale, expected):
    assert parse_locale_number(text, locale) == pytest.approx(expected)


@pytest.mark.parametrize("text", [None, "", "   ", "abc", "12x", "inf", "nan"])
def test_parse_rejects_non_numbers(text):
    assert parse_locale_number(text, Locale.EN) is None


def test_format_number():
    assert format_number(250.0, Locale.EN) == "250"
    assert format_number(120.54, Locale.EN) == "120.5"
    assert format_number(120.54, Locale.DE) == "120,5"
    assert format_number(1234.5, Locale.EN) == "1,234.5"
    assert format_number(1234.5, Locale.DE) == "1.234,5"
    assert format_number(1234567.0, Locale.DE) == "1.234.567"
    assert format_number(-1234.5, Locale.EN) == "-1,234.5"
    assert (decimal_separator(Locale.DE), thousands_separator(Locale.DE)) == (",", ".")
    assert (decimal_separator(Locale.EN), thousands_separator(Locale.EN)) == (".", ",")


def test_detect_locale():
    assert detect_locale("de-DE,de;q=0.9,en;q=0.8") == Locale.DE
    assert detect_locale("en-US,en;q=0.9") == Locale.EN
    assert detect_locale(None) == Locale.EN


def test_unit_conversion():
    assert cm_to_inches(2.54) == pytest.approx(1.0)
    assert inches_to_cm(10) == pytest.approx(25.4)
    assert to_display(254, Unit.INCH) == 100.0
    assert to_display(120.55, Unit.CM) == pytest.approx(120.6, abs=0.05)
