"""
Locale helpers for plate dimensions.

German and English number conventions only; values are centimetres
internally and converted for display.
"""
import math
import re
from typing import Optional

from domain.models import Locale, Unit

CM_PER_INCH = 2.54

_WHITESPACE = re.compile(r"[\s\u00a0\u202f]")


def detect_locale(accept_language: Optional[str]) -> Locale:
    """Pick `de` for German-preferring clients, `en` otherwise."""
    if not accept_language:
        return Locale.EN
    first = accept_language.split(",")[0].strip().lower()
    return Locale.DE if first.startswith("de") else Locale.EN


def decimal_separator(locale: Locale) -> str:
    return "," if Locale(locale) == Locale.DE else "."


def thousands_separator(locale: Locale) -> str:
    return "." if Locale(locale) == Locale.DE else ","


def parse_locale_number(text: Optional[str], locale: Locale) -> Optional[float]:
    """
    Parse "30", "30,5", "30.5", "1 234,5" or "1 234.5".

    Spaces and non-breaking spaces are ignored and either separator is
    accepted as the decimal point. Returns None if the text is not a number.
    """
    if text is None:
        return None
    cleaned = _WHITESPACE.sub("", str(text))
    if not cleaned:
        return None

    sep = decimal_separator(locale)
    other = "." if sep == "," else ","
    unified = cleaned.replace(other, sep).replace(sep, ".")
    try:
        value = float(unified)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def format_number(value: float, locale: Locale) -> str:
    """Format with grouping and at most one fractional digit."""
    rounded = round(value, 1)
    text = f"{rounded:,.1f}"
    if text.endswith(".0"):
        text = text[:-2]
    whole, _, fraction = text.partition(".")
    text = whole.replace(",", thousands_separator(locale))
    if fraction:
        text += decimal_separator(locale) + fraction
    return text


def cm_to_inches(cm: float) -> float:
    return cm / CM_PER_INCH


def inches_to_cm(inches: float) -> float:
    return inches * CM_PER_INCH


def to_display(cm: float, unit: Unit) -> float:
    """Centimetres converted to the display unit, rounded to one decimal."""
    value = cm_to_inches(cm) if Unit(unit) == Unit.INCH else cm
    return round(value * 10) / 10
