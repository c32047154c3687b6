"""Formatting helpers shared by the certificate renderers."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

PROVINCE_NAMES: dict[str, str] = {
    "AB": "Alberta",
    "BC": "British Columbia",
    "MB": "Manitoba",
    "NB": "New Brunswick",
    "NL": "Newfoundland and Labrador",
    "NT": "Northwest Territories",
    "NS": "Nova Scotia",
    "NU": "Nunavut",
    "ON": "Ontario",
    "PE": "Prince Edward Island",
    "QC": "Quebec",
    "SK": "Saskatchewan",
    "YT": "Yukon",
}

HTML_DATE_FORMAT = "%Y/%m/%d"
ACORD_DATE_FORMAT = "%m-%d-%Y"


def format_currency(value: Any) -> str:
    """$1,000,000 — whole dollars, empty for missing or non-numeric input."""
    if value is None or isinstance(value, bool):
        return ""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return ""
    if not math.isfinite(number):
        return ""
    rounded = round(number)
    sign = "-" if rounded < 0 else ""
    return f"{sign}${abs(rounded):,}"


def localize(value: datetime, time_zone: str | None) -> datetime:
    """Convert to `time_zone`; an unknown zone leaves the value unchanged."""
    if not time_zone:
        return value
    try:
        zone = ZoneInfo(time_zone)
    except (ZoneInfoNotFoundError, ValueError):
        return value
    if value.tzinfo is None:
        # Naive datetimes from Mongo are UTC
        value = value.replace(tzinfo=ZoneInfo("UTC"))
    return value.astimezone(zone)


def format_date(value: Any, time_zone: str | None = None, fmt: str = HTML_DATE_FORMAT) -> str:
    """yyyy/MM/dd in `time_zone`; non-datetimes render empty."""
    if not isinstance(value, datetime):
        return ""
    return localize(value, time_zone).strftime(fmt)


def to_long_province_name(value: Any) -> str:
    """ON → Ontario.  Unknown abbreviations pass through."""
    if not isinstance(value, str):
        raise ValueError(f"Expected a province abbreviation, got {value!r}")
    return PROVINCE_NAMES.get(value, value)
