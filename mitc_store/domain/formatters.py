"""
Formatters - Dates, Phones and Links
====================================

Small conversions shared by the managers, the template engine and the
messaging providers. Dates are stored as timezone-aware UTC datetimes and
rendered in Indian day-month-year order.
"""

import re
from datetime import date, datetime, time, timezone
from typing import Optional, Union
from urllib.parse import quote

DateLike = Union[date, datetime, str]


def parse_datetime(value: DateLike) -> datetime:
    """
    Normalise a date, datetime or ISO string to an aware UTC datetime.

    Plain dates become midnight UTC; naive datetimes are taken as UTC.
    Raises ValueError for unparseable strings.
    """
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        value = datetime.fromisoformat(text)

    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)

    raise ValueError(f"Not a date: {value!r}")


def parse_optional_datetime(value: Optional[DateLike]) -> Optional[datetime]:
    if value in (None, ""):
        return None
    return parse_datetime(value)


def format_date(value: Optional[DateLike], style: str = "medium") -> str:
    """
    Human-readable date, e.g. "4 February 2024".

    Styles: short ("4 Feb 2024"), medium ("4 February 2024"),
    long ("Sunday, 4 February 2024").
    """
    if value in (None, ""):
        return ""
    if isinstance(value, str) or isinstance(value, datetime):
        value = parse_datetime(value)

    if style == "short":
        return f"{value.day} {value.strftime('%b %Y')}"
    if style == "long":
        return f"{value.strftime('%A')}, {value.day} {value.strftime('%B %Y')}"
    return f"{value.day} {value.strftime('%B %Y')}"


def clean_phone(phone: Optional[str]) -> str:
    """Strip everything but digits."""
    if not phone:
        return ""
    return re.sub(r"\D", "", str(phone))


def format_phone(phone: Optional[str], country_code: str = "91") -> str:
    """Display form: +91 XXXXX XXXXX for 10-digit numbers, unchanged otherwise."""
    if not phone:
        return ""
    cleaned = clean_phone(phone)
    if len(cleaned) == 10:
        return f"+{country_code} {cleaned[:5]} {cleaned[5:]}"
    return phone


def international_phone(phone: str, country_code: str = "91") -> str:
    """Digits-only number with the country code prefixed to local 10-digit numbers."""
    cleaned = clean_phone(phone)
    if len(cleaned) == 10:
        return f"{country_code}{cleaned}"
    return cleaned


def whatsapp_link(phone: str, message: str = "", country_code: str = "91") -> str:
    """Click-to-chat link with an optional pre-filled message."""
    link = f"https://wa.me/{international_phone(phone, country_code)}"
    if message:
        link += f"?text={quote(message)}"
    return link
