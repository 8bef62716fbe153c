"""
Value formatting shared by the PDF and spreadsheet renderers

Dates follow the en-IN convention the organization's staff read
(day/month/year, no zero padding). Anything missing becomes "N/A".
"""

from datetime import date, datetime
from typing import Any

PLACEHOLDER = "N/A"


def _parse(value: Any):
    if isinstance(value, (datetime, date)):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            return None
    return None


def format_date(value: Any) -> str:
    d = _parse(value)
    if d is None:
        return PLACEHOLDER
    return f"{d.day}/{d.month}/{d.year}"


def format_time(value: Any) -> str:
    d = _parse(value)
    if not isinstance(d, datetime):
        return PLACEHOLDER
    hour = d.hour % 12 or 12
    suffix = 'am' if d.hour < 12 else 'pm'
    return f"{hour}:{d.minute:02d}:{d.second:02d} {suffix}"


def format_datetime(value: Any) -> str:
    d = _parse(value)
    if d is None:
        return PLACEHOLDER
    if not isinstance(d, datetime):
        return format_date(d)
    return f"{format_date(d)}, {format_time(d)}"


def format_long_datetime(value: datetime) -> str:
    """e.g. 15 March 2024 at 10:30 am"""
    hour = value.hour % 12 or 12
    suffix = 'am' if value.hour < 12 else 'pm'
    return f"{value.day} {value.strftime('%B')} {value.year} at {hour:02d}:{value.minute:02d} {suffix}"


def display(value: Any) -> str:
    """String form of a scalar, or N/A when empty"""
    if value is None:
        return PLACEHOLDER
    if isinstance(value, bool):
        return 'Yes' if value else 'No'
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text if text else PLACEHOLDER


def join_names(documents, empty: str = PLACEHOLDER) -> str:
    names = [d.get('name') or 'Document' for d in documents or []]
    return ", ".join(names) if names else empty
