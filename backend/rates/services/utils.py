from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import Iterable, List, Optional, Union

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

ZERO = Decimal("0")


def d(val) -> Decimal:
    """Coerce incoming values to Decimal safely."""
    if isinstance(val, Decimal):
        return val
    return Decimal(str(val))


def normalize_region(value: Optional[str]) -> str:
    """Region identity key: trimmed and lower-cased. None becomes ''."""
    return (value or "").strip().lower()


def clean_regions(regions: Optional[Iterable[str]]) -> List[str]:
    """Trim region names and drop empties, keeping input order and duplicates."""
    if not regions:
        return []
    cleaned = []
    for region in regions:
        text = (region or "").strip()
        if text:
            cleaned.append(text)
    return cleaned


def split_regions(raw: Optional[str]) -> List[str]:
    """Parse a comma-separated region list as sent by the calculator form."""
    if not raw:
        return []
    return clean_regions(raw.split(","))


def distinct_region_count(regions: Iterable[str]) -> int:
    return len({normalize_region(r) for r in regions if normalize_region(r)})


def to_aware_datetime(value: Union[None, str, date, datetime]) -> Optional[datetime]:
    """
    Accept an ISO date, ISO datetime, date or datetime and return an aware datetime.

    Bare dates become midnight in the current time zone. Returns None for
    unparseable strings so callers can report a validation error.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time.min)
    else:
        text = str(value).strip()
        try:
            dt = parse_datetime(text)
            if dt is None:
                parsed = parse_date(text)
                if parsed is None:
                    return None
                dt = datetime.combine(parsed, time.min)
        except ValueError:
            # Well-formed but out of range, e.g. 2025-02-30
            return None
    if timezone.is_naive(dt):
        dt = timezone.make_aware(dt, timezone.get_current_timezone())
    return dt


def format_tonnage(tonnage) -> str:
    """Render a tonnage without trailing zeros: Decimal('2.50') -> '2.5', Decimal('10.00') -> '10'."""
    return f"{d(tonnage).normalize():f}"
