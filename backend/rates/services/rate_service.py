from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from django.utils.timezone import now

from ..dataclasses import RateCalculation, RateSuggestions
from .calculator import compute_breakdown
from .catalog import OrmRateCatalog, RateCatalog
from .resolver import resolve_rate
from .suggestions import suggest
from .utils import clean_regions, d

logger = logging.getLogger(__name__)


def calculate_rate(
    center_name: str,
    tonnage,
    regions: Optional[Sequence[str]] = None,
    date: Optional[datetime] = None,
    total_stops: Optional[int] = None,
    distinct_regions: Optional[int] = None,
    catalog: Optional[RateCatalog] = None,
) -> RateCalculation:
    """
    Resolve the rate for (center, tonnage) on `date` and price the trip.

    Region names are trimmed and empties dropped before calculation.
    RateNotFound / NoValidRatesForDate propagate to the caller unchanged.
    """
    catalog = catalog or OrmRateCatalog()
    as_of = date or now()
    tonnage = d(tonnage)
    cleaned = clean_regions(regions)

    resolved = resolve_rate(catalog, center_name, tonnage, as_of)
    breakdown, calculation = compute_breakdown(resolved.details, cleaned, total_stops, distinct_regions)

    logger.debug(
        "Calculated %s for %s/%s regions=%s stops=%s",
        breakdown.total, resolved.master.center_name, tonnage, cleaned, total_stops,
    )
    return RateCalculation(
        rate_master=resolved.master,
        breakdown=breakdown,
        calculation=calculation,
        calculated_for=as_of,
    )


def get_rate_suggestions(catalog: Optional[RateCatalog] = None) -> RateSuggestions:
    return suggest(catalog or OrmRateCatalog())
