from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from django.utils.timezone import now

from ..dataclasses import ResolvedRate
from .catalog import RateCatalog
from .errors import NoValidRatesForDate, RateNotFound

logger = logging.getLogger(__name__)


def resolve_rate(
    catalog: RateCatalog,
    center_name: str,
    tonnage: Decimal,
    as_of: Optional[datetime] = None,
) -> ResolvedRate:
    """
    Find the active rate master for (center, tonnage) and its lines valid on `as_of`.

    Center names match case-insensitively, tonnage matches exactly. Raises
    RateNotFound when no active master exists and NoValidRatesForDate when
    the master exists but every line is inactive or outside its window.
    """
    as_of = as_of or now()
    center_name = (center_name or "").strip()

    master = catalog.find_active_master(center_name, tonnage)
    if master is None:
        logger.info("No active rate for center=%r tonnage=%s", center_name, tonnage)
        raise RateNotFound(center_name, tonnage)

    details = catalog.list_valid_details(master.id, as_of)
    if not details:
        logger.info(
            "Rate %s (%s, %s) has no lines valid at %s",
            master.id, master.center_name, master.tonnage, as_of.isoformat(),
        )
        raise NoValidRatesForDate(center_name, tonnage, as_of)

    logger.debug("Resolved rate %s with %d valid lines", master.id, len(details))
    return ResolvedRate(master=master, details=tuple(details))
