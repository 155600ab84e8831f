from __future__ import annotations

from ..dataclasses import RateSuggestions
from .catalog import RateCatalog


def suggest(catalog: RateCatalog) -> RateSuggestions:
    """Distinct active centers and tonnages, ascending, to help correct a failed lookup."""
    return RateSuggestions(
        available_centers=sorted(set(catalog.list_active_centers())),
        available_tonnages=sorted(set(catalog.list_active_tonnages())),
    )
