"""
Read-only access to the rate catalog.

The engine only talks to `RateCatalog`; `OrmRateCatalog` backs it with the
Django models and `InMemoryRateCatalog` keeps everything in plain lists so
the resolver and calculator can be exercised without a database.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from django.db.models import Q

from ..dataclasses import RateLine, RateMasterRef
from .utils import d


class RateCatalog:
    """Narrow read interface consumed by the resolver and suggestion service."""

    def find_active_master(self, center_name: str, tonnage: Decimal) -> Optional[RateMasterRef]:
        raise NotImplementedError

    def list_valid_details(self, master_id: int, as_of: datetime) -> List[RateLine]:
        raise NotImplementedError

    def list_active_centers(self) -> List[str]:
        raise NotImplementedError

    def list_active_tonnages(self) -> List[Decimal]:
        raise NotImplementedError


def line_from_model(detail) -> RateLine:
    return RateLine(
        id=detail.id,
        type=detail.type,
        amount=d(detail.amount),
        region=detail.region or None,
        conditions=detail.conditions or None,
        is_active=detail.is_active,
        valid_from=detail.valid_from,
        valid_to=detail.valid_to,
    )


def master_from_model(master) -> RateMasterRef:
    return RateMasterRef(id=master.id, center_name=master.center_name, tonnage=d(master.tonnage))


class OrmRateCatalog(RateCatalog):

    def find_active_master(self, center_name, tonnage):
        # Imported lazily so the engine modules stay importable without app loading
        from ..models import RateMaster

        master = (
            RateMaster.objects
            .filter(center_name__iexact=(center_name or "").strip(), tonnage=d(tonnage), is_active=True)
            .order_by("id")
            .first()
        )
        return master_from_model(master) if master else None

    def list_valid_details(self, master_id, as_of):
        from ..models import RateDetail

        rows = (
            RateDetail.objects
            .filter(rate_master_id=master_id, is_active=True)
            .filter(Q(valid_from__isnull=True) | Q(valid_from__lte=as_of))
            .filter(Q(valid_to__isnull=True) | Q(valid_to__gte=as_of))
            # Insertion order decides which CALL_FEE / WAYPOINT_FEE line is "first"
            .order_by("id")
        )
        return [line_from_model(r) for r in rows]

    def list_active_centers(self):
        from ..models import RateMaster

        return list(
            RateMaster.objects.filter(is_active=True)
            .order_by("center_name")
            .values_list("center_name", flat=True)
            .distinct()
        )

    def list_active_tonnages(self):
        from ..models import RateMaster

        return [
            d(t) for t in
            RateMaster.objects.filter(is_active=True)
            .order_by("tonnage")
            .values_list("tonnage", flat=True)
            .distinct()
        ]


class InMemoryRateCatalog(RateCatalog):
    """Catalog over plain Python objects; masters are keyed by id."""

    def __init__(self):
        self._masters: Dict[int, Tuple[RateMasterRef, bool]] = {}
        self._details: Dict[int, List[RateLine]] = {}

    def add_master(self, master: RateMasterRef, details: Iterable[RateLine] = (), is_active: bool = True) -> RateMasterRef:
        self._masters[master.id] = (master, is_active)
        self._details[master.id] = list(details)
        return master

    def find_active_master(self, center_name, tonnage):
        wanted = (center_name or "").strip().lower()
        for master, is_active in self._masters.values():
            if is_active and master.center_name.lower() == wanted and d(master.tonnage) == d(tonnage):
                return master
        return None

    def list_valid_details(self, master_id, as_of):
        return [line for line in self._details.get(master_id, []) if line.is_valid_at(as_of)]

    def list_active_centers(self):
        return sorted({m.center_name for m, active in self._masters.values() if active})

    def list_active_tonnages(self):
        return sorted({d(m.tonnage) for m, active in self._masters.values() if active})
