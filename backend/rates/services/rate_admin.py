"""
Administrative write path for rate masters.

Detail lines are never patched one by one: any edit that touches them
replaces the master's whole set inside a single transaction, so callers
must always submit the complete list they want to keep.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from django.db import IntegrityError, transaction
from django.db.models import Prefetch, QuerySet
from django.utils.timezone import now

from ..dataclasses import BASE, CALL_FEE, WAYPOINT_FEE
from ..models import RateDetail, RateMaster
from .catalog import line_from_model
from .errors import DuplicateRate, RateMasterNotFound
from .utils import d

logger = logging.getLogger(__name__)

SORT_FIELDS = ("center_name", "tonnage", "created_at", "updated_at")


def _with_active_details(qs: QuerySet) -> QuerySet:
    return qs.prefetch_related(
        Prefetch(
            "details",
            queryset=RateDetail.objects.filter(is_active=True).order_by("type", "region", "id"),
            to_attr="active_details",
        ),
        "created_by",
    )


def list_rates(
    search: Optional[str] = None,
    tonnage=None,
    is_active: Optional[bool] = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
) -> QuerySet:
    qs = RateMaster.objects.all()
    if search:
        qs = qs.filter(center_name__icontains=search.strip())
    if tonnage is not None:
        qs = qs.filter(tonnage=d(tonnage))
    if is_active is not None:
        qs = qs.filter(is_active=is_active)
    if sort_by not in SORT_FIELDS:
        sort_by = "created_at"
    prefix = "-" if sort_order == "desc" else ""
    return _with_active_details(qs.order_by(f"{prefix}{sort_by}", "id"))


def get_rate(rate_id) -> RateMaster:
    master = _with_active_details(RateMaster.objects.filter(pk=rate_id)).first()
    if master is None:
        raise RateMasterNotFound(rate_id)
    return master


def _ensure_unique(center_name: str, tonnage, exclude_id=None) -> None:
    qs = RateMaster.objects.filter(center_name__iexact=center_name, tonnage=d(tonnage))
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    if qs.exists():
        raise DuplicateRate(center_name, tonnage)


def _build_details(master: RateMaster, details: Iterable[Dict[str, Any]]) -> List[RateDetail]:
    rows = []
    for item in details:
        region = (item.get("region") or "").strip() or None
        conditions = (item.get("conditions") or "").strip() or None
        rows.append(
            RateDetail(
                rate_master=master,
                type=item["type"],
                region=region,
                amount=d(item["amount"]),
                conditions=conditions,
                is_active=item.get("is_active", True),
                valid_from=item.get("valid_from"),
                valid_to=item.get("valid_to"),
            )
        )
    return rows


def replace_details(master: RateMaster, details: Iterable[Dict[str, Any]]) -> List[RateDetail]:
    """Delete every line under `master` and insert `details` in their place."""
    with transaction.atomic():
        deleted, _ = RateDetail.objects.filter(rate_master=master).delete()
        created = RateDetail.objects.bulk_create(_build_details(master, details))
    logger.info("Replaced details of rate %s: %d removed, %d created", master.pk, deleted, len(created))
    return created


def create_rate(center_name: str, tonnage, details: Iterable[Dict[str, Any]], created_by=None) -> RateMaster:
    center_name = center_name.strip()
    _ensure_unique(center_name, tonnage)
    try:
        with transaction.atomic():
            master = RateMaster.objects.create(
                center_name=center_name,
                tonnage=d(tonnage),
                created_by=created_by if getattr(created_by, "pk", None) else None,
            )
            RateDetail.objects.bulk_create(_build_details(master, details))
    except IntegrityError:
        # Lost a race against a concurrent create of the same key
        raise DuplicateRate(center_name, tonnage)
    logger.info("Created rate %s for %s/%s", master.pk, center_name, tonnage)
    return get_rate(master.pk)


def update_rate(
    rate_id,
    center_name: Optional[str] = None,
    tonnage=None,
    is_active: Optional[bool] = None,
    details: Optional[Iterable[Dict[str, Any]]] = None,
) -> RateMaster:
    with transaction.atomic():
        master = RateMaster.objects.select_for_update().filter(pk=rate_id).first()
        if master is None:
            raise RateMasterNotFound(rate_id)

        update_fields = []
        if center_name is not None or tonnage is not None:
            new_center = center_name.strip() if center_name is not None else master.center_name
            new_tonnage = d(tonnage) if tonnage is not None else master.tonnage
            _ensure_unique(new_center, new_tonnage, exclude_id=master.pk)
            master.center_name = new_center
            master.tonnage = new_tonnage
            update_fields += ["center_name", "tonnage"]
        if is_active is not None:
            master.is_active = is_active
            update_fields.append("is_active")
        if update_fields:
            try:
                with transaction.atomic():
                    master.save(update_fields=update_fields + ["updated_at"])
            except IntegrityError:
                # Lost a race against a concurrent write of the same key
                raise DuplicateRate(master.center_name, master.tonnage)

        if details is not None:
            replace_details(master, details)

    return get_rate(rate_id)


def toggle_rate(rate_id, is_active: bool) -> RateMaster:
    updated = RateMaster.objects.filter(pk=rate_id).update(is_active=is_active)
    if not updated:
        raise RateMasterNotFound(rate_id)
    logger.info("Rate %s is_active=%s", rate_id, is_active)
    return get_rate(rate_id)


def delete_rate(rate_id) -> None:
    deleted, _ = RateMaster.objects.filter(pk=rate_id).delete()
    if not deleted:
        raise RateMasterNotFound(rate_id)
    logger.info("Deleted rate %s", rate_id)


def audit_rate(master_id: int, as_of: Optional[datetime] = None) -> List[str]:
    """Return warnings for configurations the calculator would price surprisingly."""
    as_of = as_of or now()
    warnings: List[str] = []
    lines = [line_from_model(r) for r in RateDetail.objects.filter(rate_master_id=master_id).order_by("id")]
    valid = [line for line in lines if line.is_valid_at(as_of)]

    if not valid:
        warnings.append(f"No detail line is valid at {as_of.date().isoformat()}; calculation will fail.")
        return warnings
    if not any(line.type == BASE and not (line.region or "").strip() for line in valid):
        warnings.append("No general (region-less) BASE line; trips outside the listed regions get a base fare of 0.")
    for rate_type in (CALL_FEE, WAYPOINT_FEE):
        same = [line for line in valid if line.type == rate_type]
        if len(same) > 1:
            warnings.append(
                f"{len(same)} active {rate_type} lines; only the first (id {same[0].id}, {same[0].amount}) is used."
            )
    return warnings
