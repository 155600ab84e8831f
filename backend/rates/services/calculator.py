"""
Fare calculation over resolved rate lines.

Everything here is a pure function of its arguments: no ORM access, no
clock, no logging side effects. The resolver hands over the lines valid for
the trip date and these functions turn them into a FareBreakdown plus the
CalculationDetail that explains it.

Rules:
- Base fare: the most expensive region-specific BASE line among the regions
  visited; the general (region-less) BASE line when none of them matches.
- Call fee: (total stops - 1) x the first CALL_FEE line.
- Waypoint fee: (distinct regions - 1) x the first WAYPOINT_FEE line.
- Special fees: every SPECIAL line, added unconditionally.
"""
from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

from ..dataclasses import (
    BASE,
    CALL_FEE,
    SPECIAL,
    WAYPOINT_FEE,
    CalculationDetail,
    FareBreakdown,
    RateLine,
    SpecialFee,
)
from .utils import ZERO, distinct_region_count, normalize_region


def _of_type(details: Iterable[RateLine], rate_type: str) -> List[RateLine]:
    return [line for line in details if line.type == rate_type]


def _first_of_type(details: Iterable[RateLine], rate_type: str) -> Optional[RateLine]:
    for line in details:
        if line.type == rate_type:
            return line
    return None


def effective_counts(
    regions: Sequence[str],
    total_stops: Optional[int] = None,
    distinct_regions: Optional[int] = None,
) -> Tuple[int, int, int, int]:
    """
    Return (effective_total_stops, effective_distinct_regions, call_count, waypoint_count).

    Explicit values win over derived ones, including an explicit 0.
    """
    effective_total_stops = total_stops if total_stops is not None else 1
    if distinct_regions is not None:
        effective_distinct = distinct_regions
    else:
        effective_distinct = distinct_region_count(regions or [])
    call_count = max(effective_total_stops - 1, 0)
    waypoint_count = max(effective_distinct - 1, 0)
    return effective_total_stops, effective_distinct, call_count, waypoint_count


def select_base_rate(details: Iterable[RateLine], regions: Sequence[str]) -> Tuple[Optional[RateLine], Optional[str]]:
    """
    Pick the BASE line for a trip and the input region it was matched on.

    Highest amount wins across matched regions; ties keep the earlier region.
    Returns (general_line, None) when no region matches, (None, None) when
    there is no general line either.
    """
    base_rates = _of_type(details, BASE)

    best: Optional[RateLine] = None
    best_region: Optional[str] = None
    for region in regions or []:
        key = normalize_region(region)
        if not key:
            continue
        match = next((r for r in base_rates if r.region and normalize_region(r.region) == key), None)
        if match is not None and (best is None or match.amount > best.amount):
            best, best_region = match, region
    if best is not None:
        return best, best_region

    general = next((r for r in base_rates if not normalize_region(r.region)), None)
    return general, None


def special_description(line: RateLine) -> str:
    if line.conditions and line.conditions.strip():
        return line.conditions
    return f"특수요금 ({line.region or '전체'})"


def compute_breakdown(
    details: Sequence[RateLine],
    regions: Sequence[str] = (),
    total_stops: Optional[int] = None,
    distinct_regions: Optional[int] = None,
) -> Tuple[FareBreakdown, CalculationDetail]:
    regions = list(regions or [])
    effective_total_stops, effective_distinct, call_count, waypoint_count = effective_counts(
        regions, total_stops, distinct_regions
    )

    base_rate, base_region = select_base_rate(details, regions)
    base_fare = base_rate.amount if base_rate else ZERO

    # Single tier only: the first line of each kind is the rate, later ones are ignored
    call_rate = _first_of_type(details, CALL_FEE)
    call_fee = call_rate.amount * call_count if call_rate else ZERO

    waypoint_rate = _first_of_type(details, WAYPOINT_FEE)
    waypoint_fee = waypoint_rate.amount * waypoint_count if waypoint_rate else ZERO

    special_rates = tuple(_of_type(details, SPECIAL))
    special_fees = tuple(SpecialFee(amount=line.amount, description=special_description(line)) for line in special_rates)

    total = base_fare + call_fee + waypoint_fee + sum((f.amount for f in special_fees), ZERO)

    breakdown = FareBreakdown(
        base_fare=base_fare,
        call_fee=call_fee,
        waypoint_fee=waypoint_fee,
        special_fees=special_fees,
        total=total,
    )
    calculation = CalculationDetail(
        base_rate=base_rate,
        base_region=base_region,
        call_rate=call_rate,
        waypoint_rate=waypoint_rate,
        special_rates=special_rates,
        effective_total_stops=effective_total_stops,
        effective_distinct_regions=effective_distinct,
        call_count=call_count,
        waypoint_count=waypoint_count,
    )
    return breakdown, calculation


def calculate_breakdown(details, regions=(), total_stops=None, distinct_regions=None) -> FareBreakdown:
    return compute_breakdown(details, regions, total_stops, distinct_regions)[0]


def calculation_details(details, regions=(), total_stops=None, distinct_regions=None) -> CalculationDetail:
    return compute_breakdown(details, regions, total_stops, distinct_regions)[1]
