from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from .services.utils import ZERO, format_tonnage


# Kind codes mirror RateDetailType; kept as plain strings so the engine does
# not need the ORM loaded.
BASE = "BASE"
CALL_FEE = "CALL_FEE"
WAYPOINT_FEE = "WAYPOINT_FEE"
SPECIAL = "SPECIAL"
RATE_TYPES = (BASE, CALL_FEE, WAYPOINT_FEE, SPECIAL)


def _money(value: Decimal) -> str:
    return str(value)


@dataclass(frozen=True)
class RateMasterRef:
    id: int
    center_name: str
    tonnage: Decimal

    def as_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "centerName": self.center_name, "tonnage": format_tonnage(self.tonnage)}


@dataclass(frozen=True)
class RateLine:
    """One priced component of a rate master, detached from the ORM row."""
    id: Optional[int]
    type: str
    amount: Decimal
    region: Optional[str] = None
    conditions: Optional[str] = None
    is_active: bool = True
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None

    def is_valid_at(self, as_of: datetime) -> bool:
        if not self.is_active:
            return False
        if self.valid_from is not None and self.valid_from > as_of:
            return False
        if self.valid_to is not None and self.valid_to < as_of:
            return False
        return True

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "region": self.region,
            "amount": _money(self.amount),
            "conditions": self.conditions,
            "isActive": self.is_active,
            "validFrom": self.valid_from.isoformat() if self.valid_from else None,
            "validTo": self.valid_to.isoformat() if self.valid_to else None,
        }


@dataclass(frozen=True)
class ResolvedRate:
    master: RateMasterRef
    details: Tuple[RateLine, ...]


@dataclass(frozen=True)
class SpecialFee:
    amount: Decimal
    description: str
    type: str = SPECIAL

    def as_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "amount": _money(self.amount), "description": self.description}


@dataclass(frozen=True)
class FareBreakdown:
    base_fare: Decimal = ZERO
    call_fee: Decimal = ZERO
    waypoint_fee: Decimal = ZERO
    special_fees: Tuple[SpecialFee, ...] = ()
    total: Decimal = ZERO

    @property
    def special_total(self) -> Decimal:
        return sum((f.amount for f in self.special_fees), ZERO)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "baseFare": _money(self.base_fare),
            "callFee": _money(self.call_fee),
            "waypointFee": _money(self.waypoint_fee),
            "specialFees": [f.as_dict() for f in self.special_fees],
            "total": _money(self.total),
        }


@dataclass(frozen=True)
class CalculationDetail:
    """Audit trail of how a FareBreakdown was derived."""
    base_rate: Optional[RateLine]
    base_region: Optional[str]
    call_rate: Optional[RateLine]
    waypoint_rate: Optional[RateLine]
    special_rates: Tuple[RateLine, ...]
    effective_total_stops: int
    effective_distinct_regions: int
    call_count: int
    waypoint_count: int

    def as_dict(self) -> Dict[str, Any]:
        return {
            "baseRate": self.base_rate.as_dict() if self.base_rate else None,
            "baseRegion": self.base_region,
            "callRate": self.call_rate.as_dict() if self.call_rate else None,
            "waypointRate": self.waypoint_rate.as_dict() if self.waypoint_rate else None,
            "specialRates": [r.as_dict() for r in self.special_rates],
            "calculationMeta": {
                "effectiveTotalStops": self.effective_total_stops,
                "effectiveDistinctRegions": self.effective_distinct_regions,
                "callCount": self.call_count,
                "waypointCount": self.waypoint_count,
            },
        }


@dataclass(frozen=True)
class RateCalculation:
    rate_master: RateMasterRef
    breakdown: FareBreakdown
    calculation: CalculationDetail
    calculated_for: datetime

    def as_dict(self) -> Dict[str, Any]:
        return {
            "rateMaster": self.rate_master.as_dict(),
            "breakdown": self.breakdown.as_dict(),
            "calculation": self.calculation.as_dict(),
            "calculatedFor": self.calculated_for.isoformat(),
        }


@dataclass(frozen=True)
class RateSuggestions:
    available_centers: List[str] = field(default_factory=list)
    available_tonnages: List[Decimal] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "availableCenters": list(self.available_centers),
            "availableTonnages": [format_tonnage(t) for t in self.available_tonnages],
        }
