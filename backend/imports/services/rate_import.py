"""
Bulk rate import from parsed spreadsheet rows.

Each row is one detail line; rows sharing (center, tonnage) become one rate
master. Row problems are collected and reported back, never raised: the
only exception leaving `run()` is RateImportError for a commit with nothing
valid to write.
"""
from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from django.db import transaction

from rates.dataclasses import BASE, CALL_FEE, RATE_TYPES, SPECIAL, WAYPOINT_FEE
from rates.models import RateMaster
from rates.services import rate_admin
from rates.services.errors import RateEngineError
from rates.services.utils import format_tonnage, normalize_region, to_aware_datetime

from .headers import map_row_headers

logger = logging.getLogger(__name__)

REQUIRED_HEADERS = ("센터명", "톤수", "요금종류", "금액")
OPTIONAL_HEADERS = ("지역", "조건", "적용시작일", "적용종료일")
TEMPLATE_HEADERS = REQUIRED_HEADERS + OPTIONAL_HEADERS

SIMULATE = "simulate"
COMMIT = "commit"
MODES = (SIMULATE, COMMIT)

MAX_ERRORS = 10
MAX_PREVIEW = 5

RATE_TYPE_LABELS = {
    "기본요금": BASE,
    "기본운임": BASE,
    "콜비": CALL_FEE,
    "경유비": WAYPOINT_FEE,
    "특수요금": SPECIAL,
    "할증": SPECIAL,
}

MAX_AMOUNT = Decimal("10000000")
MAX_TONNAGE = Decimal("50")


class RateImportError(RateEngineError):
    code = "NO_VALID_DATA"

    def __init__(self, result: "ImportResult"):
        self.result = result
        super().__init__("가져올 수 있는 유효한 데이터가 없습니다")


class RowError(ValueError):
    pass


@dataclass
class ImportResult:
    mode: str
    total: int = 0
    valid: int = 0
    invalid: int = 0
    duplicates: int = 0
    imported: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)
    preview: List[Dict[str, Any]] = field(default_factory=list)
    created_ids: List[int] = field(default_factory=list)

    def add_error(self, row: int, message: str, data: Optional[Mapping[str, str]] = None) -> None:
        self.errors.append({"row": row, "error": message, "data": dict(data or {})})

    def as_dict(self) -> Dict[str, Any]:
        payload = {
            "total": self.total,
            "valid": self.valid,
            "invalid": self.invalid,
            "duplicates": self.duplicates,
            "errors": self.errors[:MAX_ERRORS],
        }
        if self.mode == SIMULATE:
            payload["preview"] = self.preview[:MAX_PREVIEW]
        else:
            payload["imported"] = self.imported
            payload["createdIds"] = list(self.created_ids)
        return payload


@dataclass
class _Group:
    center_name: str
    tonnage: Decimal
    lines: List[Tuple[int, Dict[str, Any], Mapping[str, str]]] = field(default_factory=list)


def parse_rate_type(raw: str) -> str:
    text = (raw or "").strip()
    if text.upper() in RATE_TYPES:
        return text.upper()
    if text in RATE_TYPE_LABELS:
        return RATE_TYPE_LABELS[text]
    raise RowError(f"요금종류가 올바르지 않습니다: {text or '(빈 값)'} (기본요금, 콜비, 경유비, 특수요금)")


def _decimal(raw: str, label: str, places: int = 2) -> Decimal:
    text = (raw or "").replace(",", "").replace("원", "").replace("톤", "").strip()
    if not text:
        raise RowError(f"{label}은(는) 필수입니다")
    try:
        value = Decimal(text)
    except InvalidOperation:
        raise RowError(f"{label}이(가) 숫자가 아닙니다: {raw}")
    if not value.is_finite():
        raise RowError(f"{label}이(가) 숫자가 아닙니다: {raw}")
    # Stored in DecimalField(decimal_places=2); trailing zeros are fine
    if value.normalize().as_tuple().exponent < -places:
        raise RowError(f"{label}은(는) 소수점 {places}자리까지 입력할 수 있습니다: {raw}")
    return value


def _optional_datetime(raw: str, label: str):
    if not (raw or "").strip():
        return None
    value = to_aware_datetime(raw)
    if value is None:
        raise RowError(f"{label} 형식이 올바르지 않습니다: {raw}")
    return value


def parse_row(row: Mapping[str, str]) -> Tuple[str, Decimal, Dict[str, Any]]:
    """Validate one mapped row; returns (center, tonnage, detail) or raises RowError."""
    center = (row.get("센터명") or "").strip()
    if not center:
        raise RowError("센터명은 필수입니다")
    if len(center) > 100:
        raise RowError("센터명은 100자 이하여야 합니다")

    tonnage = _decimal(row.get("톤수"), "톤수")
    if tonnage <= 0 or tonnage > MAX_TONNAGE:
        raise RowError("톤수는 0보다 크고 50톤 이하여야 합니다")

    rate_type = parse_rate_type(row.get("요금종류"))

    amount = _decimal(row.get("금액"), "금액")
    if amount < 0:
        raise RowError("금액은 0 이상이어야 합니다")
    if amount > MAX_AMOUNT:
        raise RowError("금액은 10,000,000원 이하여야 합니다")

    region = (row.get("지역") or "").strip() or None
    if region and len(region) > 50:
        raise RowError("지역명은 50자 이하여야 합니다")
    conditions = (row.get("조건") or "").strip() or None
    if conditions and len(conditions) > 500:
        raise RowError("조건은 500자 이하여야 합니다")

    valid_from = _optional_datetime(row.get("적용시작일"), "적용시작일")
    valid_to = _optional_datetime(row.get("적용종료일"), "적용종료일")
    if valid_from and valid_to and valid_from > valid_to:
        raise RowError("적용종료일은 적용시작일 이후여야 합니다")

    detail = {
        "type": rate_type,
        "region": region,
        "amount": amount,
        "conditions": conditions,
        "is_active": True,
        "valid_from": valid_from,
        "valid_to": valid_to,
    }
    return center, tonnage, detail


class RateImportService:
    """Validates rows into rate masters and, in commit mode, persists them atomically."""

    def __init__(self, created_by=None):
        self.created_by = created_by

    def _group_rows(self, rows: Sequence[Mapping[str, str]], result: ImportResult) -> "OrderedDict[tuple, _Group]":
        groups: "OrderedDict[tuple, _Group]" = OrderedDict()
        for index, raw in enumerate(rows):
            row_no = index + 2  # header occupies spreadsheet row 1
            mapped = map_row_headers(raw, TEMPLATE_HEADERS)
            try:
                center, tonnage, detail = parse_row(mapped)
            except RowError as e:
                result.add_error(row_no, str(e), mapped)
                result.invalid += 1
                continue
            key = (center.lower(), tonnage)
            group = groups.setdefault(key, _Group(center_name=center, tonnage=tonnage))
            group.lines.append((row_no, detail, mapped))
        return groups

    def _check_group(self, group: _Group, result: ImportResult) -> bool:
        first_row, _, first_data = group.lines[0]
        label = f"{group.center_name} ({format_tonnage(group.tonnage)}톤)"

        if RateMaster.objects.filter(center_name__iexact=group.center_name, tonnage=group.tonnage).exists():
            result.add_error(first_row, f"{label} 요금 정보가 이미 존재합니다", first_data)
            result.duplicates += len(group.lines)
            return False

        seen = {}
        for row_no, detail, data in group.lines:
            key = (detail["type"], normalize_region(detail["region"]))
            if key in seen:
                result.add_error(
                    row_no,
                    f"{label} {detail['type']} {detail['region'] or '전체'} 항목이 {seen[key]}행과 중복됩니다",
                    data,
                )
                result.invalid += len(group.lines)
                return False
            seen[key] = row_no

        if not any(detail["type"] == BASE for _, detail, _ in group.lines):
            result.add_error(first_row, f"{label} 기본요금(BASE)이 없습니다", first_data)
            result.invalid += len(group.lines)
            return False
        return True

    @staticmethod
    def _preview(group: _Group) -> Dict[str, Any]:
        bases = [detail for _, detail, _ in group.lines if detail["type"] == BASE]
        general = next((b for b in bases if not b["region"]), bases[0])
        return {
            "centerName": group.center_name,
            "tonnage": format_tonnage(group.tonnage),
            "baseFare": str(general["amount"]),
            "detailCount": len(group.lines),
            "rows": [row_no for row_no, _, _ in group.lines],
        }

    def run(self, rows: Sequence[Mapping[str, str]], mode: str = SIMULATE) -> ImportResult:
        if mode not in MODES:
            raise ValueError(f"Unknown import mode: {mode}")

        result = ImportResult(mode=mode, total=len(rows))
        groups = self._group_rows(rows, result)

        valid_groups = []
        for group in groups.values():
            if self._check_group(group, result):
                valid_groups.append(group)
                result.valid += len(group.lines)
                result.preview.append(self._preview(group))
        result.errors.sort(key=lambda e: e["row"])

        if mode == SIMULATE:
            logger.info(
                "Rate import simulated: %d rows, %d valid, %d invalid, %d duplicates",
                result.total, result.valid, result.invalid, result.duplicates,
            )
            return result

        if not valid_groups:
            raise RateImportError(result)

        with transaction.atomic():
            for group in valid_groups:
                master = rate_admin.create_rate(
                    center_name=group.center_name,
                    tonnage=group.tonnage,
                    details=[detail for _, detail, _ in group.lines],
                    created_by=self.created_by,
                )
                result.created_ids.append(master.id)
        result.imported = len(result.created_ids)

        logger.info(
            "Rate import committed: %d masters created from %d rows (%d invalid, %d duplicates)",
            result.imported, result.total, result.invalid, result.duplicates,
        )
        return result
