"""
Tolerant header matching for user-prepared spreadsheets.

Operators rarely keep the template headers intact, so a required header is
matched by (1) normalized equality, (2) a known alias, (3) containment in
either direction.
"""
from __future__ import annotations

import re
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

_NON_WORD = re.compile(r"[^a-z0-9가-힣]")

HEADER_ALIASES: Dict[str, Sequence[str]] = {
    "센터명": ("센터명", "센터", "물류센터", "창고명", "center"),
    "톤수": ("톤수", "차량톤수", "톤", "차급", "tonnage", "ton"),
    "요금종류": ("요금종류", "요금유형", "요율종류", "종류", "type", "ratetype"),
    "금액": ("금액", "단가", "운임", "amount", "price"),
    "지역": ("지역", "권역", "착지", "region"),
    "조건": ("조건", "비고", "설명", "메모", "conditions", "note"),
    "적용시작일": ("적용시작일", "시작일", "유효시작일", "validfrom"),
    "적용종료일": ("적용종료일", "종료일", "유효종료일", "validto"),
}


def normalize_header(text: str) -> str:
    return _NON_WORD.sub("", (text or "").lower())


def find_similar_header(target: str, headers: Iterable[str]) -> Optional[str]:
    headers = [h for h in headers if normalize_header(h)]
    wanted = normalize_header(target)

    for header in headers:
        if normalize_header(header) == wanted:
            return header

    alternatives = HEADER_ALIASES.get(target, (target,))
    for alt in alternatives:
        key = normalize_header(alt)
        for header in headers:
            if normalize_header(header) == key:
                return header

    for alt in alternatives:
        key = normalize_header(alt)
        for header in headers:
            norm = normalize_header(header)
            if key in norm or norm in key:
                return header
    return None


def validate_headers(rows: Sequence[Mapping[str, str]], required_headers: Sequence[str]) -> List[str]:
    if not rows:
        return ["파일이 비어있습니다"]

    headers = list(rows[0].keys())
    missing: List[str] = []
    found: Dict[str, str] = {}
    for required in required_headers:
        match = find_similar_header(required, headers)
        if match:
            found[required] = match
        else:
            missing.append(required)

    if missing:
        mapping_info = ", ".join(f"{std}→{got}" for std, got in found.items()) or "없음"
        return [
            f"필수 헤더가 없습니다: {', '.join(missing)}. "
            f"발견된 매핑: {mapping_info}. 현재 헤더: {', '.join(headers)}"
        ]
    return []


def map_row_headers(row: Mapping[str, str], standard_headers: Sequence[str]) -> Dict[str, str]:
    """Re-key `row` onto `standard_headers`; unmatched standard headers are omitted."""
    headers = list(row.keys())
    mapped: Dict[str, str] = {}
    for standard in standard_headers:
        match = find_similar_header(standard, headers)
        if match is not None and row.get(match) is not None:
            mapped[standard] = row[match]
    return mapped
