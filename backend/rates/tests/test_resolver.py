from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils.timezone import now

from ..dataclasses import BASE, CALL_FEE, RateLine, RateMasterRef
from ..services.catalog import InMemoryRateCatalog
from ..services.errors import NoValidRatesForDate, RateNotFound
from ..services.rate_service import calculate_rate, get_rate_suggestions
from ..services.resolver import resolve_rate


@pytest.fixture
def catalog():
    cat = InMemoryRateCatalog()
    cat.add_master(
        RateMasterRef(id=1, center_name="서울센터", tonnage=Decimal("5")),
        [
            RateLine(id=10, type=BASE, amount=Decimal("50000")),
            RateLine(id=11, type=BASE, amount=Decimal("60000"), region="서울"),
            RateLine(id=12, type=CALL_FEE, amount=Decimal("5000")),
        ],
    )
    cat.add_master(
        RateMasterRef(id=2, center_name="쿠팡", tonnage=Decimal("2.5")),
        [RateLine(id=20, type=BASE, amount=Decimal("80000"))],
    )
    cat.add_master(
        RateMasterRef(id=3, center_name="휴면센터", tonnage=Decimal("1")),
        [RateLine(id=30, type=BASE, amount=Decimal("30000"))],
        is_active=False,
    )
    return cat


def test_center_match_is_case_insensitive_and_trimmed():
    cat = InMemoryRateCatalog()
    cat.add_master(RateMasterRef(id=1, center_name="CJ Center", tonnage=Decimal("5")),
                   [RateLine(id=1, type=BASE, amount=Decimal("1"))])
    resolved = resolve_rate(cat, "  cj center ", Decimal("5.00"))
    assert resolved.master.id == 1
    assert len(resolved.details) == 1


def test_unknown_center_raises_not_found(catalog):
    with pytest.raises(RateNotFound) as exc:
        resolve_rate(catalog, "미등록센터", Decimal("5"))
    assert exc.value.center_name == "미등록센터"
    assert exc.value.code == "RATE_NOT_FOUND"


def test_tonnage_must_match_exactly(catalog):
    with pytest.raises(RateNotFound):
        resolve_rate(catalog, "서울센터", Decimal("2.5"))


def test_inactive_master_is_not_resolved(catalog):
    with pytest.raises(RateNotFound):
        resolve_rate(catalog, "휴면센터", Decimal("1"))


def test_expired_only_line_raises_no_valid_rates():
    today = now()
    cat = InMemoryRateCatalog()
    cat.add_master(
        RateMasterRef(id=1, center_name="서울센터", tonnage=Decimal("5")),
        [RateLine(id=1, type=BASE, amount=Decimal("50000"), valid_to=today - timedelta(days=1))],
    )
    with pytest.raises(NoValidRatesForDate) as exc:
        resolve_rate(cat, "서울센터", Decimal("5"), as_of=today)
    assert exc.value.as_of == today


def test_validity_window_filters_lines():
    today = now()
    cat = InMemoryRateCatalog()
    cat.add_master(
        RateMasterRef(id=1, center_name="서울센터", tonnage=Decimal("5")),
        [
            RateLine(id=1, type=BASE, amount=Decimal("40000"), valid_to=today - timedelta(days=1)),
            RateLine(id=2, type=BASE, amount=Decimal("50000"), valid_from=today - timedelta(days=1)),
            RateLine(id=3, type=BASE, amount=Decimal("70000"), valid_from=today + timedelta(days=1)),
            RateLine(id=4, type=CALL_FEE, amount=Decimal("5000"), is_active=False),
        ],
    )
    resolved = resolve_rate(cat, "서울센터", Decimal("5"), as_of=today)
    assert [line.id for line in resolved.details] == [2]


def test_calculate_rate_end_to_end(catalog):
    result = calculate_rate("서울센터", 5, regions=["서울", " ", "경기"], total_stops=3, catalog=catalog)
    assert result.breakdown.base_fare == Decimal("60000")
    assert result.breakdown.call_fee == Decimal("10000")
    assert result.breakdown.total == Decimal("70000")
    payload = result.as_dict()
    assert payload["rateMaster"] == {"id": 1, "centerName": "서울센터", "tonnage": "5"}
    assert payload["calculation"]["calculationMeta"]["effectiveDistinctRegions"] == 2


def test_suggestions_list_active_values(catalog):
    suggestions = get_rate_suggestions(catalog)
    assert suggestions.available_centers == ["서울센터", "쿠팡"]
    assert suggestions.as_dict()["availableTonnages"] == ["2.5", "5"]
