from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from rest_framework.test import APIClient

from rates.models import RateDetail, RateMaster
from rates.services.rate_service import calculate_rate

from ..services.rate_import import (
    COMMIT,
    SIMULATE,
    RateImportError,
    RateImportService,
    parse_rate_type,
)

pytestmark = pytest.mark.django_db


def _row(center, tonnage, kind, amount, region="", conditions="", **extra):
    row = {"센터명": center, "톤수": tonnage, "요금종류": kind, "금액": amount, "지역": region, "조건": conditions}
    row.update(extra)
    return row


GOOD_ROWS = [
    _row("쿠팡", "5", "기본요금", "120,000"),
    _row("쿠팡", "5", "콜비", "5000"),
    _row("쿠팡", "5", "WAYPOINT_FEE", "8000", region="강남"),
    _row("네이버", "2.5", "BASE", "80000"),
]


def test_rate_type_accepts_codes_and_labels():
    assert parse_rate_type("base") == "BASE"
    assert parse_rate_type("경유비") == "WAYPOINT_FEE"
    assert parse_rate_type("특수요금") == "SPECIAL"


def test_simulate_never_writes():
    result = RateImportService().run(GOOD_ROWS, SIMULATE)
    assert (result.total, result.valid, result.invalid, result.duplicates) == (4, 4, 0, 0)
    assert not RateMaster.objects.exists()
    payload = result.as_dict()
    assert [p["centerName"] for p in payload["preview"]] == ["쿠팡", "네이버"]
    assert payload["preview"][0] == {
        "centerName": "쿠팡", "tonnage": "5", "baseFare": "120000", "detailCount": 3, "rows": [2, 3, 4],
    }
    assert "imported" not in payload


def test_commit_creates_one_master_per_group():
    user = get_user_model().objects.create_user(username="importer", password="x", role="admin")
    result = RateImportService(created_by=user).run(GOOD_ROWS, COMMIT)
    assert result.imported == 2
    coupang = RateMaster.objects.get(center_name="쿠팡")
    assert coupang.created_by == user
    assert coupang.details.count() == 3
    assert RateDetail.objects.get(rate_master=coupang, type="BASE").amount == Decimal("120000")
    assert set(result.created_ids) == set(RateMaster.objects.values_list("id", flat=True))


def test_row_errors_are_numbered_from_spreadsheet_rows():
    rows = GOOD_ROWS + [
        _row("", "5", "BASE", "1"),
        _row("이마트", "0", "BASE", "1"),
        _row("이마트", "5", "할인", "1"),
        _row("이마트", "5", "BASE", "abc"),
        _row("이마트", "5", "BASE", "-1"),
        _row("이마트", "5", "BASE", "1", 적용시작일="2025-03-01", 적용종료일="2025-01-01"),
    ]
    result = RateImportService().run(rows, SIMULATE)
    assert [e["row"] for e in result.errors] == [6, 7, 8, 9, 10, 11]
    assert result.errors[0]["error"] == "센터명은 필수입니다"
    assert result.invalid == 6
    assert result.valid == 4


def test_values_finer_than_two_decimals_are_rejected():
    rows = [
        _row("이마트", "2.555", "BASE", "1000"),
        _row("이마트", "2.5", "BASE", "1000.129"),
        _row("홈플러스", "5.000", "BASE", "1000.50"),
    ]
    result = RateImportService().run(rows, COMMIT)
    assert [e["row"] for e in result.errors] == [2, 3]
    assert "소수점 2자리" in result.errors[0]["error"]
    assert result.imported == 1
    master = RateMaster.objects.get()
    assert master.tonnage == Decimal("5")
    assert calculate_rate("홈플러스", Decimal("5")).breakdown.base_fare == Decimal("1000.50")


def test_existing_master_is_a_duplicate():
    RateMaster.objects.create(center_name="쿠팡", tonnage=Decimal("5"))
    result = RateImportService().run(GOOD_ROWS, SIMULATE)
    assert result.duplicates == 3
    assert result.valid == 1
    assert result.errors[0]["row"] == 2
    assert "이미 존재합니다" in result.errors[0]["error"]


def test_group_without_base_or_with_repeats_is_rejected():
    rows = [
        _row("이마트", "1", "콜비", "1000"),
        _row("홈플러스", "1", "BASE", "1000"),
        _row("홈플러스", "1", "경유비", "500", region="수원"),
        _row("홈플러스", "1", "경유비", "700", region=" 수원 "),
    ]
    result = RateImportService().run(rows, SIMULATE)
    assert result.valid == 0
    assert result.invalid == 4
    messages = {e["row"]: e["error"] for e in result.errors}
    assert "기본요금(BASE)이 없습니다" in messages[2]
    assert "4행과 중복됩니다" in messages[5]


def test_commit_without_valid_rows_raises():
    with pytest.raises(RateImportError) as exc:
        RateImportService().run([_row("이마트", "1", "콜비", "1000")], COMMIT)
    assert exc.value.code == "NO_VALID_DATA"
    assert exc.value.result.invalid == 1
    assert not RateMaster.objects.exists()


class TestImportEndpoint:
    CSV = (
        "센터명,톤수,요금종류,금액,지역,조건\n"
        "쿠팡,5,기본요금,120000,,\n"
        "쿠팡,5,콜비,5000,,\n"
        "쿠팡,5,특수요금,10000,,야간할증 (22:00-06:00)\n"
    ).encode("utf-8")

    def _client(self, role="dispatcher"):
        user = get_user_model().objects.create_user(username=f"{role}_imp", password="x", role=role)
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    def _upload(self, client, content=None, name="rates.csv", mode=None):
        data = {"file": SimpleUploadedFile(name, content if content is not None else self.CSV)}
        if mode:
            data["mode"] = mode
        return client.post("/api/rates/import", data, format="multipart")

    def test_simulate_then_commit(self):
        client = self._client()
        resp = self._upload(client)
        assert resp.status_code == 200, resp.content
        assert resp.json()["mode"] == "simulate"
        assert resp.json()["results"]["valid"] == 3
        assert not RateMaster.objects.exists()

        resp = self._upload(client, mode="commit")
        assert resp.status_code == 201, resp.content
        assert resp.json()["results"]["imported"] == 1
        assert RateMaster.objects.get().details.count() == 3

        # Re-importing the same sheet finds the master already there
        resp = self._upload(client, mode="commit")
        assert resp.status_code == 400
        assert resp.json()["code"] == "NO_VALID_DATA"
        assert resp.json()["details"]["duplicates"] == 3

    def test_accountant_cannot_import(self):
        assert self._upload(self._client("accountant")).status_code == 403

    def test_missing_headers(self):
        resp = self._upload(self._client(), content="센터,지역\n쿠팡,강남\n".encode("utf-8"))
        assert resp.status_code == 400
        body = resp.json()
        assert body["code"] == "MISSING_HEADERS"
        assert body["details"]["found"] == ["센터", "지역"]

    def test_rejects_bad_requests(self):
        client = self._client()
        assert client.post("/api/rates/import", {}, format="multipart").json()["code"] == "NO_FILE"
        assert self._upload(client, name="rates.txt").json()["code"] == "INVALID_FILE_TYPE"
        assert self._upload(client, mode="apply").json()["code"] == "INVALID_MODE"
        assert self._upload(client, content="센터명,톤수\n".encode("utf-8")).json()["code"] == "EMPTY_FILE"
        assert self._upload(client, content=b"a,b\n1,2,3\n").json()["code"] == "FILE_PARSE_ERROR"
