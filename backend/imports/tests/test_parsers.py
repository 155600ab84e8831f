import io
from datetime import datetime

from django.core.files.uploadedfile import SimpleUploadedFile
from openpyxl import Workbook

from ..services.parsers import (
    get_file_extension,
    is_supported_file_type,
    parse_csv,
    parse_excel,
    parse_import_file,
    validate_file_size,
)


def _xlsx_bytes(rows):
    wb = Workbook()
    ws = wb.active
    for row in rows:
        ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


class TestFileChecks:
    def test_extension_helpers(self):
        assert get_file_extension("Rates.XLSX") == "xlsx"
        assert get_file_extension("noext") == ""
        assert is_supported_file_type("rates.csv")
        assert not is_supported_file_type("rates.xls")
        assert not is_supported_file_type("rates.txt")

    def test_file_size_limit(self):
        small = SimpleUploadedFile("a.csv", b"x" * 10)
        big = SimpleUploadedFile("a.csv", b"x" * (1024 * 1024 + 1))
        assert validate_file_size(small, 1) is None
        assert validate_file_size(big, 1) == "파일 크기는 1MB 이하여야 합니다"


class TestCsv:
    def test_headers_trimmed_and_blank_rows_skipped(self):
        parsed = parse_csv(" 센터명 ,톤수\n쿠팡 , 5\n,\n\n네이버,2.5\n")
        assert parsed.errors == []
        assert parsed.data == [{"센터명": "쿠팡", "톤수": "5"}, {"센터명": "네이버", "톤수": "2.5"}]

    def test_ragged_rows_are_errors(self):
        parsed = parse_csv("센터명,톤수\n쿠팡,5,extra\n")
        assert parsed.data == []
        assert parsed.errors[0].startswith("행 2:")

    def test_upload_with_bom(self):
        upload = SimpleUploadedFile("rates.csv", "센터명,금액\n쿠팡,\"120,000\"\n".encode("utf-8-sig"))
        parsed = parse_import_file(upload)
        assert parsed.data == [{"센터명": "쿠팡", "금액": "120,000"}]

    def test_upload_in_cp949(self):
        upload = SimpleUploadedFile("rates.csv", "센터명,톤수\n쿠팡,5\n".encode("cp949"))
        assert parse_import_file(upload).data == [{"센터명": "쿠팡", "톤수": "5"}]


class TestExcel:
    def test_first_sheet_stringified(self):
        content = _xlsx_bytes([
            ["센터명", "톤수", "금액", "적용시작일", None],
            ["쿠팡", 5, 120000.0, datetime(2025, 1, 1), None],
            [None, None, None, None, None],
            ["네이버", 2.5, 80000, None, None],
        ])
        parsed = parse_excel(content)
        assert parsed.errors == []
        assert parsed.data == [
            {"센터명": "쿠팡", "톤수": "5", "금액": "120000", "적용시작일": "2025-01-01T00:00:00"},
            {"센터명": "네이버", "톤수": "2.5", "금액": "80000", "적용시작일": ""},
        ]

    def test_corrupt_file_is_reported(self):
        parsed = parse_import_file(SimpleUploadedFile("rates.xlsx", b"not a zip"))
        assert parsed.data == []
        assert parsed.errors and parsed.errors[0].startswith("Excel 파싱 중 오류가 발생했습니다")

    def test_unsupported_type_is_reported(self):
        parsed = parse_import_file(SimpleUploadedFile("rates.pdf", b"%PDF"))
        assert parsed.errors == ["지원하지 않는 파일 형식입니다. 지원 형식: CSV, Excel (.xlsx)"]
