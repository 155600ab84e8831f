"""
Tabular upload parsing for bulk imports.

Both parsers return rows as dicts keyed by the trimmed header text with
every value stringified and trimmed, so the row validators never have to
care whether a file came from a spreadsheet or a CSV export. Parse
failures are reported in `ParsedData.errors` rather than raised.
"""
from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = ("csv", "xlsx")
# Korean Excel saves CSV as cp949 unless told otherwise
CSV_ENCODINGS = ("utf-8-sig", "cp949")


@dataclass
class ParsedData:
    data: List[Dict[str, str]] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def get_file_extension(filename: str) -> str:
    name = (filename or "").lower()
    return name.rsplit(".", 1)[-1] if "." in name else ""


def is_supported_file_type(filename: str) -> bool:
    return get_file_extension(filename) in SUPPORTED_EXTENSIONS


def validate_file_size(uploaded_file, max_mb: int = 10) -> Optional[str]:
    if uploaded_file.size > max_mb * 1024 * 1024:
        return f"파일 크기는 {max_mb}MB 이하여야 합니다"
    return None


def _decode(content: bytes) -> str:
    for encoding in CSV_ENCODINGS:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise UnicodeDecodeError("utf-8", content, 0, 1, "지원하지 않는 문자 인코딩입니다 (UTF-8 또는 CP949)")


def parse_csv(content: str) -> ParsedData:
    reader = csv.reader(io.StringIO(content))
    try:
        header_row = next(reader, None)
        if header_row is None:
            return ParsedData()
        headers = [h.strip() for h in header_row]

        result = ParsedData()
        for line_no, values in enumerate(reader, start=2):
            if not any((v or "").strip() for v in values):
                continue
            if len(values) != len(headers):
                result.errors.append(
                    f"행 {line_no}: 열 개수({len(values)})가 헤더 개수({len(headers)})와 일치하지 않습니다"
                )
                continue
            result.data.append({h: (v or "").strip() for h, v in zip(headers, values) if h})
        return result
    except csv.Error as e:
        logger.warning("CSV parse failed: %s", e)
        return ParsedData(errors=[f"CSV 파싱 중 오류가 발생했습니다: {e}"])


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).upper()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value).strip()


def parse_excel(content: bytes) -> ParsedData:
    try:
        workbook = load_workbook(io.BytesIO(content), data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, OSError) as e:
        logger.warning("Excel parse failed: %s", e)
        return ParsedData(errors=[f"Excel 파싱 중 오류가 발생했습니다: {e}"])

    try:
        if not workbook.worksheets:
            return ParsedData(errors=["Excel 파일에 워크시트가 없습니다"])
        rows = workbook.worksheets[0].iter_rows(values_only=True)
        header_row = next(rows, None)
        if header_row is None:
            return ParsedData(errors=["Excel 파일이 비어있습니다"])
        headers = [_cell_text(h) for h in header_row]

        data = []
        for values in rows:
            row = {h: _cell_text(v) for h, v in zip(headers, values) if h}
            # Fully empty rows are formatting leftovers, not data
            if any(row.values()):
                data.append(row)
        return ParsedData(data=data)
    finally:
        workbook.close()


def parse_import_file(uploaded_file) -> ParsedData:
    """Dispatch on the upload's extension; unsupported types come back as errors."""
    ext = get_file_extension(uploaded_file.name)
    if ext not in SUPPORTED_EXTENSIONS:
        return ParsedData(errors=["지원하지 않는 파일 형식입니다. 지원 형식: CSV, Excel (.xlsx)"])

    content = uploaded_file.read()
    if ext == "csv":
        try:
            text = _decode(content)
        except UnicodeDecodeError as e:
            return ParsedData(errors=[e.reason])
        return parse_csv(text)
    return parse_excel(content)
