from __future__ import annotations

import logging

from django.conf import settings

from rest_framework import status, views
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import RatePermission
from rates.services.errors import DuplicateRate

from .services.headers import validate_headers
from .services.parsers import is_supported_file_type, parse_import_file, validate_file_size
from .services.rate_import import (
    COMMIT,
    MODES,
    REQUIRED_HEADERS,
    SIMULATE,
    TEMPLATE_HEADERS,
    RateImportError,
    RateImportService,
)

logger = logging.getLogger(__name__)


def _error(detail: str, code: str, status_code: int = status.HTTP_400_BAD_REQUEST, **extra):
    """Consistent error payload shape across API: {'detail': ..., 'code': ...}."""
    return Response({"detail": detail, "code": code, **extra}, status=status_code)


class RateImportView(views.APIView):
    """
    Upload a CSV/XLSX rate sheet.

    `mode=simulate` (default) validates and previews without writing;
    `mode=commit` creates every valid rate master in one transaction.
    """
    permission_classes = [IsAuthenticated, RatePermission]
    parser_classes = [MultiPartParser, FormParser]
    rate_action = "create"

    def post(self, request):
        upload = request.FILES.get("file")
        mode = (request.data.get("mode") or SIMULATE).strip().lower()

        if upload is None:
            return _error("파일을 선택해주세요", "NO_FILE")
        if mode not in MODES:
            return _error(f"mode는 {', '.join(MODES)} 중 하나여야 합니다", "INVALID_MODE")
        if not is_supported_file_type(upload.name):
            return _error("CSV 또는 Excel 파일만 업로드 가능합니다 (.csv, .xlsx)", "INVALID_FILE_TYPE")

        size_error = validate_file_size(upload, settings.RATES_IMPORT_MAX_MB)
        if size_error:
            return _error(size_error, "FILE_TOO_LARGE")

        parsed = parse_import_file(upload)
        if parsed.errors:
            return _error("파일을 파싱할 수 없습니다", "FILE_PARSE_ERROR", details=parsed.errors)

        rows = parsed.data
        if not rows:
            return _error("파일이 비어있습니다", "EMPTY_FILE")

        header_errors = validate_headers(rows, REQUIRED_HEADERS)
        if header_errors:
            return _error(
                header_errors[0],
                "MISSING_HEADERS",
                details={
                    "required": list(REQUIRED_HEADERS),
                    "found": list(rows[0].keys()),
                    "template": list(TEMPLATE_HEADERS),
                },
            )

        service = RateImportService(created_by=request.user)
        try:
            result = service.run(rows, mode)
        except RateImportError as e:
            return _error(str(e), e.code, details=e.result.as_dict())
        except DuplicateRate as e:
            # A concurrent writer created the same rate between validation and commit
            return _error(str(e), e.code, status.HTTP_409_CONFLICT)

        logger.info("Rate import by %s: file=%s mode=%s", request.user, upload.name, mode)
        if mode == COMMIT:
            return Response(
                {
                    "message": f"{result.imported}개의 요금 정보가 성공적으로 등록되었습니다",
                    "mode": mode,
                    "results": result.as_dict(),
                },
                status=status.HTTP_201_CREATED,
            )
        return Response({"message": "검증이 완료되었습니다", "mode": mode, "results": result.as_dict()})
