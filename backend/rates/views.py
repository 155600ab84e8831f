from __future__ import annotations

import logging

from django.conf import settings

from rest_framework import status, views, viewsets
from rest_framework.decorators import action
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import RatePermission

from .serializers import (
    RateCalculateQuerySerializer,
    RateCreateSerializer,
    RateListQuerySerializer,
    RateMasterSerializer,
    RateToggleSerializer,
    RateUpdateSerializer,
)
from .services import rate_admin
from .services.errors import (
    DuplicateRate,
    NoValidRatesForDate,
    RateEngineError,
    RateMasterNotFound,
    RateNotFound,
)
from .services.rate_service import calculate_rate, get_rate_suggestions
from .services.utils import format_tonnage

logger = logging.getLogger(__name__)


def _error(exc: RateEngineError, status_code: int, **extra):
    """Consistent error payload shape across API: {'detail': ..., 'code': ...}."""
    return Response({"detail": str(exc), "code": exc.code, **extra}, status=status_code)


class RateResultsSetPagination(PageNumberPagination):
    page_size = settings.RATES_PAGE_SIZE
    page_size_query_param = "limit"
    max_page_size = 100


class RateMasterViewSet(viewsets.ViewSet):
    """CRUD over rate masters; detail writes replace the whole line set."""
    permission_classes = [IsAuthenticated, RatePermission]
    lookup_value_regex = r"\d+"

    def list(self, request):
        params = RateListQuerySerializer(data=request.query_params.dict())
        params.is_valid(raise_exception=True)
        qs = rate_admin.list_rates(**params.validated_data)

        paginator = RateResultsSetPagination()
        page = paginator.paginate_queryset(qs, request, view=self)
        return paginator.get_paginated_response(RateMasterSerializer(page, many=True).data)

    def retrieve(self, request, pk=None):
        try:
            master = rate_admin.get_rate(pk)
        except RateMasterNotFound as e:
            return _error(e, status.HTTP_404_NOT_FOUND)
        return Response(RateMasterSerializer(master).data)

    def create(self, request):
        ser = RateCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        try:
            master = rate_admin.create_rate(
                center_name=data["center_name"],
                tonnage=data["tonnage"],
                details=data["details"],
                created_by=request.user,
            )
        except DuplicateRate as e:
            return _error(e, status.HTTP_409_CONFLICT)
        return Response(RateMasterSerializer(master).data, status=status.HTTP_201_CREATED)

    def update(self, request, pk=None, partial=False):
        ser = RateUpdateSerializer(data=request.data, partial=partial)
        ser.is_valid(raise_exception=True)
        try:
            master = rate_admin.update_rate(pk, **ser.validated_data)
        except RateMasterNotFound as e:
            return _error(e, status.HTTP_404_NOT_FOUND)
        except DuplicateRate as e:
            return _error(e, status.HTTP_409_CONFLICT)
        return Response(RateMasterSerializer(master).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk, partial=True)

    def destroy(self, request, pk=None):
        try:
            rate_admin.delete_rate(pk)
        except RateMasterNotFound as e:
            return _error(e, status.HTTP_404_NOT_FOUND)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"])
    def toggle(self, request, pk=None):
        ser = RateToggleSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            master = rate_admin.toggle_rate(pk, ser.validated_data["is_active"])
        except RateMasterNotFound as e:
            return _error(e, status.HTTP_404_NOT_FOUND)
        return Response(RateMasterSerializer(master).data)

    def get_permissions(self):
        # Toggling is an update even though it arrives as POST
        if self.action == "toggle":
            self.rate_action = "update"
        return super().get_permissions()


class RateCalculateView(views.APIView):
    permission_classes = [IsAuthenticated, RatePermission]

    def get(self, request):
        ser = RateCalculateQuerySerializer(data=request.query_params.dict())
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        try:
            result = calculate_rate(
                center_name=data["center"],
                tonnage=data["tonnage"],
                regions=data["regions"],
                date=data["date"],
                total_stops=data["totalStops"],
                distinct_regions=data["distinctRegions"],
            )
        except RateNotFound as e:
            return _error(
                e,
                status.HTTP_404_NOT_FOUND,
                center=e.center_name,
                tonnage=format_tonnage(e.tonnage),
                suggestions=get_rate_suggestions().as_dict(),
            )
        except NoValidRatesForDate as e:
            return _error(
                e,
                status.HTTP_404_NOT_FOUND,
                center=e.center_name,
                tonnage=format_tonnage(e.tonnage),
                date=e.as_of.isoformat(),
            )
        return Response(result.as_dict(), status=status.HTTP_200_OK)


class RateSuggestionsView(views.APIView):
    permission_classes = [IsAuthenticated, RatePermission]

    def get(self, request):
        return Response(get_rate_suggestions().as_dict())
