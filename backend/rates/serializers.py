from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from .models import RateDetail, RateDetailType, RateMaster
from .services.utils import format_tonnage, split_regions, to_aware_datetime

MAX_AMOUNT = Decimal("10000000")
MAX_TONNAGE = Decimal("50")


class FlexibleDateTimeField(serializers.Field):
    """Accepts an ISO date or datetime; bare dates mean local midnight."""

    default_error_messages = {
        "invalid": "올바른 날짜 형식이 아닙니다 (YYYY-MM-DD 또는 ISO 8601)",
    }

    def to_internal_value(self, data):
        value = to_aware_datetime(data)
        if value is None:
            self.fail("invalid")
        return value

    def to_representation(self, value):
        return value.isoformat() if value else None


# ---------- DETAIL LINES ----------
class RateDetailSerializer(serializers.ModelSerializer):
    type = serializers.ChoiceField(choices=RateDetailType.choices)
    region = serializers.CharField(max_length=50, required=False, allow_null=True, allow_blank=True)
    amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0"), max_value=MAX_AMOUNT,
        error_messages={
            "min_value": "금액은 0 이상이어야 합니다",
            "max_value": "금액은 10,000,000원 이하여야 합니다",
        },
    )
    conditions = serializers.CharField(max_length=500, required=False, allow_null=True, allow_blank=True)
    is_active = serializers.BooleanField(required=False, default=True)
    valid_from = FlexibleDateTimeField(required=False, allow_null=True)
    valid_to = FlexibleDateTimeField(required=False, allow_null=True)

    class Meta:
        model = RateDetail
        fields = ["id", "type", "region", "amount", "conditions", "is_active", "valid_from", "valid_to"]
        read_only_fields = ("id",)

    def validate(self, attrs):
        valid_from = attrs.get("valid_from")
        valid_to = attrs.get("valid_to")
        if valid_from and valid_to and valid_from > valid_to:
            raise serializers.ValidationError({"valid_to": "종료일은 시작일 이후여야 합니다"})
        return attrs


# ---------- MASTER (read) ----------
class RateMasterSerializer(serializers.ModelSerializer):
    tonnage = serializers.SerializerMethodField()
    details = serializers.SerializerMethodField()
    created_by = serializers.SerializerMethodField()

    class Meta:
        model = RateMaster
        fields = ["id", "center_name", "tonnage", "is_active", "created_by", "created_at", "updated_at", "details"]

    def get_tonnage(self, obj):
        return format_tonnage(obj.tonnage)

    def get_details(self, obj):
        # Admin services prefetch only the active lines into `active_details`
        rows = getattr(obj, "active_details", None)
        if rows is None:
            rows = obj.details.filter(is_active=True).order_by("type", "region", "id")
        return RateDetailSerializer(rows, many=True).data

    def get_created_by(self, obj):
        user = obj.created_by
        return {"id": user.id, "username": user.username} if user else None


# ---------- MASTER (write) ----------
class _RateKeyMixin:
    def validate_center_name(self, value: str) -> str:
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("센터명은 필수입니다")
        return value


class RateCreateSerializer(_RateKeyMixin, serializers.Serializer):
    center_name = serializers.CharField(max_length=100)
    tonnage = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=Decimal("0.01"), max_value=MAX_TONNAGE,
        error_messages={
            "min_value": "톤수는 0보다 커야 합니다",
            "max_value": "톤수는 50톤 이하여야 합니다",
        },
    )
    details = RateDetailSerializer(many=True)

    def validate_details(self, value):
        if not value:
            raise serializers.ValidationError("최소 하나의 요금 상세가 필요합니다")
        if len(value) > 20:
            raise serializers.ValidationError("요금 상세는 최대 20개까지 가능합니다")
        if not any(item["type"] == RateDetailType.BASE for item in value):
            raise serializers.ValidationError("기본요금(BASE)은 필수입니다")
        return value


class RateUpdateSerializer(RateCreateSerializer):
    """Partial update; when `details` is present it replaces the whole set."""
    center_name = serializers.CharField(max_length=100, required=False)
    tonnage = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=Decimal("0.01"), max_value=MAX_TONNAGE, required=False,
    )
    is_active = serializers.BooleanField(required=False)
    details = RateDetailSerializer(many=True, required=False)


class RateToggleSerializer(serializers.Serializer):
    is_active = serializers.BooleanField()


# ---------- QUERY PARAMS ----------
class RateListQuerySerializer(serializers.Serializer):
    search = serializers.CharField(required=False, allow_blank=True, max_length=100)
    tonnage = serializers.DecimalField(max_digits=5, decimal_places=2, required=False)
    is_active = serializers.BooleanField(required=False, allow_null=True, default=None)
    sort_by = serializers.ChoiceField(
        choices=("center_name", "tonnage", "created_at", "updated_at"), required=False, default="created_at",
    )
    sort_order = serializers.ChoiceField(choices=("asc", "desc"), required=False, default="desc")


class RateCalculateQuerySerializer(serializers.Serializer):
    center = serializers.CharField(max_length=100)
    tonnage = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=Decimal("0.01"), max_value=MAX_TONNAGE,
    )
    regions = serializers.CharField(required=False, allow_blank=True, default="")
    date = FlexibleDateTimeField(required=False, allow_null=True, default=None)
    totalStops = serializers.IntegerField(required=False, min_value=1, max_value=99, allow_null=True, default=None)
    distinctRegions = serializers.IntegerField(required=False, min_value=0, max_value=99, allow_null=True, default=None)

    def validate_center(self, value: str) -> str:
        value = value.strip()
        if not value:
            raise serializers.ValidationError("센터명은 필수입니다")
        return value

    def validate_regions(self, value):
        return split_regions(value)
