from django.conf import settings
from django.db import models


class RateDetailType(models.TextChoices):
    BASE = 'BASE', '기본요금'
    CALL_FEE = 'CALL_FEE', '콜비'
    WAYPOINT_FEE = 'WAYPOINT_FEE', '경유비'
    SPECIAL = 'SPECIAL', '특수요금'


class RateMaster(models.Model):
    id = models.BigAutoField(primary_key=True)
    center_name = models.CharField(max_length=100)
    # Vehicle tonnage class, e.g. 1, 2.5, 5
    tonnage = models.DecimalField(max_digits=5, decimal_places=2)
    is_active = models.BooleanField(default=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'rate_masters'
        constraints = [
            models.UniqueConstraint(fields=['center_name', 'tonnage'], name='unique_center_tonnage'),
        ]
        indexes = [
            models.Index(fields=['is_active', 'center_name'], name='rate_master_active_center_idx'),
        ]

    def __str__(self):
        return f"{self.center_name} ({self.tonnage}톤)"


class RateDetail(models.Model):
    id = models.BigAutoField(primary_key=True)
    rate_master = models.ForeignKey(RateMaster, on_delete=models.CASCADE, related_name='details')
    type = models.CharField(max_length=16, choices=RateDetailType.choices)
    # Blank means the line applies to every region
    region = models.CharField(max_length=50, blank=True, null=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    conditions = models.TextField(blank=True, null=True)
    is_active = models.BooleanField(default=True)
    valid_from = models.DateTimeField(blank=True, null=True)
    valid_to = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'rate_details'
        ordering = ['type', 'region', 'id']
        constraints = [
            models.CheckConstraint(condition=models.Q(amount__gte=0), name='rate_detail_amount_non_negative'),
        ]
        indexes = [
            models.Index(fields=['rate_master', 'type'], name='rate_detail_master_type_idx'),
        ]

    def __str__(self):
        return f"{self.rate_master} - {self.type} {self.region or '전체'}: {self.amount}"
