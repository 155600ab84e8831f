from decimal import Decimal
from io import StringIO

import pytest
from django.core.management import call_command

from rates.models import RateDetail, RateMaster
from rates.services.rate_service import calculate_rate

pytestmark = pytest.mark.django_db


def test_seed_rates_is_repeatable():
    call_command("seed_rates", stdout=StringIO())
    call_command("seed_rates", stdout=StringIO())
    assert RateMaster.objects.count() == 2
    coupang = RateMaster.objects.get(center_name="쿠팡")
    assert coupang.details.count() == 5

    result = calculate_rate("쿠팡", Decimal("5"), regions=["수원", "강남"], total_stops=2)
    # First WAYPOINT_FEE line (강남) applies to every extra region
    assert result.breakdown.waypoint_fee == Decimal("8000")
    assert result.breakdown.total == Decimal("143000")


def test_validate_rates_reports_issues():
    call_command("seed_rates", stdout=StringIO())
    RateDetail.objects.filter(rate_master__center_name="네이버", type="BASE").update(region="분당")

    out = StringIO()
    call_command("validate_rates", stdout=out)
    output = out.getvalue()
    assert "네이버" in output
    assert "2 active WAYPOINT_FEE lines" in output
    assert "Found issues in 2 out of 2 rates" in output


def test_validate_rates_with_empty_catalog():
    out = StringIO()
    call_command("validate_rates", stdout=out)
    assert "No active rates found" in out.getvalue()
