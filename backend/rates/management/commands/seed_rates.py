from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from rates.models import RateDetail, RateDetailType, RateMaster

DEMO_RATES = [
    {
        "center_name": "쿠팡",
        "tonnage": Decimal("5"),
        "details": [
            (RateDetailType.BASE, None, Decimal("120000"), "기본 운송료"),
            (RateDetailType.CALL_FEE, None, Decimal("5000"), "추가 착지당 콜비"),
            (RateDetailType.WAYPOINT_FEE, "강남", Decimal("8000"), "강남 경유비"),
            (RateDetailType.WAYPOINT_FEE, "수원", Decimal("12000"), "수원 경유비"),
            (RateDetailType.SPECIAL, None, Decimal("10000"), "야간할증 (22:00-06:00)"),
        ],
    },
    {
        "center_name": "네이버",
        "tonnage": Decimal("2.5"),
        "details": [
            (RateDetailType.BASE, None, Decimal("80000"), "기본 운송료"),
            (RateDetailType.CALL_FEE, None, Decimal("3000"), "추가 착지당 콜비"),
            (RateDetailType.WAYPOINT_FEE, "판교", Decimal("5000"), "판교 경유비"),
        ],
    },
]


class Command(BaseCommand):
    help = "Seeds demo rate masters. Existing (center, tonnage) pairs have their lines replaced."

    def add_arguments(self, parser):
        parser.add_argument("--username", help="Record this user as the creator of new rates.")

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write(self.style.WARNING("Seeding demo rates..."))

        creator = None
        if options.get("username"):
            creator = get_user_model().objects.filter(username=options["username"]).first()
            if creator is None:
                self.stdout.write(self.style.WARNING(f"User {options['username']!r} not found; creator left empty."))

        for spec in DEMO_RATES:
            master, created = RateMaster.objects.get_or_create(
                center_name=spec["center_name"],
                tonnage=spec["tonnage"],
                defaults={"created_by": creator, "is_active": True},
            )
            master.details.all().delete()
            RateDetail.objects.bulk_create([
                RateDetail(rate_master=master, type=rate_type, region=region, amount=amount, conditions=conditions)
                for rate_type, region, amount, conditions in spec["details"]
            ])
            verb = "Created" if created else "Refreshed"
            self.stdout.write(f"{verb} rate '{master}' with {len(spec['details'])} lines")

        self.stdout.write(self.style.SUCCESS("Demo rates seeded."))
