from django.core.management.base import BaseCommand

from rates.models import RateMaster
from rates.services.rate_admin import audit_rate


class Command(BaseCommand):
    help = "Reports active rate masters whose detail lines would price trips unexpectedly."

    def handle(self, *args, **kwargs):
        self.stdout.write("Starting validation of active rates...")
        masters_with_warnings = 0

        masters = RateMaster.objects.filter(is_active=True).order_by("center_name", "tonnage")
        total = masters.count()

        if total == 0:
            self.stdout.write(self.style.WARNING("No active rates found in the database to validate."))
            return

        for master in masters:
            warnings = audit_rate(master.id)
            if warnings:
                masters_with_warnings += 1
                self.stdout.write(self.style.WARNING(f"--- Rate {master.id} ({master}) ---"))
                for warning in warnings:
                    self.stdout.write(f"  - {warning}")

        self.stdout.write("-" * 20)
        if masters_with_warnings > 0:
            self.stdout.write(self.style.ERROR(
                f"\nValidation complete. Found issues in {masters_with_warnings} out of {total} rates."
            ))
        else:
            self.stdout.write(self.style.SUCCESS(f"\nValidation complete. All {total} rates look good."))
