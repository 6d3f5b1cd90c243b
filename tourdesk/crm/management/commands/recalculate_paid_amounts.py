"""Management command to rebuild every booking's cached paid_amount.

Use after importing payments or repairing data by hand.
"""

from django.core.management.base import BaseCommand

from tourdesk.crm.payment_service import recalculate_all_booking_paid_amounts


class Command(BaseCommand):
    help = "Recompute paid_amount for every booking from its payments"

    def handle(self, *args, **options):
        result = recalculate_all_booking_paid_amounts()
        self.stdout.write(
            self.style.SUCCESS(
                f"Recalculated {result['total']} booking(s), {result['updated']} changed"
            )
        )
