"""Management command to close leads that have gone quiet.

Any lead with no activity for CRM_LEAD_ABANDON_AFTER_DAYS (default 30)
that is not already BOOKED, COMPLETED or CANCELLED is moved to CANCELLED.

Run daily via cron:
    0 3 * * * /path/to/manage.py check_abandoned_leads

Options:
    --dry-run: Show how many leads would be closed without closing them
"""

from datetime import timedelta

from django.conf import settings
from django.core.management.base import BaseCommand
from django.utils import timezone

from tourdesk.crm.lead_sync import DEFAULT_ABANDON_AFTER_DAYS, check_abandoned_leads
from tourdesk.crm.models import TERMINAL_LEAD_STATUSES, Lead


class Command(BaseCommand):
    help = "Close leads with no activity inside the abandonment window"

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show how many leads would be closed without closing them",
        )

    def handle(self, *args, **options):
        if options["dry_run"]:
            days = getattr(settings, "CRM_LEAD_ABANDON_AFTER_DAYS", DEFAULT_ABANDON_AFTER_DAYS)
            cutoff = timezone.now() - timedelta(days=days)
            stale = (
                Lead.objects.filter(last_activity_at__lt=cutoff)
                .exclude(status__in=TERMINAL_LEAD_STATUSES)
                .count()
            )
            self.stdout.write(
                self.style.WARNING(f"DRY RUN - {stale} lead(s) would be closed")
            )
            return

        closed = check_abandoned_leads()
        self.stdout.write(self.style.SUCCESS(f"Closed {closed} abandoned lead(s)"))
