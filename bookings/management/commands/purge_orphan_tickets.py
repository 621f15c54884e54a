from django.core.management.base import BaseCommand

from bookings.models import TicketRecord
from movies.models import ScreeningRecord


class Command(BaseCommand):
    help = 'Delete stored tickets whose screening no longer exists'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be deleted without actually deleting',
        )

    def handle(self, *args, **options):
        known = ScreeningRecord.objects.values_list('id', flat=True)
        orphans = TicketRecord.objects.exclude(screening_id__in=known)
        count = orphans.count()

        if count == 0:
            self.stdout.write(self.style.SUCCESS('✅ No orphan tickets found'))
            return

        for ticket in orphans:
            self.stdout.write(
                self.style.WARNING(
                    f'  {"Would delete" if options["dry_run"] else "Deleting"}: {ticket.id} '
                    f'| {ticket.movie_title} | Seats: {ticket.get_seats_display()}'
                )
            )

        if options['dry_run']:
            self.stdout.write(self.style.WARNING(f'DRY RUN: Would have removed {count} orphan ticket(s)'))
            return

        orphans.delete()
        self.stdout.write(self.style.SUCCESS(f'✅ Removed {count} orphan ticket(s)'))
