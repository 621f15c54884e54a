from django.core.management.base import BaseCommand, CommandError

from bookings.remote import RemoteStore
from bookings.seeding import sample_movies, seed_remote, staff_users


class Command(BaseCommand):
    help = 'Write the default staff accounts and sample catalog to the remote store if missing'

    def add_arguments(self, parser):
        parser.add_argument(
            '--skip-catalog',
            action='store_true',
            help='Only seed the staff accounts',
        )
        parser.add_argument(
            '--async',
            action='store_true',
            dest='run_async',
            help='Queue the seeding as a Celery task instead of running it here',
        )

    def handle(self, *args, **options):
        if options['run_async']:
            from bookings.tasks import seed_remote_store
            result = seed_remote_store.delay()
            self.stdout.write(self.style.SUCCESS(f'Seeding queued as task {result.id}'))
            return

        store = RemoteStore.from_settings(enabled=True)
        if not store.initialize():
            raise CommandError('Remote store is unreachable; nothing was seeded.')

        try:
            movies = [] if options['skip_catalog'] else sample_movies()
            users_created, movies_created = seed_remote(store, users=staff_users(), movies=movies)
        finally:
            store.shutdown()

        self.stdout.write(f'  Users created:  {users_created}')
        self.stdout.write(f'  Movies created: {movies_created}')

        if users_created or movies_created:
            self.stdout.write(self.style.SUCCESS('✅ Seeding complete.'))
        else:
            self.stdout.write(self.style.WARNING('Everything was already seeded.'))
