from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from accounts.users import UserRole
from bookings.services import build_booking_service


class Command(BaseCommand):
    help = 'Create a cashier or admin account'

    def add_arguments(self, parser):
        parser.add_argument('email', type=str)
        parser.add_argument(
            '--password',
            type=str,
            default=None,
            help='Account password (default: changeme123)'
        )
        parser.add_argument(
            '--role',
            choices=[UserRole.CASHIER.name, UserRole.ADMIN.name],
            default=UserRole.CASHIER.name,
        )
        parser.add_argument('--first-name', dest='first_name', default='Staff')
        parser.add_argument('--last-name', dest='last_name', default='Member')
        parser.add_argument('--phone', default='0000000000')

    def handle(self, *args, **options):
        email = options['email']
        password = options.get('password') or 'changeme123'
        role = UserRole[options['role']]

        service = build_booking_service(bootstrap=False)
        online = service.remote.is_initialized
        try:
            created = service.register_staff_user(
                email,
                options['first_name'],
                options['last_name'],
                options['phone'],
                password,
                role,
            )
        except ValidationError as e:
            raise CommandError(f'Invalid account details: {"; ".join(e.messages)}')
        finally:
            service.close()

        if not created:
            self.stdout.write(self.style.ERROR(f'❌ "{email}" is already registered'))
            return

        self.stdout.write(self.style.SUCCESS(f'✅ {role.display_name} account created'))
        self.stdout.write(f'  Email:    {email.strip().lower()}')
        self.stdout.write(f'  Role:     {role.display_name}')
        if not online:
            self.stdout.write(self.style.WARNING('⚠️  Remote store offline: the account only lived in this process'))
