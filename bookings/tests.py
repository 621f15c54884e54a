import datetime
import logging
import threading
from concurrent.futures import Executor, Future
from decimal import Decimal
from io import StringIO
from unittest import mock

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.core.management.base import CommandError
from django.db import DatabaseError, connection
from django.test import SimpleTestCase, TestCase, TransactionTestCase, override_settings
from django.utils import timezone

from accounts.models import UserRecord
from accounts.users import UserRole
from movies.models import MovieRecord, ScreeningRecord
from movies.seating import SeatState

from .models import TicketRecord
from .records import seat_keys_from_labels
from .remote import RemoteStore
from .services import BookingService
from .tasks import purge_orphan_tickets, seed_remote_store
from .tickets import ChangeStatus

SHOW_DATE = datetime.date(2026, 10, 20)


class ImmediateExecutor(Executor):
    """Runs remote calls inline so they share the test transaction."""

    def submit(self, fn, /, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


def online_store(timeout=1.0):
    store = RemoteStore(timeout=timeout, executor=ImmediateExecutor())
    store.initialize()
    return store


def add_test_movie(service, title='Test Movie', price='12.50'):
    movie = service.add_movie(
        title=title,
        description='A test movie',
        genre='Drama',
        duration_minutes=120,
        poster_ref='',
        rating='PG',
        screening_date=SHOW_DATE,
        start_time=datetime.time(19, 0),
        end_time=None,
        hall='Hall 1',
        price=price,
    )
    return movie, movie.screenings[0]


class TicketLifecycleTests(SimpleTestCase):

    def setUp(self):
        self.service = BookingService()
        self.movie, self.screening = add_test_movie(self.service)

    def test_purchase_and_cancel(self):

        ticket, success, error = self.service.create_ticket(
            self.screening, ['A1', 'A2'], 'John', 'Doe'
        )

        self.assertTrue(success)
        self.assertIsNone(error)
        self.assertEqual(ticket.total_price, Decimal('25.00'))
        self.assertEqual(ticket.get_formatted_total(), '$25.00')
        self.assertEqual(len(self.screening.seat_grid.available_seats()), 58)
        self.assertIs(self.service.get_ticket(ticket.id), ticket)

        self.assertTrue(self.service.cancel_ticket(ticket.id))

        self.assertEqual(len(self.screening.seat_grid.available_seats()), 60)
        self.assertIsNone(self.service.get_ticket(ticket.id))

    def test_cancel_is_idempotent(self):

        ticket, _, _ = self.service.create_ticket(self.screening, ['C3'], 'John', 'Doe')

        self.assertTrue(self.service.cancel_ticket(ticket.id))
        self.assertFalse(self.service.cancel_ticket(ticket.id))
        self.assertFalse(self.service.cancel_ticket('no-such-ticket'))
        self.assertEqual(len(self.screening.seat_grid.available_seats()), 60)

    def test_taken_seat_fails_the_whole_purchase(self):

        self.service.create_ticket(self.screening, ['A2'], 'First', 'Buyer')

        ticket, success, error = self.service.create_ticket(
            self.screening, ['A1', 'A2', 'A3'], 'Second', 'Buyer'
        )

        self.assertIsNone(ticket)
        self.assertFalse(success)
        self.assertEqual(error, 'One or more seats are no longer available')
        self.assertTrue(self.screening.seat_grid.lookup('A', 1).is_available)
        self.assertTrue(self.screening.seat_grid.lookup('A', 3).is_available)
        self.assertEqual(len(self.service.directory.tickets), 1)

    def test_invalid_seat_selection(self):

        for seats in [[], ['Z99'], ['A1', 'bogus']]:
            ticket, success, error = self.service.create_ticket(self.screening, seats, 'John', 'Doe')
            self.assertFalse(success)
            self.assertEqual(error, 'Invalid seat selection')

        self.assertEqual(len(self.screening.seat_grid.available_seats()), 60)

    def test_unknown_screening(self):

        ticket, success, error = self.service.create_ticket('missing', ['A1'], 'John', 'Doe')

        self.assertFalse(success)
        self.assertEqual(error, 'Screening not found')

    def test_customer_name_required(self):

        ticket, success, error = self.service.create_ticket(self.screening, ['A1'])

        self.assertFalse(success)
        self.assertEqual(error, 'Customer first and last name are required')
        self.assertTrue(self.screening.seat_grid.lookup('A', 1).is_available)

    def test_ticket_seats_are_its_own_copies(self):

        ticket, _, _ = self.service.create_ticket(self.screening, ['D1', 'D2'], 'John', 'Doe')

        self.assertTrue(all(seat.state is SeatState.RESERVED for seat in ticket.seats))

        ticket.seats[0].state = SeatState.AVAILABLE

        self.assertFalse(self.screening.seat_grid.lookup('D', 1).is_available)
        self.assertEqual(len(self.screening.seat_grid.available_seats()), 58)

    def test_price_is_frozen_at_issue(self):

        ticket, _, _ = self.service.create_ticket(self.screening, ['B1'], 'John', 'Doe')

        self.screening.price = Decimal('99.00')

        self.assertEqual(ticket.total_price, Decimal('12.50'))

    def test_reserved_seats_match_live_tickets(self):

        batches = [['A1', 'A2'], ['B1'], ['C5', 'C6', 'C7'], ['D1'], ['F10']]
        issued = []
        for seats in batches:
            ticket, success, _ = self.service.create_ticket(self.screening, seats, 'John', 'Doe')
            self.assertTrue(success)
            issued.append(ticket)

        self.service.cancel_ticket(issued[1].id)
        self.service.cancel_ticket(issued[3].id)
        self.service.create_ticket(self.screening, ['A1'], 'Late', 'Comer')

        held = set()
        for ticket in self.service.get_tickets_for_screening(self.screening.id):
            held.update(ticket.seat_labels)

        self.assertEqual(held, set(self.screening.seat_grid.reserved_labels()))

    def test_mark_ticket_used(self):

        ticket, _, _ = self.service.create_ticket(self.screening, ['E1'], 'John', 'Doe')

        self.assertTrue(self.service.mark_ticket_used(ticket.id))
        self.assertTrue(ticket.used)
        self.assertFalse(self.service.mark_ticket_used(ticket.id))
        self.assertFalse(self.service.mark_ticket_used('missing'))

    def test_tickets_for_screening_in_purchase_order(self):

        first, _, _ = self.service.create_ticket(self.screening, ['A1'], 'John', 'Doe')
        second, _, _ = self.service.create_ticket(self.screening, ['A2'], 'Jane', 'Roe')

        self.assertEqual(self.service.get_tickets_for_screening(self.screening.id), [first, second])
        self.assertEqual(self.service.get_tickets_for_screening('other'), [])


class TicketOwnershipTests(SimpleTestCase):

    def setUp(self):
        self.service = BookingService()
        self.movie, self.screening = add_test_movie(self.service)

    def test_registered_user_owns_tickets(self):

        user = self.service.register_user('jane@example.com', 'Jane', 'Roe', '5551234567', 'secret1')

        ticket, success, _ = self.service.create_ticket(self.screening, ['A1'])

        self.assertTrue(success)
        self.assertIs(ticket.owner, user)
        self.assertEqual(ticket.get_customer_full_name(), 'Jane Roe')
        self.assertEqual(self.service.get_current_user_tickets(), [ticket])

        self.service.cancel_ticket(ticket.id)

        self.assertEqual(self.service.get_current_user_tickets(), [])

    def test_guest_tickets_are_not_kept(self):

        self.service.login_as_guest()

        ticket, success, _ = self.service.create_ticket(self.screening, ['A1'], 'Walk', 'In')

        self.assertTrue(success)
        self.assertIsNone(ticket.owner)
        self.assertEqual(self.service.get_current_user_tickets(), [])

    def test_box_office_sale_has_no_owner(self):

        self.service.register_staff_user(
            'cashier@cinema.com', 'Box', 'Office', '5550001111', 'cashier123', UserRole.CASHIER
        )
        self.service.login('cashier@cinema.com', 'cashier123')

        ticket, success, _ = self.service.create_ticket_for_customer(self.screening, ['B2'], 'Walk', 'In')

        self.assertTrue(success)
        self.assertIsNone(ticket.owner)
        self.assertEqual(self.service.get_current_user_tickets(), [])


class ChangeTicketTests(SimpleTestCase):

    def setUp(self):
        self.service = BookingService()
        self.movie, self.first = add_test_movie(self.service)
        self.second = self.service.add_screening_to_movie(
            self.movie.id, SHOW_DATE, datetime.time(21, 30), 'Hall 2', '12.50'
        )
        self.user = self.service.register_user('jane@example.com', 'Jane', 'Roe', '5551234567', 'secret1')
        self.ticket, _, _ = self.service.create_ticket(self.first, ['A1'])

    def test_change_to_another_screening(self):

        change = self.service.change_ticket(self.ticket.id, self.second, ['B5'])

        self.assertIs(change.status, ChangeStatus.CHANGED)
        self.assertTrue(change.succeeded)
        self.assertTrue(self.first.seat_grid.lookup('A', 1).is_available)
        self.assertFalse(self.second.seat_grid.lookup('B', 5).is_available)
        self.assertIsNone(self.service.get_ticket(self.ticket.id))
        self.assertEqual(change.ticket.get_customer_full_name(), 'Jane Roe')
        self.assertIs(change.ticket.owner, self.user)
        self.assertEqual(self.user.tickets, [change.ticket])

    def test_unknown_ticket_is_rejected(self):

        change = self.service.change_ticket('missing', self.second, ['B5'])

        self.assertIs(change.status, ChangeStatus.REJECTED)

    def test_invalid_seats_leave_the_ticket_alone(self):

        change = self.service.change_ticket(self.ticket.id, self.second, ['Z42'])

        self.assertIs(change.status, ChangeStatus.REJECTED)
        self.assertIs(self.service.get_ticket(self.ticket.id), self.ticket)
        self.assertFalse(self.first.seat_grid.lookup('A', 1).is_available)

    def test_failed_change_restores_original(self):

        self.service.create_ticket_for_customer(self.second, ['B5'], 'Other', 'Customer')

        change = self.service.change_ticket(self.ticket.id, self.second, ['B5'])

        self.assertIs(change.status, ChangeStatus.RESTORED)
        self.assertIs(self.service.get_ticket(self.ticket.id), self.ticket)
        self.assertFalse(self.first.seat_grid.lookup('A', 1).is_available)
        self.assertEqual(self.user.tickets, [self.ticket])

    def test_failed_change_reports_lost_ticket(self):

        def seats_taken_meanwhile(*args, **kwargs):
            self.first.seat_grid.reserve_all(['A1'])
            return None, False, 'One or more seats are no longer available'

        with mock.patch.object(self.service, '_issue_ticket', side_effect=seats_taken_meanwhile):
            change = self.service.change_ticket(self.ticket.id, self.second, ['B5'])

        self.assertIs(change.status, ChangeStatus.LOST)
        self.assertIs(change.previous, self.ticket)
        self.assertIsNone(self.service.get_ticket(self.ticket.id))
        self.assertEqual(self.user.tickets, [])


class ConcurrentBookingTests(SimpleTestCase):

    def setUp(self):
        self.service = BookingService()
        self.movie, self.screening = add_test_movie(self.service)

    def run_threads(self, count, target):
        barrier = threading.Barrier(count)

        def run(n):
            barrier.wait()
            target(n)

        threads = [threading.Thread(target=run, args=(n,)) for n in range(count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

    def test_overlapping_purchases_have_one_winner(self):

        results = []
        self.run_threads(12, lambda n: results.append(
            self.service.create_ticket(self.screening, ['A1', f'B{n % 10 + 1}', f'C{n % 10 + 1}'], 'Buyer', f'No{n}')
        ))

        winners = [ticket for ticket, success, _ in results if success]
        self.assertEqual(len(winners), 1)
        self.assertEqual(
            set(self.screening.seat_grid.reserved_labels()),
            set(winners[0].seat_labels),
        )

    def test_mixed_purchases_and_cancels_keep_seats_consistent(self):

        def shop(n):
            for i in range(5):
                ticket, success, _ = self.service.create_ticket(
                    self.screening, [f'{"ABCDEF"[(n + i) % 6]}{i + 1}'], 'Buyer', f'No{n}'
                )
                if success and i % 2:
                    self.service.cancel_ticket(ticket.id)

        self.run_threads(8, shop)

        held = []
        for ticket in self.service.get_tickets_for_screening(self.screening.id):
            held.extend(ticket.seat_labels)

        self.assertEqual(len(held), len(set(held)))
        self.assertEqual(set(held), set(self.screening.seat_grid.reserved_labels()))


class CatalogTests(SimpleTestCase):

    def setUp(self):
        self.service = BookingService()
        self.movie, self.screening = add_test_movie(self.service)

    def test_delete_movie_cascades(self):

        other = self.service.add_screening_to_movie(
            self.movie.id, SHOW_DATE + datetime.timedelta(days=1), datetime.time(18, 0), 'Hall 1', '10.00'
        )
        user = self.service.register_user('jane@example.com', 'Jane', 'Roe', '5551234567', 'secret1')
        self.service.create_ticket(self.screening, ['A1'])
        self.service.create_ticket(self.screening, ['A2'])
        self.service.create_ticket(other, ['B1'])

        self.assertTrue(self.service.delete_movie(self.movie.id))

        self.assertIsNone(self.service.get_movie(self.movie.id))
        self.assertIsNone(self.service.get_screening(self.screening.id))
        self.assertIsNone(self.service.get_screening(other.id))
        self.assertEqual(len(self.service.directory.tickets), 0)
        self.assertEqual(user.tickets, [])
        self.assertFalse(self.service.delete_movie(self.movie.id))

    def test_delete_screening_drops_its_tickets(self):

        kept = self.service.add_screening_to_movie(
            self.movie.id, SHOW_DATE, datetime.time(22, 0), 'Hall 1', '10.00'
        )
        self.service.create_ticket(self.screening, ['A1'], 'John', 'Doe')
        survivor, _, _ = self.service.create_ticket(kept, ['A1'], 'John', 'Doe')

        self.assertTrue(self.service.delete_screening(self.screening.id))

        self.assertEqual(self.movie.screenings, [kept])
        self.assertEqual(self.service.directory.tickets.values(), [survivor])
        self.assertFalse(self.service.delete_screening(self.screening.id))

    def test_add_screening_to_unknown_movie(self):

        screening = self.service.add_screening_to_movie(
            'missing', SHOW_DATE, datetime.time(18, 0), 'Hall 1', '10.00'
        )

        self.assertIsNone(screening)

    def test_add_movie_validates_input(self):

        with self.assertRaises(ValidationError):
            self.service.add_movie(
                title='', description='', genre='', duration_minutes=0, poster_ref='',
                rating='', screening_date=SHOW_DATE, start_time=datetime.time(19, 0),
                end_time=None, hall='Hall 1', price='-3',
            )

        self.assertEqual(len(self.service.directory.movies), 1)

    def test_movies_with_screenings_on_date(self):

        add_test_movie(self.service, title='Another Movie')
        later = self.service.add_movie(
            title='Later Movie', description='', genre='', duration_minutes=90, poster_ref='',
            rating='', screening_date=SHOW_DATE + datetime.timedelta(days=3),
            start_time=datetime.time(12, 0), end_time=None, hall='Hall 3', price='8.00',
        )

        titles = [m.title for m in self.service.get_movies_with_screenings_on(SHOW_DATE)]

        self.assertEqual(titles, ['Another Movie', 'Test Movie'])
        self.assertEqual(
            self.service.get_movies_with_screenings_on(SHOW_DATE + datetime.timedelta(days=3)),
            [later],
        )
        self.assertEqual(len(self.service.get_screenings_on(SHOW_DATE)), 2)


class UserServiceTests(SimpleTestCase):

    def setUp(self):
        self.service = BookingService()

    def test_register_and_login(self):

        user = self.service.register_user('Jane@Example.com', 'Jane', 'Roe', '5551234567', 'secret1')

        self.assertEqual(user.email, 'jane@example.com')
        self.assertIs(self.service.current_user, user)
        self.service.logout()
        self.assertIsNone(self.service.current_user)

        self.assertIs(self.service.login('JANE@example.com', 'secret1'), user)
        self.assertIsNone(self.service.login('jane@example.com', 'wrong-pass'))
        self.assertIsNone(self.service.login('nobody@example.com', 'secret1'))

    def test_duplicate_registration_leaves_existing_user(self):

        original = self.service.register_user('jane@example.com', 'Jane', 'Roe', '5551234567', 'secret1')

        duplicate = self.service.register_user('JANE@example.com', 'Other', 'Person', '5559999999', 'other12')

        self.assertIsNone(duplicate)
        self.assertIs(self.service.directory.users.get('jane@example.com'), original)
        self.assertEqual(original.first_name, 'Jane')
        self.assertTrue(original.check_credential('secret1'))

    def test_invalid_registration_raises(self):

        with self.assertRaises(ValidationError) as raised:
            self.service.register_user('bad-email', 'J', 'Roe', '12', '123')

        self.assertIn('email', raised.exception.message_dict)
        self.assertIn('credential', raised.exception.message_dict)
        self.assertFalse(self.service.is_email_registered('bad-email'))

    def test_staff_registration(self):

        self.assertTrue(self.service.register_staff_user(
            'admin2@cinema.com', 'Second', 'Admin', '5550001111', 'admin123', UserRole.ADMIN
        ))
        self.assertFalse(self.service.register_staff_user(
            'admin2@cinema.com', 'Second', 'Admin', '5550001111', 'admin123', UserRole.ADMIN
        ))

        user = self.service.login('admin2@cinema.com', 'admin123')
        self.assertTrue(user.is_staff)

    def test_bootstrap_offline_provides_staff_and_sample_movies(self):

        self.service.bootstrap(seed_sample_data=True)

        self.assertEqual(self.service.login('admin@cinema.com', 'admin123').role, UserRole.ADMIN)
        self.assertEqual(self.service.login('cashier@cinema.com', 'cashier123').role, UserRole.CASHIER)
        self.assertEqual(len(self.service.get_all_movies()), 3)

    def test_user_listing_and_delete(self):

        self.service.register_user('b@example.com', 'Bee', 'Bee', '5551234567', 'secret1')
        self.service.register_user('a@example.com', 'Ayy', 'Ayy', '5551234567', 'secret1')
        self.service.login_as_guest()

        self.assertEqual([u.email for u in self.service.get_all_users()], ['a@example.com', 'b@example.com'])

        self.assertTrue(self.service.delete_user('A@example.com'))
        self.assertFalse(self.service.delete_user('a@example.com'))
        self.assertEqual([u.email for u in self.service.get_all_users()], ['b@example.com'])


class OfflineStoreTests(SimpleTestCase):

    def test_disabled_store_completes_immediately(self):

        store = RemoteStore(enabled=False)

        self.assertFalse(store.initialize())
        self.assertFalse(store.is_initialized)

        future = store.fetch_all_users()
        self.assertTrue(future.done())
        self.assertEqual(future.result(), [])
        self.assertIsNone(store.save_user({'email': 'x@example.com'}).result())
        self.assertFalse(store.save_user_if_not_exists({'email': 'x@example.com'}).result())

    def test_await_result_times_out_to_default(self):

        store = RemoteStore(timeout=0.05)

        with self.assertLogs('bookings.remote', 'WARNING'):
            self.assertEqual(store.await_result(Future(), default='fallback'), 'fallback')


class RemoteStoreTests(TestCase):

    def setUp(self):
        self.store = online_store()

    def user_record(self, email='remote@example.com', user_id='u-1'):
        return {
            'id': user_id,
            'email': email,
            'first_name': 'Remote',
            'last_name': 'User',
            'phone': '5551234567',
            'credential': 'pw1234',
            'role': 'REGULAR_USER',
        }

    def test_save_user_if_not_exists_is_idempotent(self):

        first = self.store.save_user_if_not_exists(self.user_record())
        second = self.store.save_user_if_not_exists(self.user_record(email='REMOTE@example.com', user_id='u-2'))

        self.assertTrue(first.result())
        self.assertFalse(second.result())
        self.assertEqual(UserRecord.objects.count(), 1)

    def test_failed_call_is_logged_and_degrades(self):

        with mock.patch('bookings.remote._find_user', side_effect=DatabaseError('connection lost')):
            with self.assertLogs('bookings.remote', 'ERROR'):
                future = self.store.get_user_by_email('remote@example.com')

        self.assertEqual(self.store.await_result(future, default='fallback'), 'fallback')

    def test_purge_orphan_tickets(self):

        TicketRecord.objects.create(
            id='t-orphan', screening_id='gone', movie_title='Old', screening_date=SHOW_DATE,
            screening_time=datetime.time(10, 0), hall='Hall 1', customer_first_name='John',
            customer_last_name='Doe', seats=['A1'], total_price=Decimal('10.00'),
            purchased_at=timezone.now(),
        )

        self.assertEqual(self.store.purge_orphan_tickets().result(), 1)
        self.assertFalse(TicketRecord.objects.exists())


class ServiceSyncTests(TestCase):

    def setUp(self):
        self.store = online_store()
        self.service = BookingService(remote=self.store)

    def create_remote_catalog(self):
        MovieRecord.objects.create(id='m-1', title='Remote Movie', duration_minutes=100)
        ScreeningRecord.objects.create(
            id='s-1', movie_id='m-1', movie_title='Remote Movie', date=SHOW_DATE,
            time=datetime.time(18, 0), hall='Hall 9', price=Decimal('9.00'),
            reserved_seats=['C3', 'C4'],
        )
        TicketRecord.objects.create(
            id='t-1', screening_id='s-1', movie_title='Remote Movie', screening_date=SHOW_DATE,
            screening_time=datetime.time(18, 0), hall='Hall 9', customer_first_name='John',
            customer_last_name='Doe', seats=['C3', 'C4'], total_price=Decimal('18.00'),
            purchased_at=timezone.now(),
        )

    def test_ticket_writes_reach_the_store(self):

        movie, screening = add_test_movie(self.service)
        self.assertTrue(MovieRecord.objects.filter(id=movie.id).exists())

        ticket, _, _ = self.service.create_ticket(screening, ['A1', 'A2'], 'John', 'Doe')

        record = TicketRecord.objects.get(id=ticket.id)
        self.assertEqual(record.seats, ['A1', 'A2'])
        self.assertEqual(record.total_price, Decimal('25.00'))
        self.assertIsNone(record.user_id)
        self.assertCountEqual(ScreeningRecord.objects.get(id=screening.id).reserved_seats, ['A1', 'A2'])

        self.service.cancel_ticket(ticket.id)

        self.assertFalse(TicketRecord.objects.filter(id=ticket.id).exists())
        self.assertEqual(ScreeningRecord.objects.get(id=screening.id).reserved_seats, [])

    def test_delete_movie_cascades_in_store(self):

        movie, screening = add_test_movie(self.service)
        self.service.create_ticket(screening, ['A1'], 'John', 'Doe')

        self.service.delete_movie(movie.id)

        self.assertFalse(MovieRecord.objects.exists())
        self.assertFalse(ScreeningRecord.objects.exists())
        self.assertFalse(TicketRecord.objects.exists())

    def test_login_falls_back_to_store(self):

        UserRecord.objects.create(
            id='u-1', email='remote@example.com', first_name='Remote', last_name='User',
            phone='5551234567', credential='pw1234', role='CASHIER',
        )

        user = self.service.login('Remote@Example.com', 'pw1234')

        self.assertEqual(user.id, 'u-1')
        self.assertIs(user.role, UserRole.CASHIER)
        self.assertTrue(self.service.is_email_registered('remote@example.com'))

    def test_login_degrades_when_store_is_slow(self):

        self.store.timeout = 0.05

        with mock.patch.object(self.store, 'get_user_by_email', return_value=Future()):
            self.assertIsNone(self.service.login('remote@example.com', 'pw1234'))

    def test_registration_checks_the_store(self):

        UserRecord.objects.create(
            id='u-1', email='jane@example.com', first_name='Jane', last_name='Roe',
            phone='5551234567', credential='secret1',
        )

        self.assertIsNone(self.service.register_user('jane@example.com', 'Other', 'Person', '5559999999', 'other12'))
        self.assertEqual(UserRecord.objects.get(id='u-1').first_name, 'Jane')

    def test_catalog_read_through(self):

        self.create_remote_catalog()

        movies = self.service.get_movies_with_screenings_on(SHOW_DATE)

        self.assertEqual([m.title for m in movies], ['Remote Movie'])
        screening = self.service.get_screening('s-1')
        self.assertFalse(screening.seat_grid.lookup('C', 3).is_available)
        self.assertEqual(self.service.get_ticket('t-1').total_price, Decimal('18.00'))

        _, success, _ = self.service.create_ticket(screening, ['C3'], 'Jane', 'Roe')
        self.assertFalse(success)

    def test_merged_ticket_joins_its_owner_at_login(self):

        self.create_remote_catalog()
        UserRecord.objects.create(
            id='u-1', email='john@example.com', first_name='John', last_name='Doe',
            phone='5551234567', credential='pw1234',
        )
        TicketRecord.objects.filter(id='t-1').update(user_id='u-1')

        self.service.refresh_catalog()
        self.service.login('john@example.com', 'pw1234')

        self.assertEqual([t.id for t in self.service.get_current_user_tickets()], ['t-1'])

    def test_local_state_wins_over_store(self):

        movie, _ = add_test_movie(self.service)
        MovieRecord.objects.filter(id=movie.id).update(title='Renamed Elsewhere')

        self.service.refresh_catalog()

        self.assertEqual(self.service.get_movie(movie.id).title, 'Test Movie')

    def test_user_listing_includes_stored_users(self):

        self.service.register_user('local@example.com', 'Lo', 'Cal', '5551234567', 'secret1')
        UserRecord.objects.create(
            id='u-9', email='remote@example.com', first_name='Re', last_name='Mote',
            phone='5551234567', credential='secret1',
        )

        emails = [u.email for u in self.service.get_all_users()]

        self.assertEqual(emails, ['local@example.com', 'remote@example.com'])

    @override_settings(SAMPLE_SCHEDULE_DAYS=1)
    def test_bootstrap_twice_does_not_duplicate(self):

        self.service.bootstrap(seed_sample_data=True)
        second = BookingService(remote=online_store())
        second.bootstrap(seed_sample_data=True)

        self.assertEqual(UserRecord.objects.count(), 2)
        self.assertEqual(MovieRecord.objects.count(), 3)
        self.assertEqual(ScreeningRecord.objects.count(), 9)
        self.assertEqual(
            {m.id for m in second.get_all_movies()},
            set(MovieRecord.objects.values_list('id', flat=True)),
        )
        self.assertEqual(
            second.login('admin@cinema.com', 'admin123').id,
            self.service.login('admin@cinema.com', 'admin123').id,
        )

    @override_settings(SAMPLE_SCHEDULE_DAYS=1)
    def test_bootstrap_with_slow_catalog_does_not_duplicate_movies(self):

        self.service.bootstrap(seed_sample_data=True)
        store = online_store(timeout=0.05)
        later = BookingService(remote=store)

        with mock.patch.object(store, 'fetch_catalog', return_value=Future()):
            later.bootstrap(seed_sample_data=True)

        self.assertEqual(len(later.directory.movies), 0)

        titles = [m.title for m in later.get_all_movies()]

        self.assertEqual(len(titles), 3)
        self.assertEqual(len(set(titles)), 3)
        self.assertEqual(MovieRecord.objects.count(), 3)


class ConcurrentSeedingTests(TransactionTestCase):

    def seed_from_two_threads(self, attempt):
        barrier = threading.Barrier(2)
        results = []

        def run(n):
            try:
                store = online_store(timeout=30)
                barrier.wait()
                results.append(store.await_result(attempt(store, n), default=False))
            finally:
                connection.close()

        threads = [threading.Thread(target=run, args=(n,)) for n in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        return results

    def test_concurrent_user_seeding_creates_one_user(self):

        results = self.seed_from_two_threads(lambda store, n: store.save_user_if_not_exists({
            'id': f'u-{n}',
            'email': 'seed@cinema.com',
            'first_name': 'Seed',
            'last_name': f'Runner{n}',
            'phone': '5551234567',
            'credential': 'seed123',
            'role': 'CASHIER',
        }))

        self.assertEqual(results.count(True), 1)
        self.assertEqual(UserRecord.objects.filter(email='seed@cinema.com').count(), 1)

    def test_concurrent_movie_seeding_creates_one_movie(self):

        results = self.seed_from_two_threads(lambda store, n: store.save_movie_if_not_exists(
            {
                'id': f'm-{n}',
                'title': 'Seeded Movie',
                'description': '',
                'genre': 'Drama',
                'duration_minutes': 100,
                'poster_ref': '',
                'rating': 'PG',
            },
            [{
                'id': f's-{n}',
                'movie_id': f'm-{n}',
                'movie_title': 'Seeded Movie',
                'date': SHOW_DATE.isoformat(),
                'time': '18:00:00',
                'hall': 'Hall 1',
                'price': '10.00',
                'total_rows': 6,
                'seats_per_row': 10,
                'reserved_seats': [],
            }],
        ))

        self.assertEqual(results.count(True), 1)
        self.assertEqual(MovieRecord.objects.filter(title='Seeded Movie').count(), 1)
        self.assertEqual(ScreeningRecord.objects.count(), 1)


class LoggingConfigTests(SimpleTestCase):

    def test_every_bookings_logger_is_configured(self):

        for name in ['bookings.services', 'bookings.remote', 'bookings.records', 'bookings.seeding', 'bookings.tasks']:
            self.assertIn(name, settings.LOGGING['loggers'])
            self.assertTrue(logging.getLogger(name).handlers, name)

    def test_unreadable_seat_label_is_logged(self):

        with self.assertLogs('bookings.records', 'WARNING'):
            keys = seat_keys_from_labels(['A1', '??', 'B2'])

        self.assertEqual(keys, [('A', 1), ('B', 2)])


@override_settings(SAMPLE_SCHEDULE_DAYS=1)
class TaskAndCommandTests(TestCase):

    def test_seed_task_is_idempotent(self):

        with mock.patch('bookings.tasks._connected_store', side_effect=online_store):
            self.assertEqual(seed_remote_store(), 'Seeded 2 users and 3 movies')
            self.assertEqual(seed_remote_store(), 'Seeded 0 users and 0 movies')

    @override_settings(REMOTE_STORE_ENABLED=False)
    def test_tasks_skip_when_offline(self):

        self.assertEqual(seed_remote_store(), 'Skipped - remote store offline')
        self.assertEqual(purge_orphan_tickets(), 'Skipped - remote store offline')

    def test_seed_command(self):

        out = StringIO()
        with mock.patch('bookings.management.commands.seed_cinema.RemoteStore.from_settings', return_value=RemoteStore(executor=ImmediateExecutor())):
            call_command('seed_cinema', '--skip-catalog', stdout=out)

        self.assertIn('Seeding complete', out.getvalue())
        self.assertEqual(UserRecord.objects.count(), 2)
        self.assertFalse(MovieRecord.objects.exists())

    def test_seed_command_fails_offline(self):

        with mock.patch('bookings.management.commands.seed_cinema.RemoteStore.from_settings', return_value=RemoteStore(enabled=False)):
            with self.assertRaises(CommandError):
                call_command('seed_cinema', stdout=StringIO())

    def test_purge_command(self):

        TicketRecord.objects.create(
            id='t-orphan', screening_id='gone', movie_title='Old', screening_date=SHOW_DATE,
            screening_time=datetime.time(10, 0), hall='Hall 1', customer_first_name='John',
            customer_last_name='Doe', seats=['A1'], total_price=Decimal('10.00'),
            purchased_at=timezone.now(),
        )

        call_command('purge_orphan_tickets', '--dry-run', stdout=StringIO())
        self.assertTrue(TicketRecord.objects.exists())

        call_command('purge_orphan_tickets', stdout=StringIO())
        self.assertFalse(TicketRecord.objects.exists())

    def test_create_staff_user_command(self):

        out = StringIO()
        with mock.patch('bookings.services.RemoteStore.from_settings', return_value=RemoteStore(executor=ImmediateExecutor())):
            call_command('create_staff_user', 'Box@Cinema.com', '--password', 'box12345', '--role', 'CASHIER', stdout=out)

        self.assertIn('Cashier account created', out.getvalue())
        self.assertEqual(UserRecord.objects.get(email='box@cinema.com').role, 'CASHIER')
