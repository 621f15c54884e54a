import datetime
import threading
from decimal import Decimal

from django.test import SimpleTestCase

from .catalog import Movie
from .forms import MovieForm
from .seating import SeatGrid, SeatState, SeatType, parse_seat_label, row_letters, seat_label


class SeatLabelTests(SimpleTestCase):

    def test_label_round_trip(self):

        self.assertEqual(parse_seat_label('B12'), ('B', 12))
        self.assertEqual(seat_label(*parse_seat_label('B12')), 'B12')

    def test_lowercase_label_is_accepted(self):

        self.assertEqual(parse_seat_label('c3'), ('C', 3))

    def test_invalid_labels_are_rejected(self):

        for label in ['', '12B', 'A0', 'A', '7', 'A-1']:
            with self.assertRaises(ValueError):
                parse_seat_label(label)

    def test_rows_continue_after_z(self):

        self.assertEqual(row_letters(0), 'A')
        self.assertEqual(row_letters(25), 'Z')
        self.assertEqual(row_letters(26), 'AA')
        self.assertEqual(row_letters(27), 'AB')
        self.assertEqual(parse_seat_label('AB4'), ('AB', 4))


class SeatGridTests(SimpleTestCase):

    def setUp(self):
        self.grid = SeatGrid(6, 10)

    def test_every_seat_exists_exactly_once(self):

        keys = [seat.key for seat in self.grid.available_seats()]
        self.assertEqual(len(keys), 60)
        self.assertEqual(len(set(keys)), 60)
        self.assertIsNotNone(self.grid.lookup('F', 10))
        self.assertIsNone(self.grid.lookup('G', 1))
        self.assertIsNone(self.grid.lookup('A', 11))

    def test_reserve_is_all_or_nothing(self):

        self.assertTrue(self.grid.reserve_all(['A1']))

        self.assertFalse(self.grid.reserve_all(['A2', 'A1', 'A3']))

        self.assertTrue(self.grid.lookup('A', 2).is_available)
        self.assertTrue(self.grid.lookup('A', 3).is_available)
        self.assertEqual(self.grid.reserved_labels(), ['A1'])

    def test_out_of_range_seat_fails_without_reserving(self):

        self.assertFalse(self.grid.reserve_all([('A', 1), ('Z', 99)]))
        self.assertEqual(len(self.grid.available_seats()), 60)

    def test_empty_batch_is_refused(self):

        self.assertFalse(self.grid.reserve_all([]))

    def test_duplicate_keys_in_one_batch_count_once(self):

        self.assertTrue(self.grid.reserve_all(['B5', ('B', 5)]))
        self.assertEqual(len(self.grid.reserved_seats()), 1)

    def test_release_is_idempotent(self):

        self.grid.reserve_all(['C1', 'C2'])

        self.grid.release_all(['C1', 'C2'])
        self.grid.release_all(['C1', 'C2', 'Q99'])

        self.assertEqual(len(self.grid.available_seats()), 60)

    def test_snapshots_do_not_change_the_grid(self):

        self.grid.reserve_all(['D4'])
        snapshot = self.grid.available_seats()
        snapshot.clear()

        self.assertEqual(len(self.grid.available_seats()), 59)

    def test_snapshot_keeps_the_state_it_was_taken_with(self):

        snapshot = {seat.label: seat for seat in self.grid.available_seats()}

        self.grid.reserve_all(['A1'])

        self.assertTrue(snapshot['A1'].is_available)
        self.assertFalse(self.grid.lookup('A', 1).is_available)

    def test_changing_a_handed_out_seat_does_not_touch_the_grid(self):

        self.grid.reserve_all(['B2'])

        self.grid.reserved_seats()[0].state = SeatState.AVAILABLE
        self.grid.lookup('B', 2).state = SeatState.AVAILABLE
        self.grid.resolve(['B2'])[0].state = SeatState.AVAILABLE

        self.assertEqual(self.grid.reserved_labels(), ['B2'])
        self.assertFalse(self.grid.reserve_all(['B2']))

    def test_lookup_accepts_lowercase_rows(self):

        self.grid.reserve_all(['a1'])

        self.assertFalse(self.grid.lookup('a', 1).is_available)
        self.assertEqual(self.grid.lookup('b', '3').label, 'B3')
        self.assertIsNone(self.grid.lookup('A', 'x'))
        self.assertIsNone(self.grid.lookup(None, None))

    def test_concurrent_reservations_of_one_seat(self):

        results = []
        barrier = threading.Barrier(16)

        def book():
            barrier.wait()
            results.append(self.grid.reserve_all(['E7']))

        threads = [threading.Thread(target=book) for _ in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(results.count(True), 1)
        self.assertEqual(self.grid.reserved_labels(), ['E7'])


class ScreeningTests(SimpleTestCase):

    def setUp(self):
        self.movie = Movie('Test Movie', duration_minutes=148)

    def test_seat_price_uses_seat_type(self):

        screening = self.movie.add_screening(
            date=datetime.date(2026, 10, 20),
            time=datetime.time(19, 0),
            hall='Hall 1',
            price='12.50',
            rows=3,
            seats_per_row=4,
            row_types={'C': SeatType.PREMIUM},
        )

        self.assertEqual(screening.price, Decimal('12.50'))
        self.assertEqual(screening.seat_price(screening.seat_grid.lookup('A', 1)), Decimal('12.50'))
        self.assertEqual(screening.seat_price(screening.seat_grid.lookup('C', 1)), Decimal('25.00'))

    def test_screenings_on_date(self):

        day = datetime.date(2026, 10, 20)
        self.movie.add_screening(day, datetime.time(10, 0), 'Hall 1', 10, 6, 10)
        self.movie.add_screening(day, datetime.time(14, 0), 'Hall 1', 10, 6, 10)
        self.movie.add_screening(day + datetime.timedelta(days=1), datetime.time(10, 0), 'Hall 1', 10, 6, 10)

        self.assertEqual(len(self.movie.screenings_on(day)), 2)
        self.assertEqual(self.movie.screenings_on(day - datetime.timedelta(days=1)), [])

    def test_duration_formatted(self):

        self.assertEqual(self.movie.duration_formatted(), '2h 28min')
        self.assertEqual(Movie('Short', duration_minutes=45).duration_formatted(), '45min')


class MovieFormTests(SimpleTestCase):

    def form_data(self, **overrides):
        data = {
            'title': 'Dune',
            'description': 'Spice',
            'genre': 'Sci-Fi',
            'duration_minutes': 155,
            'poster_ref': '',
            'rating': 'PG-13',
            'screening_date': datetime.date(2026, 10, 20),
            'start_time': datetime.time(18, 0),
            'end_time': datetime.time(20, 35),
            'hall': 'Hall 1',
            'price': '12.50',
        }
        data.update(overrides)
        return data

    def test_valid_movie(self):

        form = MovieForm(data=self.form_data())
        self.assertTrue(form.is_valid(), form.errors)

    def test_end_time_must_follow_start_time(self):

        form = MovieForm(data=self.form_data(end_time=datetime.time(17, 0)))

        self.assertFalse(form.is_valid())
        self.assertIn('end_time', form.errors)

    def test_negative_price_rejected(self):

        form = MovieForm(data=self.form_data(price='-1'))

        self.assertFalse(form.is_valid())
        self.assertIn('price', form.errors)

    def test_zero_duration_rejected(self):

        form = MovieForm(data=self.form_data(duration_minutes=0))

        self.assertFalse(form.is_valid())
        self.assertIn('duration_minutes', form.errors)
