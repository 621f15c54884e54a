import logging
import re
import string
import threading
from decimal import Decimal
from enum import Enum

logger = logging.getLogger(__name__)

SEAT_LABEL_RE = re.compile(r'^([A-Z]+)(\d+)$')


class SeatType(Enum):
    REGULAR = ('Regular', Decimal('1.0'))
    VIP = ('VIP', Decimal('1.5'))
    PREMIUM = ('Premium', Decimal('2.0'))

    def __init__(self, display_name, multiplier):
        self.display_name = display_name
        self.multiplier = multiplier


class SeatState(Enum):
    AVAILABLE = 'AVAILABLE'
    RESERVED = 'RESERVED'


def row_letters(index):
    """0 -> 'A', 25 -> 'Z', 26 -> 'AA', 27 -> 'AB' ..."""
    letters = ''
    index += 1
    while index:
        index, remainder = divmod(index - 1, 26)
        letters = string.ascii_uppercase[remainder] + letters
    return letters


def seat_label(row, number):
    return f"{row}{number}"


def parse_seat_label(label):
    """
    Split a seat label such as "B12" into ("B", 12).

    Raises ValueError for anything that is not row letters followed by a
    positive seat number.
    """
    match = SEAT_LABEL_RE.match(str(label).strip().upper())
    if not match or int(match.group(2)) < 1:
        raise ValueError(f"Invalid seat label: {label!r}")
    return match.group(1), int(match.group(2))


def normalize_seat_key(key):
    """Accept a label ("A7"), a (row, number) pair or a Seat."""
    if isinstance(key, Seat):
        return key.key
    if isinstance(key, str):
        return parse_seat_label(key)
    row, number = key
    return str(row).upper(), int(number)


class Seat:

    def __init__(self, row, number, seat_type=SeatType.REGULAR, state=SeatState.AVAILABLE):
        self.row = row
        self.number = number
        self.seat_type = seat_type
        self.state = state

    def copy(self, state=None):
        return Seat(self.row, self.number, self.seat_type, state or self.state)

    @property
    def key(self):
        return (self.row, self.number)

    @property
    def label(self):
        return seat_label(self.row, self.number)

    @property
    def is_available(self):
        return self.state is SeatState.AVAILABLE

    def __repr__(self):
        return f"Seat({self.label}, {self.seat_type.display_name}, {self.state.value})"


class SeatGrid:
    """
    Seat availability for one screening.

    reserve_all/release_all are the only way a seat changes state. Both run
    under the grid's own lock, so concurrent bookings of the same screening
    are serialized while different screenings never contend. Every Seat handed
    out is a copy taken under that lock.
    """

    def __init__(self, rows, seats_per_row, row_types=None):
        if rows < 1 or seats_per_row < 1:
            raise ValueError("A seat grid needs at least one row and one seat per row")
        self.rows = rows
        self.seats_per_row = seats_per_row
        self._lock = threading.Lock()
        self._seats = {}

        row_types = row_types or {}
        for row_index in range(rows):
            row = row_letters(row_index)
            seat_type = row_types.get(row, SeatType.REGULAR)
            for number in range(1, seats_per_row + 1):
                self._seats[(row, number)] = Seat(row, number, seat_type)

    def __len__(self):
        return len(self._seats)

    def lookup(self, row, number):
        try:
            key = normalize_seat_key((row, number))
        except (TypeError, ValueError):
            return None
        with self._lock:
            seat = self._seats.get(key)
            return seat.copy() if seat else None

    def resolve(self, seat_keys):
        """Map keys to seat copies; None if any key is outside the grid."""
        seats = self._resolve_live(seat_keys)
        if seats is None:
            return None
        with self._lock:
            return [seat.copy() for seat in seats]

    def _resolve_live(self, seat_keys):
        seats = []
        seen = set()
        for key in seat_keys:
            try:
                key = normalize_seat_key(key)
            except (TypeError, ValueError):
                return None
            seat = self._seats.get(key)
            if seat is None:
                return None
            if key not in seen:
                seen.add(key)
                seats.append(seat)
        return seats

    def reserve_all(self, seat_keys):
        seats = self._resolve_live(seat_keys)
        if not seats:
            return False

        with self._lock:
            taken = [seat.label for seat in seats if not seat.is_available]
            if taken:
                logger.debug(f"Reservation refused, already reserved: {taken}")
                return False
            for seat in seats:
                seat.state = SeatState.RESERVED
        return True

    def release_all(self, seat_keys):
        with self._lock:
            for key in seat_keys:
                try:
                    seat = self._seats.get(normalize_seat_key(key))
                except (TypeError, ValueError):
                    continue
                if seat is not None:
                    seat.state = SeatState.AVAILABLE

    def available_seats(self):
        with self._lock:
            return [seat.copy() for seat in self._seats.values() if seat.is_available]

    def reserved_seats(self):
        with self._lock:
            return [seat.copy() for seat in self._seats.values() if not seat.is_available]

    def reserved_labels(self):
        return [seat.label for seat in self.reserved_seats()]

    def __repr__(self):
        return f"SeatGrid({self.rows}x{self.seats_per_row})"
