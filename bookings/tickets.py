import uuid
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

from django.utils import timezone

from movies.seating import SeatState


class Ticket:

    def __init__(self, screening, seats, customer_first_name, customer_last_name,
                 owner=None, ticket_id=None, purchased_at=None, total_price=None,
                 used=False, owner_id=None):
        self.id = ticket_id or str(uuid.uuid4())
        self.screening = screening
        # Seats held by a live ticket are reserved by definition.
        self.seats = [seat.copy(state=SeatState.RESERVED) for seat in seats]
        self.customer_first_name = customer_first_name
        self.customer_last_name = customer_last_name
        self.owner = owner
        # Kept when the owning user is not loaded in this process.
        self._owner_id = owner_id
        self.purchased_at = purchased_at or timezone.now()
        self.used = used

        # Frozen at issue time; later price changes do not touch issued tickets.
        if total_price is None:
            total_price = sum(
                (screening.seat_price(seat) for seat in self.seats),
                Decimal('0'),
            )
        self.total_price = Decimal(str(total_price)).quantize(Decimal('0.01'))

    @property
    def seat_keys(self):
        return [seat.key for seat in self.seats]

    @property
    def seat_labels(self):
        return [seat.label for seat in self.seats]

    @property
    def owner_id(self):
        return self.owner.id if self.owner else self._owner_id

    def get_seats_display(self):
        return ", ".join(self.seat_labels)

    def get_customer_full_name(self):
        return f"{self.customer_first_name} {self.customer_last_name}"

    def get_formatted_total(self):
        return f"${self.total_price:.2f}"

    def mark_used(self):
        self.used = True

    def __repr__(self):
        return f"Ticket({self.id}, {self.screening.movie_title}, {self.get_seats_display()})"


class ChangeStatus(Enum):
    CHANGED = 'CHANGED'
    # Nothing was touched: unknown ticket or invalid replacement seats.
    REJECTED = 'REJECTED'
    # Replacement failed after the cancel; the original ticket was put back.
    RESTORED = 'RESTORED'
    # Replacement failed and the original seats were taken meanwhile.
    LOST = 'LOST'


@dataclass
class TicketChange:
    status: ChangeStatus
    previous: Optional[Ticket] = None
    ticket: Optional[Ticket] = None
    error: Optional[str] = None

    @property
    def succeeded(self):
        return self.status is ChangeStatus.CHANGED
