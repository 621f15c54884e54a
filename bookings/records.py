"""
Record shapes exchanged with the remote store.

Dates and times travel as ISO strings, prices as strings holding a decimal,
seats as labels ("A7"). Everything here is plain data so the remote side can
be any store.
"""
import datetime
import logging
from decimal import Decimal

from accounts.users import User, UserRole
from movies.catalog import Movie
from movies.seating import parse_seat_label

from .tickets import Ticket

logger = logging.getLogger(__name__)


def user_record(user):
    return {
        'id': user.id,
        'email': user.email,
        'first_name': user.first_name,
        'last_name': user.last_name,
        'phone': user.phone,
        'credential': user.credential,
        'role': user.role.name,
    }


def user_from_record(record):
    return User(
        email=record['email'],
        first_name=record.get('first_name', ''),
        last_name=record.get('last_name', ''),
        phone=record.get('phone', ''),
        credential=record.get('credential', ''),
        role=UserRole.from_name(record.get('role')),
        user_id=record['id'],
    )


def movie_record(movie):
    return {
        'id': movie.id,
        'title': movie.title,
        'description': movie.description,
        'genre': movie.genre,
        'duration_minutes': movie.duration_minutes,
        'poster_ref': movie.poster_ref,
        'rating': movie.rating,
    }


def movie_from_record(record):
    return Movie(
        title=record['title'],
        description=record.get('description', ''),
        genre=record.get('genre', ''),
        duration_minutes=int(record.get('duration_minutes') or 0),
        poster_ref=record.get('poster_ref', ''),
        rating=record.get('rating', ''),
        movie_id=record['id'],
    )


def screening_record(screening):
    return {
        'id': screening.id,
        'movie_id': screening.movie.id,
        'movie_title': screening.movie_title,
        'date': screening.date.isoformat(),
        'time': screening.time.isoformat(),
        'hall': screening.hall,
        'price': str(screening.price),
        'total_rows': screening.total_rows,
        'seats_per_row': screening.seats_per_row,
        'reserved_seats': screening.seat_grid.reserved_labels(),
    }


def screening_from_record(record, movie, default_rows=6, default_seats_per_row=10):
    """
    Build a screening for ``movie`` from its record.

    Seat state is not restored here; it follows from the tickets merged for
    the screening.
    """
    return movie.add_screening(
        date=datetime.date.fromisoformat(str(record['date'])),
        time=datetime.time.fromisoformat(str(record['time'])),
        hall=record.get('hall', ''),
        price=Decimal(str(record.get('price') or '10.00')),
        rows=int(record.get('total_rows') or default_rows),
        seats_per_row=int(record.get('seats_per_row') or default_seats_per_row),
        screening_id=record['id'],
    )


def ticket_record(ticket):
    screening = ticket.screening
    record = {
        'id': ticket.id,
        'screening_id': screening.id,
        'movie_title': screening.movie_title,
        'screening_date': screening.date.isoformat(),
        'screening_time': screening.time.isoformat(),
        'hall': screening.hall,
        'customer_first_name': ticket.customer_first_name,
        'customer_last_name': ticket.customer_last_name,
        'total_price': str(ticket.total_price),
        'used': ticket.used,
        'purchased_at': ticket.purchased_at.isoformat(),
        'seats': ticket.seat_labels,
    }
    if ticket.owner_id:
        record['user_id'] = ticket.owner_id
    return record


def seat_keys_from_labels(labels):
    keys = []
    for label in labels or []:
        try:
            keys.append(parse_seat_label(label))
        except ValueError:
            logger.warning(f"Skipping unreadable seat label {label!r}")
    return keys


def ticket_from_record(record, screening, owner=None):
    """
    Rebuild a ticket against a screening that is already in the directory.

    Returns None if one of the seat labels does not exist in the screening.
    """
    seats = screening.seat_grid.resolve(seat_keys_from_labels(record.get('seats')))
    if not seats:
        return None

    purchased_at = record.get('purchased_at')
    if isinstance(purchased_at, str):
        purchased_at = datetime.datetime.fromisoformat(purchased_at)

    return Ticket(
        screening=screening,
        seats=seats,
        customer_first_name=record.get('customer_first_name', ''),
        customer_last_name=record.get('customer_last_name', ''),
        owner=owner,
        ticket_id=record['id'],
        purchased_at=purchased_at,
        total_price=record.get('total_price'),
        used=bool(record.get('used')),
        owner_id=record.get('user_id'),
    )
