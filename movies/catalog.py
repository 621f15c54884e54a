import uuid
from decimal import Decimal

from .seating import SeatGrid


def new_id():
    return str(uuid.uuid4())


def to_price(value):
    return Decimal(str(value)).quantize(Decimal('0.01'))


class Movie:

    def __init__(self, title, description='', genre='', duration_minutes=0,
                 poster_ref='', rating='', movie_id=None):
        self.id = movie_id or new_id()
        self.title = title
        self.description = description
        self.genre = genre
        self.duration_minutes = duration_minutes
        self.poster_ref = poster_ref
        self.rating = rating
        self.screenings = []

    def add_screening(self, date, time, hall, price, rows, seats_per_row,
                      screening_id=None, row_types=None):
        screening = Screening(
            movie=self,
            date=date,
            time=time,
            hall=hall,
            price=price,
            rows=rows,
            seats_per_row=seats_per_row,
            screening_id=screening_id,
            row_types=row_types,
        )
        self.screenings.append(screening)
        return screening

    def detach_screening(self, screening):
        if screening in self.screenings:
            self.screenings.remove(screening)

    def screenings_on(self, date):
        return [s for s in self.screenings if s.date == date]

    def duration_formatted(self):
        hours = self.duration_minutes // 60
        minutes = self.duration_minutes % 60
        if hours:
            return f"{hours}h {minutes}min"
        return f"{minutes}min"

    def __repr__(self):
        return f"Movie({self.id}, {self.title})"


class Screening:

    def __init__(self, movie, date, time, hall, price, rows, seats_per_row,
                 screening_id=None, row_types=None):
        self.id = screening_id or new_id()
        self.movie = movie
        self.date = date
        self.time = time
        self.hall = hall
        self.price = to_price(price)
        self.seat_grid = SeatGrid(rows, seats_per_row, row_types=row_types)

    @property
    def total_rows(self):
        return self.seat_grid.rows

    @property
    def seats_per_row(self):
        return self.seat_grid.seats_per_row

    @property
    def movie_title(self):
        return self.movie.title if self.movie else ''

    def seat_price(self, seat):
        return self.price * seat.seat_type.multiplier

    def get_formatted_time(self):
        return self.time.strftime("%H:%M")

    def __repr__(self):
        return f"Screening({self.id}, {self.movie_title} - {self.date} {self.get_formatted_time()}, {self.hall})"
