import datetime
import logging

from django.conf import settings
from django.utils import timezone

from accounts.users import User, UserRole
from movies.catalog import Movie

from . import records

logger = logging.getLogger(__name__)

SAMPLE_MOVIES = [
    {
        'title': 'Oppenheimer',
        'description': 'The story of American scientist J. Robert Oppenheimer and his role in the development of the atomic bomb.',
        'genre': 'Drama/History',
        'duration_minutes': 180,
        'poster_ref': 'https://www.themoviedb.org/t/p/w1280/efoCIdMmNgSdOlsNwovGxByjlOR.jpg',
        'rating': 'R',
        'hall': 'Hall 1',
        'showtimes': [((10, 0), '12.50'), ((14, 30), '12.50'), ((19, 0), '15.00')],
    },
    {
        'title': 'Captain America: Civil War',
        'description': "Political involvement in the Avengers' affairs causes a rift between Captain America and Iron Man.",
        'genre': 'Action/Sci-Fi',
        'duration_minutes': 147,
        'poster_ref': 'https://www.themoviedb.org/t/p/w1280/hkQjebnRQ0XjGRqDPqy9rt4taeI.jpg',
        'rating': 'PG-13',
        'hall': 'Hall 2',
        'showtimes': [((11, 0), '11.00'), ((15, 0), '11.00'), ((20, 0), '13.50')],
    },
    {
        'title': 'The Dark Knight',
        'description': 'When the menace known as the Joker wreaks havoc on Gotham, Batman must face one of the greatest tests.',
        'genre': 'Action/Crime',
        'duration_minutes': 152,
        'poster_ref': 'https://www.themoviedb.org/t/p/w1280/bTOmCkefIK8YNhQNe3IOSueYGNZ.jpg',
        'rating': 'PG-13',
        'hall': 'Hall 3',
        'showtimes': [((12, 0), '10.00'), ((16, 30), '10.00'), ((21, 0), '12.00')],
    },
]


def staff_users():
    return [
        User(
            email=account['email'],
            first_name=account['first_name'],
            last_name=account['last_name'],
            phone=account.get('phone', ''),
            credential=account['credential'],
            role=UserRole.from_name(account.get('role')),
        )
        for account in settings.DEFAULT_STAFF_ACCOUNTS
    ]


def sample_movies(start_date=None, days=None):
    start_date = start_date or timezone.localdate()
    days = days or settings.SAMPLE_SCHEDULE_DAYS

    movies = []
    for data in SAMPLE_MOVIES:
        movie = Movie(
            title=data['title'],
            description=data['description'],
            genre=data['genre'],
            duration_minutes=data['duration_minutes'],
            poster_ref=data['poster_ref'],
            rating=data['rating'],
        )
        for offset in range(days):
            day = start_date + datetime.timedelta(days=offset)
            for (hour, minute), price in data['showtimes']:
                movie.add_screening(
                    date=day,
                    time=datetime.time(hour, minute),
                    hall=data['hall'],
                    price=price,
                    rows=settings.SCREENING_ROWS,
                    seats_per_row=settings.SCREENING_SEATS_PER_ROW,
                )
        movies.append(movie)
    return movies


def seed_remote(remote, users=None, movies=None):
    """
    Write staff accounts and the sample catalog unless already present.

    Waits for every write (bounded by the store timeout) and returns
    ``(users_created, movies_created)``.
    """
    users = staff_users() if users is None else users
    movies = sample_movies() if movies is None else movies

    users_created = 0
    for user in users:
        created = remote.await_result(
            remote.save_user_if_not_exists(records.user_record(user)),
            default=False,
            description=f"seed of user {user.email}",
        )
        if created:
            users_created += 1
            logger.info(f"Seeded user {user.email}")

    movies_created = 0
    for movie in movies:
        created = remote.await_result(
            remote.save_movie_if_not_exists(
                records.movie_record(movie),
                [records.screening_record(s) for s in movie.screenings],
            ),
            default=False,
            description=f"seed of movie {movie.title}",
        )
        if created:
            movies_created += 1
            logger.info(f"Seeded movie {movie.title} with {len(movie.screenings)} screenings")

    return users_created, movies_created
