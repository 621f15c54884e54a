import logging
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from functools import partial

from django.conf import settings
from django.db import DatabaseError, close_old_connections, connections, transaction

from accounts.models import UserRecord
from movies.models import MovieRecord, ScreeningRecord

from .models import SeedMarker, TicketRecord

logger = logging.getLogger(__name__)

USER_FIELDS = ('id', 'email', 'first_name', 'last_name', 'phone', 'credential', 'role')
MOVIE_FIELDS = ('id', 'title', 'description', 'genre', 'duration_minutes', 'poster_ref', 'rating')
SCREENING_FIELDS = (
    'id', 'movie_id', 'movie_title', 'date', 'time', 'hall', 'price',
    'total_rows', 'seats_per_row', 'reserved_seats',
)
TICKET_FIELDS = (
    'id', 'screening_id', 'movie_title', 'screening_date', 'screening_time', 'hall',
    'customer_first_name', 'customer_last_name', 'total_price', 'used',
    'purchased_at', 'seats', 'user_id',
)


def _defaults(record, fields):
    return {k: record[k] for k in fields if k != 'id' and k in record}


def _store_user(record):
    UserRecord.objects.update_or_create(id=record['id'], defaults=_defaults(record, USER_FIELDS))


def _claim_seed_key(natural_key):
    # Concurrent seeders queue on the marker row until the first one commits.
    marker, _ = SeedMarker.objects.get_or_create(natural_key=natural_key)
    SeedMarker.objects.select_for_update().get(pk=marker.pk)


def _store_user_if_absent(record):
    with transaction.atomic():
        _claim_seed_key(f"user:{record['email'].lower()}")
        if UserRecord.objects.filter(email__iexact=record['email']).exists():
            return False
        UserRecord.objects.create(**{k: record[k] for k in USER_FIELDS if k in record})
        return True


def _find_user(email):
    return UserRecord.objects.filter(email__iexact=email).values(*USER_FIELDS).first()


def _all_users():
    return list(UserRecord.objects.values(*USER_FIELDS))


def _delete_user(email):
    deleted, _ = UserRecord.objects.filter(email__iexact=email).delete()
    return deleted


def _store_screening(record):
    ScreeningRecord.objects.update_or_create(
        id=record['id'],
        defaults=_defaults(record, SCREENING_FIELDS),
    )


def _store_movie(record, screening_records):
    with transaction.atomic():
        MovieRecord.objects.update_or_create(id=record['id'], defaults=_defaults(record, MOVIE_FIELDS))
        for screening in screening_records:
            _store_screening(screening)


def _store_movie_if_absent(record, screening_records):
    with transaction.atomic():
        _claim_seed_key(f"movie:{record['title'].lower()}")
        if MovieRecord.objects.filter(title__iexact=record['title']).exists():
            return False
        _store_movie(record, screening_records)
        return True


def _delete_screenings(screening_ids):
    TicketRecord.objects.filter(screening_id__in=screening_ids).delete()
    deleted, _ = ScreeningRecord.objects.filter(id__in=screening_ids).delete()
    return deleted


def _delete_movie(movie_id):
    with transaction.atomic():
        screening_ids = list(
            ScreeningRecord.objects.filter(movie_id=movie_id).values_list('id', flat=True)
        )
        _delete_screenings(screening_ids)
        deleted, _ = MovieRecord.objects.filter(id=movie_id).delete()
        return deleted


def _delete_screening(screening_id):
    with transaction.atomic():
        return _delete_screenings([screening_id])


def _store_ticket(record):
    TicketRecord.objects.update_or_create(id=record['id'], defaults=_defaults(record, TICKET_FIELDS))


def _delete_ticket(ticket_id):
    deleted, _ = TicketRecord.objects.filter(id=ticket_id).delete()
    return deleted


def _catalog():
    return {
        'movies': list(MovieRecord.objects.values(*MOVIE_FIELDS)),
        'screenings': list(ScreeningRecord.objects.values(*SCREENING_FIELDS)),
        'tickets': list(TicketRecord.objects.values(*TICKET_FIELDS)),
    }


def _purge_orphan_tickets():
    known = ScreeningRecord.objects.values_list('id', flat=True)
    deleted, _ = TicketRecord.objects.exclude(screening_id__in=known).delete()
    return deleted


class RemoteStore:
    """
    Durable store behind the directory.

    Every operation returns a ``concurrent.futures.Future``. Writes are meant
    to be fired and forgotten: failures are logged by a done-callback and
    never raised into the caller. Reads that a caller has to wait for go
    through ``await_result``, which bounds the wait and falls back to a
    default.

    A store that is disabled, or whose database cannot be reached at
    ``initialize()``, is offline: operations complete immediately with an
    empty result.
    """

    def __init__(self, enabled=True, timeout=5.0, executor=None, using='default'):
        self.enabled = enabled
        self.timeout = timeout
        self.using = using
        self._executor = executor
        self._owns_executor = executor is None
        self._initialized = False

    @classmethod
    def from_settings(cls, **kwargs):
        kwargs.setdefault('enabled', settings.REMOTE_STORE_ENABLED)
        kwargs.setdefault('timeout', settings.REMOTE_STORE_TIMEOUT)
        return cls(**kwargs)

    def initialize(self):
        if self._initialized:
            return True

        if not self.enabled:
            logger.info("Remote store disabled. Using offline mode.")
            return False

        try:
            connections[self.using].ensure_connection()
        except DatabaseError as e:
            logger.warning(f"Remote store unreachable, using offline mode: {str(e)}")
            return False

        if self._executor is None:
            # One worker keeps writes in submission order.
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='remote-store')
        self._initialized = True
        logger.info(f"Remote store initialized (database '{self.using}')")
        return True

    @property
    def is_initialized(self):
        return self._initialized

    def shutdown(self, wait=True):
        if self._initialized and self._owns_executor:
            self._executor.shutdown(wait=wait)
            self._executor = None
        self._initialized = False

    def await_result(self, future, default=None, description='remote call'):
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeoutError:
            logger.warning(f"Remote {description} timed out after {self.timeout}s; continuing offline")
            return default
        except Exception:
            # Already logged by the done-callback.
            return default

    def _submit(self, description, fn, *args, offline_result=None):
        if not self._initialized:
            future = Future()
            future.set_result(offline_result)
            return future

        future = self._executor.submit(self._run, fn, *args)
        future.add_done_callback(partial(self._log_failure, description))
        return future

    def _run(self, fn, *args):
        if not self._owns_executor:
            return fn(*args)
        close_old_connections()
        try:
            return fn(*args)
        finally:
            close_old_connections()

    @staticmethod
    def _log_failure(description, future):
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error(f"Remote {description} failed: {str(error)}")

    # Users

    def save_user(self, record):
        return self._submit(f"save of user {record['email']}", _store_user, record)

    def save_user_if_not_exists(self, record):
        return self._submit(
            f"seed of user {record['email']}", _store_user_if_absent, record,
            offline_result=False,
        )

    def get_user_by_email(self, email):
        return self._submit(f"lookup of user {email}", _find_user, email)

    def fetch_all_users(self):
        return self._submit("user listing", _all_users, offline_result=[])

    def delete_user(self, email):
        return self._submit(f"delete of user {email}", _delete_user, email, offline_result=0)

    # Catalog

    def save_movie(self, movie_record, screening_records=()):
        return self._submit(
            f"save of movie {movie_record['title']}", _store_movie,
            movie_record, list(screening_records),
        )

    def save_movie_if_not_exists(self, movie_record, screening_records=()):
        return self._submit(
            f"seed of movie {movie_record['title']}", _store_movie_if_absent,
            movie_record, list(screening_records), offline_result=False,
        )

    def delete_movie(self, movie_id):
        return self._submit(f"delete of movie {movie_id}", _delete_movie, movie_id, offline_result=0)

    def save_screening(self, record):
        return self._submit(f"save of screening {record['id']}", _store_screening, record)

    def delete_screening(self, screening_id):
        return self._submit(
            f"delete of screening {screening_id}", _delete_screening, screening_id,
            offline_result=0,
        )

    def fetch_catalog(self):
        return self._submit("catalog fetch", _catalog)

    # Tickets

    def save_ticket(self, record):
        return self._submit(f"save of ticket {record['id']}", _store_ticket, record)

    def delete_ticket(self, ticket_id):
        return self._submit(f"delete of ticket {ticket_id}", _delete_ticket, ticket_id, offline_result=0)

    def purge_orphan_tickets(self):
        return self._submit("orphan ticket purge", _purge_orphan_tickets, offline_result=0)
