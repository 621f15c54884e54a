import logging

from django.conf import settings

from accounts.forms import SignUpForm, StaffUserForm, validated
from accounts.users import User, UserRole
from movies.catalog import Movie
from movies.forms import MovieForm, ScreeningForm

from . import records, seeding
from .directory import Directory
from .remote import RemoteStore
from .tickets import ChangeStatus, Ticket, TicketChange

logger = logging.getLogger(__name__)


def email_key(email):
    return (email or '').strip().lower()


class BookingService:
    """
    The booking engine as seen by the UI layer.

    Reads and writes go to the in-memory directory. Every mutation is then
    sent to the remote store without waiting; a failed write is logged and
    the in-memory state stays as it is.
    """

    def __init__(self, directory=None, remote=None, rows=None, seats_per_row=None):
        self.directory = directory or Directory()
        self.remote = remote or RemoteStore(enabled=False)
        self.rows = rows or settings.SCREENING_ROWS
        self.seats_per_row = seats_per_row or settings.SCREENING_SEATS_PER_ROW
        self.current_user = None

    def close(self):
        self.remote.shutdown()

    # Bootstrap

    def bootstrap(self, seed_sample_data=None):
        if seed_sample_data is None:
            seed_sample_data = settings.SEED_SAMPLE_DATA

        for user in seeding.staff_users():
            user = self._seed_user(user)
            self.directory.users.put_if_absent(email_key(user.email), user)

        if not seed_sample_data:
            return

        movies = seeding.sample_movies()
        if self.remote.is_initialized:
            seeding.seed_remote(self.remote, users=[], movies=movies)
            if not self.refresh_catalog():
                # Local copies would get fresh ids and duplicate the stored
                # movies once a later read-through succeeds.
                logger.warning("Catalog refresh failed during bootstrap; sample movies load with the next refresh")
                return

        # Whatever the store did not return is served locally, under the id it was seeded with.
        known_titles = {m.title.lower() for m in self.directory.movies.values()}
        for movie in movies:
            if movie.title.lower() not in known_titles:
                self.directory.add_movie(movie)

        logger.info(f"Bootstrap complete: {len(self.directory.movies)} movies, {len(self.directory.screenings)} screenings")

    def _seed_user(self, user):
        if not self.remote.is_initialized:
            return user

        created = self.remote.await_result(
            self.remote.save_user_if_not_exists(records.user_record(user)),
            default=False,
            description=f"seed of user {user.email}",
        )
        if created:
            return user

        record = self.remote.await_result(
            self.remote.get_user_by_email(user.email),
            description=f"lookup of user {user.email}",
        )
        return records.user_from_record(record) if record else user

    # Users

    def login(self, email, credential):
        key = email_key(email)
        if not key or credential is None:
            return None

        user = self.directory.users.get(key)
        if user is None:
            user = self._fetch_remote_user(key)

        if user is not None and user.check_credential(credential):
            self.current_user = user
            logger.info(f"User {key} logged in as {user.role.display_name}")
            return user

        logger.info(f"Failed login attempt for {key}")
        return None

    def _fetch_remote_user(self, key):
        if not self.remote.is_initialized:
            return None

        record = self.remote.await_result(
            self.remote.get_user_by_email(key),
            description=f"lookup of user {key}",
        )
        if not record:
            return None

        user = self.directory.users.put_if_absent(key, records.user_from_record(record))
        self._attach_owned_tickets(user)
        return user

    def _attach_owned_tickets(self, user):
        with self.directory.lock:
            for ticket in self.directory.tickets.filter(lambda t: t.owner is None and t.owner_id == user.id):
                ticket.owner = user
                user.add_ticket(ticket)

    def login_as_guest(self):
        self.current_user = User.guest()
        return self.current_user

    def logout(self):
        self.current_user = None

    def is_email_registered(self, email):
        return email_key(email) in self.directory.users

    def register_user(self, email, first_name, last_name, phone, credential):
        """
        Create a regular user and log them in.

        Raises ValidationError for malformed input. Returns None if the email
        is already registered.
        """
        data = validated(SignUpForm(data={
            'email': email,
            'first_name': first_name,
            'last_name': last_name,
            'phone': phone,
            'credential': credential,
        }))
        user = self._add_user(data, UserRole.REGULAR_USER)
        if user is not None:
            self.current_user = user
        return user

    def register_staff_user(self, email, first_name, last_name, phone, credential, role):
        data = validated(StaffUserForm(data={
            'email': email,
            'first_name': first_name,
            'last_name': last_name,
            'phone': phone,
            'credential': credential,
            'role': role.name if isinstance(role, UserRole) else role,
        }))
        return self._add_user(data, data['role']) is not None

    def _add_user(self, data, role):
        key = data['email']
        if key in self.directory.users or self._fetch_remote_user(key) is not None:
            logger.info(f"Registration refused, {key} is already registered")
            return None

        user = User(
            email=key,
            first_name=data['first_name'],
            last_name=data['last_name'],
            phone=data['phone'],
            credential=data['credential'],
            role=role,
        )
        if self.directory.users.put_if_absent(key, user) is not user:
            logger.info(f"Registration refused, {key} is already registered")
            return None

        self.remote.save_user(records.user_record(user))
        logger.info(f"Registered {role.display_name} {key}")
        return user

    def get_all_users(self):
        if self.remote.is_initialized:
            remote_users = self.remote.await_result(
                self.remote.fetch_all_users(),
                default=[],
                description="user listing",
            )
            for record in remote_users:
                self.directory.users.put_if_absent(email_key(record['email']), records.user_from_record(record))

        users = self.directory.users.filter(lambda u: not u.is_guest)
        return sorted(users, key=lambda u: u.email)

    def delete_user(self, email):
        key = email_key(email)
        user = self.directory.users.pop(key)
        if user is None:
            return False

        if self.current_user is user:
            self.current_user = None

        self.remote.delete_user(key)
        logger.info(f"Deleted user {key}")
        return True

    # Catalog

    def refresh_catalog(self):
        """Pull the remote catalog and merge what this process does not know yet."""
        if not self.remote.is_initialized:
            return False

        catalog = self.remote.await_result(self.remote.fetch_catalog(), description="catalog fetch")
        if not catalog:
            return False

        with self.directory.lock:
            self._merge_catalog(catalog)
        return True

    def _merge_catalog(self, catalog):
        movies_added = 0
        for record in catalog.get('movies', []):
            if record['id'] not in self.directory.movies:
                self.directory.movies.put(record['id'], records.movie_from_record(record))
                movies_added += 1

        merged = {}
        for record in catalog.get('screenings', []):
            if record['id'] in self.directory.screenings:
                continue
            movie = self.directory.movies.get(record['movie_id'])
            if movie is None:
                logger.warning(f"Remote screening {record['id']} refers to unknown movie {record['movie_id']}")
                continue
            screening = records.screening_from_record(record, movie, self.rows, self.seats_per_row)
            self.directory.screenings.put(screening.id, screening)
            merged[screening.id] = (screening, record)

        # Only tickets of screenings merged just now: a remote ticket for a
        # screening this process already owns may be one it has cancelled.
        tickets_added = 0
        for record in catalog.get('tickets', []):
            if record['id'] in self.directory.tickets or record['screening_id'] not in merged:
                continue
            screening = merged[record['screening_id']][0]
            owner = self.directory.find_user_by_id(record.get('user_id')) if record.get('user_id') else None
            ticket = records.ticket_from_record(record, screening, owner)
            if ticket is None or not screening.seat_grid.reserve_all(ticket.seat_keys):
                logger.warning(f"Skipping remote ticket {record['id']}: seats unknown or already held")
                continue
            self.directory.add_ticket(ticket)
            tickets_added += 1

        for screening, record in merged.values():
            drift = set(record.get('reserved_seats') or []) - set(screening.seat_grid.reserved_labels())
            if drift:
                logger.warning(f"Screening {screening.id} lists reserved seats without tickets: {sorted(drift)}")

        if movies_added or merged or tickets_added:
            logger.info(f"Merged remote catalog: {movies_added} movies, {len(merged)} screenings, {tickets_added} tickets")

    def get_all_movies(self):
        self.refresh_catalog()
        return sorted(self.directory.movies.values(), key=lambda m: m.title)

    def get_movies_with_screenings_on(self, date):
        return [m for m in self.get_all_movies() if m.screenings_on(date)]

    def get_screenings_on(self, date):
        screenings = self.directory.screenings.filter(lambda s: s.date == date)
        return sorted(screenings, key=lambda s: (s.time, s.hall))

    def get_movie(self, movie_id):
        return self.directory.movies.get(movie_id)

    def get_screening(self, screening_id):
        return self.directory.screenings.get(screening_id)

    def add_movie(self, title, description, genre, duration_minutes, poster_ref, rating,
                  screening_date, start_time, end_time, hall, price):
        data = validated(MovieForm(data={
            'title': title,
            'description': description,
            'genre': genre,
            'duration_minutes': duration_minutes,
            'poster_ref': poster_ref,
            'rating': rating,
            'screening_date': screening_date,
            'start_time': start_time,
            'end_time': end_time,
            'hall': hall,
            'price': price,
        }))

        movie = Movie(
            title=data['title'],
            description=data['description'],
            genre=data['genre'],
            duration_minutes=data['duration_minutes'],
            poster_ref=data['poster_ref'],
            rating=data['rating'],
        )
        movie.add_screening(
            date=data['screening_date'],
            time=data['start_time'],
            hall=data['hall'],
            price=data['price'],
            rows=self.rows,
            seats_per_row=self.seats_per_row,
        )
        self.directory.add_movie(movie)

        self.remote.save_movie(
            records.movie_record(movie),
            [records.screening_record(s) for s in movie.screenings],
        )
        logger.info(f"Added movie {movie.title} ({movie.id})")
        return movie

    def add_screening_to_movie(self, movie_id, date, time, hall, price):
        """Returns the new screening, or None if the movie is unknown."""
        data = validated(ScreeningForm(data={
            'date': date,
            'time': time,
            'hall': hall,
            'price': price,
        }))

        with self.directory.lock:
            movie = self.directory.movies.get(movie_id)
            if movie is None:
                logger.warning(f"Cannot add screening, movie {movie_id} not found")
                return None
            screening = movie.add_screening(
                date=data['date'],
                time=data['time'],
                hall=data['hall'],
                price=data['price'],
                rows=self.rows,
                seats_per_row=self.seats_per_row,
            )
            self.directory.screenings.put(screening.id, screening)

        self.remote.save_screening(records.screening_record(screening))
        return screening

    def delete_movie(self, movie_id):
        movie, tickets = self.directory.remove_movie(movie_id)
        if movie is None:
            return False

        self.remote.delete_movie(movie_id)
        logger.info(f"Deleted movie {movie.title} with {len(movie.screenings)} screenings and {len(tickets)} tickets")
        return True

    def delete_screening(self, screening_id):
        screening, tickets = self.directory.remove_screening(screening_id)
        if screening is None:
            return False

        self.remote.delete_screening(screening_id)
        logger.info(f"Deleted screening {screening_id} and {len(tickets)} tickets")
        return True

    # Tickets

    def _resolve_screening(self, screening):
        return self.directory.screenings.get(getattr(screening, 'id', screening))

    def create_ticket(self, screening, seats, first_name=None, last_name=None, user=None):
        """
        Reserve ``seats`` and issue a ticket.

        The ticket belongs to ``user`` (default: the logged-in user) unless
        that is a guest. Returns ``(ticket, success, error_message)``.
        """
        owner = user if user is not None else self.current_user
        if owner is not None and owner.is_guest:
            owner = None

        if owner is not None:
            first_name = first_name or owner.first_name
            last_name = last_name or owner.last_name

        return self._issue_ticket(screening, seats, first_name, last_name, owner)

    def create_ticket_for_customer(self, screening, seats, first_name, last_name):
        """Box-office sale: the ticket is not attached to any account."""
        return self._issue_ticket(screening, seats, first_name, last_name, owner=None)

    def _issue_ticket(self, screening, seats, first_name, last_name, owner, owner_id=None):
        screening = self._resolve_screening(screening)
        if screening is None:
            return None, False, "Screening not found"

        first_name = (first_name or '').strip()
        last_name = (last_name or '').strip()
        if not first_name or not last_name:
            return None, False, "Customer first and last name are required"

        grid = screening.seat_grid
        selected = grid.resolve(seats or [])
        if not selected:
            return None, False, "Invalid seat selection"

        keys = [seat.key for seat in selected]
        if not grid.reserve_all(keys):
            return None, False, "One or more seats are no longer available"

        try:
            ticket = Ticket(
                screening=screening,
                seats=selected,
                customer_first_name=first_name,
                customer_last_name=last_name,
                owner=owner,
                owner_id=owner_id,
            )
            with self.directory.lock:
                if screening.id not in self.directory.screenings:
                    grid.release_all(keys)
                    return None, False, "Screening not found"
                self.directory.add_ticket(ticket)

        except Exception as e:
            logger.error(f"Error creating ticket: {str(e)}")
            grid.release_all(keys)
            return None, False, str(e)

        logger.info(f"Ticket {ticket.id} issued for {screening.movie_title} seats {ticket.get_seats_display()}")
        self._persist_ticket(ticket)
        return ticket, True, None

    def _persist_ticket(self, ticket):
        self.remote.save_ticket(records.ticket_record(ticket))
        self.remote.save_screening(records.screening_record(ticket.screening))

    def cancel_ticket(self, ticket_id):
        with self.directory.lock:
            ticket = self.directory.remove_ticket(ticket_id)
            if ticket is None:
                return False
            ticket.screening.seat_grid.release_all(ticket.seat_keys)
            screening_alive = ticket.screening.id in self.directory.screenings

        self.remote.delete_ticket(ticket_id)
        if screening_alive:
            self.remote.save_screening(records.screening_record(ticket.screening))

        logger.info(f"Ticket {ticket_id} cancelled, seats {ticket.get_seats_display()} released")
        return True

    def change_ticket(self, old_ticket_id, new_screening, new_seats):
        """
        Swap a ticket for seats in another (or the same) screening.

        Implemented as cancel then create. If the create fails the old ticket
        is put back when its seats are still free; the returned TicketChange
        says which of these happened.
        """
        old = self.directory.tickets.get(old_ticket_id)
        if old is None:
            return TicketChange(ChangeStatus.REJECTED, error="Ticket not found")

        screening = self._resolve_screening(new_screening)
        if screening is None:
            return TicketChange(ChangeStatus.REJECTED, previous=old, error="Screening not found")

        if not screening.seat_grid.resolve(new_seats or []):
            return TicketChange(ChangeStatus.REJECTED, previous=old, error="Invalid seat selection")

        if not self.cancel_ticket(old.id):
            return TicketChange(ChangeStatus.REJECTED, error="Ticket not found")

        ticket, success, error = self._issue_ticket(
            screening,
            new_seats,
            old.customer_first_name,
            old.customer_last_name,
            owner=old.owner,
            owner_id=old.owner_id,
        )
        if success:
            logger.info(f"Ticket {old.id} changed to {ticket.id}")
            return TicketChange(ChangeStatus.CHANGED, previous=old, ticket=ticket)

        if self._reinstate(old):
            logger.warning(f"Change of ticket {old.id} failed ({error}); original ticket restored")
            return TicketChange(ChangeStatus.RESTORED, previous=old, error=error)

        logger.error(f"Change of ticket {old.id} failed ({error}) and its seats are gone; customer {old.get_customer_full_name()} has no ticket")
        return TicketChange(ChangeStatus.LOST, previous=old, error=error)

    def _reinstate(self, ticket):
        screening = ticket.screening
        with self.directory.lock:
            if screening.id not in self.directory.screenings:
                return False
            if not screening.seat_grid.reserve_all(ticket.seat_keys):
                return False
            self.directory.add_ticket(ticket)

        self._persist_ticket(ticket)
        return True

    def mark_ticket_used(self, ticket_id):
        ticket = self.directory.tickets.get(ticket_id)
        if ticket is None:
            return False

        if ticket.used:
            logger.warning(f"Ticket {ticket_id} was already used")
            return False

        ticket.mark_used()
        self.remote.save_ticket(records.ticket_record(ticket))
        return True

    def get_ticket(self, ticket_id):
        return self.directory.tickets.get(ticket_id)

    def get_tickets_for_screening(self, screening_id):
        tickets = self.directory.tickets_for_screening(screening_id)
        return sorted(tickets, key=lambda t: t.purchased_at)

    def get_current_user_tickets(self):
        user = self.current_user
        if user is None or user.is_guest:
            return []
        return list(user.tickets)


def build_booking_service(remote=None, bootstrap=True):
    """Construct a service wired to the configured remote store."""
    remote = remote or RemoteStore.from_settings()
    remote.initialize()

    service = BookingService(remote=remote)
    if bootstrap:
        service.bootstrap()
    return service
