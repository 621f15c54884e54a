import threading


class Table:

    def __init__(self, name, lock):
        self.name = name
        self._lock = lock
        self._rows = {}

    def get(self, key):
        with self._lock:
            return self._rows.get(key)

    def put(self, key, value):
        with self._lock:
            self._rows[key] = value

    def put_if_absent(self, key, value):
        """Store value unless key is taken; returns the value now held."""
        with self._lock:
            return self._rows.setdefault(key, value)

    def pop(self, key):
        with self._lock:
            return self._rows.pop(key, None)

    def remove_where(self, predicate):
        with self._lock:
            doomed = [k for k, v in self._rows.items() if predicate(v)]
            return [self._rows.pop(k) for k in doomed]

    def __contains__(self, key):
        with self._lock:
            return key in self._rows

    def __len__(self):
        with self._lock:
            return len(self._rows)

    def values(self):
        with self._lock:
            return list(self._rows.values())

    def filter(self, predicate):
        with self._lock:
            return [v for v in self._rows.values() if predicate(v)]


class Directory:
    """
    The in-memory working set of the running process.

    All four tables share one re-entrant lock. Holding ``directory.lock``
    makes a multi-table change (cascade delete, ticket insert plus owner
    attach) invisible to readers until it is complete.
    """

    def __init__(self):
        self.lock = threading.RLock()
        self.users = Table('users', self.lock)            # keyed by email
        self.movies = Table('movies', self.lock)          # keyed by id
        self.screenings = Table('screenings', self.lock)  # keyed by id
        self.tickets = Table('tickets', self.lock)        # keyed by id

    def find_user_by_id(self, user_id):
        matches = self.users.filter(lambda u: u.id == user_id)
        return matches[0] if matches else None

    def tickets_for_screening(self, screening_id):
        return self.tickets.filter(lambda t: t.screening.id == screening_id)

    def add_movie(self, movie):
        with self.lock:
            self.movies.put(movie.id, movie)
            for screening in movie.screenings:
                self.screenings.put(screening.id, screening)

    def add_ticket(self, ticket):
        with self.lock:
            self.tickets.put(ticket.id, ticket)
            if ticket.owner is not None and not ticket.owner.is_guest:
                ticket.owner.add_ticket(ticket)

    def remove_ticket(self, ticket_id):
        with self.lock:
            ticket = self.tickets.pop(ticket_id)
            if ticket is not None and ticket.owner is not None:
                ticket.owner.remove_ticket(ticket)
            return ticket

    def remove_screening(self, screening_id):
        """Drop a screening and every ticket issued for it."""
        with self.lock:
            screening = self.screenings.pop(screening_id)
            if screening is None:
                return None, []
            if screening.movie is not None:
                screening.movie.detach_screening(screening)
            tickets = self._drop_tickets({screening_id})
            return screening, tickets

    def remove_movie(self, movie_id):
        """Drop a movie, its screenings and their tickets in one step."""
        with self.lock:
            movie = self.movies.pop(movie_id)
            if movie is None:
                return None, []
            screening_ids = {s.id for s in movie.screenings}
            for screening_id in screening_ids:
                self.screenings.pop(screening_id)
            tickets = self._drop_tickets(screening_ids)
            return movie, tickets

    def _drop_tickets(self, screening_ids):
        tickets = self.tickets.remove_where(lambda t: t.screening.id in screening_ids)
        for ticket in tickets:
            if ticket.owner is not None:
                ticket.owner.remove_ticket(ticket)
        return tickets
