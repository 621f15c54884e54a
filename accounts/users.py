import uuid
from enum import Enum


class UserRole(Enum):
    REGULAR_USER = 'Regular User'
    GUEST = 'Guest'
    CASHIER = 'Cashier'
    ADMIN = 'Admin'

    @property
    def display_name(self):
        return self.value

    @classmethod
    def from_name(cls, name):
        try:
            return cls[str(name).upper()]
        except KeyError:
            return cls.REGULAR_USER


class User:

    def __init__(self, email, first_name, last_name, phone='', credential='',
                 role=UserRole.REGULAR_USER, user_id=None):
        self.id = user_id or str(uuid.uuid4())
        self.email = email
        self.first_name = first_name
        self.last_name = last_name
        self.phone = phone
        self.credential = credential
        self.role = role
        self.tickets = []

    @classmethod
    def guest(cls):
        return cls(email=None, first_name='Guest', last_name='User', role=UserRole.GUEST)

    @property
    def is_guest(self):
        return self.role is UserRole.GUEST

    @property
    def is_staff(self):
        return self.role in (UserRole.CASHIER, UserRole.ADMIN)

    def get_full_name(self):
        return f"{self.first_name} {self.last_name}"

    def check_credential(self, credential):
        # Opaque comparison; credentials are not hashed in this system.
        return self.credential is not None and self.credential == credential

    def add_ticket(self, ticket):
        if ticket not in self.tickets:
            self.tickets.append(ticket)

    def remove_ticket(self, ticket):
        if ticket in self.tickets:
            self.tickets.remove(ticket)

    def __repr__(self):
        return f"User({self.email or self.id}, {self.role.name})"
