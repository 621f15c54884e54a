from django.test import SimpleTestCase

from .forms import SignUpForm, StaffUserForm
from .users import User, UserRole


class SignUpFormTests(SimpleTestCase):

    def form_data(self, **overrides):
        data = {
            'email': 'John.Doe@Example.com ',
            'first_name': 'John',
            'last_name': 'Doe',
            'phone': '(555) 123-4567',
            'credential': 'secret1',
        }
        data.update(overrides)
        return data

    def test_valid_signup_normalizes_email_and_phone(self):

        form = SignUpForm(data=self.form_data())

        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.cleaned_data['email'], 'john.doe@example.com')
        self.assertEqual(form.cleaned_data['phone'], '5551234567')

    def test_invalid_email(self):

        form = SignUpForm(data=self.form_data(email='not-an-email'))

        self.assertFalse(form.is_valid())
        self.assertIn('email', form.errors)

    def test_short_password(self):

        form = SignUpForm(data=self.form_data(credential='12345'))

        self.assertFalse(form.is_valid())
        self.assertIn('credential', form.errors)

    def test_short_names(self):

        form = SignUpForm(data=self.form_data(first_name='J', last_name='D'))

        self.assertFalse(form.is_valid())
        self.assertIn('first_name', form.errors)
        self.assertIn('last_name', form.errors)

    def test_phone_digit_count(self):

        for phone in ['12345', '1234567890123456', '555-CALL-NOW']:
            form = SignUpForm(data=self.form_data(phone=phone))
            self.assertFalse(form.is_valid(), phone)
            self.assertIn('phone', form.errors)


class StaffUserFormTests(SimpleTestCase):

    def test_role_is_returned_as_enum(self):

        form = StaffUserForm(data={
            'email': 'cashier2@cinema.com',
            'first_name': 'Box',
            'last_name': 'Office',
            'phone': '5550001111',
            'credential': 'cashier123',
            'role': 'CASHIER',
        })

        self.assertTrue(form.is_valid(), form.errors)
        self.assertIs(form.cleaned_data['role'], UserRole.CASHIER)

    def test_guest_role_cannot_be_registered(self):

        form = StaffUserForm(data={
            'email': 'guest@cinema.com',
            'first_name': 'Some',
            'last_name': 'Guest',
            'phone': '5550001111',
            'credential': 'guest123',
            'role': 'GUEST',
        })

        self.assertFalse(form.is_valid())
        self.assertIn('role', form.errors)


class UserTests(SimpleTestCase):

    def test_role_from_name(self):

        self.assertIs(UserRole.from_name('ADMIN'), UserRole.ADMIN)
        self.assertIs(UserRole.from_name('cashier'), UserRole.CASHIER)
        self.assertIs(UserRole.from_name('unknown'), UserRole.REGULAR_USER)
        self.assertIs(UserRole.from_name(None), UserRole.REGULAR_USER)

    def test_guest(self):

        guest = User.guest()

        self.assertTrue(guest.is_guest)
        self.assertFalse(guest.is_staff)
        self.assertIsNone(guest.email)
        self.assertEqual(guest.get_full_name(), 'Guest User')

    def test_staff_roles(self):

        self.assertTrue(User('a@b.com', 'Ad', 'Min', role=UserRole.ADMIN).is_staff)
        self.assertTrue(User('c@b.com', 'Ca', 'Shier', role=UserRole.CASHIER).is_staff)
        self.assertFalse(User('u@b.com', 'Re', 'Gular').is_staff)

    def test_check_credential(self):

        user = User('jane@example.com', 'Jane', 'Roe', credential='pass123')

        self.assertTrue(user.check_credential('pass123'))
        self.assertFalse(user.check_credential('PASS123'))
        self.assertFalse(user.check_credential(None))
