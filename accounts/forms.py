import re

from django import forms
from django.core.exceptions import ValidationError

from .users import UserRole


class SignUpForm(forms.Form):

    email = forms.EmailField(
        error_messages={
            'required': 'Please enter an email address.',
            'invalid': 'Please enter a valid email address.',
        },
    )
    first_name = forms.CharField(
        max_length=100,
        min_length=2,
        error_messages={'required': 'Please enter a first name.'},
    )
    last_name = forms.CharField(
        max_length=100,
        min_length=2,
        error_messages={'required': 'Please enter a last name.'},
    )
    phone = forms.CharField(max_length=30)
    credential = forms.CharField(
        min_length=6,
        error_messages={'min_length': 'Password must be at least 6 characters.'},
    )

    def clean_email(self):
        return self.cleaned_data['email'].strip().lower()

    def clean_phone(self):
        phone = re.sub(r'[\s\-()]', '', self.cleaned_data.get('phone', ''))

        if not re.fullmatch(r'[0-9]{10,15}', phone):
            raise forms.ValidationError('Phone number must have 10 to 15 digits.')

        return phone


class StaffUserForm(SignUpForm):

    role = forms.ChoiceField(choices=[
        (role.name, role.display_name) for role in UserRole if role is not UserRole.GUEST
    ])

    def clean_role(self):
        return UserRole[self.cleaned_data['role']]


def validated(form):
    """Return cleaned data or raise ValidationError carrying every field error."""
    if not form.is_valid():
        raise ValidationError(form.errors.as_data())
    return form.cleaned_data
