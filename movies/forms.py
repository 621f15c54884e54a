from decimal import Decimal

from django import forms


class ScreeningForm(forms.Form):

    date = forms.DateField()
    time = forms.TimeField()
    hall = forms.CharField(max_length=50)
    price = forms.DecimalField(min_value=Decimal('0'), max_digits=8, decimal_places=2)


class MovieForm(forms.Form):

    title = forms.CharField(max_length=200, error_messages={'required': 'Please enter a title.'})
    description = forms.CharField(required=False)
    genre = forms.CharField(max_length=100, required=False)
    duration_minutes = forms.IntegerField(min_value=1)
    poster_ref = forms.CharField(max_length=500, required=False)
    rating = forms.CharField(max_length=10, required=False)

    screening_date = forms.DateField()
    start_time = forms.TimeField()
    end_time = forms.TimeField(required=False)
    hall = forms.CharField(max_length=50)
    price = forms.DecimalField(min_value=Decimal('0'), max_digits=8, decimal_places=2)

    def clean_title(self):
        title = self.cleaned_data['title'].strip()
        if not title:
            raise forms.ValidationError('Please enter a title.')
        return title

    def clean(self):
        cleaned_data = super().clean()
        start_time = cleaned_data.get('start_time')
        end_time = cleaned_data.get('end_time')

        if start_time and end_time and end_time <= start_time:
            self.add_error('end_time', 'End time must be after the start time.')

        return cleaned_data
