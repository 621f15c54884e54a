from django.db import models


class MovieRecord(models.Model):

    id = models.CharField(max_length=36, primary_key=True)
    title = models.CharField(max_length=200, db_index=True)
    description = models.TextField(blank=True)
    genre = models.CharField(max_length=100, blank=True)
    duration_minutes = models.IntegerField(help_text="Duration in minutes")
    poster_ref = models.CharField(max_length=500, blank=True)
    rating = models.CharField(max_length=10, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'movies'
        ordering = ['title']

    def __str__(self):
        return self.title


class ScreeningRecord(models.Model):

    id = models.CharField(max_length=36, primary_key=True)
    # Plain ids, not foreign keys: records arrive independently and a ticket
    # may be written before or without its screening.
    movie_id = models.CharField(max_length=36, db_index=True)
    movie_title = models.CharField(max_length=200)

    date = models.DateField(db_index=True)
    time = models.TimeField()
    hall = models.CharField(max_length=50)
    price = models.DecimalField(max_digits=8, decimal_places=2)

    total_rows = models.IntegerField(default=6)
    seats_per_row = models.IntegerField(default=10)
    reserved_seats = models.JSONField(default=list)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'screenings'
        ordering = ['date', 'time']

    def __str__(self):
        return f"{self.movie_title} - {self.date} {self.time} ({self.hall})"
