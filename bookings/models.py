from django.db import models


class TicketRecord(models.Model):

    id = models.CharField(max_length=36, primary_key=True)
    screening_id = models.CharField(max_length=36, db_index=True)
    movie_title = models.CharField(max_length=200)
    screening_date = models.DateField()
    screening_time = models.TimeField()
    hall = models.CharField(max_length=50)

    customer_first_name = models.CharField(max_length=100)
    customer_last_name = models.CharField(max_length=100)
    user_id = models.CharField(max_length=36, null=True, blank=True, db_index=True)

    seats = models.JSONField(default=list)
    total_price = models.DecimalField(max_digits=10, decimal_places=2)
    used = models.BooleanField(default=False)
    purchased_at = models.DateTimeField()

    class Meta:
        db_table = 'tickets'
        ordering = ['-purchased_at']

    def __str__(self):
        return f"{self.id} - {self.customer_first_name} {self.customer_last_name}"

    def get_seats_display(self):
        if isinstance(self.seats, list):
            return ", ".join(self.seats)
        return str(self.seats)


class SeedMarker(models.Model):
    """One row per natural key ever seeded ("user:<email>", "movie:<title>")."""

    natural_key = models.CharField(max_length=255, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'seed_markers'

    def __str__(self):
        return self.natural_key
