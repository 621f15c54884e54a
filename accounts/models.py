from django.db import models


class UserRecord(models.Model):
    ROLE_CHOICES = (
        ('REGULAR_USER', 'Regular User'),
        ('CASHIER', 'Cashier'),
        ('ADMIN', 'Admin'),
    )

    id = models.CharField(max_length=36, primary_key=True)
    email = models.EmailField(unique=True)
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    phone = models.CharField(max_length=20, blank=True)
    credential = models.CharField(max_length=128)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='REGULAR_USER', db_index=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'users'
        ordering = ['email']

    def __str__(self):
        return f"{self.email} ({self.role})"
