import os
from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'cinema.settings')

app = Celery('cinema')
app.config_from_object('django.conf:settings', namespace='CELERY')

app.autodiscover_tasks()

app.conf.beat_schedule = {
    'seed-remote-store-hourly': {
        'task': 'bookings.tasks.seed_remote_store',
        'schedule': 3600.0,  # Every hour
    },
    'purge-orphan-tickets-daily': {
        'task': 'bookings.tasks.purge_orphan_tickets',
        'schedule': 86400.0,  # Daily
    },
}
