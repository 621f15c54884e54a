from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='TicketRecord',
            fields=[
                ('id', models.CharField(max_length=36, primary_key=True, serialize=False)),
                ('screening_id', models.CharField(db_index=True, max_length=36)),
                ('movie_title', models.CharField(max_length=200)),
                ('screening_date', models.DateField()),
                ('screening_time', models.TimeField()),
                ('hall', models.CharField(max_length=50)),
                ('customer_first_name', models.CharField(max_length=100)),
                ('customer_last_name', models.CharField(max_length=100)),
                ('user_id', models.CharField(blank=True, db_index=True, max_length=36, null=True)),
                ('seats', models.JSONField(default=list)),
                ('total_price', models.DecimalField(decimal_places=2, max_digits=10)),
                ('used', models.BooleanField(default=False)),
                ('purchased_at', models.DateTimeField()),
            ],
            options={
                'db_table': 'tickets',
                'ordering': ['-purchased_at'],
            },
        ),
        migrations.CreateModel(
            name='SeedMarker',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('natural_key', models.CharField(max_length=255, unique=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'seed_markers',
            },
        ),
    ]
