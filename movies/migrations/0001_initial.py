from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='MovieRecord',
            fields=[
                ('id', models.CharField(max_length=36, primary_key=True, serialize=False)),
                ('title', models.CharField(db_index=True, max_length=200)),
                ('description', models.TextField(blank=True)),
                ('genre', models.CharField(blank=True, max_length=100)),
                ('duration_minutes', models.IntegerField(help_text='Duration in minutes')),
                ('poster_ref', models.CharField(blank=True, max_length=500)),
                ('rating', models.CharField(blank=True, max_length=10)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'movies',
                'ordering': ['title'],
            },
        ),
        migrations.CreateModel(
            name='ScreeningRecord',
            fields=[
                ('id', models.CharField(max_length=36, primary_key=True, serialize=False)),
                ('movie_id', models.CharField(db_index=True, max_length=36)),
                ('movie_title', models.CharField(max_length=200)),
                ('date', models.DateField(db_index=True)),
                ('time', models.TimeField()),
                ('hall', models.CharField(max_length=50)),
                ('price', models.DecimalField(decimal_places=2, max_digits=8)),
                ('total_rows', models.IntegerField(default=6)),
                ('seats_per_row', models.IntegerField(default=10)),
                ('reserved_seats', models.JSONField(default=list)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'screenings',
                'ordering': ['date', 'time'],
            },
        ),
    ]
