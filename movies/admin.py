from django.contrib import admin
from .models import MovieRecord, ScreeningRecord

@admin.register(MovieRecord)
class MovieRecordAdmin(admin.ModelAdmin):
    list_display = ['title', 'genre', 'duration_minutes', 'rating', 'screening_count']
    search_fields = ['title', 'genre']
    readonly_fields = ['id', 'created_at', 'updated_at']

    def screening_count(self, obj):
        return ScreeningRecord.objects.filter(movie_id=obj.id).count()
    screening_count.short_description = 'Screenings'

@admin.register(ScreeningRecord)
class ScreeningRecordAdmin(admin.ModelAdmin):
    list_display = ['movie_title', 'date', 'time', 'hall', 'price', 'occupancy']
    list_filter = ['date', 'hall']
    search_fields = ['movie_title', 'hall']
    readonly_fields = ['id', 'movie_id', 'reserved_seats', 'updated_at']

    def occupancy(self, obj):
        total = obj.total_rows * obj.seats_per_row
        return f"{len(obj.reserved_seats or [])}/{total}"
    occupancy.short_description = 'Reserved'
