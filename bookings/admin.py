from django.contrib import admin
from .models import SeedMarker, TicketRecord

@admin.register(TicketRecord)
class TicketRecordAdmin(admin.ModelAdmin):
    list_display = ['id', 'movie_title', 'screening_date', 'screening_time', 'hall', 'customer', 'seat_list', 'total_price', 'used']
    list_filter = ['used', 'screening_date', 'hall']
    search_fields = ['id', 'customer_first_name', 'customer_last_name', 'movie_title']
    readonly_fields = ['id', 'screening_id', 'user_id', 'purchased_at']
    actions = ['export_as_csv']

    fieldsets = [
        ('Ticket Information', {
            'fields': ['id', 'screening_id', 'movie_title', 'screening_date', 'screening_time', 'hall', 'seats']
        }),
        ('Customer', {
            'fields': ['customer_first_name', 'customer_last_name', 'user_id']
        }),
        ('Payment', {
            'fields': ['total_price', 'used', 'purchased_at']
        }),
    ]

    def customer(self, obj):
        return f"{obj.customer_first_name} {obj.customer_last_name}"

    def seat_list(self, obj):
        return obj.get_seats_display()
    seat_list.short_description = 'Seats'

    @admin.action(description="Export selected tickets to CSV")
    def export_as_csv(self, request, queryset):
        import csv
        from django.http import HttpResponse
        response = HttpResponse(content_type='text/csv')
        response['Content-Disposition'] = 'attachment; filename="selected_tickets.csv"'
        writer = csv.writer(response)
        writer.writerow(['Ticket ID', 'Customer', 'Movie', 'Date', 'Time', 'Seats', 'Amount', 'Used'])

        for ticket in queryset:
            writer.writerow([
                ticket.id,
                self.customer(ticket),
                ticket.movie_title,
                ticket.screening_date,
                ticket.screening_time.strftime('%H:%M'),
                ticket.get_seats_display(),
                ticket.total_price,
                ticket.used,
            ])
        return response

@admin.register(SeedMarker)
class SeedMarkerAdmin(admin.ModelAdmin):
    list_display = ['natural_key', 'created_at']
    search_fields = ['natural_key']
